"""Minimal reader for BAM alignment files."""

from __future__ import annotations

import gzip
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

_SEQ_CODES = "=ACMGRSVTWYHKDBN"

CIGAR_MATCH = 0
CIGAR_INS = 1
CIGAR_DEL = 2
CIGAR_REF_SKIP = 3
CIGAR_SOFT_CLIP = 4
CIGAR_HARD_CLIP = 5
CIGAR_PAD = 6
CIGAR_EQUAL = 7
CIGAR_DIFF = 8

_CONSUMES_QUERY = {CIGAR_MATCH, CIGAR_INS, CIGAR_SOFT_CLIP, CIGAR_EQUAL, CIGAR_DIFF}
_CONSUMES_REF = {CIGAR_MATCH, CIGAR_DEL, CIGAR_REF_SKIP, CIGAR_EQUAL, CIGAR_DIFF}

_RECORD_CORE = struct.Struct("<iiBBHHHiiii")


@dataclass
class BamRead:
    """One aligned read."""

    name: str
    tid: int
    pos: int
    mapq: int
    cigar: list[tuple[int, int]] = field(default_factory=list)
    seq: str = ""
    qual: bytes = b""

    @property
    def l_qseq(self) -> int:
        return len(self.seq)

    @property
    def end(self) -> int:
        """Reference position one past the last aligned base."""
        span = sum(length for op, length in self.cigar if op in _CONSUMES_REF)
        return self.pos + (span if span else 1)

    def base_at(self, index: int) -> str:
        """Base letter at a query index."""
        return self.seq[index]

    def quality_at(self, index: int) -> int:
        """Base quality at a query index (255 when absent)."""
        return self.qual[index]


def read_relative_position(read: BamRead, ref_pos: int) -> int:
    """Query index aligned to ``ref_pos``, or -1 if deleted, skipped or uncovered."""
    cur_ref = read.pos
    relative = 0
    for op, length in read.cigar:
        consumes_ref = op in _CONSUMES_REF
        if consumes_ref and cur_ref <= ref_pos < cur_ref + length:
            if op in (CIGAR_DEL, CIGAR_REF_SKIP):
                return -1
            return relative + (ref_pos - cur_ref)
        if consumes_ref:
            cur_ref += length
        if op in _CONSUMES_QUERY:
            relative += length
    return -1


def _decode_seq(raw: bytes, length: int) -> str:
    letters = []
    for byte in raw:
        letters.append(_SEQ_CODES[byte >> 4])
        letters.append(_SEQ_CODES[byte & 0x0F])
    return "".join(letters[:length])


class BamFile:
    """An opened BAM file with its reads held in memory by reference id."""

    def __init__(self, path: str) -> None:
        with gzip.open(path, "rb") as handle:
            data = handle.read()
        if data[:4] != b"BAM\x01":
            raise ValueError(f"{path} is not a BAM file")
        offset = 4
        (l_text,) = struct.unpack_from("<i", data, offset)
        offset += 4 + l_text
        (n_ref,) = struct.unpack_from("<i", data, offset)
        offset += 4
        self.references: list[str] = []
        self.lengths: list[int] = []
        for _ in range(n_ref):
            (l_name,) = struct.unpack_from("<i", data, offset)
            offset += 4
            name = data[offset:offset + l_name].rstrip(b"\x00").decode()
            offset += l_name
            (l_ref,) = struct.unpack_from("<i", data, offset)
            offset += 4
            self.references.append(name)
            self.lengths.append(l_ref)
        self._ids = {name: i for i, name in enumerate(self.references)}
        self._reads: dict[int, list[BamRead]] | None = {}
        while offset + 4 <= len(data):
            (block_size,) = struct.unpack_from("<i", data, offset)
            block = data[offset + 4:offset + 4 + block_size]
            offset += 4 + block_size
            read = self._parse_record(block)
            if read.tid >= 0:
                self._reads.setdefault(read.tid, []).append(read)

    @staticmethod
    def _parse_record(block: bytes) -> BamRead:
        (tid, pos, l_name, mapq, _bin, n_cigar, _flag, l_seq,
         _ntid, _npos, _tlen) = _RECORD_CORE.unpack_from(block, 0)
        offset = _RECORD_CORE.size
        name = block[offset:offset + l_name].rstrip(b"\x00").decode()
        offset += l_name
        cigar_raw = struct.unpack_from(f"<{n_cigar}I", block, offset)
        offset += 4 * n_cigar
        cigar = [(value & 0xF, value >> 4) for value in cigar_raw]
        seq_len = (l_seq + 1) // 2
        seq = _decode_seq(block[offset:offset + seq_len], l_seq)
        offset += seq_len
        qual = bytes(block[offset:offset + l_seq])
        return BamRead(name, tid, pos, mapq, cigar, seq, qual)

    def name_to_id(self, name: str) -> int:
        """Reference id of a contig name, or -1 when unknown."""
        return self._ids.get(name, -1)

    def fetch(self, tid: int, start: int, end: int) -> Iterator[BamRead]:
        """Yield reads on ``tid`` overlapping ``[start, end)`` in file order."""
        if self._reads is None:
            raise ValueError("BAM file is closed")
        for read in self._reads.get(tid, []):
            if read.pos < end and read.end > start:
                yield read

    def close(self) -> None:
        self._reads = None

    def __enter__(self) -> BamFile:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()