import gzip
import struct

import pytest

from mnvista.bam import BamFile, BamRead, read_relative_position

CODES = "=ACMGRSVTWYHKDBN"


def _record(name, tid, pos, mapq, cigar, seq, qual):
    name_b = name.encode() + b"\x00"
    codes = [CODES.index(c) for c in seq] + ([0] if len(seq) % 2 else [])
    packed = bytes((codes[i] << 4) | codes[i + 1] for i in range(0, len(codes), 2))
    body = struct.pack("<iiBBHHHiiii", tid, pos, len(name_b), mapq, 0,
                       len(cigar), 0, len(seq), -1, -1, 0)
    body += name_b
    body += b"".join(struct.pack("<I", (ln << 4) | op) for op, ln in cigar)
    body += packed + bytes(qual)
    return struct.pack("<i", len(body)) + body


def _write_bam(path, refs, records):
    data = b"BAM\x01" + struct.pack("<i", 0) + struct.pack("<i", len(refs))
    for name, length in refs:
        nb = name.encode() + b"\x00"
        data += struct.pack("<i", len(nb)) + nb + struct.pack("<i", length)
    data += b"".join(records)
    with gzip.open(path, "wb") as handle:
        handle.write(data)


@pytest.fixture
def bam_path(tmp_path):
    path = tmp_path / "x.bam"
    _write_bam(path, [("chr1", 1000), ("chr2", 1000)], [
        _record("r1", 0, 100, 60, [(0, 4)], "ACGT", [30, 31, 32, 33]),
        _record("r2", 0, 500, 20, [(0, 3)], "TTA", [10, 11, 12]),
        _record("r3", 1, 100, 60, [(0, 2)], "GG", [40, 40]),
    ])
    return path


def test_name_to_id(bam_path):
    with BamFile(str(bam_path)) as bam:
        assert bam.name_to_id("chr2") == 1
        assert bam.name_to_id("chrX") == -1


def test_fetch_overlap_and_fields(bam_path):
    with BamFile(str(bam_path)) as bam:
        reads = list(bam.fetch(0, 102, 103))
        assert [r.name for r in reads] == ["r1"]
        read = reads[0]
        assert read.seq == "ACGT"
        assert read.base_at(2) == "G"
        assert read.quality_at(3) == 33
        assert read.mapq == 60
        assert list(bam.fetch(0, 104, 105)) == []


def test_fetch_after_close_raises(bam_path):
    bam = BamFile(str(bam_path))
    bam.close()
    with pytest.raises(ValueError):
        list(bam.fetch(0, 0, 10))


def test_not_bam(tmp_path):
    path = tmp_path / "bad.bam"
    with gzip.open(path, "wb") as handle:
        handle.write(b"nope")
    with pytest.raises(ValueError):
        BamFile(str(path))


def test_relative_position_match():
    read = BamRead("r", 0, 100, 60, [(0, 10)], "A" * 10, b"\x1e" * 10)
    assert [read_relative_position(read, p) for p in range(100, 110)] == list(range(10))
    assert read_relative_position(read, 110) == -1
    assert read_relative_position(read, 99) == -1


def test_relative_position_deletion_and_insertion():
    read = BamRead("r", 0, 0, 60, [(4, 2), (0, 3), (2, 2), (1, 1), (0, 3)], "A" * 9)
    assert read_relative_position(read, 0) == 2
    assert read_relative_position(read, 3) == -1
    assert read_relative_position(read, 5) == 6