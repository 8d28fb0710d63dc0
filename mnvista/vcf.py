"""Loading of candidate SNVs from a VCF file."""

from __future__ import annotations

import gzip
import logging
from typing import Protocol

from .models import RunParams, Snv

logger = logging.getLogger(__name__)


class _ContigLookup(Protocol):
    def name_to_id(self, name: str) -> int: ...


def _open_text(path: str):
    with open(path, "rb") as probe:
        magic = probe.read(2)
    if magic == b"\x1f\x8b":
        return gzip.open(path, "rt")
    return open(path, encoding="utf-8")


def _parse_info(info: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    if info == ".":
        return fields
    for item in info.split(";"):
        key, _, value = item.partition("=")
        fields[key] = value
    return fields


def _first_value(info: dict[str, str], keys: tuple[str, ...], kind):
    for key in keys:
        raw = info.get(key)
        if not raw:
            continue
        try:
            return kind(raw.split(",")[0])
        except ValueError:
            continue
    return None


def read_vcf(
    vcf_path: str, bam: _ContigLookup, params: RunParams
) -> tuple[list[Snv], set[str], set[int]]:
    """Read SNVs from a VCF, keeping those on contigs known to the BAM.

    Returns the variants, the contig names used and their BAM reference ids.
    Indels and variants failing the VAF or read-depth limits are skipped.
    """
    variants: list[Snv] = []
    contigs: set[str] = set()
    chrom_ids: set[int] = set()

    with _open_text(vcf_path) as handle:
        for line in handle:
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                continue
            cols = line.split("\t")
            if len(cols) < 5:
                raise ValueError(f"malformed VCF line: {line!r}")
            chrom, pos = cols[0], int(cols[1]) - 1
            tid = bam.name_to_id(chrom)
            if tid < 0:
                continue

            ref = cols[3]
            alt = cols[4].split(",")[0]
            if len(ref) != 1 or len(alt) != 1:
                if params.verbose:
                    logger.info("Skipped indel at chr%s:%d", chrom, pos)
                continue

            info = _parse_info(cols[7] if len(cols) > 7 else ".")
            vaf = _first_value(info, ("AF", "VAF"), float)
            mrd = _first_value(info, ("MRD", "VRD"), int)

            if vaf is not None and (
                vaf < 0.0 or vaf < params.min_snv_vaf or vaf > params.max_snv_vaf
            ):
                if params.verbose:
                    logger.info("Skipped variant at %s:%d due to VAF of %f", chrom, pos, vaf)
                continue
            if mrd is not None and mrd < params.min_mrd_snv:
                if params.verbose:
                    logger.info("Skipped variant at %s:%d due to VRD of %d", chrom, pos, mrd)
                continue

            contigs.add(chrom)
            chrom_ids.add(tid)
            variants.append(Snv(
                chrom_name=chrom, chrom_id=tid, pos=pos, ref=ref, alt=alt,
                vaf=1.0 if vaf is None else vaf, mrd=1 if mrd is None else mrd,
            ))

    logger.info("Found %d total variants", len(variants))
    return variants, contigs, chrom_ids