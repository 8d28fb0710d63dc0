"""Naming of MNVs from their component SNVs."""

from __future__ import annotations

from operator import attrgetter

from .models import Snv

EMPTY_NAME = "Empty MNV"


def name_mnv(variants: list[Snv], add_ref_alts: bool) -> str:
    """Return ``chrom:pos1-pos2...[:ref1>alt1-ref2>alt2...]`` for the variants.

    Positions are written one-based. The list is sorted by position in
    place, so callers can rely on the variants being ordered afterwards.
    """
    if not variants:
        return EMPTY_NAME

    chrom = variants[0].chrom_name
    variants.sort(key=attrgetter("pos"))

    name = f"{chrom}:" + "-".join(str(v.pos + 1) for v in variants)
    if add_ref_alts:
        name += ":" + "-".join(f"{v.ref}>{v.alt}" for v in variants)
    return name