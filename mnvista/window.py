"""Grouping of sorted SNVs into windows of nearby variants."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .models import Snv

logger = logging.getLogger(__name__)


def make_windows_chromosome(
    variants: Sequence[Snv], chromosome: int, read_length: int
) -> list[list[Snv]]:
    """Split the variants of one chromosome into windows.

    Variants are taken in input order; a variant joins the current window
    when it lies less than ``read_length`` from the previous one. Windows of
    a single variant are dropped, except the last window, which is always
    kept. Windows are returned largest first.
    """
    windows: list[list[Snv]] = []
    current: list[Snv] = []
    chrom_name = ""
    last_pos: int | None = None

    for variant in variants:
        if variant.chrom_id < chromosome:
            continue
        if variant.chrom_id > chromosome:
            if len(current) > 1:
                windows.append(current)
                current = []
            break

        if not chrom_name:
            chrom_name = variant.chrom_name

        if last_pos is not None and abs(last_pos - variant.pos) >= read_length:
            if len(current) > 1:
                windows.append(current)
            current = []
        current.append(variant)
        last_pos = variant.pos

    if current:
        windows.append(current)

    if not windows:
        return []

    logger.info("Found %d windows for %s", len(windows), chrom_name)
    windows.sort(key=lambda w: (w[0].chrom_id, -len(w)))
    return windows