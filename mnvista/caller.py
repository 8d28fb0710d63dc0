"""Detection of MNVs: pairing nearby SNVs and growing pairs into larger phases."""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Iterable, Sequence
from itertools import combinations
from typing import Protocol

from .bam import BamRead, read_relative_position
from .models import Mnv, MnvResult, RunParams, Snv
from .naming import name_mnv
from .stats import bayesian_posterior, log_odds, phi_coefficient, vaf_mean, vaf_sd

logger = logging.getLogger(__name__)

_MISSING_QUALITY = 255


class _ReadSource(Protocol):
    def fetch(self, tid: int, start: int, end: int) -> Iterable[BamRead]: ...


def _read_hash(name: str) -> int:
    return hash(name) & 0xFFFFFFFF


def _ratio(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator)


def _copy_mnv(m: Mnv) -> Mnv:
    return dataclasses.replace(m, variants=list(m.variants), discordant=list(m.discordant))


def load_window_reads(
    bam: _ReadSource, chrom_id: int, window: Sequence[Snv], min_read_quality: int
) -> None:
    """Collect covering and supporting reads for every SNV of a window.

    Reads are identified by a 32-bit hash of their name, so read names are
    expected to be unique. Depth, mutant read count, VAF and a base-quality
    derived error exponent are updated on each SNV.
    """
    if chrom_id < 0:
        return

    for v in window:
        v.loaded_reads = True
        for read in bam.fetch(chrom_id, v.pos, v.pos + 1):
            if read.mapq < min_read_quality:
                continue
            relative = read_relative_position(read, v.pos)
            if relative < 0 or relative >= read.l_qseq:
                continue

            read_hash = _read_hash(read.name)
            v.covering_hashes.append(read_hash)
            if read.base_at(relative) == v.alt:
                quality = (
                    read.quality_at(relative) if relative < len(read.qual) else _MISSING_QUALITY
                )
                if quality != _MISSING_QUALITY:
                    v.base_qualities.append(quality)
                v.supporting_hashes.append(read_hash)

        if len(v.base_qualities) > 1:
            v.base_qualities.sort()
            mid = len(v.base_qualities) // 2
            if mid % 2:
                mid -= 1
            v.phred_qual = -v.base_qualities[mid] / 10.0
        else:
            v.phred_qual = 0.0

        if v.supporting_hashes and v.covering_hashes:
            v.vaf = len(v.supporting_hashes) / len(v.covering_hashes)
        v.mrd = len(v.supporting_hashes)
        v.dp = len(v.covering_hashes)


def mnv_contains_snv(mnv: Mnv, snv: Snv) -> bool:
    """True if the MNV already holds a variant at the SNV's chromosome and position."""
    return any(v.chrom_id == snv.chrom_id and v.pos == snv.pos for v in mnv.variants)


def load_blacklist(path: str) -> set[str]:
    """Read MNV names to ignore, one per line; a missing file gives an empty set."""
    names: set[str] = set()
    try:
        handle = open(path, encoding="utf-8", newline="")
    except OSError:
        logger.info(
            "Blacklist file was specified, but failed to find/open the file. "
            "No blacklist applied."
        )
        return names

    with handle:
        for line in handle:
            line = line.removesuffix("\n")
            if line:
                names.add(line.removesuffix("\r"))

    logger.info("Found %d pairs to be blacklisted.", len(names))
    return names


class MnvCaller:
    """Tests groups of SNVs for being phased together into an MNV."""

    def __init__(self, params: RunParams, blacklist: Iterable[str] | None = None) -> None:
        self.params = params
        self.blacklist = frozenset(blacklist or ())

    def evaluate(self, variants: Sequence[Snv]) -> Mnv:
        """Build an MNV from the variants and score it.

        Statistical filters apply only to pairs; a pair with no shared
        supporting read is rejected outright.
        """
        if not variants:
            raise ValueError("cannot evaluate an MNV without variants")

        members = list(variants)
        m = Mnv(name=name_mnv(members, True), variants=members, size=len(members))

        supporting = [set(v.supporting_hashes) for v in members]
        shared_sup = set.intersection(*supporting)
        shared_cov = set.intersection(*(set(v.covering_hashes) for v in members))

        if len(members) == 2 and not shared_sup:
            m.result = MnvResult.NO_SHARED_READS
            return m

        num_mutated = len(shared_sup)
        num_covering = len(shared_cov)

        for i, own in enumerate(supporting):
            others = set().union(*(s for j, s in enumerate(supporting) if j != i))
            m.discordant.append(len((shared_cov & own) - others))

        mutated_total = sum(m.discordant) + num_mutated
        total_frac = num_mutated / mutated_total if mutated_total > 0 else 0.0
        m.vaf = num_mutated / num_covering if num_covering > 0 else 0.0
        m.num_sup = num_mutated
        m.num_cov = num_covering

        m.sd = vaf_sd(members)
        m.rsd = _ratio(m.sd, vaf_mean(members))

        if len(members) == 2:
            p = self.params
            m.frac = total_frac
            only_a, only_b = m.discordant
            none = m.num_cov - m.num_sup - only_a - only_b
            m.odds_ratio = log_odds(m.num_sup, only_a, only_b, none)
            m.odds_phi = phi_coefficient(m.num_sup, only_a, only_b, none)
            m.bayesian_prob = bayesian_posterior(
                members[0], members[1], m.num_sup, only_a, only_b, none,
                p.bayes_freq, p.bayes_haplo, p.bayes_prior,
            )
            logger.debug("%s", m.bayesian_prob)

            if (
                m.odds_phi < p.min_phi
                or m.odds_ratio < p.odds_ratio
                or m.bayesian_prob < p.min_bayesian
                or m.num_sup < p.min_mrd_mnv
                or m.vaf < p.min_vaf
            ):
                m.result = MnvResult.FAILED_FILTERS
                return m

        m.result = MnvResult.SUCCESS
        return m

    def pair(self, a: Snv, b: Snv, pair_cache: dict[str, Mnv]) -> Mnv:
        """Test two SNVs as a doublet, reusing a cached result when there is one.

        SNVs at the same position or further apart than a read are rejected
        as failing filters; blacklisted pairs as having no shared reads. In
        both cases the returned MNV is empty.
        """
        if a.pos == b.pos or abs(a.pos - b.pos) > self.params.read_length:
            return Mnv(result=MnvResult.FAILED_FILTERS)

        name = name_mnv([a, b], True)
        if name in self.blacklist:
            return Mnv(result=MnvResult.NO_SHARED_READS)

        cached = pair_cache.get(name)
        if cached is not None:
            return _copy_mnv(cached)
        return self.evaluate([a, b])

    def extend(self, mnv: Mnv, extra_snv: Snv, pair_cache: dict[str, Mnv]) -> Mnv:
        """Grow an MNV by one SNV that pairs with every variant already in it."""
        for v in mnv.variants:
            result = self.pair(v, extra_snv, pair_cache).result
            if result != MnvResult.SUCCESS:
                return Mnv(result=result)

        members = [*mnv.variants, extra_snv]
        name = name_mnv(members, True)
        if name in self.blacklist:
            return Mnv(name=name, variants=members, result=MnvResult.NO_SHARED_READS)
        return self.evaluate(members)

    def window_doublets(
        self,
        window: Sequence[Snv],
        pair_cache: dict[str, Mnv],
        filtered: list[Mnv],
        window_id: int,
    ) -> list[Mnv]:
        """Test every pair of SNVs in a window; return the passing doublets."""
        found: list[Mnv] = []
        for a, b in combinations(window, 2):
            m = self.pair(a, b, pair_cache)
            m.window_id = window_id
            if m.result == MnvResult.SUCCESS:
                found.append(m)
            elif m.result == MnvResult.FAILED_FILTERS:
                filtered.append(m)
            pair_cache.setdefault(m.name, m)
        return found

    def window_next_phase(
        self,
        mnvs: Sequence[Mnv],
        window: Sequence[Snv],
        pair_cache: dict[str, Mnv],
        filtered: list[Mnv],
        phase_size: int,
        window_id: int,
    ) -> list[Mnv]:
        """Extend each MNV by each SNV of the window it does not yet hold.

        Nothing is produced when the window has fewer SNVs than ``phase_size``.
        """
        if len(window) < phase_size:
            return []

        found: list[Mnv] = []
        seen: set[str] = set()
        for m in mnvs:
            for snv in window:
                if mnv_contains_snv(m, snv):
                    continue
                grown = self.extend(m, snv, pair_cache)
                if grown.result == MnvResult.FAILED_FILTERS:
                    filtered.append(grown)
                if grown.variants and grown.name not in seen:
                    seen.add(grown.name)
                    grown.window_id = window_id
                    found.append(grown)
        return found

    def all_phases(
        self,
        window: Sequence[Snv],
        pair_cache: dict[str, Mnv],
        filtered: list[Mnv],
        max_phase_size: int,
        window_id: int,
    ) -> list[Mnv]:
        """Doublets of a window followed by every larger phase up to ``max_phase_size``."""
        doublets = self.window_doublets(window, pair_cache, filtered, window_id)
        current = doublets
        result = list(doublets)
        for size in range(3, max_phase_size + 1):
            grown = self.window_next_phase(
                current, window, pair_cache, filtered, size, window_id
            )
            if not current:
                break
            result.extend(grown)
            current = grown
        return result

    def process_window(
        self, window: Sequence[Snv], bam: _ReadSource, window_id: int
    ) -> tuple[list[Mnv], list[Mnv]]:
        """Load reads for a window and return its MNVs and the filtered candidates."""
        if not window:
            return [], []

        chromosome = window[0].chrom_id
        pair_cache: dict[str, Mnv] = {}
        filtered: list[Mnv] = []

        load_window_reads(bam, chromosome, window, self.params.min_read_quality)
        max_size = len(window) if self.params.mnv_size <= 1 else self.params.mnv_size
        results = self.all_phases(window, pair_cache, filtered, max_size, window_id)

        for v in window:
            if v.loaded_reads:
                v.supporting_hashes.clear()
                v.covering_hashes.clear()

        logger.info(
            "Finished window %d(chr_id: %d). Total MNVs: %d, Total cached pairs: %d",
            window_id, chromosome, len(results), len(pair_cache),
        )
        return results, filtered