"""Core data types: run settings, single-nucleotide variants and MNV candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class MnvResult(IntEnum):
    """Outcome of testing a set of SNVs as a possible MNV."""

    SUCCESS = 0
    NO_SHARED_READS = 1
    FAILED_FILTERS = 2


@dataclass
class RunParams:
    """Settings for one analysis run."""

    in_bam: str = ""
    in_vcf: str = ""
    out_path: str = ""
    out_name: str = "results"
    blacklist_path: str = ""
    odds_ratio: float = 2.0
    min_bayesian: float = 0.0
    min_phi: float = 0.5
    bayes_freq: float = 0.001
    bayes_haplo: float = 0.01
    bayes_prior: float = 0.5
    num_threads: int = 4
    min_read_quality: int = 25
    window_size: int = 50
    mnv_size: int = 3
    min_mrd_snv: int = 5
    min_mrd_mnv: int = 3
    read_length: int = 150
    min_snv_vaf: float = 0.0
    max_snv_vaf: float = 1.0
    min_vaf: float = 0.0001
    verbose: bool = False


@dataclass(eq=False)
class Snv:
    """A single-nucleotide variant and the reads observed over it.

    Instances compare and hash by identity, so the same variant shared by
    several MNVs is counted once in sets.
    """

    chrom_name: str
    chrom_id: int
    pos: int
    ref: str
    alt: str
    vaf: float = 1.0
    mrd: int = 1
    dp: int = 0
    phred_qual: float = 0.0
    loaded_reads: bool = False
    supporting_hashes: list[int] = field(default_factory=list)
    covering_hashes: list[int] = field(default_factory=list)
    base_qualities: list[int] = field(default_factory=list)


@dataclass(eq=False)
class Mnv:
    """A candidate multi-nucleotide variant; equality and hashing use its name."""

    name: str = ""
    variants: list[Snv] = field(default_factory=list)
    discordant: list[int] = field(default_factory=list)
    odds_ratio: float = 0.0
    odds_phi: float = 0.0
    bayesian_prob: float = 0.0
    vaf: float = 0.0
    frac: float = 0.0
    sd: float = 0.0
    rsd: float = 0.0
    window_id: int = 0
    num_sup: int = 0
    num_cov: int = 0
    size: int = 0
    result: MnvResult = MnvResult.SUCCESS

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mnv):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)