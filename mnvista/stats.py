"""Statistics used to decide whether SNVs are phased together."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from .models import Snv

logger = logging.getLogger(__name__)


def _ln(value: float) -> float:
    if value > 0:
        return math.log(value)
    if value == 0:
        return -math.inf
    return math.nan


def _exp(value: float) -> float:
    try:
        return math.exp(value)
    except OverflowError:
        return math.inf


def vaf_mean(variants: Sequence[Snv]) -> float:
    """Mean variant allele frequency of the given SNVs."""
    if not variants:
        raise ValueError("cannot take the mean VAF of no variants")
    return sum(v.vaf for v in variants) / len(variants)


def vaf_sd(variants: Sequence[Snv]) -> float:
    """Population standard deviation of the SNVs' allele frequencies."""
    mean = vaf_mean(variants)
    variance = sum((v.vaf - mean) ** 2 for v in variants) / len(variants)
    return math.sqrt(variance)


def log_odds(num_both: int, num_a: int, num_b: int, num_none: int) -> float:
    """Base-10 log odds ratio of a 2x2 read table with add-one smoothing."""
    odds = ((num_both + 1) * (num_none + 1)) / ((num_a + 1) * (num_b + 1))
    if odds == 0:
        return 0.0
    if odds < 0:
        return math.nan
    return math.log10(odds)


def phi_coefficient(num_both: int, num_a: int, num_b: int, num_none: int) -> float:
    """Phi coefficient of a 2x2 read table with add-one smoothing."""
    total = float(num_both + num_a + num_b + num_none)
    if total == 0:
        return math.nan
    alpha = (num_both + 1) / total
    beta = (num_a + 1) / total
    gamma = (num_b + 1) / total
    delta = (num_none + 1) / total

    numerator = alpha * delta - beta * gamma
    product = (alpha + beta) * (alpha + gamma) * (beta + delta) * (gamma + delta)
    denominator = math.sqrt(product) if product >= 0 else math.nan
    result = numerator / denominator if denominator else math.nan

    logger.debug(
        "PHI A/B/C/D/NUM/DEM/RES: %s, %s, %s, %s, %s, %s, %s",
        alpha, beta, gamma, delta, numerator, denominator, result,
    )
    return result


def bayesian_posterior(
    snv_a: Snv,
    snv_b: Snv,
    num_both: int,
    num_a: int,
    num_b: int,
    num_none: int,
    f_error: float,
    f_haplo: float,
    prior_mnv: float,
) -> float:
    """Posterior probability that two SNVs form a real MNV.

    Compares a model where both alleles sit on one haplotype against models
    where one of the two is explained by sequencing error. Log likelihoods
    are scaled by the number of alt-carrying reads to keep the posterior
    from collapsing to 0 or 1 at high depth.
    """
    if num_both == 0:
        return 0.0

    both, only_a, only_b, none = (
        float(num_both), float(num_a), float(num_b), float(num_none)
    )
    smoothing = 1.0 / (both + only_a + only_b)

    log_eps_a = _ln(10.0 ** snv_a.phred_qual)
    log_eps_b = _ln(10.0 ** snv_b.phred_qual)

    ll_a = (both + only_a) * log_eps_a
    ll_b = (both + only_b) * log_eps_b

    p_m1 = (
        both * _ln(f_haplo)
        + none * _ln(1.0 - f_haplo)
        + only_a * log_eps_a
        + only_b * log_eps_b
    )

    log_err = _ln(f_error)
    log_ok = _ln(1.0 - f_error)
    p_m2a = max((both + only_a) * log_err, ll_a) + ll_b + none * log_ok
    p_m2b = max((both + only_b) * log_err, ll_b) + ll_a + none * log_ok
    p_m2 = max(p_m2a, p_m2b)

    lm1 = _exp(p_m1 * smoothing) * prior_mnv
    lm2 = _exp(p_m2 * smoothing) * (1.0 - prior_mnv)
    denom = lm1 + lm2
    post = lm1 / denom if denom else math.nan

    logger.debug(
        "%s:%s-%s -  A, B, C: %s, %s, %s STATS: %s , %s (%s , %s) ,  "
        "M1/M2/DENOM/POST: %s , %s , %s , %s",
        snv_a.chrom_name, snv_a.pos, snv_b.pos, both, only_a, only_b,
        p_m1, p_m2, p_m2a, p_m2b, lm1, lm2, denom, post,
    )
    return post