"""Writing of MNV tables and the VCF of their component SNVs."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence

from .models import Mnv, Snv

logger = logging.getLogger(__name__)

MNV_HEADER = (
    "WINDOW_ID;CHROM;MNV_NAME;VAF;SD;NUM_SUPPORTING;NUM_COVERING;PHI;"
    "COEFFICIENT_VARIATION;BAYESIAN;JACCARD;DISCORDANT;INDIVIDUAL_MUTATED;"
    "SIZE_MNV;DIST_MNV;QUALITIES;LOG_ODDS"
)


def _f(value: float) -> str:
    return f"{value:.6f}"


def _mnv_row(m: Mnv) -> str:
    first, last = m.variants[0], m.variants[-1]
    discordant = "|".join(str(d) for d, _ in zip(m.discordant, m.variants))
    individual = "|".join(str(v.mrd) for v in m.variants)
    qualities = "|".join(_f(v.phred_qual * -10) for v in m.variants)
    return ";".join([
        str(m.window_id), first.chrom_name, m.name, _f(m.vaf), _f(m.sd),
        str(m.num_sup), str(m.num_cov), _f(m.odds_phi), _f(m.rsd),
        _f(m.bayesian_prob), _f(m.frac), discordant, individual,
        str(len(m.variants)), str(last.pos - first.pos), qualities,
        _f(m.odds_ratio),
    ])


def write_mnv_list(
    windows: Sequence[list[Mnv]], out_path: str, out_name: str, filtered: bool
) -> str:
    """Write the MNVs of all windows as a CSV and return its path.

    Each window is sorted largest MNV first; an MNV name is written once.
    """
    file_name = out_name + ("_filtered" if filtered else "") + ".csv"
    output = os.path.join(out_path, file_name)
    seen: set[str] = set()
    with open(output, "w", encoding="utf-8") as handle:
        handle.write(MNV_HEADER + "\n")
        for window in windows:
            window.sort(key=lambda m: len(m.variants), reverse=True)
            for m in window:
                if m.name in seen or not m.variants:
                    continue
                seen.add(m.name)
                handle.write(_mnv_row(m) + "\n")
    return output


def write_vcf_list(
    windows: Iterable[list[Mnv]], contigs: Iterable[str], out_path: str, out_name: str
) -> str:
    """Write each distinct SNV used in an MNV to a VCF and return its path."""
    unique: dict[int, Snv] = {}
    for window in windows:
        for m in window:
            for v in m.variants:
                unique[id(v)] = v
    ordered = sorted(unique.values(), key=lambda v: (v.chrom_id, v.pos))

    output = os.path.join(out_path, out_name + ".vcf")
    with open(output, "w", encoding="utf-8") as handle:
        handle.write("##fileformat=VCFv4.2\n")
        handle.write("##source=MNV\n")
        handle.write('##INFO=<ID=AF,Number=A,Type=Float,Description="Allele Frequency">\n')
        handle.write('##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Read Depth">\n')
        handle.write('##INFO=<ID=MRD,Number=1,Type=Integer,Description="Mutant Read Depth">\n')
        for contig in sorted(contigs):
            handle.write(f"##contig=<ID={contig}>\n")
        handle.write("#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n")
        for v in ordered:
            handle.write(
                f"{v.chrom_name}\t{v.pos + 1}\t.\t{v.ref}\t{v.alt}\t100\tPASS\t"
                f"AF={_f(v.vaf)};MRD={v.mrd};DP={v.dp}\n"
            )
    return output