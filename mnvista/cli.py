"""Command line entry point: find MNVs in a BAM file from candidate SNVs in a VCF."""

from __future__ import annotations

import argparse
import logging
import os
import struct
import sys
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

from .bam import BamFile
from .caller import MnvCaller, load_blacklist
from .models import Mnv, RunParams, Snv
from .report import write_mnv_list, write_vcf_list
from .vcf import read_vcf
from .window import make_windows_chromosome

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = "mnvista"


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the command line."""
    parser = argparse.ArgumentParser(prog="MNV")
    parser.add_argument("input_bam", help="Path to an input .bam file.")
    parser.add_argument("input_vcf", help="Path to an input .vcf file.")
    parser.add_argument("output_dir", help="Path to the output file directory.")
    parser.add_argument(
        "-O", "--output-name", default="results",
        help="The name for the output files: <output_dir>/<name>.csv and <name>.vcf.",
    )
    parser.add_argument(
        "-W", "--window-size", type=int, default=50,
        help="Range in bp behind or ahead of a window position (unused).",
    )
    parser.add_argument(
        "-M", "--max-mnv-size", type=int, default=3,
        help="Maximum number of SNVs in an MNV; 0 sizes it by the window.",
    )
    parser.add_argument(
        "-Q", "--read-quality", type=int, default=25,
        help="Only consider reads with at least this mapping quality.",
    )
    parser.add_argument(
        "-V", "--verbose", action="store_true",
        help="Enables additional logging while the program is running.",
    )
    parser.add_argument(
        "-T", "--threads", type=int, default=4,
        help="Number of worker threads for processing windows.",
    )
    parser.add_argument(
        "-A", "--min-vaf-mnv", type=float, default=0.0001,
        help="Minimum VAF for an MNV to be considered.",
    )
    parser.add_argument(
        "-S", "--min-vrd-snv", type=int, default=5,
        help="Minimum mutant read depth for an SNV to be considered.",
    )
    parser.add_argument(
        "-N", "--min-vrd-mnv", type=int, default=3,
        help="Minimum mutant read depth for an MNV to be considered.",
    )
    parser.add_argument(
        "-Y", "--min-vaf-snv", type=float, default=0.0,
        help="Minimum VAF for an SNV to be considered.",
    )
    parser.add_argument(
        "-Z", "--max-vaf-snv", type=float, default=1.0,
        help="Maximum VAF for an SNV to be considered.",
    )
    parser.add_argument(
        "-L", "--min-log-odds", type=float, default=2.0,
        help="Minimum log odds ratio for an MNV to be considered.",
    )
    parser.add_argument(
        "-B", "--min-bayesian", type=float, default=0.0,
        help="Minimum Bayesian posterior for an MNV to be considered.",
    )
    parser.add_argument(
        "-F", "--min-phi", type=float, default=0.5,
        help="Minimum phi coefficient for a pair of SNVs to be considered.",
    )
    parser.add_argument(
        "-C", "--black-list", default="",
        help="File listing MNV names to ignore while making MNVs.",
    )
    parser.add_argument(
        "-R", "--read-length", type=int, default=150,
        help="Maximum read length in bp; SNVs further apart are not paired.",
    )
    parser.add_argument(
        "-E", "--bayes-error-freq", type=float, default=0.001,
        help="Expected sequencing error rate (default 0.001, Q30).",
    )
    parser.add_argument(
        "-H", "--bayes-mnv-freq", type=float, default=0.01,
        help="Lowest expected MNV VAF (default 0.01, 1%% VAF).",
    )
    parser.add_argument(
        "-P", "--bayes-prior-mnv", type=float, default=0.5,
        help="Prior probability of a pair being a real MNV (default 0.5).",
    )
    return parser


def _params_from_args(args: argparse.Namespace) -> RunParams:
    return RunParams(
        in_bam=args.input_bam,
        in_vcf=args.input_vcf,
        out_path=args.output_dir,
        out_name=args.output_name,
        blacklist_path=args.black_list,
        odds_ratio=args.min_log_odds,
        min_bayesian=args.min_bayesian,
        min_phi=args.min_phi,
        bayes_freq=args.bayes_error_freq,
        bayes_haplo=args.bayes_mnv_freq,
        bayes_prior=args.bayes_prior_mnv,
        num_threads=args.threads,
        min_read_quality=args.read_quality,
        window_size=args.window_size,
        mnv_size=args.max_mnv_size,
        min_mrd_snv=args.min_vrd_snv,
        min_mrd_mnv=args.min_vrd_mnv,
        read_length=args.read_length,
        min_snv_vaf=args.min_vaf_snv,
        max_snv_vaf=args.max_vaf_snv,
        min_vaf=args.min_vaf_mnv,
        verbose=args.verbose,
    )


@contextmanager
def _log_to_file(path: str, verbose: bool) -> Iterator[None]:
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    previous_level = package_logger.level
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    package_logger.addHandler(handler)
    try:
        yield
    finally:
        package_logger.removeHandler(handler)
        handler.close()
        package_logger.setLevel(previous_level)


def _process_windows(
    caller: MnvCaller, windows: Sequence[list[Snv]], bam: BamFile, num_threads: int
) -> tuple[list[list[Mnv]], list[list[Mnv]]]:
    found: list[list[Mnv]] = [[] for _ in windows]
    filtered: list[list[Mnv]] = [[] for _ in windows]
    with ThreadPoolExecutor(max_workers=max(1, num_threads)) as pool:
        jobs = {
            pool.submit(caller.process_window, window, bam, window_id): window_id
            for window_id, window in enumerate(windows)
            if window
        }
        for job, window_id in jobs.items():
            found[window_id], filtered[window_id] = job.result()
    return found, filtered


def run(params: RunParams) -> list[str]:
    """Run a full analysis and return the paths of the written result files."""
    os.makedirs(params.out_path, exist_ok=True)
    print(f"[MNVista] Output folder: {params.out_path}")
    log_path = os.path.join(params.out_path, f"{params.out_name}.log")

    with _log_to_file(log_path, params.verbose):
        print(f"[MNVista] Logging to:{log_path}")
        logger.info("Settings: %s", params)
        start = time.monotonic()

        blacklist = load_blacklist(params.blacklist_path) if params.blacklist_path else set()

        with BamFile(params.in_bam) as bam:
            variants, contigs, chrom_ids = read_vcf(params.in_vcf, bam, params)
            windows = [
                window
                for chrom in sorted(chrom_ids)
                for window in make_windows_chromosome(variants, chrom, params.read_length)
            ]
            logger.info("Created %d total windows", len(windows))
            logger.info("Starting processing of windows...")
            caller = MnvCaller(params, blacklist)
            found, filtered = _process_windows(caller, windows, bam, params.num_threads)

        outputs = [
            write_mnv_list(found, params.out_path, params.out_name, False),
            write_mnv_list(filtered, params.out_path, params.out_name, True),
            write_vcf_list(found, contigs, params.out_path, params.out_name),
        ]

        minutes = (time.monotonic() - start) / 60.0
        logger.info("Finished! Total execution time: %f minute(s).", minutes)
    return outputs


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the analysis and return an exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return 0 if exc.code in (0, None) else 1

    try:
        run(_params_from_args(args))
    except (OSError, ValueError, struct.error) as exc:
        print(exc, file=sys.stderr)
        return 1

    print("[MNVista] Finished run. ")
    return 0


if __name__ == "__main__":
    sys.exit(main())