# mnvista

mnvista finds multi-nucleotide variants (MNVs): groups of single-nucleotide
variants (SNVs) that lie close together and sit on the same reads. It takes
the SNVs from a VCF file, groups those within one read length of each other
into windows, collects the reads covering each SNV from a BAM file and tests
every pair, and then larger groups, for shared support.

Each candidate pair is scored with

- a phi coefficient on the 2x2 table of reads carrying both, either or
  neither alternative allele,
- a base-10 log odds ratio on the same table,
- a Bayesian posterior that weighs "real MNV" against "one SNV is a
  sequencing error", using the base qualities of the supporting reads.

A pair that shares no supporting read is dropped. A pair that shares reads
but falls below one of the thresholds is written to a separate file.

## Installation

```
pip install .
```

No third-party packages are needed.

## Usage

```
mnvista INPUT_BAM INPUT_VCF OUTPUT_DIR [options]
```

The VCF may be plain text or gzip-compressed. Only single-base REF/ALT
records are used (the first ALT allele is taken); records on contigs that
the BAM header does not list are ignored. An `AF` or `VAF` INFO value and an
`MRD` or `VRD` INFO value, when present, are checked against the SNV limits.

The results are written to `OUTPUT_DIR`, which is created if needed:

- `<name>.csv`: MNVs that passed all filters, one per line, `;` separated
- `<name>_filtered.csv`: candidates that shared reads but failed a filter
- `<name>.vcf`: every SNV that is part of a reported MNV, with the VAF,
  mutant read depth and depth measured from the BAM
- `<name>.log`: the run log

The command exits with status 1 when the arguments are wrong or an input
file cannot be read.

Options (see `mnvista --help`):

| Option | Default | Meaning |
| --- | --- | --- |
| `-O`, `--output-name` | `results` | base name of the output files |
| `-M`, `--max-mnv-size` | `3` | largest number of SNVs in one MNV; `0` or `1` lets the window size decide |
| `-Q`, `--read-quality` | `25` | minimum mapping quality of a read |
| `-R`, `--read-length` | `150` | SNVs further apart than this are never paired |
| `-S`, `--min-vrd-snv` | `5` | minimum mutant read depth of an input SNV |
| `-Y`, `--min-vaf-snv` | `0.0` | minimum VAF of an input SNV |
| `-Z`, `--max-vaf-snv` | `1.0` | maximum VAF of an input SNV |
| `-N`, `--min-vrd-mnv` | `3` | minimum number of reads supporting a pair |
| `-A`, `--min-vaf-mnv` | `0.0001` | minimum VAF of a pair |
| `-F`, `--min-phi` | `0.5` | minimum phi coefficient of a pair |
| `-L`, `--min-log-odds` | `2.0` | minimum log odds of a pair |
| `-B`, `--min-bayesian` | `0.0` | minimum Bayesian posterior of a pair |
| `-E`, `--bayes-error-freq` | `0.001` | expected sequencing error rate |
| `-H`, `--bayes-mnv-freq` | `0.01` | lowest expected MNV VAF |
| `-P`, `--bayes-prior-mnv` | `0.5` | prior probability of a pair being a real MNV |
| `-C`, `--black-list` | | file of MNV names to ignore, one per line |
| `-T`, `--threads` | `4` | number of worker threads for the windows |
| `-W`, `--window-size` | `50` | accepted but not used |
| `-V`, `--verbose` | off | debug-level logging |

MNV names have the form `chrom:pos1-pos2:ref1>alt1-ref2>alt2`, with 1-based
positions; a blacklist file lists names in that form. A missing blacklist
file is logged and the run goes on without one.

## Library use

The pieces can be used on their own:

- `mnvista.models`: `RunParams`, `Snv`, `Mnv` and the `MnvResult` enum
- `mnvista.stats`: `vaf_mean`, `vaf_sd`, `log_odds`, `phi_coefficient`,
  `bayesian_posterior`
- `mnvista.naming.name_mnv`: builds an MNV name from its SNVs
- `mnvista.window.make_windows_chromosome`: groups the SNVs of one
  chromosome into windows
- `mnvista.bam`: `BamFile`, `BamRead` and `read_relative_position`
- `mnvista.vcf.read_vcf`: loads candidate SNVs
- `mnvista.caller`: `MnvCaller`, `load_window_reads`, `load_blacklist`
- `mnvista.report`: `write_mnv_list`, `write_vcf_list`
- `mnvista.cli`: `build_parser`, `run`, `main`

```python
from mnvista.stats import phi_coefficient

phi_coefficient(num_both=40, num_a=2, num_b=1, num_none=300)
```

## Limitations

- `BamFile` reads the whole BAM file into memory when it is opened; it does
  not use a BAM index and does not read SAM or CRAM files.
- VCF records with several ALT alleles are reduced to their first one;
  indels are skipped.

## Tests

```
pip install .[test]
pytest
```