import gzip
import struct

from mnvista.cli import build_parser, main, run
from mnvista.models import RunParams

PAIR_NAME = "chr1:11-21:A>T-C>G"
_CODES = "=ACMGRSVTWYHKDBN"


def _record(name, seq, pos=0, mapq=60):
    qname = name.encode() + b"\x00"
    core = struct.pack(
        "<iiBBHHHiiii", 0, pos, len(qname), mapq, 0, 1, 0, len(seq), -1, -1, 0
    )
    cigar = struct.pack("<I", len(seq) << 4)
    codes = [_CODES.index(c) for c in seq]
    if len(codes) % 2:
        codes.append(0)
    packed = bytes((hi << 4) | lo for hi, lo in zip(codes[::2], codes[1::2]))
    body = core + qname + cigar + packed + bytes([30] * len(seq))
    return struct.pack("<i", len(body)) + body


def _seq(alt):
    bases = ["A"] * 50
    bases[10] = "T" if alt else "A"
    bases[20] = "G" if alt else "C"
    return "".join(bases)


def _write_inputs(tmp_path):
    ref = b"chr1\x00"
    header = b"BAM\x01" + struct.pack("<i", 0) + struct.pack("<i", 1)
    header += struct.pack("<i", len(ref)) + ref + struct.pack("<i", 1000)
    records = b"".join(_record(f"alt{i}", _seq(True)) for i in range(10))
    records += b"".join(_record(f"ref{i}", _seq(False)) for i in range(10))
    bam_path = tmp_path / "in.bam"
    with gzip.open(bam_path, "wb") as handle:
        handle.write(header + records)

    vcf_path = tmp_path / "in.vcf"
    vcf_path.write_text(
        "##fileformat=VCFv4.2\n"
        "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
        "chr1\t11\t.\tA\tT\t.\t.\t.\n"
        "chr1\t21\t.\tC\tG\t.\t.\t.\n"
    )
    return str(bam_path), str(vcf_path)


def _data_lines(path):
    return [line for line in path.read_text().splitlines() if not line.startswith("#")]


def test_parser_defaults():
    args = build_parser().parse_args(["in.bam", "in.vcf", "out"])
    assert args.output_name == "results"
    assert args.max_mnv_size == 3
    assert args.read_quality == 25
    assert args.threads == 4
    assert args.min_log_odds == 2.0
    assert args.min_phi == 0.5
    assert args.read_length == 150
    assert args.verbose is False
    assert args.black_list == ""


def test_parser_short_options():
    args = build_parser().parse_args(
        ["in.bam", "in.vcf", "out", "-M", "5", "-V", "-C", "list.txt", "-H", "0.2"]
    )
    assert args.max_mnv_size == 5
    assert args.verbose is True
    assert args.black_list == "list.txt"
    assert args.bayes_mnv_freq == 0.2


def test_main_without_arguments_fails(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().err


def test_main_missing_bam_fails(tmp_path, capsys):
    _, vcf = _write_inputs(tmp_path)
    status = main([str(tmp_path / "absent.bam"), vcf, str(tmp_path / "out")])
    assert status == 1


def test_main_writes_results(tmp_path, capsys):
    bam, vcf = _write_inputs(tmp_path)
    out = tmp_path / "out"
    assert main([bam, vcf, str(out), "-T", "2"]) == 0

    rows = (out / "results.csv").read_text().splitlines()
    assert rows[0].startswith("WINDOW_ID;CHROM;MNV_NAME")
    assert len(rows) == 2
    fields = rows[1].split(";")
    assert fields[1] == "chr1"
    assert fields[2] == PAIR_NAME

    assert len((out / "results_filtered.csv").read_text().splitlines()) == 1

    records = _data_lines(out / "results.vcf")
    assert [r.split("\t")[1] for r in records] == ["11", "21"]
    assert "INFO: " in (out / "results.log").read_text()


def test_run_with_blacklist_drops_pair(tmp_path, capsys):
    bam, vcf = _write_inputs(tmp_path)
    blacklist = tmp_path / "blacklist.txt"
    blacklist.write_text(PAIR_NAME + "\n")
    out = tmp_path / "out"
    params = RunParams(
        in_bam=bam, in_vcf=vcf, out_path=str(out), out_name="run",
        blacklist_path=str(blacklist),
    )
    outputs = run(params)
    assert [p.rsplit("/", 1)[-1].rsplit("\\", 1)[-1] for p in outputs] == [
        "run.csv", "run_filtered.csv", "run.vcf",
    ]
    assert len((out / "run.csv").read_text().splitlines()) == 1
    assert _data_lines(out / "run.vcf") == []