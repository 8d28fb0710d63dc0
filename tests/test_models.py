from mnvista.models import Mnv, MnvResult, RunParams, Snv


def _snv(pos):
    return Snv(chrom_name="chr1", chrom_id=0, pos=pos, ref="A", alt="G")


def test_mnv_equality_uses_name_only():
    first = Mnv(name="chr1:1-2:A>G-C>T", variants=[_snv(0)], vaf=0.5)
    second = Mnv(name="chr1:1-2:A>G-C>T", variants=[], vaf=0.1)
    assert first == second
    assert hash(first) == hash(second)


def test_mnv_set_deduplicates_by_name():
    cache = {Mnv(name="x"), Mnv(name="x"), Mnv(name="y")}
    assert len(cache) == 2
    assert Mnv(name="y") in cache


def test_mnv_different_names_differ():
    assert not (Mnv(name="a") == Mnv(name="b"))


def test_snv_compares_by_identity():
    a = _snv(10)
    b = _snv(10)
    assert a == a
    assert not (a == b)
    assert len({a, b, a}) == 2


def test_default_lists_are_independent():
    first = Mnv()
    second = Mnv()
    first.discordant.append(3)
    assert second.discordant == []
    s1 = _snv(1)
    s2 = _snv(2)
    s1.supporting_hashes.append(7)
    assert s2.supporting_hashes == []


def test_mnv_result_from_code():
    assert MnvResult(2) is MnvResult.FAILED_FILTERS
    assert MnvResult.SUCCESS < MnvResult.NO_SHARED_READS


def test_run_params_keyword_override_keeps_other_defaults():
    params = RunParams(read_length=100)
    assert params.read_length == 100
    assert params.min_phi == 0.5
    assert params.out_name == "results"