from mnvista.models import Snv
from mnvista.window import make_windows_chromosome


def _snv(chrom_id, pos):
    return Snv(chrom_name=f"chr{chrom_id}", chrom_id=chrom_id, pos=pos, ref="A", alt="G")


def _positions(windows):
    return [[v.pos for v in w] for w in windows]


def test_close_variants_grouped_and_last_single_kept():
    variants = [_snv(1, 100), _snv(1, 150), _snv(1, 400)]
    windows = make_windows_chromosome(variants, 1, 150)
    assert _positions(windows) == [[100, 150], [400]]


def test_isolated_single_variants_dropped():
    variants = [_snv(1, 100), _snv(1, 500), _snv(1, 900), _snv(1, 950)]
    windows = make_windows_chromosome(variants, 1, 150)
    assert _positions(windows) == [[900, 950]]


def test_distance_equal_to_read_length_splits():
    variants = [_snv(1, 0), _snv(1, 150), _snv(1, 160)]
    windows = make_windows_chromosome(variants, 1, 150)
    assert _positions(windows) == [[150, 160]]


def test_other_chromosomes_ignored():
    variants = [_snv(0, 10), _snv(0, 20), _snv(1, 100), _snv(1, 120), _snv(2, 130)]
    windows = make_windows_chromosome(variants, 1, 150)
    assert _positions(windows) == [[100, 120]]
    assert all(v.chrom_id == 1 for w in windows for v in w)


def test_single_variant_before_next_chromosome_is_kept():
    variants = [_snv(1, 100), _snv(2, 200)]
    windows = make_windows_chromosome(variants, 1, 150)
    assert _positions(windows) == [[100]]


def test_windows_sorted_largest_first_and_share_objects():
    variants = [_snv(1, 0), _snv(1, 10), _snv(1, 500), _snv(1, 510), _snv(1, 520)]
    windows = make_windows_chromosome(variants, 1, 150)
    sizes = [len(w) for w in windows]
    assert sizes == sorted(sizes, reverse=True)
    assert windows[0][0] is variants[2]


def test_no_variants_for_chromosome():
    assert make_windows_chromosome([_snv(0, 5), _snv(0, 6)], 3, 150) == []
    assert make_windows_chromosome([], 1, 150) == []