from print_exporter.imaging.quality import check, describe_skip, partition
from print_exporter.models.enums import LayoutMode
from print_exporter.models.geometry import Size
from print_exporter.models.results import Achievable, Skipped
from print_exporter.models.settings import TargetSpec

POSTER_4X5 = TargetSpec("4x5", "4:5 Portrait", "24x30_portrait", Size(7200, 9000))


def test_crop_too_small_is_skipped_with_usable_crop():
    result = check(Size(4000, 3000), POSTER_4X5)
    assert isinstance(result, Skipped)
    assert not result.ok
    assert result.record.required_size == Size(7200, 9000)
    assert result.record.achievable_size == Size(2400, 3000)


def test_crop_large_enough_is_achievable():
    result = check(Size(8000, 10000), POSTER_4X5)
    assert result == Achievable(Size(7200, 9000))
    assert result.ok


def test_exact_size_is_not_an_upscale():
    assert isinstance(check(Size(7200, 9000), POSTER_4X5), Achievable)
    fit = POSTER_4X5.with_layout(mode=LayoutMode.FIT)
    assert isinstance(check(Size(7200, 9000), fit), Achievable)


def test_fit_checks_whole_image_scale():
    fit = POSTER_4X5.with_layout(mode=LayoutMode.FIT)
    # crop would keep only 4800x6000 of this source, fit scales it by 0.9
    assert isinstance(check(Size(8000, 6000), POSTER_4X5), Skipped)
    assert isinstance(check(Size(8000, 6000), fit), Achievable)

    result = check(Size(4000, 3000), fit)
    assert isinstance(result, Skipped)
    assert result.record.achievable_size == Size(4000, 3000)


def test_mat_uses_same_rule_as_fit():
    mat = POSTER_4X5.with_layout(mode=LayoutMode.MAT, mat_percent=20)
    assert isinstance(check(Size(7200, 20000), mat), Achievable)
    assert isinstance(check(Size(7000, 8000), mat), Skipped)


def test_partition_keeps_selection_order():
    small = TargetSpec("s", "Small", "small", Size(100, 100))
    big = TargetSpec("b", "Big", "big", Size(5000, 5000))
    mid = TargetSpec("m", "Mid", "mid", Size(200, 150))
    ok, skipped = partition(Size(400, 300), [small, big, mid])
    assert ok == [small, mid]
    assert [r.target for r in skipped] == [big]


def test_describe_skip_mentions_both_sizes():
    result = check(Size(4000, 3000), POSTER_4X5)
    text = describe_skip(result.record)
    assert text.startswith("4:5 Portrait")
    assert "7,200 × 9,000 px" in text
    assert "2,400 × 3,000 px" in text
