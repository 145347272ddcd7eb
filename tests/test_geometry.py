import itertools

import pytest

from print_exporter.imaging.geometry import crop_window, mat_inset, plan, round_half_away
from print_exporter.models.enums import LayoutMode
from print_exporter.models.geometry import Rect, Size

SOURCES = [Size(4000, 3000), Size(3000, 4000), Size(8000, 10000), Size(1001, 999), Size(37, 5000), Size(640, 640)]
TARGETS = [Size(7200, 9000), Size(10800, 7200), Size(7016, 9933), Size(333, 334), Size(100, 1)]


def test_round_half_away():
    assert round_half_away(2.5) == 3
    assert round_half_away(0.5) == 1
    assert round_half_away(1.4) == 1
    assert round_half_away(-2.5) == -3


def test_crop_wider_source_keeps_full_height():
    p = plan(Size(4000, 3000), Size(7200, 9000), LayoutMode.CROP)
    assert p.source_rect == Rect(800, 0, 2400, 3000)
    assert p.dest_rect == Rect(0, 0, 7200, 9000)
    assert p.canvas_size == Size(7200, 9000)
    assert not p.fills_background


def test_crop_equal_ratio_keeps_everything():
    assert crop_window(Size(8000, 10000), Size(7200, 9000)) == Rect(0, 0, 8000, 10000)


def test_crop_taller_source_centres_vertically():
    # 1000x2000 -> 4:5 window is 1000x1250, centred at y=375
    assert crop_window(Size(1000, 2000), Size(400, 500)) == Rect(0, 375, 1000, 1250)


def test_fit_centres_and_scales_down():
    p = plan(Size(4000, 3000), Size(1000, 1000), LayoutMode.FIT)
    assert p.source_rect == Rect(0, 0, 4000, 3000)
    assert p.dest_rect == Rect(0, 125, 1000, 750)
    assert p.fills_background
    assert p.inset == 0


def test_fit_offset_rounds_half_away():
    # leftover of 5 rows splits 2.5 / 2.5 -> offset 3
    p = plan(Size(6, 1), Size(6, 6), LayoutMode.FIT)
    assert p.dest_rect == Rect(0, 3, 6, 1)


def test_mat_shrinks_fitting_box():
    p = plan(Size(4000, 3000), Size(1000, 1500), LayoutMode.MAT, mat_percent=10)
    assert p.inset == 100
    assert p.inner_size == (800, 1300)
    assert p.dest_rect == Rect(100, 450, 800, 600)


@pytest.mark.parametrize("pct", [1, 5, 12, 20])
def test_mat_inner_box_matches_percent(pct):
    target = Size(7200, 9000)
    p = plan(Size(5000, 5000), target, LayoutMode.MAT, mat_percent=pct)
    inset = round_half_away(min(target.width, target.height) * pct / 100)
    assert p.inset == inset == mat_inset(target, pct)
    assert p.inner_size == (7200 - 2 * inset, 9000 - 2 * inset)
    assert p.dest_rect.w <= p.inner_size[0]
    assert p.dest_rect.h <= p.inner_size[1]


@pytest.mark.parametrize("source,target", list(itertools.product(SOURCES, TARGETS)))
def test_crop_rects_stay_in_bounds(source, target):
    p = plan(source, target, LayoutMode.CROP)
    assert p.source_rect.fits_within(source)
    assert p.dest_rect == Rect(0, 0, target.width, target.height)


@pytest.mark.parametrize("mode", [LayoutMode.FIT, LayoutMode.MAT])
@pytest.mark.parametrize("source,target", list(itertools.product(SOURCES, TARGETS[:4])))
def test_fit_and_mat_are_centred(mode, source, target):
    p = plan(source, target, mode, mat_percent=7)
    d = p.dest_rect
    assert p.source_rect == Rect(0, 0, source.width, source.height)
    assert d.fits_within(target)
    assert d.x == round_half_away((target.width - d.w) / 2)
    assert d.y == round_half_away((target.height - d.h) / 2)
