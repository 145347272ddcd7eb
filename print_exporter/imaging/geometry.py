# print_exporter/imaging/geometry.py
# Placement geometry for the three layout modes.
# Pure arithmetic on sizes: no pixels, no I/O. The quality gate, the
# rasterizer and the preview all read their rectangles from here so the
# numbers can never drift apart.

from __future__ import annotations

import math
from typing import Tuple

from print_exporter.errors import PlanError
from print_exporter.models.enums import LayoutMode
from print_exporter.models.geometry import PlacementPlan, Rect, Size
from print_exporter.models.settings import DEFAULT_MAT_PERCENT


def round_half_away(value: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3).

    Python's round() does banker's rounding, which would shift a centred
    image by a pixel on odd leftovers.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def crop_window(source: Size, target: Size) -> Rect:
    """Largest centred window of the source with the target's aspect ratio."""
    sw, sh = source.width, source.height
    target_ratio = target.width / target.height
    source_ratio = sw / sh

    if source_ratio > target_ratio:
        # wider than the target: keep full height, trim the sides
        crop_h = sh
        crop_w = max(1, round_half_away(sh * target_ratio))
        crop_x = round_half_away((sw - crop_w) / 2)
        crop_y = 0
    else:
        # taller (or equal): keep full width, trim top and bottom
        crop_w = sw
        crop_h = max(1, round_half_away(sw / target_ratio))
        crop_x = 0
        crop_y = round_half_away((sh - crop_h) / 2)

    return Rect(crop_x, crop_y, crop_w, crop_h)


def mat_inset(target: Size, mat_percent: float) -> int:
    return round_half_away(min(target.width, target.height) * (mat_percent / 100))


def fit_scale(source: Size, box: Tuple[int, int]) -> float:
    bw, bh = box
    return min(bw / source.width, bh / source.height)


def _centered(source: Size, canvas: Size, box: Tuple[int, int]) -> Rect:
    scale = fit_scale(source, box)
    draw_w = max(1, round_half_away(source.width * scale))
    draw_h = max(1, round_half_away(source.height * scale))
    # centre against the full canvas; the draw size already respects the box
    draw_x = round_half_away((canvas.width - draw_w) / 2)
    draw_y = round_half_away((canvas.height - draw_h) / 2)
    return Rect(draw_x, draw_y, draw_w, draw_h)


def _check(plan: PlacementPlan, source: Size) -> PlacementPlan:
    if not plan.source_rect.fits_within(source):
        raise PlanError(f"source rect {plan.source_rect} outside source {source}")
    if not plan.dest_rect.fits_within(plan.canvas_size):
        raise PlanError(f"dest rect {plan.dest_rect} outside canvas {plan.canvas_size}")
    return plan


def plan(
    source: Size,
    target: Size,
    mode: LayoutMode,
    mat_percent: float = DEFAULT_MAT_PERCENT,
) -> PlacementPlan:
    """Compute where the source lands on a canvas of exactly ``target`` pixels.

    CROP: centred crop window of the source, stretched over the whole canvas.
    FIT: whole source scaled into the canvas and centred.
    MAT: like FIT, but fitted into the canvas minus a uniform border of
    ``mat_percent`` % of the shorter canvas edge.

    The caller is expected to have run the quality gate; this function does
    not refuse upscales. Out-of-bounds rectangles raise PlanError.
    """
    full_source = Rect(0, 0, source.width, source.height)

    if mode is LayoutMode.CROP:
        result = PlacementPlan(
            canvas_size=target,
            source_rect=crop_window(source, target),
            dest_rect=Rect(0, 0, target.width, target.height),
            mode=mode,
        )
    elif mode is LayoutMode.FIT:
        result = PlacementPlan(
            canvas_size=target,
            source_rect=full_source,
            dest_rect=_centered(source, target, target.as_tuple()),
            mode=mode,
        )
    elif mode is LayoutMode.MAT:
        inset = mat_inset(target, mat_percent)
        inner = (target.width - 2 * inset, target.height - 2 * inset)
        if inner[0] <= 0 or inner[1] <= 0:
            raise PlanError(f"mat of {inset}px leaves no room on {target}")
        result = PlacementPlan(
            canvas_size=target,
            source_rect=full_source,
            dest_rect=_centered(source, target, inner),
            mode=mode,
            inset=inset,
        )
    else:
        raise ValueError(f"Unsupported layout mode: {mode}")

    return _check(result, source)
