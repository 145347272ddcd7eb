# print_exporter/imaging/quality.py
# Upscale prevention: decide per target whether it can be produced from the
# source without enlarging any kept pixel.

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from print_exporter.imaging.geometry import crop_window, fit_scale
from print_exporter.models.enums import LayoutMode
from print_exporter.models.geometry import Size
from print_exporter.models.results import Achievable, GateResult, SkipRecord, Skipped
from print_exporter.models.settings import TargetSpec

log = logging.getLogger("print-exporter.quality")


def check(source: Size, target: TargetSpec) -> GateResult:
    """Return Achievable(target size) or Skipped(SkipRecord).

    Cropping is not a quality loss, enlarging is. A crop target is skipped
    only when the kept window is smaller than the output on either axis.
    Fit and mat never crop, so any scale above 1 enlarges the whole image.
    """
    tw, th = target.size.width, target.size.height

    if target.mode is LayoutMode.CROP:
        window = crop_window(source, target.size)
        if window.w < tw or window.h < th:
            return Skipped(SkipRecord(target, target.size, Size(window.w, window.h)))
        return Achievable(target.size)

    if fit_scale(source, (tw, th)) > 1:
        return Skipped(SkipRecord(target, target.size, source))
    return Achievable(target.size)


def partition(
    source: Size, targets: Sequence[TargetSpec]
) -> Tuple[List[TargetSpec], List[SkipRecord]]:
    """Split targets into (achievable, skipped), both in selection order."""
    achievable: List[TargetSpec] = []
    skipped: List[SkipRecord] = []
    for t in targets:
        result = check(source, t)
        if isinstance(result, Skipped):
            log.warning(
                "Skipping %s (%s, %s): would need upscaling, usable %s",
                t.label, t.size, t.mode.value, result.record.achievable_size,
            )
            skipped.append(result.record)
        else:
            achievable.append(t)
    return achievable, skipped


def describe_skip(record: SkipRecord) -> str:
    req, got = record.required_size, record.achievable_size
    return (
        f"{record.target.label}: The source image is smaller than "
        f"{req.width:,} × {req.height:,} px. This size was skipped to avoid "
        f"quality loss. (usable crop: {got.width:,} × {got.height:,} px)"
    )
