from __future__ import annotations
from dataclasses import dataclass
from math import gcd
from typing import Dict, List, Sequence, Tuple

from print_exporter.models.enums import Orientation
from print_exporter.models.geometry import Size
from print_exporter.models.settings import DEFAULT_DPI, TargetSpec

MM_PER_INCH = 25.4

A_SERIES_MM = {
    "A1": (594, 841),
}

def to_inches(mm: float) -> float:
    return mm / MM_PER_INCH

def target_pixels(width_mm: float, height_mm: float, dpi: int) -> Tuple[int, int]:
    w = max(1, round(to_inches(width_mm) * dpi))
    h = max(1, round(to_inches(height_mm) * dpi))
    return (w, h)

def inch_pixels(width_in: float, height_in: float, dpi: int = DEFAULT_DPI) -> Tuple[int, int]:
    return (int(round(width_in * dpi)), int(round(height_in * dpi)))


@dataclass(frozen=True)
class RatioGroup:
    id: str
    group_label: str
    portrait_label: str
    portrait_tag: str
    portrait_name: str
    portrait_px: Tuple[int, int]

    def target(self, orientation: Orientation) -> TargetSpec:
        pw, ph = self.portrait_px
        if orientation is Orientation.PORTRAIT:
            return TargetSpec(
                id=self.id,
                label=self.portrait_label,
                filename_tag=self.portrait_tag,
                size=Size(pw, ph),
            )
        return TargetSpec(
            id=self.id,
            label=self.portrait_label.replace("Portrait", "Landscape"),
            filename_tag=_landscape_tag(self.portrait_tag),
            size=Size(ph, pw),
        )


def _landscape_tag(tag: str) -> str:
    # "24x36_portrait" -> "36x24_landscape", "A1_portrait" -> "A1_landscape"
    dims, _, _ = tag.partition("_")
    a, sep, b = dims.partition("x")
    if sep and a.isdigit() and b.isdigit():
        dims = f"{b}x{a}"
    return f"{dims}_landscape"


_A1 = target_pixels(*A_SERIES_MM["A1"], DEFAULT_DPI)

RATIO_GROUPS: List[RatioGroup] = [
    RatioGroup("2x3", "2 : 3", "2:3 Portrait", "24x36_portrait", '24" × 36"', inch_pixels(24, 36)),
    RatioGroup("ISO_A1", "ISO A1", "A1 Portrait", "A1_portrait", "A1 (594 × 841 mm)", _A1),
    RatioGroup("4x5", "4 : 5", "4:5 Portrait", "24x30_portrait", '24" × 30"', inch_pixels(24, 30)),
    RatioGroup("3x4", "3 : 4", "3:4 Portrait", "24x32_portrait", '24" × 32"', inch_pixels(24, 32)),
    RatioGroup("11x14", "11 : 14", "11:14 Portrait", "22x28_portrait", '22" × 28"', inch_pixels(22, 28)),
]

GROUPS_BY_ID: Dict[str, RatioGroup] = {g.id: g for g in RATIO_GROUPS}


def detect_orientation(size: Size) -> Orientation:
    # square sources count as landscape
    return Orientation.LANDSCAPE if size.width >= size.height else Orientation.PORTRAIT

def targets_for(orientation: Orientation, group_ids: Sequence[str] | None = None) -> List[TargetSpec]:
    if group_ids is None:
        return [g.target(orientation) for g in RATIO_GROUPS]
    unknown = [gid for gid in group_ids if gid not in GROUPS_BY_ID]
    if unknown:
        raise ValueError(f"Unknown ratio group(s): {', '.join(unknown)}")
    return [GROUPS_BY_ID[gid].target(orientation) for gid in group_ids]

def simplify_ratio(w: int, h: int) -> str:
    g = gcd(w, h)
    rw, rh = w // g, h // g
    if rw > 50 or rh > 50:
        return f"≈ {w / h:.2f} : 1"
    return f"{rw} : {rh}"

def format_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    if n < 1048576:
        return f"{n / 1024:.1f} KB"
    return f"{n / 1048576:.1f} MB"
