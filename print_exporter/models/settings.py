from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from .enums import ExportFormat, LayoutMode
from .geometry import Size

RGB = Tuple[int, int, int]

DEFAULT_DPI = 300
DEFAULT_MAT_PERCENT = 5
MAT_PERCENT_RANGE = (1, 20)
DEFAULT_BACKGROUND: RGB = (0, 0, 0)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def parse_color(value: str | RGB) -> RGB:
    """Accept '#rrggbb' (as the colour picker sends it) or an RGB tuple."""
    if isinstance(value, str):
        m = _HEX_COLOR.match(value.strip())
        if not m:
            raise ValueError(f"Invalid colour: {value!r} (expected #rrggbb)")
        hexv = m.group(1)
        return (int(hexv[0:2], 16), int(hexv[2:4], 16), int(hexv[4:6], 16))
    r, g, b = value
    for c in (r, g, b):
        if not 0 <= int(c) <= 255:
            raise ValueError(f"Colour component out of range: {value!r}")
    return (int(r), int(g), int(b))


def color_to_hex(color: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


@dataclass(frozen=True)
class TargetSpec:
    id: str
    label: str
    filename_tag: str
    size: Size
    mode: LayoutMode = LayoutMode.CROP
    mat_percent: int = DEFAULT_MAT_PERCENT
    background: RGB = DEFAULT_BACKGROUND

    def __post_init__(self) -> None:
        lo, hi = MAT_PERCENT_RANGE
        if not lo <= self.mat_percent <= hi:
            raise ValueError(f"mat_percent must be in {lo}..{hi}, got {self.mat_percent}")

    def with_layout(
        self,
        mode: Optional[LayoutMode] = None,
        mat_percent: Optional[int] = None,
        background: Optional[str | RGB] = None,
    ) -> "TargetSpec":
        changes = {}
        if mode is not None:
            changes["mode"] = mode
        if mat_percent is not None:
            changes["mat_percent"] = int(mat_percent)
        if background is not None:
            changes["background"] = parse_color(background)
        return replace(self, **changes)


@dataclass(frozen=True)
class SourceImage:
    path: Optional[Path]
    name: str
    image: Image.Image = field(repr=False, compare=False)
    format: str = "PNG"
    size_bytes: Optional[int] = None

    @property
    def size(self) -> Size:
        w, h = self.image.size
        return Size(w, h)


@dataclass(frozen=True)
class ExportSettings:
    export_name: Optional[str] = None
    formats: Tuple[ExportFormat, ...] = (ExportFormat.PNG,)
    output_dir: Path = Path(".")
    dpi: int = DEFAULT_DPI
    jpeg_quality: int = 92
    compression_level: int = 6
    workers: int = 1
