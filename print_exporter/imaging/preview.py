# print_exporter/imaging/preview.py
# Card-sized thumbnails showing what each layout keeps. Presentation only:
# reads rectangles from the geometry planner, never feeds the export.

from __future__ import annotations

from PIL import Image

from print_exporter.imaging.geometry import crop_window, plan, round_half_away
from print_exporter.imaging.raster import RESAMPLE, render
from print_exporter.models.enums import LayoutMode
from print_exporter.models.geometry import Size
from print_exporter.models.settings import TargetSpec

PREVIEW_MAX_DIM = 48
DIM_ALPHA = 0.25


def _scaled(size: Size, max_dim: int) -> Size:
    scale = min(max_dim / size.width, max_dim / size.height)
    return Size(
        max(1, round_half_away(size.width * scale)),
        max(1, round_half_away(size.height * scale)),
    )


def render_preview(source: Image.Image, target: TargetSpec, max_dim: int = PREVIEW_MAX_DIM) -> Image.Image:
    src = source if source.mode == "RGB" else source.convert("RGB")
    src_size = Size(*src.size)

    if target.mode is LayoutMode.CROP:
        # whole source dimmed, kept window at full brightness
        thumb_size = _scaled(src_size, max_dim)
        full = src.resize(thumb_size.as_tuple(), resample=RESAMPLE)
        thumb = Image.blend(Image.new("RGB", full.size), full, DIM_ALPHA)

        window = crop_window(src_size, target.size)
        scale = thumb_size.width / src_size.width
        cx = round_half_away(window.x * scale)
        cy = round_half_away(window.y * scale)
        cw = max(1, min(round_half_away(window.w * scale), thumb_size.width - cx))
        ch = max(1, min(round_half_away(window.h * scale), thumb_size.height - cy))
        bright = src.resize((cw, ch), resample=RESAMPLE, box=window.box())
        thumb.paste(bright, (cx, cy))
        return thumb

    # fit / mat: canvas at the target ratio, layout computed at thumbnail scale
    canvas = _scaled(target.size, max_dim)
    placement = plan(src_size, canvas, target.mode, target.mat_percent)
    return render(src, placement, target.background)
