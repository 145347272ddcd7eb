# print_exporter/imaging/raster.py
# Draw the source into an exact-size canvas following a PlacementPlan, then
# encode it. Pixel work only; DPI tagging happens afterwards on the bytes.

from __future__ import annotations

import io
import logging

from PIL import Image

from print_exporter.errors import EncodingError
from print_exporter.models.enums import ExportFormat
from print_exporter.models.geometry import PlacementPlan
from print_exporter.models.settings import DEFAULT_BACKGROUND, RGB

log = logging.getLogger("print-exporter.raster")

# Output never exceeds source resolution on an exercised path, so this is
# always a downscale (or 1:1).
RESAMPLE = Image.Resampling.LANCZOS

DEFAULT_JPEG_QUALITY = 92


def _as_rgb(source: Image.Image) -> Image.Image:
    # convert() returns a copy, the shared source stays untouched
    return source if source.mode == "RGB" else source.convert("RGB")


def render(
    source: Image.Image,
    plan: PlacementPlan,
    background: RGB = DEFAULT_BACKGROUND,
) -> Image.Image:
    """Return a new RGB image of ``plan.canvas_size``."""
    src = _as_rgb(source)
    dest = plan.dest_rect

    scaled = src.resize(
        (dest.w, dest.h),
        resample=RESAMPLE,
        box=plan.source_rect.box(),
    )

    if not plan.fills_background:
        # crop covers the whole canvas
        return scaled

    canvas = Image.new("RGB", plan.canvas_size.as_tuple(), tuple(background))
    canvas.paste(scaled, (dest.x, dest.y))
    return canvas


def encode(
    image: Image.Image,
    fmt: ExportFormat,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    w, h = image.size
    buf = io.BytesIO()
    try:
        if fmt is ExportFormat.JPEG:
            image.save(buf, format="JPEG", quality=jpeg_quality)
        else:
            image.save(buf, format="PNG")
    except (OSError, ValueError, MemoryError) as e:
        raise EncodingError(
            f"Failed to generate {w}×{h} {fmt.name} image: {e}. "
            f"Try a smaller poster ratio."
        ) from e

    data = buf.getvalue()
    if not data:
        raise EncodingError(f"Encoder returned no data for {w}×{h} {fmt.name} image.")
    log.info("Encoded %s %dx%d (%d bytes)", fmt.name, w, h, len(data))
    return data

