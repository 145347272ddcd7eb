from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from print_exporter.errors import UnsupportedImageError
from print_exporter.models.settings import SourceImage

log = logging.getLogger("print-exporter.loader")

SUPPORTED_FORMATS = ("JPEG", "PNG")


def load_source(file_path: str | Path) -> SourceImage:
    """Decode a JPEG or PNG from disk into a read-only SourceImage.

    Raises:
        FileNotFoundError: path does not exist or is not a file.
        UnsupportedImageError: not an image, or not JPEG/PNG.
    """
    path = Path(file_path)
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"Input image not found: {path}")

    # poster sources routinely exceed Pillow's decompression-bomb guard
    Image.MAX_IMAGE_PIXELS = None

    try:
        with Image.open(path) as im:
            fmt = im.format
            if fmt not in SUPPORTED_FORMATS:
                raise UnsupportedImageError(
                    f"Unsupported file type ({fmt}). Please use a JPG or PNG image."
                )
            # browsers honour EXIF orientation, so do we
            decoded = ImageOps.exif_transpose(im).convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        # truncated or corrupt streams surface as OSError during decode
        raise UnsupportedImageError(f"Unable to load the image: {path}") from exc

    try:
        size_bytes: Optional[int] = path.stat().st_size
    except OSError:
        size_bytes = None

    log.info("Loaded %s: %dx%d %s", path.name, decoded.width, decoded.height, fmt)
    return SourceImage(
        path=path,
        name=path.stem,
        image=decoded,
        format=fmt,
        size_bytes=size_bytes,
    )
