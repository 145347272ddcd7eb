# print_exporter/imaging/metadata.py
# Physical resolution (DPI) tagging on already-encoded PNG / JPEG bytes.
# - PNG: splice a pHYs chunk in front of the first IDAT
# - JPEG: patch the density fields of the JFIF APP0 header in place
# Pixel data is never decoded or re-encoded. A stream that does not have the
# expected layout is returned unchanged: the metadata is cosmetic, the
# image is not.

from __future__ import annotations

import logging
import struct
import zlib
from typing import Iterator, Optional, Tuple

from print_exporter.models.enums import ExportFormat

log = logging.getLogger("print-exporter.metadata")

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
METERS_PER_INCH = 0.0254

# SOI + APP0, then 2-byte segment length, then the identifier
JPEG_SOI_APP0 = b"\xff\xd8\xff\xe0"
JFIF_ID = b"JFIF"
JFIF_UNITS_OFFSET = 13  # 1 byte: 0 none, 1 dpi, 2 dpcm
JFIF_XDENSITY_OFFSET = 14  # 2 bytes BE
JFIF_YDENSITY_OFFSET = 16  # 2 bytes BE
JFIF_MIN_LENGTH = 18


def _check_dpi(dpi: int) -> int:
    dpi = int(dpi)
    if not 1 <= dpi <= 0xFFFF:
        raise ValueError(f"dpi must be in 1..65535, got {dpi}")
    return dpi


def dpi_to_ppm(dpi: float) -> int:
    """Pixels per metre, 300 dpi -> 11811."""
    return int(dpi / METERS_PER_INCH + 0.5)


# ---------------------------- PNG ----------------------------
def png_crc(data: bytes) -> int:
    """CRC-32 (ISO 3309, reflected 0xEDB88320) as stored in PNG chunks."""
    return zlib.crc32(data) & 0xFFFFFFFF


def build_phys_chunk(ppm_x: int, ppm_y: int) -> bytes:
    """21-byte pHYs chunk: length(9) + b'pHYs' + X + Y + unit(1 = metre) + CRC."""
    body = b"pHYs" + struct.pack(">IIB", ppm_x, ppm_y, 1)
    return struct.pack(">I", 9) + body + struct.pack(">I", png_crc(body))


def iter_chunks(data: bytes) -> Iterator[Tuple[int, bytes, int]]:
    """Yield (offset, type, length) for each complete chunk after the signature.

    Stops quietly at the first truncated chunk.
    """
    offset = len(PNG_SIGNATURE)
    total = len(data)
    while offset + 8 <= total:
        (length,) = struct.unpack_from(">I", data, offset)
        ctype = bytes(data[offset + 4:offset + 8])
        end = offset + 12 + length
        if end > total:
            return
        yield offset, ctype, length
        offset = end


def embed_png_dpi(data: bytes, dpi: int) -> bytes:
    dpi = _check_dpi(dpi)
    if not data.startswith(PNG_SIGNATURE):
        log.debug("Not a PNG stream, DPI not embedded")
        return data

    insert_at: Optional[int] = None
    for offset, ctype, _length in iter_chunks(data):
        if ctype == b"IDAT":
            insert_at = offset
            break

    if insert_at is None:
        log.debug("No IDAT chunk found, DPI not embedded")
        return data

    ppm = dpi_to_ppm(dpi)
    return data[:insert_at] + build_phys_chunk(ppm, ppm) + data[insert_at:]


def read_png_dpi(data: bytes) -> Optional[Tuple[float, float]]:
    """DPI from the last pHYs chunk before IDAT (decoders honour the last one)."""
    found = None
    for offset, ctype, length in iter_chunks(data):
        if ctype == b"IDAT":
            break
        if ctype == b"pHYs" and length == 9:
            ppm_x, ppm_y, unit = struct.unpack_from(">IIB", data, offset + 8)
            if unit == 1:
                found = (ppm_x * METERS_PER_INCH, ppm_y * METERS_PER_INCH)
    return found


# ---------------------------- JPEG ----------------------------
def _has_jfif_header(data: bytes) -> bool:
    return (
        len(data) >= JFIF_MIN_LENGTH
        and data.startswith(JPEG_SOI_APP0)
        and data[6:10] == JFIF_ID
    )


def embed_jpeg_dpi(data: bytes, dpi: int) -> bytes:
    dpi = _check_dpi(dpi)
    if not _has_jfif_header(data):
        log.debug("No JFIF APP0 header, DPI not embedded")
        return data

    out = bytearray(data)
    out[JFIF_UNITS_OFFSET] = 1
    struct.pack_into(">HH", out, JFIF_XDENSITY_OFFSET, dpi, dpi)
    return bytes(out)


def read_jpeg_dpi(data: bytes) -> Optional[Tuple[int, int]]:
    if not _has_jfif_header(data) or data[JFIF_UNITS_OFFSET] != 1:
        return None
    return struct.unpack_from(">HH", data, JFIF_XDENSITY_OFFSET)


# ---------------------------- public API ----------------------------
def embed_dpi(data: bytes, fmt: ExportFormat, dpi: int) -> bytes:
    if fmt is ExportFormat.JPEG:
        return embed_jpeg_dpi(data, dpi)
    return embed_png_dpi(data, dpi)
