import io
import struct
import zlib

import pytest
from PIL import Image

from print_exporter.imaging.metadata import (
    PNG_SIGNATURE,
    build_phys_chunk,
    dpi_to_ppm,
    embed_dpi,
    embed_jpeg_dpi,
    embed_png_dpi,
    iter_chunks,
    png_crc,
    read_jpeg_dpi,
    read_png_dpi,
)
from print_exporter.models.enums import ExportFormat


def _encoded(fmt: str, size=(32, 24)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 40, 90)).save(buf, format=fmt)
    return buf.getvalue()


def _chunk(ctype: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + ctype + data + struct.pack(">I", png_crc(ctype + data))


def _types(data: bytes):
    return [ctype for _off, ctype, _len in iter_chunks(data)]


def test_crc_matches_known_value():
    # every PNG ends with this IEND CRC
    assert png_crc(b"IEND") == 0xAE426082


def test_ppm_for_300_dpi():
    assert dpi_to_ppm(300) == 11811
    assert dpi_to_ppm(72) == 2835


def test_phys_chunk_layout():
    chunk = build_phys_chunk(11811, 11811)
    assert len(chunk) == 21
    assert chunk[:8] == b"\x00\x00\x00\x09pHYs"
    assert struct.unpack(">IIB", chunk[8:17]) == (11811, 11811, 1)
    assert struct.unpack(">I", chunk[17:])[0] == zlib.crc32(chunk[4:17])


def test_png_gets_one_phys_before_first_idat():
    original = _encoded("PNG")
    before = _types(original)
    out = embed_png_dpi(original, 300)
    after = _types(out)

    assert len(after) == len(before) + 1
    assert after.count(b"pHYs") == 1
    assert after.index(b"pHYs") < after.index(b"IDAT")
    assert read_png_dpi(out) == pytest.approx((300, 300), abs=0.01)

    for off, ctype, length in iter_chunks(out):
        stored = struct.unpack_from(">I", out, off + 8 + length)[0]
        assert stored == png_crc(out[off + 4:off + 8 + length])

    with Image.open(io.BytesIO(out)) as im:
        im.load()
        assert im.info["dpi"] == pytest.approx((300, 300), abs=0.01)
        assert im.size == (32, 24)


def test_png_with_several_idat_chunks_inserts_once():
    data = (
        PNG_SIGNATURE
        + _chunk(b"IHDR", b"\x00" * 13)
        + _chunk(b"IDAT", b"first")
        + _chunk(b"IDAT", b"second")
        + _chunk(b"IEND", b"")
    )
    out = embed_png_dpi(data, 300)
    assert _types(out) == [b"IHDR", b"pHYs", b"IDAT", b"IDAT", b"IEND"]
    # everything around the splice is untouched
    idat_at = len(PNG_SIGNATURE) + 25
    assert out[:idat_at] == data[:idat_at]
    assert out[idat_at + 21:] == data[idat_at:]


def test_png_without_idat_is_returned_unchanged():
    data = PNG_SIGNATURE + _chunk(b"IHDR", b"\x00" * 13) + _chunk(b"IEND", b"")
    assert embed_png_dpi(data, 300) == data


def test_png_truncated_or_foreign_input_is_returned_unchanged():
    original = _encoded("PNG")
    truncated = original[:40]
    assert embed_png_dpi(truncated, 300) == truncated
    assert embed_png_dpi(b"not a png at all", 300) == b"not a png at all"
    assert embed_png_dpi(b"", 300) == b""


def test_png_rerun_inserts_again_without_corruption():
    once = embed_png_dpi(_encoded("PNG"), 300)
    twice = embed_png_dpi(once, 150)
    types = _types(twice)
    assert types.count(b"pHYs") == 2
    assert max(i for i, t in enumerate(types) if t == b"pHYs") < types.index(b"IDAT")
    # last pHYs wins; ppm is an integer so 150 DPI reads back as ~150.012
    last = [off for off, ctype, _len in iter_chunks(twice) if ctype == b"pHYs"][-1]
    assert struct.unpack_from(">IIB", twice, last + 8) == (5906, 5906, 1)
    assert read_png_dpi(twice) == pytest.approx((150, 150), abs=0.05)
    with Image.open(io.BytesIO(twice)) as im:
        im.load()


def test_jpeg_patches_only_density_bytes():
    original = _encoded("JPEG")
    assert original[:4] == b"\xff\xd8\xff\xe0"
    assert original[6:10] == b"JFIF"

    out = embed_jpeg_dpi(original, 300)
    assert len(out) == len(original)
    changed = [i for i, (a, b) in enumerate(zip(original, out)) if a != b]
    assert set(changed) <= {13, 14, 15, 16, 17}
    assert out[13] == 1
    assert out[14:18] == b"\x01\x2c\x01\x2c"
    assert read_jpeg_dpi(out) == (300, 300)

    with Image.open(io.BytesIO(out)) as im:
        assert im.info["dpi"] == pytest.approx((300, 300))


def test_jpeg_is_idempotent():
    once = embed_jpeg_dpi(_encoded("JPEG"), 300)
    assert embed_jpeg_dpi(once, 300) == once


def test_jpeg_without_jfif_header_is_returned_unchanged():
    exif_first = b"\xff\xd8\xff\xe1\x00\x10Exif\x00\x00" + b"\x00" * 20
    assert embed_jpeg_dpi(exif_first, 300) == exif_first

    original = bytearray(_encoded("JPEG"))
    original[6:10] = b"JFXX"
    assert embed_jpeg_dpi(bytes(original), 300) == bytes(original)

    assert embed_jpeg_dpi(b"\xff\xd8\xff\xe0", 300) == b"\xff\xd8\xff\xe0"


def test_embed_dpi_dispatches_on_format():
    png, jpg = _encoded("PNG"), _encoded("JPEG")
    assert b"pHYs" in embed_dpi(png, ExportFormat.PNG, 300)
    assert read_jpeg_dpi(embed_dpi(jpg, ExportFormat.JPEG, 300)) == (300, 300)


@pytest.mark.parametrize("dpi", [0, -1, 70000])
def test_invalid_dpi_is_a_caller_error(dpi):
    with pytest.raises(ValueError):
        embed_png_dpi(_encoded("PNG"), dpi)
