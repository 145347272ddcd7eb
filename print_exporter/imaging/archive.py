# print_exporter/imaging/archive.py
# Collaborators at the end of the run: package the rendered files into one
# ZIP blob, then hand that blob to whatever "saves" it.

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import Callable, Optional, Sequence

from print_exporter.errors import ArchiveError
from print_exporter.models.results import OutputArtifact

log = logging.getLogger("print-exporter.archive")

# fraction 0.0-1.0 of the archive written so far
ArchiveProgress = Callable[[float], None]
# (filename, blob) -> where it ended up
Deliver = Callable[[str, bytes], Optional[str]]


class ZipArchiver:
    """DEFLATE ZIP, entries in insertion order."""

    def __init__(self, compression_level: int = 6):
        self.compression_level = compression_level

    def package(
        self,
        artifacts: Sequence[OutputArtifact],
        progress_cb: Optional[ArchiveProgress] = None,
    ) -> bytes:
        total = sum(len(a) for a in artifacts) or 1
        written = 0
        buf = io.BytesIO()
        try:
            with zipfile.ZipFile(
                buf, "w", zipfile.ZIP_DEFLATED, compresslevel=self.compression_level
            ) as zf:
                for art in artifacts:
                    zf.writestr(art.filename, art.data)
                    written += len(art)
                    if progress_cb is not None:
                        progress_cb(written / total)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise ArchiveError(f"Could not create ZIP archive: {e}") from e

        blob = buf.getvalue()
        log.info("Packaged %d file(s) into %d bytes", len(artifacts), len(blob))
        return blob


def save_to_directory(output_dir: str | Path) -> Deliver:
    """Delivery collaborator writing the archive into ``output_dir``."""
    out_dir = Path(output_dir)

    def _deliver(filename: str, blob: bytes) -> str:
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / filename
        tmp = out_path.with_suffix(out_path.suffix + ".part")
        try:
            tmp.write_bytes(blob)
            tmp.replace(out_path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        log.info("Saved archive: %s", out_path)
        return str(out_path)

    return _deliver
