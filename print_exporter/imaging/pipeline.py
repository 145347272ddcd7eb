# print_exporter/imaging/pipeline.py
# Export run: quality gate -> geometry -> raster -> encode -> DPI tag -> ZIP.
# - One run at a time per pipeline (re-entrant calls raise PipelineBusyError)
# - Deterministic artifact order: targets as selected, PNG before JPEG
# - Progress: 0-90% rendering, 90-100% archiving
# - All-or-nothing: the archive is delivered only after every artifact and
#   the ZIP succeeded

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from print_exporter.errors import (
    ArchiveError,
    EncodingError,
    ExportCancelled,
    ExportError,
    NothingAchievableError,
    PipelineBusyError,
    ValidationError,
)
from print_exporter.imaging.archive import Deliver, ZipArchiver, save_to_directory
from print_exporter.imaging.geometry import plan, round_half_away
from print_exporter.imaging.metadata import embed_dpi
from print_exporter.imaging.quality import partition
from print_exporter.imaging.raster import DEFAULT_JPEG_QUALITY, encode, render
from print_exporter.models.enums import (
    FORMAT_EXTENSIONS,
    FORMAT_MIME_TYPES,
    FORMAT_ORDER,
    MODE_SUFFIXES,
    ExportFormat,
    ExportState,
)
from print_exporter.models.results import ExportJob, ExportResult, OutputArtifact, SkipRecord
from print_exporter.models.settings import DEFAULT_DPI, ExportSettings, SourceImage, TargetSpec
from print_exporter.utils.logging_utils import log_section

log = logging.getLogger("print-exporter")

ProgressCallback = Callable[[int, str], None]
SkippedCallback = Callable[[List[SkipRecord]], None]
CancelCheck = Callable[[], bool]

RENDER_SHARE = 90  # percent of the bar reserved for rendering
DEFAULT_EXPORT_NAME = "poster"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")


# ---------------------------- naming ----------------------------
def sanitize_export_name(name: Optional[str]) -> str:
    raw = (name or "").strip()
    cleaned = _UNDERSCORE_RUNS.sub("_", _UNSAFE_CHARS.sub("_", raw))
    return cleaned or DEFAULT_EXPORT_NAME


def artifact_filename(export_name: str, target: TargetSpec, fmt: ExportFormat) -> str:
    return f"{export_name}_{target.filename_tag}{MODE_SUFFIXES[target.mode]}.{FORMAT_EXTENSIONS[fmt]}"


def archive_filename(export_name: str) -> str:
    return f"{export_name}_posters.zip"


# ---------------------------- helpers ----------------------------
def _emit_progress(cb: Optional[ProgressCallback], value: float, message: str) -> None:
    """Safely emit progress callback, ensuring value is between 0-100"""
    if cb is None:
        return
    try:
        cb(max(0, min(100, int(value))), message)
    except Exception as e:
        log.warning(f"Failed to emit progress {value}: {e}")


def _ordered_formats(formats: Iterable[ExportFormat]) -> Tuple[ExportFormat, ...]:
    wanted = set(formats)
    return tuple(f for f in FORMAT_ORDER if f in wanted)


def validate_selection(
    targets: Sequence[TargetSpec], formats: Iterable[ExportFormat]
) -> Tuple[ExportFormat, ...]:
    ordered = _ordered_formats(formats)
    if not ordered:
        raise ValidationError("Please select at least one export format (PNG or JPEG).")
    if not targets:
        raise ValidationError("Please select at least one output ratio.")
    return ordered


# ---------------------------- pipeline ----------------------------
class ExportPipeline:
    """Turns one source image into a ZIP of poster files.

    ``archiver`` needs a ``package(artifacts, progress_cb) -> bytes`` method;
    ``deliver`` is called once with ``(archive_name, blob)`` on success.
    """

    def __init__(
        self,
        archiver=None,
        deliver: Optional[Deliver] = None,
        *,
        dpi: int = DEFAULT_DPI,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        workers: int = 1,
    ):
        self.archiver = archiver if archiver is not None else ZipArchiver()
        self.deliver = deliver
        self.dpi = dpi
        self.jpeg_quality = jpeg_quality
        self.workers = max(1, int(workers))
        self._state = ExportState.IDLE
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: ExportSettings, deliver: Optional[Deliver] = None) -> "ExportPipeline":
        if deliver is None:
            deliver = save_to_directory(settings.output_dir)
        return cls(
            ZipArchiver(settings.compression_level),
            deliver,
            dpi=settings.dpi,
            jpeg_quality=settings.jpeg_quality,
            workers=settings.workers,
        )

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def run(
        self,
        source: SourceImage,
        targets: Sequence[TargetSpec],
        formats: Iterable[ExportFormat],
        export_name: Optional[str] = None,
        progress_cb: Optional[ProgressCallback] = None,
        skipped_cb: Optional[SkippedCallback] = None,
        cancel_check: Optional[CancelCheck] = None,
    ) -> ExportResult:
        if not self._lock.acquire(blocking=False):
            raise PipelineBusyError("An export is already running.")
        try:
            return self._run(
                source, tuple(targets), formats, export_name,
                progress_cb, skipped_cb, cancel_check,
            )
        finally:
            self._lock.release()

    def _run(self, source, targets, formats, export_name, progress_cb, skipped_cb, cancel_check):
        self._state = ExportState.VALIDATING
        try:
            fmts = validate_selection(targets, formats)
        except ValidationError:
            self._state = ExportState.IDLE
            raise

        name = sanitize_export_name(export_name if export_name is not None else source.name)
        achievable, skipped = partition(source.size, targets)
        if skipped_cb is not None:
            try:
                skipped_cb(list(skipped))
            except Exception as e:
                log.warning(f"Failed to report skipped sizes: {e}")

        if not achievable:
            self._state = ExportState.IDLE
            raise NothingAchievableError(skipped)

        jobs = [ExportJob(t, f) for t in achievable for f in fmts]
        total = len(jobs)

        with log_section(f"EXPORT {name}: {total} file(s) from {source.size}", log):
            _emit_progress(progress_cb, 0, f"Starting export ({total} file{'s' if total > 1 else ''})…")
            try:
                self._state = ExportState.RENDERING
                artifacts = self._render_all(source, jobs, name, progress_cb, cancel_check)
                self._check_cancel(cancel_check)

                self._state = ExportState.ARCHIVING
                zip_name = archive_filename(name)
                _emit_progress(progress_cb, RENDER_SHARE, "Creating ZIP archive…")
                blob = self._package(artifacts, progress_cb)
                self._check_cancel(cancel_check)

                location = self.deliver(zip_name, blob) if self.deliver is not None else None
            except ExportCancelled:
                self._state = ExportState.FAILED
                log.warning("Export cancelled, nothing delivered")
                raise
            except Exception as e:
                self._state = ExportState.FAILED
                log.error(f"Export failed: {e}")
                raise

        self._state = ExportState.DONE
        _emit_progress(progress_cb, 100, "Done!")
        return ExportResult(
            archive_name=zip_name,
            archive_location=location,
            artifacts=[a.filename for a in artifacts],
            skipped=list(skipped),
        )

    # ---------------------------- rendering ----------------------------
    @staticmethod
    def _check_cancel(cancel_check: Optional[CancelCheck]) -> None:
        if cancel_check is not None and cancel_check():
            raise ExportCancelled("Export cancelled by user")

    def render_job(self, source: SourceImage, job: ExportJob, export_name: str) -> OutputArtifact:
        target, fmt = job.target, job.format
        size = target.size
        placement = plan(source.size, size, target.mode, target.mat_percent)
        try:
            canvas = render(source.image, placement, target.background)
        except (MemoryError, ValueError, OSError) as e:
            raise EncodingError(
                f"Failed to generate {size.width}×{size.height} image: {e}"
            ) from e
        data = encode(canvas, fmt, self.jpeg_quality)
        data = embed_dpi(data, fmt, self.dpi)
        return OutputArtifact(
            filename=artifact_filename(export_name, target, fmt),
            data=data,
            mime_type=FORMAT_MIME_TYPES[fmt],
        )

    def _render_all(self, source, jobs, export_name, progress_cb, cancel_check) -> List[OutputArtifact]:
        if self.workers > 1 and len(jobs) > 1:
            return self._render_parallel(source, jobs, export_name, progress_cb, cancel_check)

        total = len(jobs)
        artifacts: List[OutputArtifact] = []
        for i, job in enumerate(jobs):
            self._check_cancel(cancel_check)
            t = job.target
            _emit_progress(
                progress_cb,
                round_half_away(i / total * RENDER_SHARE),
                f"Processing {t.label} {job.format.name} ({t.size.width}×{t.size.height})…",
            )
            art = self.render_job(source, job, export_name)
            artifacts.append(art)
            log.info(f"[{i + 1}/{total}] {art.filename} ({len(art)} bytes)")
            _emit_progress(progress_cb, round_half_away((i + 1) / total * RENDER_SHARE), f"Rendered {art.filename}")
        return artifacts

    def _render_parallel(self, source, jobs, export_name, progress_cb, cancel_check) -> List[OutputArtifact]:
        total = len(jobs)

        def _job(job: ExportJob) -> OutputArtifact:
            self._check_cancel(cancel_check)
            return self.render_job(source, job, export_name)

        artifacts: List[OutputArtifact] = []
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="render") as pool:
            futures: List[Future] = [pool.submit(_job, job) for job in jobs]
            try:
                # collect in submission order, not completion order
                for i, fut in enumerate(futures):
                    art = fut.result()
                    artifacts.append(art)
                    log.info(f"[{i + 1}/{total}] {art.filename} ({len(art)} bytes)")
                    _emit_progress(
                        progress_cb,
                        round_half_away((i + 1) / total * RENDER_SHARE),
                        f"Rendered {art.filename}",
                    )
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise
        return artifacts

    # ---------------------------- archiving ----------------------------
    def _package(self, artifacts: List[OutputArtifact], progress_cb) -> bytes:
        share = 100 - RENDER_SHARE

        def _zip_progress(fraction: float) -> None:
            _emit_progress(progress_cb, RENDER_SHARE + round_half_away(fraction * share), "Compressing ZIP…")

        try:
            return self.archiver.package(artifacts, _zip_progress)
        except ExportError:
            raise
        except Exception as e:
            raise ArchiveError("Something went wrong while creating the ZIP archive.") from e
