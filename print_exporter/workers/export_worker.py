from __future__ import annotations
import logging
from typing import Sequence

from PySide6.QtCore import QThread, Signal

from print_exporter.imaging.pipeline import ExportPipeline
from print_exporter.imaging.quality import describe_skip
from print_exporter.models.enums import ExportFormat
from print_exporter.models.settings import SourceImage, TargetSpec
from print_exporter.utils.logging_utils import QtTailHandler

class ExportWorker(QThread):
    progress = Signal(int, str)
    skipped = Signal(list)
    finished_ok = Signal(str)
    error = Signal(str)
    log_line = Signal(str)

    def __init__(
        self,
        pipeline: ExportPipeline,
        source: SourceImage,
        targets: Sequence[TargetSpec],
        formats: Sequence[ExportFormat],
        export_name: str | None = None,
    ):
        super().__init__()
        self._pipeline = pipeline
        self._source = source
        # snapshot: later edits in the UI must not leak into a running export
        self._targets = tuple(targets)
        self._formats = tuple(formats)
        self._export_name = export_name
        self._cancel = False
        self._last_progress = 0

    def cancel(self):
        self._cancel = True

    def _emit_progress(self, pct: int, msg: str):
        # never let the bar move backwards
        pct = max(self._last_progress, pct)
        self._last_progress = pct
        self.progress.emit(pct, msg)

    def _emit_skipped(self, records):
        self.skipped.emit([describe_skip(r) for r in records])

    def run(self):
        handler = QtTailHandler(self.log_line.emit)
        logger = logging.getLogger("print-exporter")
        logger.addHandler(handler)
        if logger.getEffectiveLevel() > logging.INFO:
            logger.setLevel(logging.INFO)
        try:
            result = self._pipeline.run(
                self._source,
                self._targets,
                self._formats,
                export_name=self._export_name,
                progress_cb=self._emit_progress,
                skipped_cb=self._emit_skipped,
                cancel_check=lambda: self._cancel,
            )
            self.finished_ok.emit(result.archive_location or result.archive_name)
        except Exception as e:
            self.error.emit(str(e))
        finally:
            logger.removeHandler(handler)
