from __future__ import annotations
from typing import Sequence
from print_exporter.imaging.pipeline import ExportPipeline
from print_exporter.models.enums import ExportFormat
from print_exporter.models.settings import SourceImage, TargetSpec
from print_exporter.workers.export_worker import ExportWorker

class JobController:
    """Owns the export worker; at most one export runs at a time."""

    def __init__(self, ui, pipeline: ExportPipeline):
        self.ui = ui
        self.pipeline = pipeline
        self.worker: ExportWorker | None = None

    @property
    def running(self) -> bool:
        return bool(self.worker and self.worker.isRunning())

    def start(
        self,
        source: SourceImage,
        targets: Sequence[TargetSpec],
        formats: Sequence[ExportFormat],
        export_name: str | None = None,
    ) -> bool:
        if self.running:
            return False
        self.worker = ExportWorker(self.pipeline, source, targets, formats, export_name)
        self._wire_worker(self.worker)
        self.ui.on_export_started()
        self.worker.start()
        return True

    def cancel(self):
        if self.running:
            self.worker.cancel()

    def _wire_worker(self, w: ExportWorker):
        w.progress.connect(lambda p, msg: self.ui.on_progress(p, msg))
        w.skipped.connect(lambda items: self.ui.on_skipped(items))
        w.finished_ok.connect(lambda path: self.ui.on_done(path))
        w.error.connect(lambda msg: self.ui.on_error(msg))
        w.log_line.connect(lambda line: self.ui.append_log(line))
