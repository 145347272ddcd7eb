# print_exporter/errors.py
# Exception hierarchy for the export run.
# Quality problems are not exceptions: they come back from the quality gate
# as Skipped results and only become NothingAchievableError when every
# selected target is skipped.

from __future__ import annotations


class ExportError(Exception):
    """Base class for every error raised by an export run."""


class ValidationError(ExportError, ValueError):
    """Nothing selected to export. Raised before any work starts."""


class NothingAchievableError(ExportError):
    def __init__(self, skipped):
        self.skipped = list(skipped)
        super().__init__(
            "None of the selected sizes can be generated without upscaling. "
            "Your source image is too small for every checked ratio."
        )


class EncodingError(ExportError, RuntimeError):
    """The encoder produced no data for a canvas."""


class ArchiveError(ExportError, RuntimeError):
    """Packaging the rendered files failed."""


class ExportCancelled(ExportError):
    """The run was cancelled between two artifacts."""


class PipelineBusyError(ExportError, RuntimeError):
    """An export is already running on this pipeline."""


class PlanError(ExportError, AssertionError):
    """A placement rectangle escaped its bounds (planner bug)."""


class UnsupportedImageError(ExportError, ValueError):
    """Source is not a decodable JPEG or PNG."""
