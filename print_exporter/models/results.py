from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .enums import ExportFormat
from .geometry import Size
from .settings import TargetSpec


@dataclass(frozen=True)
class SkipRecord:
    target: TargetSpec
    required_size: Size
    achievable_size: Size


@dataclass(frozen=True)
class Achievable:
    size: Size

    ok = True


@dataclass(frozen=True)
class Skipped:
    record: SkipRecord

    ok = False


GateResult = Union[Achievable, Skipped]


@dataclass(frozen=True)
class ExportJob:
    target: TargetSpec
    format: ExportFormat


@dataclass(frozen=True)
class OutputArtifact:
    filename: str
    data: bytes = field(repr=False)
    mime_type: str

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class ExportResult:
    archive_name: str
    archive_location: Optional[str]
    artifacts: List[str] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)
