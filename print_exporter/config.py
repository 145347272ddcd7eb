# print_exporter/config.py
# Persistent user preferences (~/.print_exporter_config.json).
# Missing or unreadable files fall back to defaults; a bad entry never stops
# an export.

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from print_exporter.models.enums import ExportFormat, LayoutMode, Orientation
from print_exporter.models.settings import (
    DEFAULT_BACKGROUND,
    DEFAULT_MAT_PERCENT,
    TargetSpec,
    color_to_hex,
)

log = logging.getLogger("print-exporter.config")

CONFIG_PATH = Path.home() / ".print_exporter_config.json"


@dataclass
class LayoutChoice:
    mode: str = LayoutMode.CROP.value
    mat_percent: int = DEFAULT_MAT_PERCENT
    background: str = color_to_hex(DEFAULT_BACKGROUND)


@dataclass
class UserConfig:
    output_dir: str = ""
    formats: List[str] = field(default_factory=lambda: [ExportFormat.PNG.value])
    orientation: Optional[str] = None
    workers: int = 1
    layouts: Dict[str, LayoutChoice] = field(default_factory=dict)

    def export_formats(self) -> List[ExportFormat]:
        out = []
        for f in self.formats:
            try:
                out.append(ExportFormat(f))
            except ValueError:
                log.warning("Ignoring unknown format in config: %r", f)
        return out

    def orientation_enum(self) -> Optional[Orientation]:
        if not self.orientation:
            return None
        try:
            return Orientation(self.orientation)
        except ValueError:
            log.warning("Ignoring unknown orientation in config: %r", self.orientation)
            return None

    def remember_layout(self, target: TargetSpec) -> None:
        self.layouts[target.id] = LayoutChoice(
            mode=target.mode.value,
            mat_percent=target.mat_percent,
            background=color_to_hex(target.background),
        )

    def apply_layouts(self, targets: Sequence[TargetSpec]) -> List[TargetSpec]:
        """Return snapshots of ``targets`` with the saved per-group layout applied."""
        out = []
        for t in targets:
            choice = self.layouts.get(t.id)
            if choice is None:
                out.append(t)
                continue
            try:
                out.append(
                    t.with_layout(
                        mode=LayoutMode(choice.mode),
                        mat_percent=choice.mat_percent,
                        background=choice.background,
                    )
                )
            except ValueError as e:
                log.warning("Ignoring saved layout for %s: %s", t.id, e)
                out.append(t)
        return out


def load_config(path: Path = CONFIG_PATH) -> UserConfig:
    """Load saved configuration"""
    if not path.exists():
        return UserConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
        layouts = {
            gid: LayoutChoice(**{k: v for k, v in raw.items() if k in LayoutChoice.__dataclass_fields__})
            for gid, raw in (cfg.get("layouts") or {}).items()
            if isinstance(raw, dict)
        }
        return UserConfig(
            output_dir=str(cfg.get("output_dir", "")),
            formats=list(cfg.get("formats", [ExportFormat.PNG.value])),
            orientation=cfg.get("orientation"),
            workers=int(cfg.get("workers", 1)),
            layouts=layouts,
        )
    except (OSError, ValueError, TypeError, AttributeError) as e:
        log.warning("Could not load config %s: %s", path, e)
        return UserConfig()


def save_config(cfg: UserConfig, path: Path = CONFIG_PATH) -> None:
    """Save current configuration"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(cfg), f, indent=2)
    log.info("Settings saved to: %s", path)
