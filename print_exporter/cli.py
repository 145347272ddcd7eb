# print_exporter/cli.py
# Command-line front end: one source image in, one ZIP of posters out.

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from print_exporter.config import CONFIG_PATH, load_config, save_config
from print_exporter.errors import ExportError
from print_exporter.imaging.loader import load_source
from print_exporter.imaging.pipeline import ExportPipeline
from print_exporter.imaging.quality import describe_skip
from print_exporter.imaging.sizes import GROUPS_BY_ID, detect_orientation, simplify_ratio, targets_for
from print_exporter.models.enums import ExportFormat, LayoutMode, Orientation
from print_exporter.models.settings import ExportSettings
from print_exporter.utils.logging_utils import build_logger


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Export a source image as a ZIP of print-ready posters.")
    ap.add_argument("-i", "--input", required=True, help="Path to source JPG or PNG")
    ap.add_argument("-o", "--outdir", help="Output directory (default: last used, else current)")
    ap.add_argument("--name", help="Export base name (default: source file name)")
    ap.add_argument("--orientation", choices=[o.value for o in Orientation],
                    help="Poster orientation (default: detected from the source)")
    ap.add_argument("--ratios", nargs="+", choices=list(GROUPS_BY_ID), metavar="RATIO",
                    help=f"Ratio groups to export: {', '.join(GROUPS_BY_ID)} (default: all)")
    ap.add_argument("--mode", choices=[m.value for m in LayoutMode],
                    help="Layout for every selected ratio (default: saved per ratio, else crop)")
    ap.add_argument("--mat", type=int, help="Mat border, percent of the shorter edge (1-20)")
    ap.add_argument("--bg", help="Background colour for fit/mat, #rrggbb")
    ap.add_argument("--format", dest="formats", nargs="+", choices=[f.value for f in ExportFormat],
                    help="Output formats (default: saved, else png)")
    ap.add_argument("--workers", type=int, help="Render this many files in parallel")
    ap.add_argument("--save-config", action="store_true", help=f"Remember these choices in {CONFIG_PATH}")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = build_logger()
    cfg = load_config()

    try:
        source = load_source(args.input)
        size = source.size
        log.info("Source: %s (%s)", size, simplify_ratio(size.width, size.height))

        if args.orientation:
            orientation = Orientation(args.orientation)
        else:
            orientation = cfg.orientation_enum() or detect_orientation(size)
        if orientation is not detect_orientation(size):
            log.warning(
                "Your image is %s-oriented. %s sizes may require upscaling, "
                "which can reduce print quality.",
                detect_orientation(size).value, orientation.value.capitalize(),
            )

        targets = cfg.apply_layouts(targets_for(orientation, args.ratios))
        if args.mode or args.mat is not None or args.bg:
            targets = [
                t.with_layout(
                    mode=LayoutMode(args.mode) if args.mode else None,
                    mat_percent=args.mat,
                    background=args.bg,
                )
                for t in targets
            ]

        formats = [ExportFormat(f) for f in args.formats] if args.formats else cfg.export_formats()
        outdir = Path(args.outdir or cfg.output_dir or ".")
        workers = args.workers if args.workers is not None else cfg.workers

        settings = ExportSettings(
            export_name=args.name,
            formats=tuple(formats),
            output_dir=outdir,
            workers=workers,
        )
        pipeline = ExportPipeline.from_settings(settings)

        def _progress(pct: int, msg: str) -> None:
            print(f"[{pct:3d}%] {msg}", flush=True)

        def _skipped(records) -> None:
            for r in records:
                print(f"SKIPPED: {describe_skip(r)}", file=sys.stderr)

        result = pipeline.run(
            source, targets, settings.formats,
            export_name=settings.export_name,
            progress_cb=_progress,
            skipped_cb=_skipped,
        )
    except (ExportError, ValueError, FileNotFoundError) as e:
        log.error(str(e))
        return 1

    if args.save_config:
        cfg.output_dir = str(outdir)
        cfg.formats = [f.value for f in formats]
        cfg.orientation = orientation.value
        cfg.workers = workers
        for t in targets:
            cfg.remember_layout(t)
        try:
            save_config(cfg)
        except OSError as e:
            log.warning("Could not save configuration: %s", e)

    print(result.archive_location)
    return 0


if __name__ == "__main__":
    sys.exit(main())
