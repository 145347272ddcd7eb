from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(os.environ.get("PRINT_EXPORTER_LOG_DIR", "logs"))
LOG_FILE_NAME = "print_exporter.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

BANNER = "=" * 75

def build_logger(name: str = "print-exporter", log_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    fmt = logging.Formatter(LOG_FORMAT)

    target_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    target_dir.mkdir(exist_ok=True, parents=True)
    fh = RotatingFileHandler(target_dir / LOG_FILE_NAME, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    fh.setFormatter(fmt)
    fh.setLevel(level)
    logger.addHandler(fh)

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    sh.setLevel(level)
    logger.addHandler(sh)
    return logger

class QtTailHandler(logging.Handler):
    def __init__(self, signal_emit):
        super().__init__()
        self.emit_to_gui = signal_emit
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self.emit_to_gui(line)
        except Exception:
            self.handleError(record)

class log_section:
    def __init__(self, title: str, logger: logging.Logger):
        self.title = title
        self.logger = logger

    def __enter__(self):
        self.logger.info("\n%s\n%s\n%s", BANNER, self.title, BANNER)

    def __exit__(self, exc_type, exc, tb):
        return False
