# src/kiosk_scheduler/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console shows kiosk_scheduler records, minus the per-schedule "not due"
    DEBUG lines of the sweep. Anything else (third-party, captured
    py.warnings) only at ERROR and above.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("kiosk_scheduler."):
            if name == "kiosk_scheduler.schedules.sweep":
                return record.levelno >= logging.INFO
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/kiosk",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 2_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Filtered console on stderr plus a rotating DEBUG file in log_dir.

    The kiosk host runs unattended, so the file is size-capped. Call once at
    startup; calling again replaces the handlers. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "kiosk-scheduler.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    file_handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(file_level)

    for handler in (console, file_handler):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_file
