# src/todolist/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

APP_LOGGER = "todolist"
LOG_FILE_NAME = "todolist.log"

_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Minimum console level per logger prefix; anything unlisted needs ERROR.
_CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("httpx", logging.WARNING),
    ("httpcore", logging.WARNING),
    ("py.warnings", logging.ERROR),
)


def _is_app_record(name: str) -> bool:
    return name == APP_LOGGER or name.startswith(APP_LOGGER + ".")


class _ConsoleNoiseFilter(logging.Filter):
    """Keeps the todo prompt readable: every todolist record, only loud ones from libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        if _is_app_record(record.name):
            return True
        for prefix, level in _CONSOLE_THRESHOLDS:
            if record.name.startswith(prefix):
                return record.levelno >= level
        return record.levelno >= logging.ERROR


def _console_handler(level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(path: Path, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/todolist",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install the stderr and file handlers on the root logger.

    The console shows the filtered stream; todolist.log in `log_dir` gets
    everything at `file_level`. Handlers from an earlier call are replaced.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    root.addHandler(_console_handler(console_level, fmt))
    root.addHandler(_file_handler(log_file, file_level, fmt))

    logging.captureWarnings(True)

    # Request lines from httpx are DEBUG/INFO noise even in the file.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
