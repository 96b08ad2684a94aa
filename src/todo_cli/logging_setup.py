# src/todo_cli/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the terminal readable:
    - our own logs pass (the handler level decides)
    - captured Python warnings and third-party logs only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "todo_cli" or record.name.startswith("todo_cli."):
            return True
        return record.levelno >= logging.ERROR


class _ConsoleFormatter(logging.Formatter):
    """Single-line records; tracebacks go to the log file only."""

    def format(self, record: logging.LogRecord) -> str:
        saved = (record.exc_info, record.exc_text, record.stack_info)
        record.exc_info = record.exc_text = record.stack_info = None
        try:
            return super().format(record)
        finally:
            record.exc_info, record.exc_text, record.stack_info = saved


def setup_logging(
    *,
    log_dir: str | Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> bool:
    """
    Configure logging with:
    - Console handler on stderr: filtered, WARNING by default so command output stays clean
    - File handler (when log_dir is given): full logs for debugging

    Returns False when the log file could not be opened; logging then
    continues on the console only.

    Call this ONCE, very early (before first logger.info).
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt_str = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    fmt = logging.Formatter(fmt=fmt_str, datefmt=datefmt)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(_ConsoleFormatter(fmt=fmt_str, datefmt=datefmt))
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    if log_dir is None:
        return True

    log_dir = Path(log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "todo.log"), encoding="utf-8")
    except OSError:
        logging.getLogger(__name__).warning(
            "File logging disabled: cannot open %s", log_dir, exc_info=True
        )
        return False
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)
    return True
