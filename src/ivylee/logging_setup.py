# src/ivylee/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the terminal clean for task output:
    - allow ivylee logs at the configured level
    - everything else, captured warnings included, only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "ivylee" or name.startswith("ivylee."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_file: str | Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler on stderr, filtered, so stdout stays task output only
    - File handler (optional): full logs for debugging

    Call this ONCE, very early (before first logger.info).
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
