# src/ivylee/cli/main.py

"""
CLI entrypoint.

One invocation: settings -> logging -> parse -> load -> one command -> save (if mutated) -> exit.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from rich.console import Console

from ..config import Settings, get_settings
from ..errors import CorruptStateError, IvyError
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state, save_state
from .commands import registry

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(console_level, int):
        console_level = logging.WARNING

    log_file = settings.log_path if settings.log_to_file else None
    try:
        setup_logging(log_file=log_file, console_level=console_level)
    except OSError:
        setup_logging(console_level=console_level)
        logger.warning("Cannot open log file %s; logging to console only.", log_file)


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    console: Console | None = None,
    err_console: Console | None = None,
) -> int:
    if settings is None:
        settings = get_settings()
    _configure_logging(settings)

    raw = list(sys.argv[1:] if argv is None else argv)
    args = registry.parse(raw)

    err = err_console or Console(stderr=True)
    try:
        state = create_initial_state(settings=settings, console=console, err_console=err)
        registry.handle(state, args)
        save_state(state)
    except CorruptStateError as exc:
        logger.debug("Corrupt state", exc_info=True)
        err.print(f"error: {exc}", markup=False, highlight=False, soft_wrap=True)
        if settings.backup_path.exists():
            err.print(
                f"hint: the previous state is kept at {settings.backup_path}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
        return 1
    except IvyError as exc:
        logger.debug("Command failed", exc_info=True)
        err.print(f"error: {exc}", markup=False, highlight=False, soft_wrap=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
