# src/ivylee/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- ensures the state directory exists,
- wires the filesystem StateFile into AppState,
- loads the task store and tag styles, and writes them back after a mutation.
"""

from __future__ import annotations

import logging

from rich.console import Console

from ..config import Settings, get_settings
from ..core.state import AppState
from ..errors import StateIOError
from ..storage.state_file import LocalStateFile, read_state, write_state

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StateIOError(f"cannot create state directory {settings.data_dir}: {exc}") from exc


def create_initial_state(
    *,
    settings: Settings | None = None,
    console: Console | None = None,
    err_console: Console | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state_file = LocalStateFile(settings.state_path, settings.backup_path)
    store, styles = read_state(state_file)

    state = AppState(
        settings=settings,
        state_file=state_file,
        store=store,
        styles=styles,
    )
    if console is not None:
        state.console = console
    if err_console is not None:
        state.err_console = err_console
    return state


def save_state(state: AppState) -> bool:
    """Write the state back if a command changed it. Returns True if written."""
    if not state.dirty:
        return False
    write_state(state.state_file, state.store, state.styles)
    state.dirty = False
    logger.info(
        "Saved state: %d open, %d done to %s",
        len(state.store.open),
        len(state.store.done),
        state.state_file.path,
    )
    return True
