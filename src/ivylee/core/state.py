# src/ivylee/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console

from ..config import Settings
from ..tasks.tag_styles import TagStyleRegistry
from ..tasks.task_store import TaskStore
from .ports import StateFile


@dataclass
class AppState:
    """Everything one invocation works on; passed explicitly, never global."""

    settings: Settings
    state_file: StateFile
    store: TaskStore
    styles: TagStyleRegistry

    console: Console = field(default_factory=Console)
    err_console: Console = field(default_factory=lambda: Console(stderr=True))

    # Set by mutating commands; the entrypoint saves only when True.
    dirty: bool = False

    def mark_dirty(self) -> None:
        self.dirty = True
