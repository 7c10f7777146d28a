# tests/fakes.py

from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from ivylee.errors import StateIOError


@dataclass(slots=True)
class FakeStateFile:
    """
    In-memory StateFile.

    - `text` is None until something is written
    - `fail_writes` makes replace_text fail the way a full disk would
    """

    text: str | None = None
    fail_writes: bool = False
    writes: list[str] = field(default_factory=list)

    @property
    def path(self) -> Path:
        return Path("memory://tasks.yaml")

    def exists(self) -> bool:
        return self.text is not None

    def read_text(self) -> str:
        if self.text is None:
            raise StateIOError("nothing written yet")
        return self.text

    def replace_text(self, text: str) -> None:
        if self.fail_writes:
            raise StateIOError("cannot write state file: disk full")
        self.writes.append(text)
        self.text = text


def make_console() -> Console:
    """Plain-text console that records everything printed to it."""
    return Console(file=io.StringIO(), width=160, record=True, color_system=None)
