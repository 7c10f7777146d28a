# src/ivylee/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The persistence layer only needs raw text access to one file; the CLI wires
a filesystem implementation, tests can wire an in-memory one.
"""

from pathlib import Path
from typing import Protocol


class StateFile(Protocol):
    """Raw access to the single state file."""

    @property
    def path(self) -> Path: ...

    def exists(self) -> bool: ...

    def read_text(self) -> str: ...

    def replace_text(self, text: str) -> None:
        """Atomically replace the file contents."""
        ...
