# src/ivylee/errors.py

"""
Error taxonomy shared by the store, the persistence layer and the CLI.

The CLI catches IvyError, prints the message and exits non-zero;
nothing below the CLI prints.
"""

from __future__ import annotations


class IvyError(Exception):
    """Base class for every failure the core reports."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(IvyError):
    """Malformed input: empty description, bad filter token, bad colour."""


class NotFoundError(IvyError):
    """An index or id does not resolve to a task in the required collection."""


class CorruptStateError(IvyError):
    """The state file exists but cannot be parsed into a valid state."""


class StateIOError(IvyError):
    """The state file (or its directory) cannot be read or written."""
