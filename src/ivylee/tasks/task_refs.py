# src/ivylee/tasks/task_refs.py

"""
Task references.

A command argument names a task either by its 1-based position in the open
list or by its id. The choice is made once, here, from the token's shape:
all digits -> ByIndex, anything else -> ById. Generated ids always contain a
letter, so the two never collide.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import NotFoundError, ValidationError
from .task_models import Task


@dataclass(frozen=True, slots=True)
class ByIndex:
    number: int  # 1-based

    def __str__(self) -> str:
        return f"#{self.number}"


@dataclass(frozen=True, slots=True)
class ById:
    id: str

    def __str__(self) -> str:
        return f"'{self.id}'"


TaskRef = ByIndex | ById


def parse_ref(token: str) -> TaskRef:
    token = token.strip()
    if not token:
        raise ValidationError("empty task reference")
    if token.isdigit():
        return ByIndex(int(token))
    return ById(token)


def resolve_open_index(open_tasks: Sequence[Task], ref: TaskRef) -> int:
    """Return the 0-based position of `ref` within `open_tasks`."""
    if isinstance(ref, ByIndex):
        if not 1 <= ref.number <= len(open_tasks):
            if open_tasks:
                raise NotFoundError(
                    f"task number {ref.number} is not within task range 1..{len(open_tasks)}"
                )
            raise NotFoundError(f"task number {ref.number} does not exist: no open tasks")
        return ref.number - 1

    for i, task in enumerate(open_tasks):
        if task.id == ref.id:
            return i
    raise NotFoundError(f"no open task with ID '{ref.id}'")
