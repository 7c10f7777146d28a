# src/ivylee/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from ..errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class TaskStatus(StrEnum):
    """
    Display status of a task.

    Notes:
    - "marked" is a finished task still sitting in the open list (not swept yet).
    """

    TODO = "todo"
    MARKED = "marked"
    DONE = "done"


@dataclass(slots=True)
class Task:
    id: str
    description: str
    note: str = ""
    tags: list[str] = field(default_factory=list)
    finished: bool = False
    created_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    def __post_init__(self) -> None:
        self.description = self.description.strip()
        if not self.description:
            raise ValidationError("task description must not be empty")
        deduped: list[str] = []
        for tag in self.tags:
            if tag not in deduped:
                deduped.append(tag)
        self.tags = deduped

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    def mark_finished(self, now: datetime | None = None) -> None:
        """Set the finished flag; a second call keeps the first timestamp."""
        if self.finished:
            return
        self.finished = True
        self.finished_at = now or utcnow()
