# src/ivylee/tasks/task_store.py

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Iterable, Sequence
from datetime import datetime

from ..errors import NotFoundError, ValidationError
from .filters import MATCH_ALL, TagFilter
from .task_models import Task, TaskStatus, utcnow
from .task_refs import ById, ByIndex, TaskRef, resolve_open_index

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 4
PRIORITY_VIEW_SIZE = 6


class TaskStore:
    """
    In-memory task state: the ordered open list and the done archive.

    Invariants:
    - ids are unique across open + done
    - open holds todo and finished-but-unswept tasks, in priority order
    - done holds finished tasks only, in sweep order (never re-prioritised)

    Every operation resolves all of its references before mutating, so a
    failed call leaves the state untouched. Saving is the caller's job.
    """

    def __init__(
        self,
        open_tasks: Iterable[Task] | None = None,
        done_tasks: Iterable[Task] | None = None,
    ) -> None:
        self._open: list[Task] = list(open_tasks or [])
        self._done: list[Task] = list(done_tasks or [])
        self._check_invariants()

    def _check_invariants(self) -> None:
        seen: set[str] = set()
        for task in [*self._open, *self._done]:
            if task.id in seen:
                raise ValidationError(f"duplicate task ID '{task.id}'")
            seen.add(task.id)
        for task in self._done:
            if not task.finished:
                raise ValidationError(f"done task '{task.id}' is not finished")

    # ---- read access ----

    @property
    def open(self) -> tuple[Task, ...]:
        return tuple(self._open)

    @property
    def done(self) -> tuple[Task, ...]:
        return tuple(self._done)

    def __len__(self) -> int:
        return len(self._open) + len(self._done)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskStore):
            return NotImplemented
        return self._open == other._open and self._done == other._done

    def ids(self) -> set[str]:
        return {t.id for t in self._open} | {t.id for t in self._done}

    def get(self, ref: TaskRef | str) -> Task:
        """Look up a task in open or done; ByIndex only addresses open."""
        if isinstance(ref, str):
            ref = ById(ref)
        if isinstance(ref, ByIndex):
            return self._open[resolve_open_index(self._open, ref)]
        for task in [*self._open, *self._done]:
            if task.id == ref.id:
                return task
        raise NotFoundError(f"no task found with ID '{ref.id}'")

    def position(self, ref: TaskRef) -> int:
        """0-based position of an open task."""
        return resolve_open_index(self._open, ref)

    def status_of(self, task: Task) -> TaskStatus:
        if any(t is task for t in self._done):
            return TaskStatus.DONE
        return TaskStatus.MARKED if task.finished else TaskStatus.TODO

    # ---- ids ----

    def _new_id(self) -> str:
        taken = self.ids()
        while True:
            candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            # All-digit ids would read as task numbers.
            if candidate.isdigit() or candidate in taken:
                continue
            return candidate

    # ---- mutations ----

    def add(
        self,
        description: str,
        note: str | None = None,
        tags: Iterable[str] | None = None,
        *,
        now: datetime | None = None,
    ) -> str:
        task = Task(
            id=self._new_id(),
            description=description,
            note=(note or "").strip(),
            tags=list(tags or []),
            created_at=now or utcnow(),
        )
        self._open.append(task)
        logger.debug("Task added id=%s position=%d tags=%s", task.id, len(self._open), task.tags)
        return task.id

    def finish(self, ref: TaskRef, *, now: datetime | None = None) -> Task:
        task = self._open[self.position(ref)]
        task.mark_finished(now)
        logger.debug("Task finished id=%s", task.id)
        return task

    def finish_many(self, refs: Sequence[TaskRef], *, now: datetime | None = None) -> list[Task]:
        tasks = [self._open[self.position(ref)] for ref in refs]
        for task in tasks:
            task.mark_finished(now)
        logger.debug("Tasks finished ids=%s", [t.id for t in tasks])
        return tasks

    def finish_next(self, *, now: datetime | None = None) -> Task:
        """Finish the first open task that is not finished yet."""
        for i, task in enumerate(self._open):
            if not task.finished:
                return self.finish(ByIndex(i + 1), now=now)
        raise NotFoundError("no unfinished open task to finish")

    def sweep(self) -> list[Task]:
        """Move every finished open task to the end of done, keeping relative order."""
        moved = [t for t in self._open if t.finished]
        if not moved:
            return []
        self._open = [t for t in self._open if not t.finished]
        self._done.extend(moved)
        logger.debug("Swept %d task(s) ids=%s", len(moved), [t.id for t in moved])
        return moved

    def bump(self, ref: TaskRef) -> Task:
        task = self._open.pop(self.position(ref))
        self._open.append(task)
        logger.debug("Task bumped id=%s", task.id)
        return task

    def bump_many(self, refs: Sequence[TaskRef]) -> list[Task]:
        """Bump several tasks; they end up last, in their previous relative order."""
        positions = sorted({self.position(ref) for ref in refs})
        tasks = [self._open[i] for i in positions]
        for task in tasks:
            self.bump(ById(task.id))
        return tasks

    def move(self, from_ref: TaskRef, to_ref: TaskRef) -> Task:
        """
        Place the task at `from_ref` immediately in front of the task at `to_ref`.

        Both references are resolved against the list before the move.
        from == to is a no-op. Moving to the very end is what bump does.
        """
        src = self.position(from_ref)
        dst = self.position(to_ref)
        task = self._open[src]
        if src == dst:
            logger.debug("Task move is a no-op id=%s", task.id)
            return task
        if src < dst:
            dst -= 1
        self._open.pop(src)
        self._open.insert(dst, task)
        logger.debug("Task moved id=%s from=%d to=%d", task.id, src + 1, dst + 1)
        return task

    def edit(
        self,
        ref: TaskRef | str,
        *,
        description: str | None = None,
        note: str | None = None,
        add_tags: Iterable[str] = (),
        remove_tags: Iterable[str] = (),
    ) -> Task:
        """
        Partial update of an open or done task.

        The new tag set is (existing + add_tags) - remove_tags.
        """
        task = self.get(ref)
        if description is not None:
            description = description.strip()
            if not description:
                raise ValidationError("task description must not be empty")
        removing = set(remove_tags)

        if description is not None:
            task.description = description
        if note is not None:
            task.note = note.strip()
        for tag in add_tags:
            if tag not in removing:
                task.add_tag(tag)
        for tag in removing:
            task.remove_tag(tag)
        logger.debug("Task edited id=%s", task.id)
        return task

    def remove(self, ref: TaskRef | str) -> Task:
        task = self.get(ref)
        self._open = [t for t in self._open if t is not task]
        self._done = [t for t in self._done if t is not task]
        logger.debug("Task removed id=%s", task.id)
        return task

    # ---- views ----

    def numbered_open(self, tag_filter: TagFilter = MATCH_ALL) -> list[tuple[int, Task]]:
        """Open tasks matching the filter, paired with their 1-based position."""
        return [(i, t) for i, t in enumerate(self._open, start=1) if tag_filter.matches(t)]

    def numbered_priority_view(self, tag_filter: TagFilter = MATCH_ALL) -> list[tuple[int, Task]]:
        """At most PRIORITY_VIEW_SIZE matching open tasks, with their positions."""
        return self.numbered_open(tag_filter)[:PRIORITY_VIEW_SIZE]

    def priority_view(self, tag_filter: TagFilter = MATCH_ALL) -> list[Task]:
        return [t for _, t in self.numbered_priority_view(tag_filter)]

    def backlog_count(self, tag_filter: TagFilter = MATCH_ALL) -> int:
        """Matching open tasks that do not fit in the priority view."""
        return max(0, len(self.numbered_open(tag_filter)) - PRIORITY_VIEW_SIZE)

    def list_view(
        self,
        tag_filter: TagFilter = MATCH_ALL,
        open_only: bool = False,
        done_only: bool = False,
    ) -> list[Task]:
        """
        All matching tasks: open in priority order, then done in sweep order.

        open_only and done_only together mean "both".
        """
        want_open = open_only or not done_only
        want_done = done_only or not open_only
        out: list[Task] = []
        if want_open:
            out.extend(t for t in self._open if tag_filter.matches(t))
        if want_done:
            out.extend(t for t in self._done if tag_filter.matches(t))
        return out
