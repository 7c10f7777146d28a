# src/ivylee/cli/render.py

"""Terminal rendering (rich). The store knows nothing about any of this."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..tasks.tag_styles import TagStyleRegistry
from ..tasks.task_models import Task, TaskStatus, utcnow
from ..tasks.task_store import TaskStore

NUMBER_STYLE = "bold rgb(127,127,127)"
AGE_STYLE = "underline rgb(165,165,165)"
BACKLOG_STYLE = "italic rgb(127,127,127)"

_UNITS = (
    ("y", 365 * 24 * 3600),
    ("w", 7 * 24 * 3600),
    ("d", 24 * 3600),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


def days_ago(delta: timedelta) -> str:
    """Coarse age: only the largest unit, e.g. "3d ago"."""
    secs = max(0, int(delta.total_seconds()))
    for unit, size in _UNITS:
        if secs >= size:
            return f"{secs // size}{unit} ago"
    return "0s ago"


def tag_text(tag: str, styles: TagStyleRegistry) -> Text:
    return Text(tag, style=styles.get_style(tag).to_rich())


def tags_text(tags: Iterable[str], styles: TagStyleRegistry, sep: str = " ") -> Text:
    return Text(sep).join(tag_text(t, styles) for t in tags)


def render_task(
    console: Console,
    number: int,
    task: Task,
    styles: TagStyleRegistry,
    *,
    now: datetime | None = None,
) -> None:
    now = now or utcnow()

    line = Text(" ")
    line.append(f"{number}.".rjust(4), style=NUMBER_STYLE)
    line.append(" ")
    line.append(task.description, style="bold strike" if task.finished else "bold")
    if task.finished and task.finished_at is not None:
        line.append(" ➡ ")
        line.append(f"Completed {days_ago(now - task.finished_at)}", style="green underline")
    console.print(line)

    if task.note:
        console.print(Text("       ").append(task.note, style="italic"))

    meta = Text("       ")
    meta.append(days_ago(now - task.created_at), style=AGE_STYLE)
    if task.tags:
        meta.append(" ")
        meta.append_text(tags_text(task.tags, styles))
    console.print(meta)


def render_numbered(
    console: Console,
    numbered: Iterable[tuple[int, Task]],
    styles: TagStyleRegistry,
    *,
    now: datetime | None = None,
) -> None:
    for number, task in numbered:
        render_task(console, number, task, styles, now=now)


def render_backlog(console: Console, remaining: int) -> None:
    if remaining > 0:
        console.print()
        console.print(Text(f"      {remaining} tasks in backlog", style=BACKLOG_STYLE))


def render_list(
    console: Console,
    store: TaskStore,
    tasks: Iterable[Task],
    styles: TagStyleRegistry,
    *,
    now: datetime | None = None,
) -> None:
    now = now or utcnow()
    positions = {t.id: i for i, t in enumerate(store.open, start=1)}

    table = Table(box=box.HORIZONTALS)
    for header in ("ID", "Task#", "Description", "Note", "Status", "Created", "Finished", "Tags"):
        table.add_column(header)

    for task in tasks:
        status = store.status_of(task)
        number = positions.get(task.id) if status is not TaskStatus.DONE else None
        table.add_row(
            task.id,
            str(number) if number is not None else "",
            task.description,
            task.note,
            status.value,
            days_ago(now - task.created_at),
            days_ago(now - task.finished_at) if task.finished_at is not None else "",
            tags_text(task.tags, styles, sep=","),
        )

    console.print(table)


def render_tags(console: Console, styles: TagStyleRegistry) -> None:
    if not len(styles):
        console.print("No tag styles set.")
        return
    table = Table(box=box.SIMPLE, show_header=True)
    for header in ("Tag", "Foreground", "Background"):
        table.add_column(header)
    for tag, style in styles:
        table.add_row(tag_text(tag, styles), style.fg or "", style.bg or "")
    console.print(table)
