# src/ivylee/storage/state_file.py

"""
State file persistence.

One YAML document holds the open list, the done list and the tag styles.
The document is built from (and parsed back into) plain dicts by the
functions below; nothing patches the text in place, so comments a user adds
by hand are accepted on load and dropped on the next save.

Saving copies the previous file to a backup and then swaps the new contents
in with os.replace, so a crash mid-write never leaves a truncated file as the
canonical state.
"""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from ..config import BACKUP_FILE_NAME
from ..core.ports import StateFile
from ..errors import CorruptStateError, StateIOError, ValidationError
from ..tasks.tag_styles import TagStyle, TagStyleRegistry, normalize_color
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

HEADER = (
    "# ivylee state file\n"
    "# open: priority order, first entry is the next task to work\n"
    "# done: archive, in sweep order\n"
    "# tags: tag name -> {fg, bg} colours\n"
)


class LocalStateFile:
    """Filesystem-backed StateFile with backup + atomic replace."""

    def __init__(self, path: str | Path, backup_path: str | Path | None = None) -> None:
        self._path = Path(path)
        self._backup_path = (
            Path(backup_path) if backup_path is not None else self._path.with_name(BACKUP_FILE_NAME)
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._backup_path

    def exists(self) -> bool:
        return self._path.exists()

    def read_text(self) -> str:
        try:
            return self._path.read_text("utf-8")
        except OSError as exc:
            raise StateIOError(f"cannot read state file {self._path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CorruptStateError(f"state file {self._path} is not valid UTF-8") from exc

    def replace_text(self, text: str) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._path.exists():
                shutil.copy2(self._path, self._backup_path)
            with open(tmp, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self._path)
        except OSError as exc:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                logger.debug("Failed to remove temp file %s", tmp, exc_info=True)
            raise StateIOError(f"cannot write state file {self._path}: {exc}") from exc
        logger.debug("State file written path=%s bytes=%d", self._path, len(text))


# ---- document <-> objects ----


def _ts_to_str(ts: datetime) -> str:
    return ts.isoformat()


def _parse_ts(raw: Any, where: str) -> datetime:
    if isinstance(raw, datetime):
        ts = raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        # Seconds since the UNIX epoch.
        try:
            ts = datetime.fromtimestamp(raw, timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise CorruptStateError(f"{where}: bad timestamp {raw!r}") from exc
    elif isinstance(raw, str):
        try:
            ts = datetime.fromisoformat(raw.strip())
        except ValueError as exc:
            raise CorruptStateError(f"{where}: bad timestamp {raw!r}") from exc
    else:
        raise CorruptStateError(f"{where}: bad timestamp {raw!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def task_to_dict(task: Task) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": task.id,
        "description": task.description,
    }
    if task.note:
        out["note"] = task.note
    if task.tags:
        out["tags"] = list(task.tags)
    out["created_at"] = _ts_to_str(task.created_at)
    if task.finished_at is not None:
        out["finished_at"] = _ts_to_str(task.finished_at)
    return out


def task_from_dict(raw: Any, *, where: str, archived: bool) -> Task:
    if not isinstance(raw, dict):
        raise CorruptStateError(f"{where}: expected a mapping, got {type(raw).__name__}")
    if raw.get("id") in (None, ""):
        raise CorruptStateError(f"{where}: task is missing 'id'")
    if str(raw["id"]).isdigit():
        # Digits on the command line always mean a position.
        raise CorruptStateError(f"{where}: task id {raw['id']!r} must not be all digits")
    if raw.get("description") is None:
        raise CorruptStateError(f"{where}: task is missing 'description'")

    tags_raw = raw.get("tags") or []
    if isinstance(tags_raw, str):
        tags_raw = tags_raw.replace(",", " ").split()
    if not isinstance(tags_raw, list):
        raise CorruptStateError(f"{where}: 'tags' must be a list")

    created_at = _parse_ts(raw["created_at"], where) if raw.get("created_at") is not None else None
    finished_at = (
        _parse_ts(raw["finished_at"], where) if raw.get("finished_at") is not None else None
    )
    finished = archived or bool(raw.get("finished", finished_at is not None))

    try:
        task = Task(
            id=str(raw["id"]),
            description=str(raw["description"]),
            note=str(raw.get("note") or ""),
            tags=[str(t) for t in tags_raw],
        )
    except ValidationError as exc:
        raise CorruptStateError(f"{where}: {exc}") from exc

    if created_at is not None:
        task.created_at = created_at
    if finished:
        task.finished = True
        task.finished_at = finished_at or task.created_at
    return task


def style_to_dict(style: TagStyle) -> dict[str, Any]:
    return {"fg": style.fg, "bg": style.bg}


def style_from_raw(raw: Any, where: str) -> TagStyle:
    # "work: blue" is shorthand for a foreground colour.
    if isinstance(raw, str):
        raw = {"fg": raw}
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise CorruptStateError(f"{where}: expected a mapping of fg/bg colours")
    try:
        fg = normalize_color(str(raw["fg"])) if raw.get("fg") is not None else None
        bg = normalize_color(str(raw["bg"])) if raw.get("bg") is not None else None
    except ValidationError as exc:
        raise CorruptStateError(f"{where}: {exc}") from exc
    return TagStyle(fg=fg, bg=bg)


def state_to_document(store: TaskStore, styles: TagStyleRegistry) -> dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "open": [task_to_dict(t) for t in store.open],
        "done": [task_to_dict(t) for t in store.done],
        "tags": {tag: style_to_dict(style) for tag, style in styles},
    }


def state_from_document(doc: Any) -> tuple[TaskStore, TagStyleRegistry]:
    if doc is None:
        return TaskStore(), TagStyleRegistry()
    if not isinstance(doc, dict):
        raise CorruptStateError("state document must be a mapping")

    version = doc.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise CorruptStateError(f"unsupported state file version {version!r}")

    sections: dict[str, list[Any]] = {}
    for key in ("open", "done"):
        value = doc.get(key)
        if value is None:
            value = []
        if not isinstance(value, list):
            raise CorruptStateError(f"'{key}' must be a list of tasks")
        sections[key] = value

    open_tasks = [
        task_from_dict(raw, where=f"open[{i}]", archived=False)
        for i, raw in enumerate(sections["open"])
    ]
    done_tasks = [
        task_from_dict(raw, where=f"done[{i}]", archived=True)
        for i, raw in enumerate(sections["done"])
    ]

    tags_raw = doc.get("tags") or {}
    if not isinstance(tags_raw, dict):
        raise CorruptStateError("'tags' must be a mapping of tag name to style")
    styles = TagStyleRegistry(
        {str(tag): style_from_raw(raw, f"tags.{tag}") for tag, raw in tags_raw.items()}
    )

    try:
        store = TaskStore(open_tasks, done_tasks)
    except ValidationError as exc:
        raise CorruptStateError(str(exc)) from exc
    return store, styles


def dump_state(store: TaskStore, styles: TagStyleRegistry) -> str:
    body = yaml.safe_dump(
        state_to_document(store, styles),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return HEADER + body


def parse_state(text: str) -> tuple[TaskStore, TagStyleRegistry]:
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CorruptStateError(f"invalid YAML: {exc}") from exc
    return state_from_document(doc)


# ---- public API ----


def read_state(state_file: StateFile) -> tuple[TaskStore, TagStyleRegistry]:
    """Load state; a missing file is a first run and yields empty state."""
    if not state_file.exists():
        logger.debug("No state file at %s, starting empty", state_file.path)
        return TaskStore(), TagStyleRegistry()
    try:
        store, styles = parse_state(state_file.read_text())
    except CorruptStateError as exc:
        raise CorruptStateError(f"state file {state_file.path} is corrupt: {exc}") from exc
    logger.debug(
        "State loaded path=%s open=%d done=%d tags=%d",
        state_file.path,
        len(store.open),
        len(store.done),
        len(styles),
    )
    return store, styles


def write_state(state_file: StateFile, store: TaskStore, styles: TagStyleRegistry) -> None:
    state_file.replace_text(dump_state(store, styles))


def load(path: str | Path) -> tuple[TaskStore, TagStyleRegistry]:
    return read_state(LocalStateFile(path))


def save(path: str | Path, store: TaskStore, styles: TagStyleRegistry) -> None:
    write_state(LocalStateFile(path), store, styles)
