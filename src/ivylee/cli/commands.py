# src/ivylee/cli/commands.py

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .. import __version__
from ..core.state import AppState
from ..errors import ValidationError
from ..tasks.filters import TagFilter, parse_add_tag
from ..tasks.task_models import TaskStatus
from ..tasks.task_refs import ById, parse_ref
from .render import render_backlog, render_list, render_numbered, render_tags, render_task

CommandHandler = Callable[[AppState, argparse.Namespace], None]
ParserConfigurer = Callable[[argparse.ArgumentParser], None]

DEFAULT_COMMAND = "view"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Command:
    name: str
    handler: CommandHandler
    help_text: str
    aliases: list[str]
    configure: ParserConfigurer | None
    mutates: bool


class CommandRegistry:
    """Subcommand registry: name/aliases -> handler + argparse configuration."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        configure: ParserConfigurer | None = None,
        mutates: bool = False,
    ) -> None:
        self._commands[name.lower()] = Command(
            name=name.lower(),
            handler=handler,
            help_text=help_text,
            aliases=[a.lower() for a in aliases or []],
            configure=configure,
            mutates=mutates,
        )

    def names(self) -> list[str]:
        return list(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="ivy",
            description=(
                "Command line tasks following the Ivy Lee method. "
                "With no command (or only +tag / /tag filters), shows today's six."
            ),
        )
        parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
        sub = parser.add_subparsers(dest="command", metavar="<command>")
        for cmd in self._commands.values():
            p = sub.add_parser(cmd.name, help=cmd.help_text, aliases=cmd.aliases)
            if cmd.configure is not None:
                cmd.configure(p)
            p.set_defaults(command_name=cmd.name)
        return parser

    def normalize_argv(self, argv: list[str]) -> list[str]:
        """A bare `ivy` or `ivy +tag /tag` means the default view."""
        if not argv or argv[0].startswith(("+", "/")):
            return [DEFAULT_COMMAND, *argv]
        return argv

    def parse(self, argv: list[str]) -> argparse.Namespace:
        parser = self.build_parser()
        args, extras = parser.parse_known_args(self.normalize_argv(argv))
        # argparse fills a trailing nargs="*" positional before later options are
        # seen, so "+tag" / "/tag" after an option arrive here as extras.
        if extras:
            if hasattr(args, "tags") and all(e.startswith(("+", "/")) for e in extras):
                args.tags = [*(args.tags or []), *extras]
            else:
                parser.error(f"unrecognized arguments: {' '.join(extras)}")
        return args

    def handle(self, state: AppState, args: argparse.Namespace) -> None:
        name = getattr(args, "command_name", None) or DEFAULT_COMMAND
        cmd = self._commands.get(name)
        if cmd is None:
            raise ValidationError(f"Unknown command: {name}")
        logger.debug("Dispatching command=%s", name)
        cmd.handler(state, args)
        if cmd.mutates:
            state.mark_dirty()


registry = CommandRegistry()


def _filter(args: argparse.Namespace) -> TagFilter:
    return TagFilter.parse(getattr(args, "tags", None) or [])


def _ok(state: AppState, message: str) -> None:
    state.console.print(f"✅ {message}", highlight=False, markup=False)


def _show_top(state: AppState) -> None:
    render_numbered(state.console, state.store.numbered_priority_view(), state.styles)


# ---- handlers ----


def cmd_view(state: AppState, args: argparse.Namespace) -> None:
    tag_filter = _filter(args)
    render_numbered(state.console, state.store.numbered_priority_view(tag_filter), state.styles)
    render_backlog(state.console, state.store.backlog_count(tag_filter))


def cmd_add(state: AppState, args: argparse.Namespace) -> None:
    tags = [parse_add_tag(t) for t in args.tags]
    task_id = state.store.add(args.description, note=args.note, tags=tags)
    _ok(state, f"Added new task! ID: {task_id}")
    number = len(state.store.open)
    render_task(state.console, number, state.store.get(task_id), state.styles)


def cmd_finish(state: AppState, args: argparse.Namespace) -> None:
    if args.refs:
        tasks = state.store.finish_many([parse_ref(r) for r in args.refs])
    else:
        tasks = [state.store.finish_next()]
    for task in tasks:
        _ok(state, f"Finished '{task.description}'!")
    _show_top(state)


def cmd_sweep(state: AppState, args: argparse.Namespace) -> None:
    moved = state.store.sweep()
    if moved:
        _ok(state, f"Swept {len(moved)} finished task(s) into done list")
    else:
        _ok(state, "Nothing to sweep")
    _show_top(state)


def cmd_bump(state: AppState, args: argparse.Namespace) -> None:
    tasks = state.store.bump_many([parse_ref(r) for r in args.refs])
    for task in tasks:
        _ok(state, f"Bumped '{task.description}'!")
    total = len(state.store.open)
    first = total - len(tasks) + 1
    render_numbered(state.console, zip(range(first, total + 1), tasks), state.styles)


def cmd_move(state: AppState, args: argparse.Namespace) -> None:
    task = state.store.move(parse_ref(args.task), parse_ref(args.before))
    pos = state.store.position(ById(task.id))
    open_tasks = state.store.open
    if pos + 1 < len(open_tasks):
        _ok(state, f"Moved '{task.description}' in front of '{open_tasks[pos + 1].description}'!")
    else:
        _ok(state, f"'{task.description}' stays at #{pos + 1}")


def cmd_list(state: AppState, args: argparse.Namespace) -> None:
    tasks = state.store.list_view(_filter(args), open_only=args.open, done_only=args.done)
    render_list(state.console, state.store, tasks, state.styles)


def cmd_tag(state: AppState, args: argparse.Namespace) -> None:
    if args.tag is not None and (args.fg is not None or args.bg is not None):
        state.styles.set_style(args.tag, fg=args.fg, bg=args.bg)
        state.mark_dirty()
    elif args.tag is not None:
        raise ValidationError("specify --fg and/or --bg to style a tag")
    render_tags(state.console, state.styles)


def cmd_edit(state: AppState, args: argparse.Namespace) -> None:
    tag_filter = _filter(args)
    task = state.store.edit(
        parse_ref(args.task),
        description=args.desc,
        note=args.note,
        add_tags=tag_filter.include,
        remove_tags=tag_filter.exclude,
    )
    _ok(state, f"Edited task {task.id}")


def cmd_remove(state: AppState, args: argparse.Namespace) -> None:
    store = state.store
    task = store.get(parse_ref(args.task))
    where = "done" if store.status_of(task) is TaskStatus.DONE else "todo"
    store.remove(task.id)
    _ok(state, f"Removed task `{task.id}` from {where} task list")


# ---- argparse configuration ----


def _filter_tokens(p: argparse.ArgumentParser) -> None:
    p.add_argument("tags", nargs="*", metavar="FILTER", help="+ to include tag, / to exclude tag")


def _configure_add(p: argparse.ArgumentParser) -> None:
    p.add_argument("description", help="the task description")
    p.add_argument("tags", nargs="*", metavar="TAG", help="task tags, prefixed with +")
    p.add_argument("-n", "--note", default=None, help="the task note")


def _configure_finish(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "refs",
        nargs="*",
        metavar="task",
        help="task number or ID; if omitted, finishes the first unfinished task",
    )


def _configure_bump(p: argparse.ArgumentParser) -> None:
    p.add_argument("refs", nargs="+", metavar="task", help="task number or ID")


def _configure_move(p: argparse.ArgumentParser) -> None:
    p.add_argument("task", help="task number or ID to move")
    p.add_argument("before", help="task number or ID to insert *before*")


def _configure_list(p: argparse.ArgumentParser) -> None:
    p.add_argument("--open", action="store_true", help="only show open tasks")
    p.add_argument("--done", action="store_true", help="only show done tasks")
    _filter_tokens(p)


def _configure_tag(p: argparse.ArgumentParser) -> None:
    p.add_argument("tag", nargs="?", help="the tag; omit to list tag styles")
    p.add_argument("--fg", help="foreground colour ('none' clears)")
    p.add_argument("--bg", help="background colour ('none' clears)")


def _configure_edit(p: argparse.ArgumentParser) -> None:
    p.add_argument("task", help="task ID (or number of an open task)")
    p.add_argument("-d", "--desc", default=None, help="set the task description")
    p.add_argument("-n", "--note", default=None, help="set the task note")
    p.add_argument("tags", nargs="*", metavar="FILTER", help="+ to add tag, / to remove tag")


def _configure_remove(p: argparse.ArgumentParser) -> None:
    p.add_argument("task", help="task ID (or number of an open task)")


registry.register(
    DEFAULT_COMMAND, cmd_view, help_text="Show today's six (default).", configure=_filter_tokens
)
registry.register(
    "add", cmd_add, help_text="Add a new task.", aliases=["a"], configure=_configure_add, mutates=True
)
registry.register(
    "finish",
    cmd_finish,
    help_text="Finish task(s).",
    aliases=["f"],
    configure=_configure_finish,
    mutates=True,
)
registry.register("sweep", cmd_sweep, help_text="Move finished tasks into done list.", mutates=True)
registry.register(
    "bump",
    cmd_bump,
    help_text="Bump task(s) to the end of the open list.",
    configure=_configure_bump,
    mutates=True,
)
registry.register(
    "move",
    cmd_move,
    help_text="Move a task in front of another.",
    aliases=["mv"],
    configure=_configure_move,
    mutates=True,
)
registry.register(
    "list", cmd_list, help_text="List the tasks.", aliases=["ls"], configure=_configure_list
)
registry.register("tag", cmd_tag, help_text="Set the styling of a tag.", configure=_configure_tag)
registry.register(
    "edit",
    cmd_edit,
    help_text="Edit a task's description, note, and/or tags.",
    configure=_configure_edit,
    mutates=True,
)
registry.register(
    "remove",
    cmd_remove,
    help_text="Remove a task, deleting it completely.",
    aliases=["rm"],
    configure=_configure_remove,
    mutates=True,
)
