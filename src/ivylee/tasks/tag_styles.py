# src/ivylee/tasks/tag_styles.py

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from rich.color import Color, ColorParseError
from rich.style import Style

from ..errors import ValidationError

logger = logging.getLogger(__name__)

# Passing this instead of a colour name clears the colour.
CLEAR = "none"


@dataclass(frozen=True, slots=True)
class TagStyle:
    fg: str | None = None
    bg: str | None = None

    def to_rich(self) -> Style:
        return Style(color=self.fg, bgcolor=self.bg)

    @property
    def is_plain(self) -> bool:
        return self.fg is None and self.bg is None


DEFAULT_STYLE = TagStyle()


def normalize_color(raw: str) -> str | None:
    """Validate a colour name against rich; CLEAR maps to None."""
    name = raw.strip().lower()
    if name == CLEAR:
        return None
    if not name.startswith("rgb("):
        # "bright red" -> "bright_red"
        name = "_".join(name.split())
    try:
        Color.parse(name)
    except ColorParseError as exc:
        raise ValidationError(f"unknown colour {raw!r}") from exc
    return name


class TagStyleRegistry:
    """
    Tag name -> display style.

    Entries live independently of tasks: styling an unused tag is fine, and
    removing the last task with a tag keeps its style.
    """

    def __init__(self, styles: Mapping[str, TagStyle] | None = None) -> None:
        self._styles: dict[str, TagStyle] = dict(styles or {})

    def __len__(self) -> int:
        return len(self._styles)

    def __contains__(self, tag: object) -> bool:
        return tag in self._styles

    def __iter__(self) -> Iterator[tuple[str, TagStyle]]:
        return iter(sorted(self._styles.items()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagStyleRegistry):
            return NotImplemented
        return self._styles == other._styles

    def set_style(self, tag: str, fg: str | None = None, bg: str | None = None) -> TagStyle:
        """
        Upsert the style for `tag`.

        None leaves a colour unchanged; CLEAR ("none") removes it.
        """
        tag = tag.strip().lstrip("+")
        if not tag:
            raise ValidationError("tag name must not be empty")
        if fg is None and bg is None:
            raise ValidationError("specify a foreground and/or background colour")

        current = self._styles.get(tag, DEFAULT_STYLE)
        new_fg = current.fg if fg is None else normalize_color(fg)
        new_bg = current.bg if bg is None else normalize_color(bg)
        style = TagStyle(fg=new_fg, bg=new_bg)
        self._styles[tag] = style
        logger.debug("Tag style set tag=%s fg=%s bg=%s", tag, new_fg, new_bg)
        return style

    def get_style(self, tag: str) -> TagStyle:
        return self._styles.get(tag, DEFAULT_STYLE)

    def as_dict(self) -> dict[str, TagStyle]:
        return dict(self._styles)
