# src/ivylee/tasks/filters.py

"""
Tag filter expressions.

  +tag  the task must carry `tag`
  /tag  the task must not carry `tag`

A task matches when every "+" tag is present and no "/" tag is. An empty
filter matches everything. Unknown tag names are legal.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..errors import ValidationError
from .task_models import Task

INCLUDE_PREFIX = "+"
EXCLUDE_PREFIX = "/"


class FilterKind(StrEnum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass(frozen=True, slots=True)
class FilterTag:
    kind: FilterKind
    tag: str

    @property
    def is_neg(self) -> bool:
        return self.kind is FilterKind.EXCLUDE

    def matches(self, tags: Iterable[str]) -> bool:
        present = self.tag in set(tags)
        return not present if self.is_neg else present

    def __str__(self) -> str:
        prefix = EXCLUDE_PREFIX if self.is_neg else INCLUDE_PREFIX
        return f"{prefix}{self.tag}"


def _tag_name(token: str, prefix: str) -> str:
    name = token[len(prefix):].strip()
    if not name:
        raise ValidationError(f"tag name missing after '{prefix}' in {token!r}")
    return name


def parse_filter_token(token: str) -> FilterTag:
    if token.startswith(INCLUDE_PREFIX):
        return FilterTag(FilterKind.INCLUDE, _tag_name(token, INCLUDE_PREFIX))
    if token.startswith(EXCLUDE_PREFIX):
        return FilterTag(FilterKind.EXCLUDE, _tag_name(token, EXCLUDE_PREFIX))
    raise ValidationError(f"filter tag must start with + or /: {token!r}")


def parse_add_tag(token: str) -> str:
    """Parse a "+tag" token used when creating a task."""
    if not token.startswith(INCLUDE_PREFIX):
        raise ValidationError(f"tag must start with +: {token!r}")
    return _tag_name(token, INCLUDE_PREFIX)


@dataclass(frozen=True, slots=True)
class TagFilter:
    terms: tuple[FilterTag, ...] = ()

    @classmethod
    def parse(cls, tokens: Iterable[str]) -> TagFilter:
        return cls(tuple(parse_filter_token(t) for t in tokens))

    @property
    def include(self) -> tuple[str, ...]:
        return tuple(t.tag for t in self.terms if not t.is_neg)

    @property
    def exclude(self) -> tuple[str, ...]:
        return tuple(t.tag for t in self.terms if t.is_neg)

    def __bool__(self) -> bool:
        return bool(self.terms)

    def matches_tags(self, tags: Iterable[str]) -> bool:
        tagset = set(tags)
        return all(term.matches(tagset) for term in self.terms)

    def matches(self, task: Task) -> bool:
        return self.matches_tags(task.tags)

    def __str__(self) -> str:
        return " ".join(str(t) for t in self.terms)


MATCH_ALL = TagFilter()
