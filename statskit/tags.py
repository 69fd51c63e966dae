"""Tags: name/value pairs that define the dimensions of measures."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from itertools import pairwise
from operator import attrgetter

__all__ = [
    "Tag",
    "tag",
    "from_map",
    "tags_are_sorted",
    "sort_tags",
    "merge_tags",
    "copy_tags",
]


@dataclass(frozen=True)
class Tag:
    """A pair of a string name and value set on measures."""

    name: str
    value: str = ""

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


def tag(name: str, value: str) -> Tag:
    """Return the tag with the given name and value."""
    return Tag(name, value)


def from_map(mapping: Mapping[str, str]) -> list[Tag]:
    """Build a list of tags from a mapping of names to values."""
    return [Tag(name, value) for name, value in mapping.items()]


def tags_are_sorted(tags: Iterable[Tag]) -> bool:
    """Return True if the tags are ordered by name."""
    return all(a.name <= b.name for a, b in pairwise(tags))


def sort_tags(tags: Iterable[Tag]) -> list[Tag]:
    """Return the tags sorted by name and deduplicated.

    When several tags share a name the latest one wins. Tags with an
    empty name are dropped.
    """
    out: list[Tag] = []
    for t in sorted(tags, key=attrgetter("name")):
        if not t.name:
            continue
        if out and out[-1].name == t.name:
            out[-1] = t
        else:
            out.append(t)
    return out


def merge_tags(t1: Iterable[Tag], t2: Iterable[Tag]) -> list[Tag]:
    """Return the sorted union of t1 and t2, later tags winning on name clashes."""
    return sort_tags([*t1, *t2])


def copy_tags(tags: Iterable[Tag]) -> list[Tag]:
    """Return a new list holding the given tags."""
    return list(tags)