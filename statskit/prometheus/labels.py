"""Prometheus labels: ordered name/value pairs attached to a metric."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

__all__ = ["Label", "labels_less", "labels_from_tags"]


@dataclass(frozen=True, order=True)
class Label:
    """A label name and value; labels order by name, then by value."""

    name: str
    value: str = ""


def labels_less(l1: Sequence[Label], l2: Sequence[Label]) -> bool:
    """Return True if l1 sorts before l2.

    The first differing label decides; when one list is a prefix of the
    other, the shorter one comes first.
    """
    return tuple(l1) < tuple(l2)


def labels_from_tags(tags: Iterable[Any]) -> tuple[Label, ...]:
    """Turn tags (objects with name and value) into labels, keeping their order."""
    return tuple(Label(t.name, t.value) for t in tags)