"""Text helpers for reading and parsing files under /proc and /sys."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterator
from datetime import timedelta
from typing import Any

__all__ = [
    "iter_tokens",
    "iter_lines",
    "iter_lines_except_first",
    "iter_columns",
    "iter_properties",
    "split",
    "skip_spaces",
    "skip_line",
    "atoi",
    "read_file",
    "read_proc_file",
    "read_microsecond_file",
    "read_int_file",
    "parse_int",
    "proc_path",
    "cgroup_path",
]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def iter_tokens(text: str, sep: str) -> Iterator[str]:
    """Yield the pieces of text between occurrences of sep.

    A trailing separator does not produce a final empty piece.
    """
    while text:
        head, found, tail = text.partition(sep)
        yield head
        text = tail if found else ""


def iter_lines(text: str) -> Iterator[str]:
    """Yield the non-blank lines of text, stripped of surrounding whitespace."""
    for line in iter_tokens(text, "\n"):
        line = line.strip()
        if line:
            yield line


def iter_lines_except_first(text: str) -> Iterator[str]:
    """Yield the non-blank lines of text after the first one."""
    lines = iter_lines(text)
    next(lines, None)
    yield from lines


def iter_columns(line: str) -> Iterator[str]:
    """Yield the columns of a line separated by at least two spaces."""
    line = skip_spaces(line)
    while line:
        column, found, rest = line.partition("  ")
        yield column
        line = skip_spaces(rest if found else "")


def iter_properties(text: str) -> Iterator[tuple[str, str]]:
    """Yield (key, value) pairs from lines of the form 'key: value'."""
    for line in iter_lines(text):
        yield split(line, ":")


def split(text: str, sep: str) -> tuple[str, str]:
    """Split text at the first sep, returning both stripped halves."""
    head, _, tail = text.partition(sep)
    return head.strip(), tail.strip()


def skip_spaces(text: str) -> str:
    return text.lstrip()


def skip_line(text: str) -> str:
    """Return what follows the first newline of text, or an empty string."""
    _, found, rest = text.partition("\n")
    return rest if found else ""


def parse_int(s: str) -> int:
    """Parse a signed 64-bit decimal integer, raising ValueError if invalid."""
    if not _INT_RE.fullmatch(s):
        raise ValueError(f"invalid syntax for integer: {s!r}")
    value = int(s)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {s!r}")
    return value


def atoi(s: str) -> int:
    return parse_int(s)


def read_file(path: str) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def _join(*parts: str) -> str:
    return posixpath.normpath("/".join(p for p in parts if p))


def proc_path(who: Any, what: str) -> str:
    return _join("/proc", str(who), what)


def cgroup_path(directory: str, cgroup: str, file: str) -> str:
    return _join("/sys/fs/cgroup", directory, cgroup, file)


def read_proc_file(who: Any, what: str) -> str:
    return read_file(proc_path(who, what))


def read_int_file(path: str) -> int:
    return parse_int(read_file(path).strip())


def read_microsecond_file(path: str) -> timedelta:
    return timedelta(microseconds=read_int_file(path))