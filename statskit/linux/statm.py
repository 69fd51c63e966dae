"""Parsing of /proc/<pid>/statm."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields

from statskit.linux.parse import read_proc_file

__all__ = ["ProcStatm", "read_proc_statm", "parse_proc_statm"]

_UINT_RE = re.compile(r"\+?[0-9]+")
_UINT64_MAX = (1 << 64) - 1


@dataclass
class ProcStatm:
    """Memory usage of a process, in pages."""

    size: int = 0
    resident: int = 0
    share: int = 0
    text: int = 0
    lib: int = 0
    data: int = 0
    dt: int = 0


def _parse_uint(token: str, name: str) -> int:
    if not _UINT_RE.fullmatch(token):
        raise ValueError(f"expected unsigned integer for {name}, got {token!r}")
    value = int(token)
    if value > _UINT64_MAX:
        raise ValueError(f"value out of range for {name}: {token!r}")
    return value


def parse_proc_statm(s: str) -> ProcStatm:
    """Parse the whitespace separated fields of /proc/<pid>/statm."""
    tokens = s.split()
    names = [f.name for f in fields(ProcStatm)]
    if len(tokens) < len(names):
        raise ValueError(f"unexpected end of input reading {names[len(tokens)]}")
    return ProcStatm(
        **{name: _parse_uint(token, name) for name, token in zip(names, tokens)}
    )


def read_proc_statm(pid: int | str) -> ProcStatm:
    """Read and parse the memory usage of the process pid."""
    return parse_proc_statm(read_proc_file(pid, "statm"))