"""Parsing of /proc/<pid>/limits."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from statskit.linux.parse import iter_columns, iter_lines_except_first, read_proc_file

__all__ = [
    "UNLIMITED",
    "Limits",
    "ProcLimits",
    "read_proc_limits",
    "parse_proc_limits",
    "parse_limit_uint",
]

UNLIMITED = (1 << 64) - 1
"""The value standing for an unlimited resource."""

_UINT_RE = re.compile(r"[0-9]+")


@dataclass
class Limits:
    """Soft and hard limits of one resource."""

    name: str = ""
    soft: int = 0
    hard: int = 0
    unit: str = ""


@dataclass
class ProcLimits:
    """Resource limits of a process."""

    cpu_time: Limits = field(default_factory=Limits)  # seconds
    file_size: Limits = field(default_factory=Limits)  # bytes
    data_size: Limits = field(default_factory=Limits)  # bytes
    stack_size: Limits = field(default_factory=Limits)  # bytes
    core_file_size: Limits = field(default_factory=Limits)  # bytes
    resident_set: Limits = field(default_factory=Limits)  # bytes
    processes: Limits = field(default_factory=Limits)  # processes
    open_files: Limits = field(default_factory=Limits)  # files
    locked_memory: Limits = field(default_factory=Limits)  # bytes
    address_space: Limits = field(default_factory=Limits)  # bytes
    file_locks: Limits = field(default_factory=Limits)  # locks
    pending_signals: Limits = field(default_factory=Limits)  # signals
    msgqueue_size: Limits = field(default_factory=Limits)  # bytes
    nice_priority: Limits = field(default_factory=Limits)
    realtime_priority: Limits = field(default_factory=Limits)
    realtime_timeout: Limits = field(default_factory=Limits)


_INDEX = {
    "Max cpu time": "cpu_time",
    "Max file size": "file_size",
    "Max data size": "data_size",
    "Max stack size": "stack_size",
    "Max core file size": "core_file_size",
    "Max resident set": "resident_set",
    "Max processes": "processes",
    "Max open files": "open_files",
    "Max locked memory": "locked_memory",
    "Max address space": "address_space",
    "Max file locks": "file_locks",
    "Max pending signals": "pending_signals",
    "Max msgqueue size": "msgqueue_size",
    "Max nice priority": "nice_priority",
    "Max realtime priority": "realtime_priority",
    "Max realtime timeout": "realtime_timeout",
}


def parse_limit_uint(s: str) -> int:
    """Parse a limit value, mapping 'unlimited' to UNLIMITED."""
    if s == "unlimited":
        return UNLIMITED
    if not _UINT_RE.fullmatch(s):
        raise ValueError(f"invalid syntax for limit: {s!r}")
    value = int(s)
    if value > UNLIMITED:
        raise ValueError(f"limit out of range: {s!r}")
    return value


def parse_proc_limits(s: str) -> ProcLimits:
    """Parse the content of /proc/<pid>/limits."""
    found: dict[str, Limits] = {}
    for line in iter_lines_except_first(s):
        columns = list(iter_columns(line))
        limits = Limits(
            name=columns[0] if len(columns) > 0 else "",
            soft=parse_limit_uint(columns[1]) if len(columns) > 1 else 0,
            hard=parse_limit_uint(columns[2]) if len(columns) > 2 else 0,
            unit=columns[3] if len(columns) > 3 else "",
        )
        attr = _INDEX.get(limits.name)
        if attr is not None:
            found[attr] = limits
    return ProcLimits(**found)


def read_proc_limits(pid: int | str) -> ProcLimits:
    """Read and parse the resource limits of the process pid."""
    return parse_proc_limits(read_proc_file(pid, "limits"))