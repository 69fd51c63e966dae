"""Parsing of /proc/<pid>/stat."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field, fields
from enum import Enum

from statskit.linux.parse import read_proc_file

__all__ = ["ProcState", "ProcStat", "read_proc_stat", "parse_proc_stat"]


class ProcState(str, Enum):
    """The state of a process as reported by the kernel."""

    RUNNING = "R"
    SLEEPING = "S"
    WAITING_UNINTERRUPTIBLE_DISK_SLEEP = "D"
    ZOMBIE = "Z"
    STOPPED = "T"
    TRACING_STOP = "t"
    PAGING = "P"
    DEAD = "X"
    DEAD_LOWER = "x"
    WAKEKILL = "W"
    PARKED = "P"

    @classmethod
    def _missing_(cls, value: object) -> ProcState | None:
        # Any single character is a valid state; unknown ones become
        # members created on the fly.
        if isinstance(value, str) and len(value) == 1:
            member = str.__new__(cls, value)
            member._name_ = f"STATE_{ord(value):X}"
            member._value_ = value
            return member
        return None


_RANGES = {
    "i32": (-(1 << 31), (1 << 31) - 1),
    "u32": (0, (1 << 32) - 1),
    "i64": (-(1 << 63), (1 << 63) - 1),
    "u64": (0, (1 << 64) - 1),
}
_INT_RE = re.compile(r"[+-]?[0-9]+")


def _f(kind: str):
    return field(metadata={"kind": kind})


@dataclass
class ProcStat:
    """Statistics of a process, in the order of /proc/<pid>/stat."""

    pid: int = _f("i32")
    comm: str = _f("str")
    state: ProcState = _f("state")
    ppid: int = _f("i32")
    pgrp: int = _f("i32")
    session: int = _f("i32")
    tty: int = _f("i32")
    tpgid: int = _f("i32")
    flags: int = _f("u32")
    minflt: int = _f("u64")
    cminflt: int = _f("u64")
    majflt: int = _f("u64")
    cmajflt: int = _f("u64")
    utime: int = _f("u64")
    stime: int = _f("u64")
    cutime: int = _f("i64")
    cstime: int = _f("i64")
    priority: int = _f("i64")
    nice: int = _f("i64")
    num_threads: int = _f("i64")
    itrealvalue: int = _f("i64")
    starttime: int = _f("u64")
    vsize: int = _f("u64")
    rss: int = _f("u64")
    rsslim: int = _f("u64")
    startcode: int = _f("u64")
    endcode: int = _f("u64")
    startstack: int = _f("u64")
    kstkeep: int = _f("u64")
    kstkeip: int = _f("u64")
    signal: int = _f("u64")
    blocked: int = _f("u64")
    sigignore: int = _f("u64")
    sigcatch: int = _f("u64")
    wchan: int = _f("u64")
    nswap: int = _f("u64")
    cnswap: int = _f("u64")
    exit_signal: int = _f("i32")
    processor: int = _f("i32")
    rt_priority: int = _f("u32")
    policy: int = _f("u32")
    delayacct_blkio_ticks: int = _f("u64")
    guest_time: int = _f("u64")
    cguest_time: int = _f("i64")
    start_data: int = _f("u64")
    end_data: int = _f("u64")
    start_brk: int = _f("u64")
    arg_start: int = _f("u64")
    arg_end: int = _f("u64")
    env_start: int = _f("u64")
    env_end: int = _f("u64")
    exit_code: int = _f("i32")


def _scan_int(token: str, kind: str, name: str) -> int:
    if not _INT_RE.fullmatch(token):
        raise ValueError(f"expected integer for {name}, got {token!r}")
    value = int(token)
    low, high = _RANGES[kind]
    if not low <= value <= high:
        raise ValueError(f"value out of range for {name}: {token!r}")
    return value


def parse_proc_stat(s: str) -> ProcStat:
    """Parse the whitespace separated fields of /proc/<pid>/stat."""
    tokens = deque(s.split())
    values: dict[str, object] = {}
    for f in fields(ProcStat):
        if not tokens:
            raise ValueError(f"unexpected end of input reading {f.name}")
        token = tokens.popleft()
        kind = f.metadata["kind"]
        if kind == "str":
            values[f.name] = token
        elif kind == "state":
            values[f.name] = ProcState(token[0])
            if len(token) > 1:
                tokens.appendleft(token[1:])
        else:
            values[f.name] = _scan_int(token, kind, f.name)
    return ProcStat(**values)


def read_proc_stat(pid: int | str) -> ProcStat:
    """Read and parse the statistics of the process pid."""
    return parse_proc_stat(read_proc_file(pid, "stat"))