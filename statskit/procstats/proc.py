"""Collecting CPU, memory, file and thread statistics of a process."""

from __future__ import annotations

import functools
import os
import re
import resource
import shutil
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TypeVar

from statskit.linux.cgroup import (
    read_cpu_period,
    read_cpu_quota,
    read_cpu_shares,
    read_proc_cgroup,
)
from statskit.linux.files import read_open_file_count
from statskit.linux.limits import read_proc_limits
from statskit.linux.memory import read_memory_limit
from statskit.linux.sched import read_proc_sched
from statskit.linux.stat import read_proc_stat
from statskit.linux.statm import read_proc_statm

__all__ = [
    "OSUnsupportedError",
    "CPUInfo",
    "MemoryInfo",
    "FileInfo",
    "ThreadInfo",
    "ProcInfo",
    "collect_proc_info",
    "clock_ticks_to_duration",
    "clock_tick",
    "getconf",
]

_T = TypeVar("_T")
_UINT_RE = re.compile(r"[0-9]+")


class OSUnsupportedError(Exception):
    """Raised when process statistics cannot be collected on this system."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


@dataclass
class CPUInfo:
    """CPU time used by a process and its scheduler settings (zero if unknown)."""

    user: timedelta = timedelta(0)
    sys: timedelta = timedelta(0)
    period: timedelta = timedelta(0)
    quota: timedelta = timedelta(0)
    shares: int = 0


@dataclass
class MemoryInfo:
    """Memory usage of a process, in bytes."""

    available: int = 0
    size: int = 0
    resident: int = 0
    shared: int = 0
    text: int = 0
    data: int = 0
    major_page_faults: int = 0
    minor_page_faults: int = 0


@dataclass
class FileInfo:
    """Open and maximum file descriptors of a process."""

    open: int = 0
    max: int = 0


@dataclass
class ThreadInfo:
    """Thread count and context switches of a process."""

    num: int = 0
    voluntary_context_switches: int = 0
    involuntary_context_switches: int = 0


@dataclass
class ProcInfo:
    """All the statistics collected on a process."""

    cpu: CPUInfo = field(default_factory=CPUInfo)
    memory: MemoryInfo = field(default_factory=MemoryInfo)
    files: FileInfo = field(default_factory=FileInfo)
    threads: ThreadInfo = field(default_factory=ThreadInfo)


def getconf(name: str) -> str:
    """Return the output of the getconf program for name."""
    exe = shutil.which("getconf")
    if exe is None:
        raise FileNotFoundError("getconf: executable file not found in PATH")
    result = subprocess.run([exe, name], stdout=subprocess.PIPE, text=True, check=False)
    return result.stdout


def clock_tick() -> int:
    """Return the number of clock ticks per second."""
    text = getconf("CLK_TCK").strip()
    if not _UINT_RE.fullmatch(text):
        raise ValueError(f"invalid clock tick value: {text!r}")
    return int(text)


@functools.lru_cache(maxsize=None)
def _clock_tick_hertz() -> int:
    return clock_tick()


def clock_ticks_to_duration(ticks: int) -> timedelta:
    """Convert a number of clock ticks to a duration."""
    ns = int(1e9 * ticks / _clock_tick_hertz())
    return timedelta(microseconds=ns / 1000)


def _or_default(read: Callable[..., _T], default: _T, *args: object) -> _T:
    try:
        return read(*args)
    except (OSError, ValueError):
        return default


def _cpu_cgroup_path(pid: int) -> str:
    try:
        groups = read_proc_cgroup(pid)
    except (OSError, ValueError):
        return ""
    cg = groups.lookup("cpu,cpuacct")
    return cg.path if cg is not None else ""


def _cpu_settings(cgroup: str) -> tuple[timedelta, timedelta, int]:
    return (
        _or_default(read_cpu_period, timedelta(0), cgroup),
        _or_default(read_cpu_quota, timedelta(0), cgroup),
        _or_default(read_cpu_shares, 0, cgroup),
    )


def collect_proc_info(pid: int) -> ProcInfo:
    """Collect the statistics of the process pid.

    Raises OSUnsupportedError on systems other than Linux, and OSError or
    ValueError when the process files cannot be read or parsed.
    """
    if not sys.platform.startswith("linux"):
        raise OSUnsupportedError(f"collecting process metrics is not supported on {sys.platform}")

    pagesize = resource.getpagesize()

    memory_limit = read_memory_limit(pid)
    limits = read_proc_limits(pid)
    stat = read_proc_stat(pid)
    statm = read_proc_statm(pid)
    sched = read_proc_sched(pid)
    fds = read_open_file_count(pid)

    if pid == os.getpid():
        usage = resource.getrusage(resource.RUSAGE_SELF)
        period, quota, shares = _cpu_settings("")
        cpu = CPUInfo(
            user=timedelta(seconds=usage.ru_utime),
            sys=timedelta(seconds=usage.ru_stime),
            period=period,
            quota=quota,
            shares=shares,
        )
    else:
        self_path = _cpu_cgroup_path(os.getpid())
        proc_path = _cpu_cgroup_path(pid)
        # When both share a cgroup, read our own settings: the target's
        # cgroup directory may not be visible to this process.
        period, quota, shares = _cpu_settings("" if self_path == proc_path else proc_path)
        cpu = CPUInfo(
            user=clock_ticks_to_duration(stat.utime),
            sys=clock_ticks_to_duration(stat.stime),
            period=period,
            quota=quota,
            shares=shares,
        )

    return ProcInfo(
        cpu=cpu,
        memory=MemoryInfo(
            available=memory_limit,
            size=pagesize * statm.size,
            resident=pagesize * statm.resident,
            shared=pagesize * statm.share,
            text=pagesize * statm.text,
            data=pagesize * statm.data,
            major_page_faults=stat.majflt,
            minor_page_faults=stat.minflt,
        ),
        files=FileInfo(open=fds, max=limits.open_files.soft),
        threads=ThreadInfo(
            num=stat.num_threads,
            voluntary_context_switches=sched.nr_voluntary_switches,
            involuntary_context_switches=sched.nr_involuntary_switches,
        ),
    )