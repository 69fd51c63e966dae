"""Reading the memory limit that applies to a process."""

from __future__ import annotations

import os
import posixpath
import re
import sys

from statskit.linux.cgroup import read_proc_cgroup
from statskit.linux.parse import read_file

__all__ = [
    "UNLIMITED_MEMORY_LIMIT",
    "read_memory_limit",
    "read_cgroup_memory_limit",
    "memory_limit_file_path",
]

UNLIMITED_MEMORY_LIMIT = 9223372036854771712
"""The value a memory cgroup reports when it has no limit."""

_UINT_RE = re.compile(r"[0-9]+")
_UINT64_MAX = (1 << 64) - 1


def memory_limit_file_path(cgroup_path: str) -> str:
    """Return the path of the limit file of a memory cgroup."""
    parts = ["/sys/fs/cgroup/memory"]
    # Docker reports cgroup paths that do not exist on the file system.
    if not cgroup_path.startswith("/docker/"):
        parts.append(cgroup_path)
    parts.append("memory.limit_in_bytes")
    return posixpath.normpath("/".join(p for p in parts if p))


def _read_memory_cgroup_limit(cgroup_path: str) -> int:
    try:
        text = read_file(memory_limit_file_path(cgroup_path)).strip()
    except OSError:
        return UNLIMITED_MEMORY_LIMIT
    if not _UINT_RE.fullmatch(text) or int(text) > _UINT64_MAX:
        return UNLIMITED_MEMORY_LIMIT
    return int(text)


def read_cgroup_memory_limit(pid: int | str) -> int:
    """Return the limit of the memory cgroup of pid.

    Returns 0 when the cgroups cannot be read or there is no memory cgroup.
    """
    try:
        cgroups = read_proc_cgroup(pid)
    except (OSError, ValueError):
        return 0
    memory = cgroups.lookup("memory")
    if memory is None:
        return 0
    return _read_memory_cgroup_limit(memory.path)


def _read_sysinfo_memory_limit() -> int:
    return os.sysconf("SC_PHYS_PAGES") * os.sysconf("SC_PAGE_SIZE")


def read_memory_limit(pid: int | str) -> int:
    """Return the amount of memory available to the process pid.

    On Linux this is the memory cgroup limit, or the total RAM when the
    cgroup is unlimited. Elsewhere it is always UNLIMITED_MEMORY_LIMIT.
    """
    if not sys.platform.startswith("linux"):
        return UNLIMITED_MEMORY_LIMIT
    limit = read_cgroup_memory_limit(pid)
    if limit == UNLIMITED_MEMORY_LIMIT:
        limit = _read_sysinfo_memory_limit()
    return limit