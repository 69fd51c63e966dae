"""Reading the cgroups of a process and the CPU settings of a cgroup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from statskit.linux.parse import (
    atoi,
    cgroup_path,
    iter_lines,
    iter_tokens,
    read_int_file,
    read_microsecond_file,
    read_proc_file,
    split,
)

__all__ = [
    "CGroup",
    "ProcCGroup",
    "read_proc_cgroup",
    "parse_proc_cgroup",
    "read_cpu_period",
    "read_cpu_quota",
    "read_cpu_shares",
]


@dataclass(frozen=True)
class CGroup:
    """One cgroup a process belongs to."""

    id: int
    name: str
    path: str  # path below /sys/fs/cgroup


class ProcCGroup(list):
    """The list of cgroups of a process."""

    def lookup(self, name: str) -> CGroup | None:
        """Return the cgroup matching any of the comma separated names, or None.

        When several cgroups match, the last match wins.
        """
        found: CGroup | None = None
        for key in iter_tokens(name, ","):
            for cg in self:
                if key in iter_tokens(cg.name, ","):
                    found = cg
        return found


def parse_proc_cgroup(s: str) -> ProcCGroup:
    """Parse the content of /proc/<pid>/cgroup."""
    groups = ProcCGroup()
    for line in iter_lines(s):
        cid, rest = split(line, ":")
        names, path = split(rest, ":")
        while names:
            name, names = split(names, ",")
            if name.startswith("name="):
                name = name[5:].strip()
            groups.append(CGroup(atoi(cid), name, path))
    return groups


def read_proc_cgroup(pid: int | str) -> ProcCGroup:
    """Read and parse the cgroups of the process pid."""
    return parse_proc_cgroup(read_proc_file(pid, "cgroup"))


def read_cpu_period(cgroup: str) -> timedelta:
    """Return the CFS scheduler period applied to the cgroup."""
    return read_microsecond_file(cgroup_path("cpu", cgroup, "cpu.cfs_period_us"))


def read_cpu_quota(cgroup: str) -> timedelta:
    """Return the CFS time quota applied to the cgroup."""
    return read_microsecond_file(cgroup_path("cpu", cgroup, "cpu.cfs_quota_us"))


def read_cpu_shares(cgroup: str) -> int:
    """Return the CPU shares allotted to the cgroup."""
    return read_int_file(cgroup_path("cpu", cgroup, "cpu.shares"))