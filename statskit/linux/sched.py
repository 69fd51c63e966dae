"""Parsing of /proc/<pid>/sched."""

from __future__ import annotations

import re
from dataclasses import dataclass

from statskit.linux.parse import iter_properties, read_proc_file, skip_line

__all__ = ["ProcSched", "read_proc_sched", "parse_proc_sched"]

_UINT_RE = re.compile(r"[0-9]+")
_UINT64_MAX = (1 << 64) - 1


@dataclass
class ProcSched:
    """Scheduling statistics of a process."""

    nr_switches: int = 0
    nr_voluntary_switches: int = 0
    nr_involuntary_switches: int = 0
    se_avg_load_sum: int = 0
    se_avg_util_sum: int = 0
    se_avg_load_avg: int = 0
    se_avg_util_avg: int = 0


_FIELDS = {
    "nr_switches": "nr_switches",
    "nr_voluntary_switches": "nr_voluntary_switches",
    "nr_involuntary_switches": "nr_involuntary_switches",
    "se.avg.load_sum": "se_avg_load_sum",
    "se.avg.util_sum": "se_avg_util_sum",
    "se.avg.load_avg": "se_avg_load_avg",
    "se.avg.util_avg": "se_avg_util_avg",
}


def _parse_uint(s: str) -> int:
    if not _UINT_RE.fullmatch(s):
        raise ValueError(f"invalid syntax for unsigned integer: {s!r}")
    value = int(s)
    if value > _UINT64_MAX:
        raise ValueError(f"unsigned integer out of range: {s!r}")
    return value


def parse_proc_sched(s: str) -> ProcSched:
    """Parse the content of /proc/<pid>/sched.

    Values of keys that appear more than once are summed.
    """
    s = skip_line(s)  # <progname> (<pid>, #threads: 1)
    s = skip_line(s)  # -------------------------------
    totals = dict.fromkeys(_FIELDS.values(), 0)
    for key, val in iter_properties(s):
        attr = _FIELDS.get(key)
        if attr is not None:
            totals[attr] += _parse_uint(val)
    return ProcSched(**totals)


def read_proc_sched(pid: int | str) -> ProcSched:
    """Read and parse the scheduling statistics of the process pid."""
    return parse_proc_sched(read_proc_file(pid, "sched"))