"""Counting the open file descriptors of a process."""

from __future__ import annotations

import os

from statskit.linux.parse import proc_path

__all__ = ["read_open_file_count"]


def read_open_file_count(pid: int | str) -> int:
    """Return the number of file descriptors the process pid has open."""
    return len(os.listdir(proc_path(pid, "fd")))