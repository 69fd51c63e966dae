"""Rendering metrics in the Prometheus text exposition format."""

from __future__ import annotations

import string
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import TextIO

from statskit.prometheus.labels import Label
from statskit.prometheus.metric import Metric, MetricStore, MetricType, sort_metrics
from statskit.value import value_of as _as_value

__all__ = [
    "format_metric",
    "format_help",
    "format_type",
    "format_labels",
    "escape_string",
    "sanitize_metric_name",
    "sanitize_label_name",
    "write_stats",
    "accept_encoding",
]

_METRIC_FIRST = frozenset((string.ascii_letters + "_:").encode())
_METRIC_REST = frozenset((string.ascii_letters + string.digits + "_:").encode())
_LABEL_FIRST = frozenset((string.ascii_letters + "_").encode())
_LABEL_REST = frozenset((string.ascii_letters + string.digits + "_").encode())

_HELP_SPECIALS = "\\\n"
_LABEL_VALUE_SPECIALS = '\\"\n'

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _sanitize(s: str, first: frozenset[int], rest: frozenset[int]) -> str:
    return "".join(
        chr(b) if b in (first if i == 0 else rest) else "_"
        for i, b in enumerate(s.encode("utf-8"))
    )


def sanitize_metric_name(s: str) -> str:
    """Replace every byte not allowed in a metric name with '_'."""
    return _sanitize(s, _METRIC_FIRST, _METRIC_REST)


def sanitize_label_name(s: str) -> str:
    """Replace every byte not allowed in a label name with '_'."""
    return _sanitize(s, _LABEL_FIRST, _LABEL_REST)


def escape_string(s: str, specials: str) -> str:
    """Backslash-escape the special characters of s; newlines become '\\n'."""
    return "".join(
        ("\\n" if c == "\n" else "\\" + c) if c in specials else c for c in s
    )


def _scoped_name(scope: str, name: str) -> str:
    if scope:
        return sanitize_metric_name(scope) + "_" + sanitize_metric_name(name)
    return sanitize_metric_name(name)


def _format_float(f: float) -> str:
    return str(_as_value(float(f)))


def _unix_millis(t: datetime) -> int:
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return (t - _EPOCH) // timedelta(milliseconds=1)


def format_help(scope: str, name: str, help: str) -> str:
    """Return the '# HELP' line of a metric."""
    return f"# HELP {_scoped_name(scope, name)} {escape_string(help, _HELP_SPECIALS)}\n"


def format_type(scope: str, name: str, mtype: MetricType | str) -> str:
    """Return the '# TYPE' line of a metric."""
    return f"# TYPE {_scoped_name(scope, name)} {mtype}\n"


def format_labels(labels: Iterable[Label]) -> str:
    """Return the braced label list of a sample, or '' when there are no labels."""
    parts = [
        f'{sanitize_label_name(lbl.name)}="{escape_string(lbl.value, _LABEL_VALUE_SPECIALS)}"'
        for lbl in labels
    ]
    return "{" + ",".join(parts) + "}" if parts else ""


def format_metric(metric: Metric) -> str:
    """Render a metric sample, preceded by its HELP and TYPE lines when set."""
    out = []
    if metric.help:
        out.append(format_help(metric.scope, metric.root_name(), metric.help))
    if metric.mtype != MetricType.UNTYPED:
        out.append(format_type(metric.scope, metric.root_name(), metric.mtype))
    line = (
        _scoped_name(metric.scope, metric.name)
        + format_labels(metric.labels)
        + " "
        + _format_float(metric.value)
    )
    if metric.time is not None:
        line += f" {_unix_millis(metric.time)}"
    out.append(line + "\n")
    return "".join(out)


def write_stats(store: MetricStore, stream: TextIO) -> None:
    """Write every metric of the store to a text stream, sorted by name and labels.

    HELP and TYPE lines appear once per metric, and metrics are separated by
    an empty line. The stream is neither flushed nor closed.
    """
    last_name: str | None = None
    for i, metric in enumerate(sort_metrics(store.collect())):
        name = metric.root_name()
        prefix = ""
        if name == last_name:
            metric = replace(metric, mtype=MetricType.UNTYPED, help="")
        elif i != 0:
            prefix = "\n"
        stream.write(prefix + format_metric(metric))
        last_name = name


def accept_encoding(accept: str, check: str) -> bool:
    """Return True if the Accept-Encoding value lists a coding starting with check."""
    return any(coding.strip().startswith(check) for coding in accept.split(","))