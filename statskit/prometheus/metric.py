"""In-memory store of the metrics exposed to a Prometheus scraper."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import NamedTuple

from statskit.prometheus.labels import Label
from statskit.value import Value, ValueType
from statskit.value import value_of as _as_value

__all__ = [
    "MetricType",
    "MetricKey",
    "Metric",
    "MetricBucket",
    "MetricState",
    "MetricEntry",
    "MetricStore",
    "value_of",
    "le",
    "next_le",
    "make_metric_buckets",
    "sort_metrics",
]


class MetricType(IntEnum):
    """The kind of a Prometheus metric."""

    UNTYPED = 0
    COUNTER = 1
    GAUGE = 2
    HISTOGRAM = 3
    SUMMARY = 4

    def __str__(self) -> str:
        return self.name.lower()


class MetricKey(NamedTuple):
    """Identifies a metric entry in a store."""

    scope: str
    name: str


@dataclass(frozen=True)
class Metric:
    """One sample of a metric, with its labels and optional timestamp."""

    mtype: MetricType = MetricType.UNTYPED
    scope: str = ""
    name: str = ""
    help: str = ""
    value: float = 0.0
    time: datetime | None = None
    labels: tuple[Label, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(self.labels))

    def key(self) -> MetricKey:
        return MetricKey(self.scope, self.name)

    def root_name(self) -> str:
        """Return the name without the histogram suffix (_bucket, _sum, _count)."""
        if self.mtype == MetricType.HISTOGRAM:
            return self.name[: self.name.rindex("_")]
        return self.name


def _format_float(f: float) -> str:
    return str(_as_value(float(f)))


def value_of(v: Value) -> float:
    """Convert a Value to the float exposed to Prometheus; durations in seconds."""
    if v.type == ValueType.BOOL:
        return 1.0 if v.as_bool() else 0.0
    if v.type == ValueType.INT:
        return float(v.as_int())
    if v.type == ValueType.UINT:
        return float(v.as_uint())
    if v.type == ValueType.FLOAT:
        return v.as_float()
    if v.type == ValueType.DURATION:
        ns = v.as_int()
        sec, nsec = divmod(abs(ns), 1_000_000_000)
        seconds = float(sec) + nsec / 1e9
        return -seconds if ns < 0 else seconds
    return 0.0


def le(buckets: Iterable[Value]) -> str:
    """Return the colon separated limits of the buckets."""
    return ":".join(_format_float(value_of(v)) for v in buckets)


def next_le(s: str) -> tuple[str, str]:
    """Split the first limit off a colon separated list of limits."""
    head, found, tail = s.partition(":")
    return head, (tail if found else "")


@dataclass
class MetricBucket:
    """One bucket of a histogram: its upper limit and the values counted in it."""

    limit: float
    labels: tuple[Label, ...] = ()
    count: int = 0


def make_metric_buckets(
    buckets: Sequence[Value], labels: Sequence[Label]
) -> list[MetricBucket]:
    """Build empty histogram buckets, each labelled with its 'le' limit."""
    base = tuple(labels)
    result = []
    rest = le(buckets)
    for bucket in buckets:
        limit_text, rest = next_le(rest)
        result.append(
            MetricBucket(limit=value_of(bucket), labels=base + (Label("le", limit_text),))
        )
    return result


@dataclass
class MetricState:
    """The current state of a metric for one set of labels."""

    labels: tuple[Label, ...] = ()
    buckets: list[MetricBucket] = field(default_factory=list)
    value: float = 0.0
    sum: float = 0.0
    count: int = 0
    time: datetime | None = None
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.labels = tuple(self.labels)

    def update(
        self,
        mtype: MetricType,
        value: float,
        time: datetime | None,
        buckets: Sequence[Value] | None,
    ) -> None:
        """Fold a new value into the state according to the metric type."""
        with self._lock:
            if mtype == MetricType.COUNTER:
                self.value += value
            elif mtype == MetricType.GAUGE:
                self.value = value
            elif mtype == MetricType.HISTOGRAM:
                limits = list(buckets or ())
                if len(self.buckets) != len(limits):
                    self.buckets = make_metric_buckets(limits, self.labels)
                for bucket in self.buckets:
                    if value <= bucket.limit:
                        bucket.count += 1
                        break
                self.sum += value
                self.count += 1
            self.time = time

    def collect(self, metrics: list[Metric], entry: MetricEntry) -> list[Metric]:
        """Append the samples of this state to metrics and return it."""
        with self._lock:
            common = {"mtype": entry.mtype, "scope": entry.scope, "help": entry.help, "time": self.time}
            if entry.mtype in (MetricType.COUNTER, MetricType.GAUGE):
                metrics.append(
                    Metric(name=entry.name, value=self.value, labels=self.labels, **common)
                )
            elif entry.mtype == MetricType.HISTOGRAM:
                # Prometheus expects cumulative bucket counts.
                cumulative = 0
                for bucket in self.buckets:
                    cumulative += bucket.count
                    metrics.append(
                        Metric(
                            name=entry.bucket,
                            value=float(cumulative),
                            labels=bucket.labels,
                            **common,
                        )
                    )
                metrics.append(Metric(name=entry.sum, value=self.sum, labels=self.labels, **common))
                metrics.append(
                    Metric(name=entry.count, value=float(self.count), labels=self.labels, **common)
                )
        return metrics

    def _updated_after(self, exp: datetime) -> bool:
        with self._lock:
            return self.time is not None and exp < self.time


class MetricEntry:
    """All the states of one metric, keyed by their labels."""

    def __init__(self, mtype: MetricType, scope: str, name: str, help: str = "") -> None:
        self.mtype = mtype
        self.scope = scope
        self.name = name
        self.help = help
        self.states: dict[tuple[Label, ...], MetricState] = {}
        self._lock = threading.Lock()
        if mtype == MetricType.HISTOGRAM:
            self.bucket = name + "_bucket"
            self.sum = name + "_sum"
            self.count = name + "_count"
        else:
            self.bucket = self.sum = self.count = ""

    def lookup(self, labels: Sequence[Label]) -> MetricState:
        """Return the state for labels, creating it if needed."""
        key = tuple(labels)
        with self._lock:
            state = self.states.get(key)
            if state is None:
                state = self.states[key] = MetricState(labels=key)
        return state

    def collect(self, metrics: list[Metric]) -> list[Metric]:
        """Append the samples of every state to metrics and return it."""
        with self._lock:
            for state in self.states.values():
                state.collect(metrics, self)
        return metrics

    def cleanup(self, exp: datetime, empty: Callable[[], object]) -> None:
        """Drop states last updated at or before exp; call empty() if none remain."""
        with self._lock:
            self.states = {
                key: state for key, state in self.states.items() if state._updated_after(exp)
            }
            if not self.states:
                empty()


class MetricStore:
    """Thread-safe registry of metric entries."""

    def __init__(self) -> None:
        self.entries: dict[MetricKey, MetricEntry] = {}
        self._lock = threading.Lock()

    def lookup(self, mtype: MetricType, key: tuple[str, str], help: str = "") -> MetricEntry:
        """Return the entry for key, replacing it if its type changed."""
        key = MetricKey(*key)
        with self._lock:
            entry = self.entries.get(key)
            if entry is None or entry.mtype != mtype:
                entry = MetricEntry(mtype, key.scope, key.name, help)
                self.entries[key] = entry
        return entry

    def update(self, metric: Metric, buckets: Sequence[Value] | None = None) -> None:
        """Record a sample; buckets are the histogram limits, if any."""
        entry = self.lookup(metric.mtype, metric.key(), metric.help)
        state = entry.lookup(metric.labels)
        state.update(metric.mtype, metric.value, metric.time, buckets)

    def collect(self) -> list[Metric]:
        """Return the current samples of every metric, in no particular order."""
        with self._lock:
            entries = list(self.entries.values())
        metrics: list[Metric] = []
        for entry in entries:
            entry.collect(metrics)
        return metrics

    def cleanup(self, exp: datetime) -> None:
        """Drop samples last updated at or before exp, and entries left empty."""
        with self._lock:
            items = list(self.entries.items())
        for key, entry in items:
            entry.cleanup(exp, lambda key=key, entry=entry: self._drop(key, entry))

    def _drop(self, key: MetricKey, entry: MetricEntry) -> None:
        with self._lock:
            if self.entries.get(key) is entry:
                del self.entries[key]


def sort_metrics(metrics: Iterable[Metric]) -> list[Metric]:
    """Return the metrics sorted by name, then by labels."""
    return sorted(metrics, key=lambda m: (m.name, m.labels))