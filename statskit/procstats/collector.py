"""Running metric collectors periodically on a background thread."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Protocol, Union, runtime_checkable

__all__ = [
    "DEFAULT_COLLECT_INTERVAL",
    "Collector",
    "Config",
    "CollectorHandle",
    "multi_collector",
    "start_collector",
    "start_collector_with",
]

DEFAULT_COLLECT_INTERVAL = timedelta(seconds=15)
"""The interval used when a Config does not set one."""


@runtime_checkable
class Collector(Protocol):
    """Anything with a collect() method."""

    def collect(self) -> None: ...


CollectorLike = Union[Collector, Callable[[], object]]


class _FuncCollector:
    """Adapts a plain callable to the Collector protocol."""

    def __init__(self, func: Callable[[], object]) -> None:
        self._func = func

    def collect(self) -> None:
        self._func()


def _as_collector(obj: CollectorLike) -> Collector:
    if isinstance(obj, Collector):
        return obj
    if callable(obj):
        return _FuncCollector(obj)
    raise TypeError(f"not a collector: {obj!r}")


class _MultiCollector:
    """Calls several collectors in order."""

    def __init__(self, collectors: tuple[CollectorLike, ...]) -> None:
        self._collectors = tuple(_as_collector(c) for c in collectors)

    def collect(self) -> None:
        for c in self._collectors:
            c.collect()


def multi_collector(*args: CollectorLike) -> Collector:
    """Combine any number of collectors into a single one."""
    return _MultiCollector(args)


@dataclass(frozen=True)
class Config:
    """What to collect and how often; a zero interval means the default."""

    collector: CollectorLike | None = None
    collect_interval: timedelta = timedelta(0)


def _with_defaults(config: Config) -> Config:
    if config.collect_interval == timedelta(0):
        config = replace(config, collect_interval=DEFAULT_COLLECT_INTERVAL)
    if config.collector is None:
        config = replace(config, collector=multi_collector())
    return config


class CollectorHandle:
    """A running collector; close() stops it and waits for it to finish."""

    def __init__(self, config: Config) -> None:
        config = _with_defaults(config)
        self._collector = _as_collector(config.collector)
        self._interval = config.collect_interval.total_seconds()
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="statskit-collector", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        self._collector.collect()
        while not self._stop.wait(self._interval):
            self._collector.collect()

    def close(self) -> None:
        """Stop collecting; safe to call more than once."""
        self._stop.set()
        if self._thread is not threading.current_thread():
            self._thread.join()

    def __enter__(self) -> CollectorHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def start_collector(collector: CollectorLike | None) -> CollectorHandle:
    """Start a collector with the default configuration."""
    return start_collector_with(Config(collector=collector))


def start_collector_with(config: Config) -> CollectorHandle:
    """Start a collector that runs at once and then at every interval."""
    return CollectorHandle(config)