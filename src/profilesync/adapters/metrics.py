"""Metrics sinks that keep counters in process or write them to the log."""

from __future__ import annotations

import threading
from collections import Counter
from logging import Logger, getLogger
from typing import TYPE_CHECKING

log = getLogger(__name__)


class InMemoryMetrics:
    """Thread-safe counters and gauges, mostly useful in tests and the CLI."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counters: Counter[str] = Counter()
        self.gauges: dict[str, float] = {}

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self.counters[name] += value

    def gauge(self, name: str, value: float) -> None:
        with self._lock:
            self.gauges[name] = value

    def snapshot(self) -> dict[str, float]:
        with self._lock:
            return {**self.counters, **self.gauges}


class LoggingMetrics:
    def __init__(self, logger: Logger | None = None) -> None:
        self._log = logger or log

    def increment(self, name: str, value: int = 1) -> None:
        self._log.debug("metric %s +%s", name, value)

    def gauge(self, name: str, value: float) -> None:
        self._log.debug("metric %s = %s", name, value)


if TYPE_CHECKING:
    from profilesync.domain.ports.metrics import MetricsSink

    _in_memory_check: MetricsSink = InMemoryMetrics()
    _logging_check: MetricsSink = LoggingMetrics()
