"""Observability sink consumed by the core."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Named counters and gauges; storage and export belong to the implementation."""

    def increment(self, name: str, value: int = 1) -> None: ...

    def gauge(self, name: str, value: float) -> None: ...
