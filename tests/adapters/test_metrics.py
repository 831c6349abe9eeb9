from __future__ import annotations

import logging

import pytest

from profilesync.adapters.metrics import InMemoryMetrics, LoggingMetrics
from profilesync.domain.ports.metrics import MetricsSink


def test_in_memory_metrics_accumulate_counters_and_keep_last_gauge() -> None:
    metrics = InMemoryMetrics()

    metrics.increment("db.pool.acquire.count")
    metrics.increment("db.pool.acquire.count", 2)
    metrics.gauge("db.pool.idle", 3)
    metrics.gauge("db.pool.idle", 1)

    assert metrics.snapshot() == {"db.pool.acquire.count": 3, "db.pool.idle": 1}
    assert isinstance(metrics, MetricsSink)


def test_logging_metrics_write_debug_records(caplog: pytest.LogCaptureFixture) -> None:
    metrics = LoggingMetrics()

    with caplog.at_level(logging.DEBUG, logger="profilesync.adapters.metrics"):
        metrics.increment("update.tag.Success.count")
        metrics.gauge("db.pool.total", 2)

    assert [record.getMessage() for record in caplog.records] == [
        "metric update.tag.Success.count +1",
        "metric db.pool.total = 2",
    ]
