from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from profilesync.adapters.metrics import InMemoryMetrics
from profilesync.adapters.sqlalchemy import SqlAlchemyStorage
from tests.helpers.profiles import SteppingClock
from tests.helpers.storage import FakeStorageGateway

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from profilesync.domain.transactions import UnitOfWorkGateway


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


@pytest.fixture
def sqlite_storage(sqlite_engine: Engine, metrics: InMemoryMetrics) -> Iterator[SqlAlchemyStorage]:
    storage = SqlAlchemyStorage(engine=sqlite_engine, metrics=metrics)
    storage.start()
    try:
        yield storage
    finally:
        storage.shutdown()


@pytest.fixture
def sqlite_gateway(sqlite_storage: SqlAlchemyStorage) -> UnitOfWorkGateway:
    return sqlite_storage.gateway()


@pytest.fixture
def fake_gateway() -> FakeStorageGateway:
    return FakeStorageGateway()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()
