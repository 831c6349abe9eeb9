"""SQLAlchemy-backed storage ownership and units of work for profiles."""

from __future__ import annotations

import threading
from contextlib import nullcontext
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from profilesync.adapters.sqlalchemy.mappings import create_all_tables
from profilesync.adapters.sqlalchemy.repositories import (
    SqlAlchemyItemAnnotationRepository,
    SqlAlchemyLoadoutRepository,
    SqlAlchemyProfileRepository,
    SqlAlchemySearchRepository,
    SqlAlchemySettingsRepository,
    SqlAlchemyTrackedTriumphRepository,
)
from profilesync.domain.errors import StorageError
from profilesync.domain.ports.unit_of_work import ProfileRepositories
from profilesync.domain.transactions import UnitOfWorkGateway

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine
    from sqlalchemy.engine.interfaces import ExceptionContext

    from profilesync.config import DatabaseConfig
    from profilesync.domain.ports.metrics import MetricsSink

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when storage is used before ``start()`` or after ``shutdown()``."""


def create_storage_engine(config: DatabaseConfig) -> Engine:
    """Create an engine whose pool is bounded by ``config.pool_size``.

    In-memory SQLite keeps SQLAlchemy's default single-connection pool.
    """

    url = make_url(config.uri)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(url, future=True)
    return create_engine(
        url,
        future=True,
        poolclass=QueuePool,
        pool_size=config.pool_size,
        max_overflow=0,
        pool_timeout=config.pool_timeout_seconds,
        pool_pre_ping=True,
    )


class PoolWaiters:
    """Number of callers currently blocked on a connection checkout."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def __enter__(self) -> None:
        with self._lock:
            self._count += 1

    def __exit__(self, *_: object) -> None:
        with self._lock:
            self._count -= 1


class SqlAlchemyStorage:
    """Explicitly owned engine and connection pool.

    Nothing is shared at module level: create one per process (or per test), call
    :meth:`start` before handing it to units of work and :meth:`shutdown` when done.
    """

    def __init__(
        self,
        *,
        engine: Engine | None = None,
        config: DatabaseConfig | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        if engine is None and config is None:
            raise ValueError("Either an engine or a database config is required")
        self._pending_engine = engine
        self._config = config
        self._metrics = metrics
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self._waiters = PoolWaiters()

    def start(self, *, create_tables: bool = True) -> None:
        if self._engine is not None:
            raise StartupError("Storage already started")
        engine = self._pending_engine
        if engine is None:
            if self._config is None:
                raise StartupError("Storage cannot be restarted without a database config")
            engine = create_storage_engine(self._config)
        self._pending_engine = None
        if self._metrics is not None:
            _register_pool_metrics(engine, self._metrics)
        if create_tables:
            create_all_tables(engine)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        log.info("Storage started on %s", engine.url.render_as_string(hide_password=True))

    def shutdown(self) -> None:
        """Dispose the engine; later units of work fail with ``StartupError``."""

        if self._engine is not None:
            self._engine.dispose()
            log.info("Storage shut down")
        self._engine = None
        self._session_factory = None

    @property
    def is_started(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StartupError("Storage not started. Call start() before use.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise StartupError("Storage not started. Call start() before use.")
        return self._session_factory

    def unit_of_work(self) -> SqlAlchemyProfileUnitOfWork:
        return SqlAlchemyProfileUnitOfWork(self.session_factory, waiters=self._waiters)

    def gateway(self) -> UnitOfWorkGateway:
        return UnitOfWorkGateway(self.unit_of_work)

    def report_pool_gauges(self) -> None:
        """Sample pool gauges now; QueuePool is the only pool that exposes them.

        Callers sample after each batch rather than on a timer.
        """

        if self._metrics is None:
            return
        pool = self.engine.pool
        if not isinstance(pool, QueuePool):
            return
        idle = pool.checkedin()
        in_use = pool.checkedout()
        self._metrics.gauge("db.pool.total", idle + in_use)
        self._metrics.gauge("db.pool.idle", idle)
        self._metrics.gauge("db.pool.in_use", in_use)
        self._metrics.gauge("db.pool.waiting", self._waiters.count)


def _register_pool_metrics(engine: Engine, metrics: MetricsSink) -> None:
    def on_connect(*_: object) -> None:
        metrics.increment("db.pool.connect.count")

    def on_checkout(*_: object) -> None:
        metrics.increment("db.pool.acquire.count")

    def on_close(*_: object) -> None:
        metrics.increment("db.pool.remove.count")

    def on_error(context: ExceptionContext) -> None:
        metrics.increment("db.pool.error.count")
        metrics.increment(f"db.pool.error.{type(context.original_exception).__name__}.count")

    event.listen(engine, "connect", on_connect)
    event.listen(engine, "checkout", on_checkout)
    event.listen(engine, "close", on_close)
    event.listen(engine, "handle_error", on_error)


class SqlAlchemyProfileUnitOfWork:
    """One session and one checked-out connection for the lifetime of the block.

    Entering checks the connection out of the pool (blocking while the pool is
    exhausted). Leaving with an exception rolls back; leaving in any way releases
    the connection. SQLAlchemy failures surface as ``StorageError``.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        waiters: PoolWaiters | None = None,
    ) -> None:
        self.session_factory = session_factory
        self._waiters = waiters
        self._session: Session | None = None
        self._repositories: ProfileRepositories | None = None

    def __enter__(self) -> SqlAlchemyProfileUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        session = self.session_factory()
        try:
            with self._waiters if self._waiters is not None else nullcontext():
                session.connection()
        except SQLAlchemyError as exc:
            session.close()
            raise StorageError(f"Could not acquire a database connection: {exc}") from exc
        self._session = session
        self._repositories = _build_repositories(session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self._release()
        if isinstance(exc_value, SQLAlchemyError):
            raise StorageError(f"Database error: {exc_value}") from exc_value
        return False  # don't swallow exceptions

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            log.exception("Rollback failed")
            raise StorageError(f"Rollback failed: {exc}") from exc

    @property
    def repositories(self) -> ProfileRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    def _release(self) -> None:
        session = self._session
        self._session = None
        self._repositories = None
        if session is not None:
            session.close()


def _build_repositories(session: Session) -> ProfileRepositories:
    return ProfileRepositories(
        profiles=SqlAlchemyProfileRepository(session),
        settings=SqlAlchemySettingsRepository(session),
        loadouts=SqlAlchemyLoadoutRepository(session),
        item_annotations=SqlAlchemyItemAnnotationRepository(session),
        tracked_triumphs=SqlAlchemyTrackedTriumphRepository(session),
        searches=SqlAlchemySearchRepository(session),
    )


if TYPE_CHECKING:
    from profilesync.domain.ports.unit_of_work import ProfileUnitOfWork

    _uow_check: ProfileUnitOfWork = SqlAlchemyProfileUnitOfWork(sessionmaker())
