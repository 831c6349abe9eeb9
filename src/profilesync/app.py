"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from profilesync.adapters.sqlalchemy import SqlAlchemyStorage
from profilesync.adapters.wire import (
    build_profile_response,
    build_update_response,
    dump_response,
    parse_update_request,
    parse_updates,
    resolve_profile_key,
)
from profilesync.config import get_database_config
from profilesync.domain.profile_reads import load_profile
from profilesync.domain.updates import BatchDispatcher, UpdateLimits, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable

    from profilesync.config import DatabaseConfig
    from profilesync.domain.model import DestinyVersion, ProfileKey
    from profilesync.domain.ports.metrics import MetricsSink
    from profilesync.domain.updates import Clock


log = getLogger(__name__)


def create_storage(
    config: DatabaseConfig | None = None,
    *,
    metrics: MetricsSink | None = None,
) -> SqlAlchemyStorage:
    """Create and start storage from ``config`` (or the environment)."""

    storage = SqlAlchemyStorage(config=config or get_database_config(), metrics=metrics)
    storage.start()
    return storage


def apply_profile_updates(
    storage: SqlAlchemyStorage,
    request_payload: object,
    *,
    platform_membership_id: str | None = None,
    destiny_version: DestinyVersion | None = None,
    clock: Clock = utcnow,
    metrics: MetricsSink | None = None,
    limits: UpdateLimits | None = None,
    cancelled: Callable[[], bool] | None = None,
) -> dict[str, Any]:
    """Apply a JSON update request and return the JSON response body.

    Raises ``InvalidRequestError`` when the envelope itself is unusable; malformed
    individual updates are reported in their result slot instead.
    """

    request = parse_update_request(request_payload)
    key = resolve_profile_key(
        request,
        platform_membership_id=platform_membership_id,
        destiny_version=destiny_version,
    )
    updates = parse_updates(request)
    log.info("Applying %s updates for %s", len(updates), key)

    dispatcher = BatchDispatcher(
        storage.gateway(),
        clock=clock,
        metrics=metrics,
        limits=limits or UpdateLimits(),
    )
    results = dispatcher.apply_batch(key, updates, cancelled=cancelled)
    storage.report_pool_gauges()
    return dump_response(build_update_response(results))


def fetch_profile(storage: SqlAlchemyStorage, key: ProfileKey) -> dict[str, Any]:
    """Return the JSON body describing everything stored for ``key``."""

    snapshot = load_profile(storage.gateway(), key)
    log.info(
        "Loaded profile %s: %s loadouts, %s tags, %s searches",
        key,
        len(snapshot.loadouts),
        len(snapshot.tags),
        len(snapshot.searches),
    )
    return dump_response(build_profile_response(snapshot))
