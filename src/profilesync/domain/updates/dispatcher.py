"""Apply an ordered batch of profile updates, one transaction per update.

Updates run strictly in request order so later updates observe the committed
effects of earlier ones. Each update gets its own transaction: a malformed or
failing update is reported in its own slot and never rolls back a sibling that
already committed. The batch always returns one result per update; only failures
outside the ``ProfileUpdateError`` hierarchy (for example a storage that has been
shut down) escape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from profilesync.domain.errors import ProfileUpdateError, StorageError, ValidationError

from .dto import RejectedUpdate
from .handlers import apply_update
from .results import OperationResult, assemble_results
from .validation import UpdateLimits, validate_update

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from profilesync.domain.model import ProfileKey
    from profilesync.domain.ports.metrics import MetricsSink
    from profilesync.domain.ports.unit_of_work import StorageGateway

    from .dto import BatchEntry

type Clock = Callable[[], datetime]

log = getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class BatchDispatcher:
    """Route each update of a batch to its handler under its own transaction."""

    gateway: StorageGateway
    clock: Clock = utcnow
    metrics: MetricsSink | None = None
    limits: UpdateLimits = field(default_factory=UpdateLimits)

    def apply_batch(
        self,
        key: ProfileKey,
        updates: Sequence[BatchEntry],
        *,
        cancelled: Callable[[], bool] | None = None,
    ) -> list[OperationResult]:
        """Apply ``updates`` for ``key`` and return results in request order.

        ``cancelled`` is polled before each update; once it reports true the
        remaining updates are not started and come back as ``Cancelled``.
        """

        outcomes: list[tuple[int, OperationResult]] = []
        stopped = False
        for position, update in enumerate(updates):
            if not stopped and cancelled is not None and cancelled():
                log.info("Batch for %s cancelled at update %s", key, position)
                stopped = True
            result = OperationResult.cancelled() if stopped else self._apply_one(key, update)
            self._record(update, result)
            outcomes.append((position, result))

        results = assemble_results(updates, outcomes)
        log.info(
            "Applied %s updates for %s: %s succeeded",
            len(results),
            key,
            sum(1 for result in results if result.ok),
        )
        return results

    def _apply_one(self, key: ProfileKey, update: BatchEntry) -> OperationResult:
        try:
            validate_update(update, self.limits)
        except ValidationError as exc:
            log.info("Rejected %s update for %s: %s", _action_name(update), key, exc.message)
            return OperationResult.from_error(exc)

        now = self.clock()
        try:
            self.gateway.run_in_transaction(
                lambda repositories: apply_update(update, repositories, key, now)
            )
        except StorageError as exc:
            log.warning(
                "Storage failure applying %s update for %s",
                _action_name(update),
                key,
                exc_info=True,
            )
            return OperationResult.from_error(exc)
        except ProfileUpdateError as exc:
            log.info("Update %s for %s failed: %s", _action_name(update), key, exc.message)
            return OperationResult.from_error(exc)
        return OperationResult.success()

    def _record(self, update: BatchEntry, result: OperationResult) -> None:
        if self.metrics is None:
            return
        self.metrics.increment(f"update.{_action_name(update)}.{result.status.value}.count")


def _action_name(update: BatchEntry) -> str:
    if isinstance(update, RejectedUpdate):
        return update.action or "unknown"
    return update.action.value

