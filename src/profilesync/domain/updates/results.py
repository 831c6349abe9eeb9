"""Per-update results and their assembly into the batch response."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from profilesync.domain.errors import ProfileUpdateError


class ResultStatus(StrEnum):
    SUCCESS = "Success"
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    STORAGE_ERROR = "StorageError"
    CANCELLED = "Cancelled"


@dataclass(frozen=True, slots=True)
class OperationResult:
    status: ResultStatus
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @classmethod
    def success(cls) -> OperationResult:
        return cls(ResultStatus.SUCCESS)

    @classmethod
    def cancelled(cls) -> OperationResult:
        return cls(ResultStatus.CANCELLED, "Batch cancelled before this update started")

    @classmethod
    def from_error(cls, error: ProfileUpdateError) -> OperationResult:
        return cls(ResultStatus(error.status), error.message)


class BatchConsistencyError(RuntimeError):
    """Raised when outcomes cannot be lined up one-to-one with the request."""


def assemble_results(
    updates: Sequence[object],
    outcomes: Sequence[tuple[int, OperationResult]],
) -> list[OperationResult]:
    """Order ``(position, result)`` pairs back into request order."""

    if len(outcomes) != len(updates):
        raise BatchConsistencyError(
            f"Expected {len(updates)} results but collected {len(outcomes)}"
        )
    slots: list[OperationResult | None] = [None] * len(updates)
    for position, result in outcomes:
        if not 0 <= position < len(slots) or slots[position] is not None:
            raise BatchConsistencyError(f"Result position {position} is out of range or repeated")
        slots[position] = result
    return [result for result in slots if result is not None]
