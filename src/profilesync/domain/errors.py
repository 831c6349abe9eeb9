"""Failure taxonomy for profile updates.

Every failure a single update can produce maps to one result status. Anything
outside this hierarchy is not an ordinary per-update failure and propagates out of
the batch.
"""

from __future__ import annotations

from typing import ClassVar


class ProfileUpdateError(Exception):
    """Base class for failures that are reported per update."""

    status: ClassVar[str] = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ProfileUpdateError):
    """The update payload is malformed. Caller error, not retryable as-is."""

    status: ClassVar[str] = "ValidationError"


class NotFoundError(ProfileUpdateError):
    """The referenced entity does not exist.

    Deletes are no-ops for missing entities, so nothing raises this today.
    """

    status: ClassVar[str] = "NotFound"


class StorageError(ProfileUpdateError):
    """Transaction or connection failure. Safe to retry the whole update."""

    status: ClassVar[str] = "StorageError"
