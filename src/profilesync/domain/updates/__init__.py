"""Profile update batch processing."""

from __future__ import annotations

from .dispatcher import BatchDispatcher, Clock, utcnow
from .dto import (
    UNSET,
    BatchEntry,
    DeleteLoadoutUpdate,
    ItemAnnotationPatch,
    LoadoutUpdate,
    ProfileUpdate,
    RejectedUpdate,
    SavedSearchUpdate,
    SettingUpdate,
    TagCleanupUpdate,
    TagUpdate,
    TrackTriumphUpdate,
    Unset,
    UsedSearchUpdate,
)
from .handlers import apply_update
from .results import BatchConsistencyError, OperationResult, ResultStatus, assemble_results
from .validation import UpdateLimits, validate_update

__all__ = [
    "UNSET",
    "BatchConsistencyError",
    "BatchDispatcher",
    "BatchEntry",
    "Clock",
    "DeleteLoadoutUpdate",
    "ItemAnnotationPatch",
    "LoadoutUpdate",
    "OperationResult",
    "ProfileUpdate",
    "RejectedUpdate",
    "ResultStatus",
    "SavedSearchUpdate",
    "SettingUpdate",
    "TagCleanupUpdate",
    "TagUpdate",
    "TrackTriumphUpdate",
    "Unset",
    "UpdateLimits",
    "UsedSearchUpdate",
    "apply_update",
    "assemble_results",
    "utcnow",
    "validate_update",
]
