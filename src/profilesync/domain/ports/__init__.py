"""Domain port definitions for adapters."""

from __future__ import annotations

from .metrics import MetricsSink
from .persistence import (
    ItemAnnotationRepository,
    LoadoutRepository,
    ProfileRepository,
    SearchRepository,
    SettingsRepository,
    TrackedTriumphRepository,
)
from .unit_of_work import (
    ProfileRepositories,
    ProfileUnitOfWork,
    RepositoryCollection,
    StorageGateway,
    UnitOfWork,
)

__all__ = [
    "ItemAnnotationRepository",
    "LoadoutRepository",
    "MetricsSink",
    "ProfileRepositories",
    "ProfileRepository",
    "ProfileUnitOfWork",
    "RepositoryCollection",
    "SearchRepository",
    "SettingsRepository",
    "StorageGateway",
    "TrackedTriumphRepository",
    "UnitOfWork",
]
