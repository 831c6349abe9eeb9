"""SQLAlchemy adapter package for profile storage."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import (
    SqlAlchemyItemAnnotationRepository,
    SqlAlchemyLoadoutRepository,
    SqlAlchemyProfileRepository,
    SqlAlchemySearchRepository,
    SqlAlchemySettingsRepository,
    SqlAlchemyTrackedTriumphRepository,
)
from .unit_of_work import (
    SqlAlchemyProfileUnitOfWork,
    SqlAlchemyStorage,
    StartupError,
    create_storage_engine,
)

__all__ = [
    "SqlAlchemyItemAnnotationRepository",
    "SqlAlchemyLoadoutRepository",
    "SqlAlchemyProfileRepository",
    "SqlAlchemyProfileUnitOfWork",
    "SqlAlchemySearchRepository",
    "SqlAlchemySettingsRepository",
    "SqlAlchemyStorage",
    "SqlAlchemyTrackedTriumphRepository",
    "StartupError",
    "create_all_tables",
    "create_storage_engine",
    "metadata",
]
