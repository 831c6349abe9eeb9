"""Unit-of-work and transaction boundaries for profile storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from profilesync.domain.ports.persistence import (
        ItemAnnotationRepository,
        LoadoutRepository,
        ProfileRepository,
        SearchRepository,
        SettingsRepository,
        TrackedTriumphRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@dataclass(slots=True)
class ProfileRepositories(RepositoryCollection):
    """Repositories bound to one connection for the lifetime of a unit of work."""

    profiles: ProfileRepository
    settings: SettingsRepository
    loadouts: LoadoutRepository
    item_annotations: ItemAnnotationRepository
    tracked_triumphs: TrackedTriumphRepository
    searches: SearchRepository


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type ProfileUnitOfWork = UnitOfWork[ProfileRepositories]


@runtime_checkable
class StorageGateway(Protocol):
    """Runs a unit of work against exactly one pooled connection."""

    def run_in_transaction[T](self, work: Callable[[ProfileRepositories], T]) -> T:
        """Commit when ``work`` returns, roll back when it raises."""
        ...

    def run_read_only[T](self, work: Callable[[ProfileRepositories], T]) -> T:
        """Always roll back once ``work`` finishes."""
        ...
