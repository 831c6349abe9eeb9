"""Ports for persisting profile data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from profilesync.domain.model import ItemAnnotation, Loadout, ProfileKey, Search, Settings


@runtime_checkable
class ProfileRepository(Protocol):
    """Lazily created profile rows."""

    def exists(self, key: ProfileKey) -> bool: ...

    def ensure(self, key: ProfileKey, *, now: datetime) -> bool:
        """Create the profile row if absent; return whether it was created."""
        ...


@runtime_checkable
class SettingsRepository(Protocol):
    def get(self, key: ProfileKey) -> Settings | None: ...

    def save(self, key: ProfileKey, settings: Settings) -> None: ...


@runtime_checkable
class LoadoutRepository(Protocol):
    def get(self, key: ProfileKey, loadout_id: str) -> Loadout | None: ...

    def save(self, key: ProfileKey, loadout: Loadout) -> None:
        """Insert the loadout or replace the stored row with the same id.

        A replaced row keeps its stored ``created_at``.
        """
        ...

    def delete(self, key: ProfileKey, loadout_id: str) -> bool: ...

    def list(self, key: ProfileKey) -> list[Loadout]: ...


@runtime_checkable
class ItemAnnotationRepository(Protocol):
    def get(self, key: ProfileKey, item_id: str) -> ItemAnnotation | None: ...

    def save(self, key: ProfileKey, annotation: ItemAnnotation) -> None: ...

    def delete(self, key: ProfileKey, item_ids: Sequence[str]) -> int: ...

    def list(self, key: ProfileKey) -> list[ItemAnnotation]: ...


@runtime_checkable
class TrackedTriumphRepository(Protocol):
    def is_tracked(self, key: ProfileKey, record_hash: int) -> bool: ...

    def track(self, key: ProfileKey, record_hash: int) -> None: ...

    def untrack(self, key: ProfileKey, record_hash: int) -> bool: ...

    def list(self, key: ProfileKey) -> list[int]: ...


@runtime_checkable
class SearchRepository(Protocol):
    def get(self, key: ProfileKey, query: str) -> Search | None: ...

    def record_usage(self, key: ProfileKey, query: str, *, used_at: datetime) -> None:
        """Count one use of ``query``, creating it with a count of one when absent.

        The increment happens in the database so concurrent uses are never lost.
        """
        ...

    def mark_saved(self, key: ProfileKey, query: str, *, saved: bool) -> None:
        """Set the saved flag, creating the search unused when absent."""
        ...

    def list(self, key: ProfileKey) -> list[Search]: ...
