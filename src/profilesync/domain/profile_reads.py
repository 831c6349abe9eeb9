"""Read a whole profile in one read-only transaction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from profilesync.domain.model import ItemAnnotation, Loadout, ProfileKey, Search, Settings
    from profilesync.domain.ports.unit_of_work import ProfileRepositories, StorageGateway


@dataclass(slots=True, kw_only=True)
class ProfileSnapshot:
    key: ProfileKey
    settings: Settings = field(default_factory=dict)
    loadouts: list[Loadout] = field(default_factory=list["Loadout"])
    tags: list[ItemAnnotation] = field(default_factory=list["ItemAnnotation"])
    triumphs: list[int] = field(default_factory=list)
    searches: list[Search] = field(default_factory=list["Search"])


def load_profile(gateway: StorageGateway, key: ProfileKey) -> ProfileSnapshot:
    """Return everything stored for ``key``; an unknown profile reads as empty."""

    def read(repositories: ProfileRepositories) -> ProfileSnapshot:
        loadouts = repositories.loadouts.list(key)
        loadouts.sort(
            key=lambda loadout: (loadout.last_updated_at is not None, loadout.last_updated_at),
            reverse=True,
        )
        return ProfileSnapshot(
            key=key,
            settings=dict(repositories.settings.get(key) or {}),
            loadouts=loadouts,
            tags=repositories.item_annotations.list(key),
            triumphs=sorted(repositories.tracked_triumphs.list(key)),
            searches=repositories.searches.list(key),
        )

    return gateway.run_read_only(read)
