"""Per-profile records: identity, item annotations, triumphs and searches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

    from profilesync.domain.model.enums import DestinyVersion, TagValue

type JsonValue = None | bool | int | float | str | list[JsonValue] | dict[str, JsonValue]
type Settings = dict[str, JsonValue]

# column widths of the stored identifiers
MAX_MEMBERSHIP_ID_LENGTH: Final[int] = 32
MAX_ITEM_ID_LENGTH: Final[int] = 32


@dataclass(frozen=True, slots=True)
class ProfileKey:
    """Composite identity of a profile; resolved and trusted before the core runs."""

    platform_membership_id: str
    destiny_version: DestinyVersion

    def __str__(self) -> str:
        return f"{self.platform_membership_id}/d{int(self.destiny_version)}"


@dataclass(slots=True, kw_only=True)
class ItemAnnotation:
    id: str
    tag: TagValue | None = None
    notes: str | None = None
    crafted_date: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.tag is None and not self.notes


@dataclass(frozen=True, slots=True)
class TrackedTriumph:
    record_hash: int
    tracked: bool


@dataclass(slots=True, kw_only=True)
class Search:
    query: str
    usage_count: int = 0
    saved: bool = False
    last_used_at: datetime | None = None
