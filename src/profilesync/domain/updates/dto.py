"""Profile update variants (source-agnostic).

Each variant carries an ``action`` discriminator so a batch can be handled as one
tagged union. ``RejectedUpdate`` stands in for a payload that could not even be
shaped into one of the variants; it keeps its slot in the batch so results stay
aligned with the request.
"""

# switch off type warnings because of default_factory=list
# pyright: reportUnknownVariableType=false

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final, Literal

from profilesync.domain.model import UpdateAction

if TYPE_CHECKING:
    from profilesync.domain.model import Loadout, Settings, TagValue, TrackedTriumph


class Unset(Enum):
    """Marks a patch field that the client did not send."""

    UNSET = "unset"


UNSET: Final = Unset.UNSET

type Patch[T] = T | Literal[Unset.UNSET]


@dataclass(slots=True, kw_only=True)
class ItemAnnotationPatch:
    """Annotation fields as sent by the client; ``None`` clears, ``UNSET`` keeps."""

    id: str
    tag: Patch[TagValue | None] = UNSET
    notes: Patch[str | None] = UNSET
    crafted_date: Patch[int | None] = UNSET


@dataclass(slots=True, kw_only=True)
class TagUpdate:
    annotation: ItemAnnotationPatch
    action: Literal[UpdateAction.TAG] = UpdateAction.TAG


@dataclass(slots=True, kw_only=True)
class TagCleanupUpdate:
    item_ids: list[str] = field(default_factory=list)
    action: Literal[UpdateAction.TAG_CLEANUP] = UpdateAction.TAG_CLEANUP


@dataclass(slots=True, kw_only=True)
class SettingUpdate:
    settings: Settings = field(default_factory=dict)
    action: Literal[UpdateAction.SETTING] = UpdateAction.SETTING


@dataclass(slots=True, kw_only=True)
class LoadoutUpdate:
    loadout: Loadout
    action: Literal[UpdateAction.LOADOUT] = UpdateAction.LOADOUT


@dataclass(slots=True, kw_only=True)
class DeleteLoadoutUpdate:
    loadout_id: str
    action: Literal[UpdateAction.DELETE_LOADOUT] = UpdateAction.DELETE_LOADOUT


@dataclass(slots=True, kw_only=True)
class TrackTriumphUpdate:
    triumph: TrackedTriumph
    action: Literal[UpdateAction.TRACK_TRIUMPH] = UpdateAction.TRACK_TRIUMPH


@dataclass(slots=True, kw_only=True)
class UsedSearchUpdate:
    """Record that a search was used."""

    query: str
    action: Literal[UpdateAction.SEARCH] = UpdateAction.SEARCH


@dataclass(slots=True, kw_only=True)
class SavedSearchUpdate:
    """Save or unsave a search, independently of its usage."""

    query: str
    saved: bool
    action: Literal[UpdateAction.SAVE_SEARCH] = UpdateAction.SAVE_SEARCH


@dataclass(slots=True, kw_only=True)
class RejectedUpdate:
    reason: str
    action: str | None = None


type ProfileUpdate = (
    TagUpdate
    | TagCleanupUpdate
    | SettingUpdate
    | LoadoutUpdate
    | DeleteLoadoutUpdate
    | TrackTriumphUpdate
    | UsedSearchUpdate
    | SavedSearchUpdate
)

type BatchEntry = ProfileUpdate | RejectedUpdate
