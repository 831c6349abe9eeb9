"""Kind-specific payload checks, run before any transaction is opened."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import singledispatch
from typing import TYPE_CHECKING, Final

from profilesync.domain.errors import ValidationError
from profilesync.domain.model import (
    MAX_ITEM_ID_LENGTH,
    MAX_LOADOUT_ID_LENGTH,
    MAX_STAT_TIER,
    MIN_STAT_TIER,
    resolve_loadout_parameters,
)

from .dto import (
    UNSET,
    DeleteLoadoutUpdate,
    LoadoutUpdate,
    RejectedUpdate,
    SavedSearchUpdate,
    SettingUpdate,
    TagCleanupUpdate,
    TagUpdate,
    TrackTriumphUpdate,
    UsedSearchUpdate,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from profilesync.domain.model import LoadoutItem

DEFAULT_MAX_LOADOUT_NAME_LENGTH: Final[int] = 120
DEFAULT_MAX_LOADOUT_NOTES_LENGTH: Final[int] = 2048
DEFAULT_MAX_LOADOUT_ITEMS: Final[int] = 50
DEFAULT_MAX_TAG_NOTES_LENGTH: Final[int] = 1024
DEFAULT_MAX_SEARCH_QUERY_LENGTH: Final[int] = 2048


@dataclass(frozen=True, slots=True)
class UpdateLimits:
    max_loadout_name_length: int = DEFAULT_MAX_LOADOUT_NAME_LENGTH
    max_loadout_notes_length: int = DEFAULT_MAX_LOADOUT_NOTES_LENGTH
    max_loadout_items: int = DEFAULT_MAX_LOADOUT_ITEMS
    max_tag_notes_length: int = DEFAULT_MAX_TAG_NOTES_LENGTH
    max_search_query_length: int = DEFAULT_MAX_SEARCH_QUERY_LENGTH
    # must not exceed the stored column widths
    max_item_id_length: int = MAX_ITEM_ID_LENGTH
    max_loadout_id_length: int = MAX_LOADOUT_ID_LENGTH


@singledispatch
def validate_update(update: object, limits: UpdateLimits) -> None:
    """Raise ``ValidationError`` if ``update`` cannot be applied as sent."""

    _ = limits
    raise TypeError(f"Unsupported profile update: {type(update).__name__}")


@validate_update.register
def _(update: RejectedUpdate, limits: UpdateLimits) -> None:
    _ = limits
    raise ValidationError(update.reason)


@validate_update.register
def _(update: TagUpdate, limits: UpdateLimits) -> None:
    annotation = update.annotation
    _require_id(annotation.id, "Item instance id", limits.max_item_id_length)
    notes = annotation.notes
    if notes is not UNSET and notes is not None and len(notes) > limits.max_tag_notes_length:
        raise ValidationError(
            f"Notes for item {annotation.id} exceed {limits.max_tag_notes_length} characters"
        )


@validate_update.register
def _(update: TagCleanupUpdate, limits: UpdateLimits) -> None:
    if not update.item_ids:
        raise ValidationError("Tag cleanup requires at least one item instance id")
    for item_id in update.item_ids:
        _require_id(item_id, "Item instance id", limits.max_item_id_length)


@validate_update.register
def _(update: SettingUpdate, limits: UpdateLimits) -> None:
    _ = limits
    if not isinstance(update.settings, Mapping):
        raise ValidationError("Settings payload must be an object")
    if any(not isinstance(name, str) or not name for name in update.settings):
        raise ValidationError("Setting names must be non-empty strings")


@validate_update.register
def _(update: LoadoutUpdate, limits: UpdateLimits) -> None:
    loadout = update.loadout
    _require_id(loadout.id, "Loadout id", limits.max_loadout_id_length)
    _require_text(loadout.name, "Loadout name")
    if len(loadout.name) > limits.max_loadout_name_length:
        raise ValidationError(
            f"Loadout name exceeds {limits.max_loadout_name_length} characters"
        )
    if loadout.notes is not None and len(loadout.notes) > limits.max_loadout_notes_length:
        raise ValidationError(
            f"Loadout notes exceed {limits.max_loadout_notes_length} characters"
        )
    if loadout.emblem_hash is not None and loadout.emblem_hash <= 0:
        raise ValidationError("Loadout emblem hash must be positive")
    _validate_items(loadout.equipped, "equipped", limits)
    _validate_items(loadout.unequipped, "unequipped", limits)
    if loadout.auto_stat_mods is not None and any(mod <= 0 for mod in loadout.auto_stat_mods):
        raise ValidationError("Loadout auto stat mods must be positive hashes")
    _validate_parameters(loadout.parameters)


@validate_update.register
def _(update: DeleteLoadoutUpdate, limits: UpdateLimits) -> None:
    _require_id(update.loadout_id, "Loadout id", limits.max_loadout_id_length)


@validate_update.register
def _(update: TrackTriumphUpdate, limits: UpdateLimits) -> None:
    _ = limits
    if update.triumph.record_hash <= 0:
        raise ValidationError("Record hash must be a positive integer")


@validate_update.register
def _(update: UsedSearchUpdate, limits: UpdateLimits) -> None:
    _validate_query(update.query, limits)


@validate_update.register
def _(update: SavedSearchUpdate, limits: UpdateLimits) -> None:
    _validate_query(update.query, limits)


def _require_text(value: str, label: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{label} is required")


def _require_id(value: str, label: str, max_length: int) -> None:
    _require_text(value, label)
    if len(value) > max_length:
        raise ValidationError(f"{label} exceeds {max_length} characters")


def _validate_query(query: str, limits: UpdateLimits) -> None:
    _require_text(query, "Search query")
    if len(query) > limits.max_search_query_length:
        raise ValidationError(
            f"Search query exceeds {limits.max_search_query_length} characters"
        )


def _validate_items(items: Sequence[LoadoutItem], label: str, limits: UpdateLimits) -> None:
    if len(items) > limits.max_loadout_items:
        raise ValidationError(
            f"Loadout has more than {limits.max_loadout_items} {label} items"
        )
    for position, item in enumerate(items):
        where = f"{label}[{position}]"
        if item.hash <= 0:
            raise ValidationError(f"Loadout item {where} needs a positive definition hash")
        if item.id is not None and not item.id.isdigit():
            raise ValidationError(f"Loadout item {where} has a non-numeric instance id")
        if item.amount is not None and item.amount < 0:
            raise ValidationError(f"Loadout item {where} has a negative amount")
        if item.socket_overrides and any(index < 0 for index in item.socket_overrides):
            raise ValidationError(f"Loadout item {where} has a negative socket index")


def _validate_parameters(parameters: Mapping[str, object] | None) -> None:
    try:
        resolved = resolve_loadout_parameters(parameters)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    for constraint in resolved.stat_constraints or ():
        if not MIN_STAT_TIER <= constraint.min_tier <= constraint.max_tier <= MAX_STAT_TIER:
            raise ValidationError(
                f"Stat constraint for {constraint.stat_hash} has an invalid tier range"
            )
