"""Public domain model surface."""

from __future__ import annotations

from profilesync.domain.model.enums import (
    AssumeArmorMasterwork,
    DestinyClass,
    DestinyVersion,
    LockArmorEnergyType,
    TagValue,
    UpdateAction,
    UpgradeSpendTier,
)
from profilesync.domain.model.loadouts import (
    DEFAULT_LOADOUT_PARAMETERS,
    MAX_LOADOUT_ID_LENGTH,
    MAX_STAT_TIER,
    MIN_STAT_TIER,
    Loadout,
    LoadoutItem,
    LoadoutParameters,
    StatConstraint,
    parse_loadout_parameters,
    resolve_loadout_parameters,
)
from profilesync.domain.model.profile import (
    MAX_ITEM_ID_LENGTH,
    MAX_MEMBERSHIP_ID_LENGTH,
    ItemAnnotation,
    JsonValue,
    ProfileKey,
    Search,
    Settings,
    TrackedTriumph,
)

__all__ = [
    "DEFAULT_LOADOUT_PARAMETERS",
    "MAX_ITEM_ID_LENGTH",
    "MAX_LOADOUT_ID_LENGTH",
    "MAX_MEMBERSHIP_ID_LENGTH",
    "MAX_STAT_TIER",
    "MIN_STAT_TIER",
    "AssumeArmorMasterwork",
    "DestinyClass",
    "DestinyVersion",
    "ItemAnnotation",
    "JsonValue",
    "Loadout",
    "LoadoutItem",
    "LoadoutParameters",
    "LockArmorEnergyType",
    "ProfileKey",
    "Search",
    "Settings",
    "StatConstraint",
    "TagValue",
    "TrackedTriumph",
    "UpdateAction",
    "UpgradeSpendTier",
    "parse_loadout_parameters",
    "resolve_loadout_parameters",
]
