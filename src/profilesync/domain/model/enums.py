"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class DestinyVersion(IntEnum):
    D1 = 1
    D2 = 2


class DestinyClass(IntEnum):
    TITAN = 0
    HUNTER = 1
    WARLOCK = 2
    UNKNOWN = 3


class TagValue(StrEnum):
    FAVORITE = "favorite"
    KEEP = "keep"
    INFUSE = "infuse"
    JUNK = "junk"
    ARCHIVE = "archive"


class UpdateAction(StrEnum):
    """Discriminator for the profile update variants."""

    TAG = "tag"
    TAG_CLEANUP = "tag_cleanup"
    SETTING = "setting"
    LOADOUT = "loadout"
    DELETE_LOADOUT = "delete_loadout"
    TRACK_TRIUMPH = "track_triumph"
    SEARCH = "search"
    SAVE_SEARCH = "save_search"


class UpgradeSpendTier(IntEnum):
    """The level of upgrades the user is willing to perform to fit mods or hit stats."""

    NOTHING = 0
    LEGENDARY_SHARDS = 1
    ENHANCEMENT_PRISMS = 2
    ASCENDANT_SHARDS_NOT_EXOTIC = 3
    ASCENDANT_SHARDS = 4
    ASCENDANT_SHARDS_NOT_MASTERWORKED = 5
    # deprecated: treated as NOTHING
    ASCENDANT_SHARDS_LOCK_ENERGY_TYPE = 6


class AssumeArmorMasterwork(IntEnum):
    LEGENDARY = 1
    ALL = 2


class LockArmorEnergyType(IntEnum):
    MASTERWORKED = 1
    ALL = 2
