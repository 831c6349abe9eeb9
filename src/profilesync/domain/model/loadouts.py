"""Loadouts and the typed view over their optimizer parameters.

The ``parameters`` payload of a loadout is stored verbatim. Code that needs to
interpret it goes through :func:`resolve_loadout_parameters`, which merges the
documented defaults explicitly and settles deprecated fields against their
replacements.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final, cast

from profilesync.domain.model.enums import (
    AssumeArmorMasterwork,
    DestinyClass,
    LockArmorEnergyType,
    UpgradeSpendTier,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from profilesync.domain.model.profile import JsonValue

MIN_STAT_TIER: Final[int] = 0
MAX_STAT_TIER: Final[int] = 10
MAX_LOADOUT_ID_LENGTH: Final[int] = 64


@dataclass(slots=True, kw_only=True)
class LoadoutItem:
    hash: int
    id: str | None = None
    amount: int | None = None
    socket_overrides: dict[int, int] | None = None
    # fields this service does not interpret, kept as sent
    extra: dict[str, JsonValue] | None = None


@dataclass(slots=True, kw_only=True)
class Loadout:
    id: str
    name: str
    class_type: DestinyClass = DestinyClass.UNKNOWN
    clear_space: bool = False
    notes: str | None = None
    emblem_hash: int | None = None
    equipped: list[LoadoutItem] = field(default_factory=list["LoadoutItem"])
    unequipped: list[LoadoutItem] = field(default_factory=list["LoadoutItem"])
    parameters: dict[str, JsonValue] | None = None
    auto_stat_mods: list[int] | None = None
    extra: dict[str, JsonValue] | None = None
    # managed by the server, never taken from the client
    created_at: datetime | None = None
    last_updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class StatConstraint:
    stat_hash: int
    min_tier: int = MIN_STAT_TIER
    max_tier: int = MAX_STAT_TIER


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadoutParameters:
    stat_constraints: tuple[StatConstraint, ...] | None = None
    mods: tuple[int, ...] | None = None
    mods_by_bucket: dict[int, tuple[int, ...]] | None = None
    auto_stat_mods: bool | None = None
    query: str | None = None
    assume_masterworked: bool | None = None  # deprecated: assume_armor_masterwork
    upgrade_spend_tier: UpgradeSpendTier | None = None  # deprecated: assume_armor_masterwork
    assume_armor_masterwork: AssumeArmorMasterwork | None = None
    exotic_armor_hash: int | None = None
    lock_item_energy_type: bool | None = None  # deprecated: lock_armor_energy_type
    lock_armor_energy_type: LockArmorEnergyType | None = None


DEFAULT_LOADOUT_PARAMETERS: Final[LoadoutParameters] = LoadoutParameters(
    stat_constraints=(
        StatConstraint(stat_hash=2996146975),  # Mobility
        StatConstraint(stat_hash=392767087),  # Resilience
        StatConstraint(stat_hash=1943323491),  # Recovery
        StatConstraint(stat_hash=1735777505),  # Discipline
        StatConstraint(stat_hash=144602215),  # Intellect
        StatConstraint(stat_hash=4244567218),  # Strength
    ),
    mods=(),
    assume_masterworked=False,
    upgrade_spend_tier=UpgradeSpendTier.NOTHING,
    lock_item_energy_type=False,
    auto_stat_mods=True,
)


def parse_loadout_parameters(payload: Mapping[str, object]) -> LoadoutParameters:
    """Build the typed view of a wire ``parameters`` mapping.

    Unknown keys are ignored. Raises ``ValueError`` for values of the wrong shape.
    """

    return LoadoutParameters(
        stat_constraints=_optional(payload, "statConstraints", _parse_stat_constraints),
        mods=_optional(payload, "mods", _parse_hash_list),
        mods_by_bucket=_optional(payload, "modsByBucket", _parse_mods_by_bucket),
        auto_stat_mods=_optional(payload, "autoStatMods", _parse_bool),
        query=_optional(payload, "query", _parse_str),
        assume_masterworked=_optional(payload, "assumeMasterworked", _parse_bool),
        upgrade_spend_tier=_optional(
            payload, "upgradeSpendTier", lambda value: UpgradeSpendTier(_parse_int(value))
        ),
        assume_armor_masterwork=_optional(
            payload, "assumeArmorMasterwork", lambda value: AssumeArmorMasterwork(_parse_int(value))
        ),
        exotic_armor_hash=_optional(payload, "exoticArmorHash", _parse_int),
        lock_item_energy_type=_optional(payload, "lockItemEnergyType", _parse_bool),
        lock_armor_energy_type=_optional(
            payload, "lockArmorEnergyType", lambda value: LockArmorEnergyType(_parse_int(value))
        ),
    )


def resolve_loadout_parameters(
    payload: Mapping[str, object] | LoadoutParameters | None,
) -> LoadoutParameters:
    """Return parameters with defaults applied and deprecated fields settled.

    Replacement fields always win over their deprecated counterparts. A deprecated
    field only contributes when its replacement is absent.
    """

    if payload is None:
        params = LoadoutParameters()
    elif isinstance(payload, LoadoutParameters):
        params = payload
    else:
        params = parse_loadout_parameters(payload)

    params = _migrate_deprecated(params)
    defaults = DEFAULT_LOADOUT_PARAMETERS
    return replace(
        params,
        stat_constraints=_first(params.stat_constraints, defaults.stat_constraints),
        mods=_first(params.mods, defaults.mods),
        auto_stat_mods=_first(params.auto_stat_mods, defaults.auto_stat_mods),
        assume_masterworked=_first(params.assume_masterworked, defaults.assume_masterworked),
        upgrade_spend_tier=_first(params.upgrade_spend_tier, defaults.upgrade_spend_tier),
        lock_item_energy_type=_first(params.lock_item_energy_type, defaults.lock_item_energy_type),
    )


def _migrate_deprecated(params: LoadoutParameters) -> LoadoutParameters:
    assume_armor_masterwork = params.assume_armor_masterwork
    if assume_armor_masterwork is None and params.assume_masterworked:
        assume_armor_masterwork = AssumeArmorMasterwork.ALL

    lock_armor_energy_type = params.lock_armor_energy_type
    if lock_armor_energy_type is None and params.lock_item_energy_type:
        lock_armor_energy_type = LockArmorEnergyType.ALL

    upgrade_spend_tier = params.upgrade_spend_tier
    if upgrade_spend_tier is UpgradeSpendTier.ASCENDANT_SHARDS_LOCK_ENERGY_TYPE:
        upgrade_spend_tier = UpgradeSpendTier.NOTHING

    return replace(
        params,
        assume_armor_masterwork=assume_armor_masterwork,
        lock_armor_energy_type=lock_armor_energy_type,
        upgrade_spend_tier=upgrade_spend_tier,
    )


def _first[T](value: T | None, default: T | None) -> T | None:
    return default if value is None else value


def _optional[T](
    payload: Mapping[str, object],
    key: str,
    parse: Callable[[object], T],
) -> T | None:
    value = payload.get(key)
    if value is None:
        return None
    try:
        return parse(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid loadout parameter {key!r}: {exc}") from exc


def _parse_bool(value: object) -> bool:
    if not isinstance(value, bool):
        raise TypeError("expected a boolean")
    return value


def _parse_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("expected an integer")
    return value


def _parse_str(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _parse_hash_list(value: object) -> tuple[int, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise TypeError("expected a list of hashes")
    return tuple(_parse_int(item) for item in cast(Sequence[object], value))


def _parse_mods_by_bucket(value: object) -> dict[int, tuple[int, ...]]:
    if not isinstance(value, Mapping):
        raise TypeError("expected a mapping of bucket hash to mods")
    mapping = cast(Mapping[object, object], value)
    return {int(str(bucket)): _parse_hash_list(mods) for bucket, mods in mapping.items()}


def _parse_stat_constraints(value: object) -> tuple[StatConstraint, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise TypeError("expected a list of stat constraints")
    constraints: list[StatConstraint] = []
    for raw in cast(Sequence[object], value):
        if not isinstance(raw, Mapping):
            raise TypeError("expected a stat constraint object")
        entry = cast(Mapping[str, object], raw)
        min_tier = entry.get("minTier")
        max_tier = entry.get("maxTier")
        constraints.append(
            StatConstraint(
                stat_hash=_parse_int(entry.get("statHash")),
                min_tier=MIN_STAT_TIER if min_tier is None else _parse_int(min_tier),
                max_tier=MAX_STAT_TIER if max_tier is None else _parse_int(max_tier),
            )
        )
    return tuple(constraints)
