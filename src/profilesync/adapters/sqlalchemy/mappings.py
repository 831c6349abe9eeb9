"""SQLAlchemy table metadata for profile storage."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKeyConstraint,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from profilesync.domain.model import (
    MAX_ITEM_ID_LENGTH,
    MAX_LOADOUT_ID_LENGTH,
    MAX_MEMBERSHIP_ID_LENGTH,
    DestinyClass,
    DestinyVersion,
    TagValue,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JSONDocument(TypeDecorator[Any]):
    """JSON stored as text so payloads round-trip verbatim on every backend."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, separators=(",", ":"), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Any:
        _ = dialect
        if value is None:
            return None
        return json.loads(value)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _profile_columns() -> list[Column[Any]]:
    return [
        Column("platform_membership_id", String(MAX_MEMBERSHIP_ID_LENGTH), primary_key=True),
        Column(
            "destiny_version",
            Enum(DestinyVersion, native_enum=False, values_callable=_enum_values),
            primary_key=True,
        ),
    ]


def _profile_reference() -> ForeignKeyConstraint:
    return ForeignKeyConstraint(
        ["platform_membership_id", "destiny_version"],
        ["profile.platform_membership_id", "profile.destiny_version"],
        ondelete="CASCADE",
    )


def _enum_values(enum_cls: type[DestinyVersion | DestinyClass | TagValue]) -> list[str]:
    return [str(member.value) for member in enum_cls]


profile_table = Table(
    "profile",
    metadata,
    *_profile_columns(),
    Column("created_at", UTCDateTime(), nullable=False),
)

settings_table = Table(
    "settings",
    metadata,
    *_profile_columns(),
    Column("settings", JSONDocument(), nullable=False),
    _profile_reference(),
)

loadout_table = Table(
    "loadout",
    metadata,
    *_profile_columns(),
    Column("id", String(MAX_LOADOUT_ID_LENGTH), primary_key=True),
    Column("name", String, nullable=False),
    Column("notes", Text, nullable=True),
    Column(
        "class_type",
        Enum(DestinyClass, native_enum=False, values_callable=_enum_values),
        nullable=False,
    ),
    Column("emblem_hash", BigInteger, nullable=True),
    Column("clear_space", Boolean, nullable=False, default=False),
    Column("equipped", JSONDocument(), nullable=False),
    Column("unequipped", JSONDocument(), nullable=False),
    Column("parameters", JSONDocument(), nullable=True),
    Column("auto_stat_mods", JSONDocument(), nullable=True),
    Column("extra", JSONDocument(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("last_updated_at", UTCDateTime(), nullable=False),
    _profile_reference(),
)

item_annotation_table = Table(
    "item_annotation",
    metadata,
    *_profile_columns(),
    Column("inventory_item_id", String(MAX_ITEM_ID_LENGTH), primary_key=True),
    Column(
        "tag",
        Enum(TagValue, native_enum=False, values_callable=_enum_values),
        nullable=True,
    ),
    Column("notes", Text, nullable=True),
    Column("crafted_date", BigInteger, nullable=True),
    _profile_reference(),
)

tracked_triumph_table = Table(
    "tracked_triumph",
    metadata,
    *_profile_columns(),
    Column("record_hash", BigInteger, primary_key=True, autoincrement=False),
    _profile_reference(),
)

search_table = Table(
    "search",
    metadata,
    *_profile_columns(),
    Column("query", Text, primary_key=True),
    Column("usage_count", Integer, nullable=False, default=0),
    Column("saved", Boolean, nullable=False, default=False),
    Column("last_used_at", UTCDateTime(), nullable=True),
    _profile_reference(),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the profile metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
