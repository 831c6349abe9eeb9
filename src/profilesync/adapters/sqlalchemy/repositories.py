"""Repository implementations backed by SQLAlchemy sessions.

Writes are single-statement upserts keyed on the primary key, so two
transactions creating the same row settle as last write wins instead of one of
them failing on a duplicate key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import and_, case, delete, insert, literal, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from profilesync.adapters.sqlalchemy.mappings import (
    UTCDateTime,
    item_annotation_table,
    loadout_table,
    profile_table,
    search_table,
    settings_table,
    tracked_triumph_table,
)
from profilesync.domain.model import (
    DestinyClass,
    ItemAnnotation,
    Loadout,
    LoadoutItem,
    Search,
    TagValue,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement, Row, Table
    from sqlalchemy.orm import Session

    from profilesync.domain.model import ProfileKey, Settings

_NATIVE_UPSERTS: Final[dict[str, Callable[[Table], Any]]] = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}
_ITEM_KEYS: Final = frozenset({"hash", "id", "amount", "socketOverrides"})


def _profile_filter(table: Table, key: ProfileKey) -> ColumnElement[bool]:
    return and_(
        table.c.platform_membership_id == key.platform_membership_id,
        table.c.destiny_version == key.destiny_version,
    )


def _profile_values(key: ProfileKey) -> dict[str, object]:
    return {
        "platform_membership_id": key.platform_membership_id,
        "destiny_version": key.destiny_version,
    }


class SqlAlchemyProfileRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, key: ProfileKey) -> bool:
        stmt = select(profile_table.c.created_at).where(_profile_filter(profile_table, key))
        return self.session.execute(stmt).first() is not None

    def ensure(self, key: ProfileKey, *, now: datetime) -> bool:
        values = {**_profile_values(key), "created_at": now}
        return _upsert(self.session, profile_table, values) > 0


class SqlAlchemySettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: ProfileKey) -> Settings | None:
        stmt = select(settings_table.c.settings).where(_profile_filter(settings_table, key))
        return self.session.execute(stmt).scalar_one_or_none()

    def save(self, key: ProfileKey, settings: Settings) -> None:
        _upsert(
            self.session,
            settings_table,
            {**_profile_values(key), "settings": settings},
            on_conflict={"settings": settings},
        )


class SqlAlchemyLoadoutRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: ProfileKey, loadout_id: str) -> Loadout | None:
        stmt = select(loadout_table).where(
            _profile_filter(loadout_table, key), loadout_table.c.id == loadout_id
        )
        row = self.session.execute(stmt).first()
        return None if row is None else _loadout_from_row(row)

    def save(self, key: ProfileKey, loadout: Loadout) -> None:
        values = _loadout_values(loadout)
        replaced = {name: value for name, value in values.items() if name != "created_at"}
        _upsert(
            self.session,
            loadout_table,
            {**_profile_values(key), "id": loadout.id, **values},
            on_conflict=replaced,
        )

    def delete(self, key: ProfileKey, loadout_id: str) -> bool:
        stmt = delete(loadout_table).where(
            _profile_filter(loadout_table, key), loadout_table.c.id == loadout_id
        )
        return _rowcount(self.session.execute(stmt)) > 0

    def list(self, key: ProfileKey) -> list[Loadout]:
        stmt = (
            select(loadout_table)
            .where(_profile_filter(loadout_table, key))
            .order_by(loadout_table.c.id)
        )
        return [_loadout_from_row(row) for row in self.session.execute(stmt)]


class SqlAlchemyItemAnnotationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: ProfileKey, item_id: str) -> ItemAnnotation | None:
        stmt = select(item_annotation_table).where(
            _profile_filter(item_annotation_table, key),
            item_annotation_table.c.inventory_item_id == item_id,
        )
        row = self.session.execute(stmt).first()
        return None if row is None else _annotation_from_row(row)

    def save(self, key: ProfileKey, annotation: ItemAnnotation) -> None:
        values = {
            "tag": annotation.tag,
            "notes": annotation.notes,
            "crafted_date": annotation.crafted_date,
        }
        _upsert(
            self.session,
            item_annotation_table,
            {**_profile_values(key), "inventory_item_id": annotation.id, **values},
            on_conflict=values,
        )

    def delete(self, key: ProfileKey, item_ids: Sequence[str]) -> int:
        if not item_ids:
            return 0
        stmt = delete(item_annotation_table).where(
            _profile_filter(item_annotation_table, key),
            item_annotation_table.c.inventory_item_id.in_(list(item_ids)),
        )
        return _rowcount(self.session.execute(stmt))

    def list(self, key: ProfileKey) -> list[ItemAnnotation]:
        stmt = (
            select(item_annotation_table)
            .where(_profile_filter(item_annotation_table, key))
            .order_by(item_annotation_table.c.inventory_item_id)
        )
        return [_annotation_from_row(row) for row in self.session.execute(stmt)]


class SqlAlchemyTrackedTriumphRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def is_tracked(self, key: ProfileKey, record_hash: int) -> bool:
        stmt = select(tracked_triumph_table.c.record_hash).where(
            _profile_filter(tracked_triumph_table, key),
            tracked_triumph_table.c.record_hash == record_hash,
        )
        return self.session.execute(stmt).first() is not None

    def track(self, key: ProfileKey, record_hash: int) -> None:
        _upsert(
            self.session,
            tracked_triumph_table,
            {**_profile_values(key), "record_hash": record_hash},
        )

    def untrack(self, key: ProfileKey, record_hash: int) -> bool:
        stmt = delete(tracked_triumph_table).where(
            _profile_filter(tracked_triumph_table, key),
            tracked_triumph_table.c.record_hash == record_hash,
        )
        return _rowcount(self.session.execute(stmt)) > 0

    def list(self, key: ProfileKey) -> list[int]:
        stmt = select(tracked_triumph_table.c.record_hash).where(
            _profile_filter(tracked_triumph_table, key)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySearchRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: ProfileKey, query: str) -> Search | None:
        stmt = select(search_table).where(
            _profile_filter(search_table, key), search_table.c.query == query
        )
        row = self.session.execute(stmt).first()
        return None if row is None else _search_from_row(row)

    def record_usage(self, key: ProfileKey, query: str, *, used_at: datetime) -> None:
        stamp = literal(used_at, type_=UTCDateTime())
        last_used = search_table.c.last_used_at
        _upsert(
            self.session,
            search_table,
            {
                **_profile_values(key),
                "query": query,
                "usage_count": 1,
                "saved": False,
                "last_used_at": used_at,
            },
            on_conflict={
                "usage_count": search_table.c.usage_count + 1,
                # never move the last use backwards
                "last_used_at": case(
                    (last_used.is_(None), stamp), (last_used < stamp, stamp), else_=last_used
                ),
            },
        )

    def mark_saved(self, key: ProfileKey, query: str, *, saved: bool) -> None:
        _upsert(
            self.session,
            search_table,
            {
                **_profile_values(key),
                "query": query,
                "usage_count": 0,
                "saved": saved,
                "last_used_at": None,
            },
            on_conflict={"saved": saved},
        )

    def list(self, key: ProfileKey) -> list[Search]:
        stmt = (
            select(search_table)
            .where(_profile_filter(search_table, key))
            .order_by(search_table.c.usage_count.desc(), search_table.c.query)
        )
        return [_search_from_row(row) for row in self.session.execute(stmt)]


def _upsert(
    session: Session,
    table: Table,
    values: Mapping[str, object],
    *,
    on_conflict: Mapping[str, object] | None = None,
) -> int:
    """Insert ``values``, or apply ``on_conflict`` to the row with the same primary key.

    Without ``on_conflict`` an existing row is left untouched. Returns the number of
    rows written.
    """

    keys = [column.name for column in table.primary_key.columns]
    make_insert = _NATIVE_UPSERTS.get(session.get_bind().dialect.name)
    if make_insert is None:
        return _update_or_insert(session, table, values, keys, on_conflict)
    stmt = make_insert(table).values(**values)
    if on_conflict:
        stmt = stmt.on_conflict_do_update(index_elements=keys, set_=dict(on_conflict))
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=keys)
    return _rowcount(session.execute(stmt))


def _update_or_insert(
    session: Session,
    table: Table,
    values: Mapping[str, object],
    keys: Sequence[str],
    on_conflict: Mapping[str, object] | None,
) -> int:
    # dialects without ON CONFLICT: concurrent first writes may still collide
    where = and_(*(table.c[name] == values[name] for name in keys))
    if on_conflict:
        updated = _rowcount(session.execute(update(table).where(where).values(**on_conflict)))
        if updated:
            return updated
    elif session.execute(select(*table.primary_key.columns).where(where)).first() is not None:
        return 0
    return _rowcount(session.execute(insert(table).values(**values)))


def _rowcount(result: object) -> int:
    return cast(int, getattr(result, "rowcount", 0))


def _loadout_values(loadout: Loadout) -> dict[str, object]:
    return {
        "name": loadout.name,
        "notes": loadout.notes,
        "class_type": loadout.class_type,
        "emblem_hash": loadout.emblem_hash,
        "clear_space": loadout.clear_space,
        "equipped": [_item_to_document(item) for item in loadout.equipped],
        "unequipped": [_item_to_document(item) for item in loadout.unequipped],
        "parameters": loadout.parameters,
        "auto_stat_mods": loadout.auto_stat_mods,
        "extra": loadout.extra,
        "created_at": loadout.created_at,
        "last_updated_at": loadout.last_updated_at,
    }


def _item_to_document(item: LoadoutItem) -> dict[str, Any]:
    document: dict[str, Any] = dict(item.extra or {})
    document["hash"] = item.hash
    if item.id is not None:
        document["id"] = item.id
    if item.amount is not None:
        document["amount"] = item.amount
    if item.socket_overrides is not None:
        # JSON object keys are strings
        document["socketOverrides"] = {
            str(index): plug for index, plug in item.socket_overrides.items()
        }
    return document


def _item_from_document(document: Mapping[str, Any]) -> LoadoutItem:
    overrides = document.get("socketOverrides")
    extra = {name: value for name, value in document.items() if name not in _ITEM_KEYS}
    return LoadoutItem(
        hash=int(document["hash"]),
        id=document.get("id"),
        amount=document.get("amount"),
        socket_overrides=(
            None
            if overrides is None
            else {int(index): int(plug) for index, plug in overrides.items()}
        ),
        extra=extra or None,
    )


def _loadout_from_row(row: Row[Any]) -> Loadout:
    mapping = row._mapping  # noqa: SLF001
    return Loadout(
        id=mapping["id"],
        name=mapping["name"],
        notes=mapping["notes"],
        class_type=DestinyClass(mapping["class_type"]),
        emblem_hash=mapping["emblem_hash"],
        clear_space=bool(mapping["clear_space"]),
        equipped=[_item_from_document(item) for item in mapping["equipped"]],
        unequipped=[_item_from_document(item) for item in mapping["unequipped"]],
        parameters=mapping["parameters"],
        auto_stat_mods=mapping["auto_stat_mods"],
        extra=mapping["extra"],
        created_at=mapping["created_at"],
        last_updated_at=mapping["last_updated_at"],
    )


def _annotation_from_row(row: Row[Any]) -> ItemAnnotation:
    mapping = row._mapping  # noqa: SLF001
    tag = mapping["tag"]
    return ItemAnnotation(
        id=mapping["inventory_item_id"],
        tag=None if tag is None else TagValue(tag),
        notes=mapping["notes"],
        crafted_date=mapping["crafted_date"],
    )


def _search_from_row(row: Row[Any]) -> Search:
    mapping = row._mapping  # noqa: SLF001
    return Search(
        query=mapping["query"],
        usage_count=mapping["usage_count"],
        saved=bool(mapping["saved"]),
        last_used_at=mapping["last_used_at"],
    )


if TYPE_CHECKING:
    from profilesync.domain.ports.persistence import (
        ItemAnnotationRepository,
        LoadoutRepository,
        ProfileRepository,
        SearchRepository,
        SettingsRepository,
        TrackedTriumphRepository,
    )

    _session_stub = cast("Session", object())
    _profile_repo: ProfileRepository = SqlAlchemyProfileRepository(_session_stub)
    _settings_repo: SettingsRepository = SqlAlchemySettingsRepository(_session_stub)
    _loadout_repo: LoadoutRepository = SqlAlchemyLoadoutRepository(_session_stub)
    _annotation_repo: ItemAnnotationRepository = SqlAlchemyItemAnnotationRepository(_session_stub)
    _triumph_repo: TrackedTriumphRepository = SqlAlchemyTrackedTriumphRepository(_session_stub)
    _search_repo: SearchRepository = SqlAlchemySearchRepository(_session_stub)
