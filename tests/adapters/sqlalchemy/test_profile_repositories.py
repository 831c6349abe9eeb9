from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from profilesync.domain.model import (
    DestinyClass,
    ItemAnnotation,
    LoadoutItem,
    Search,
    TagValue,
)
from tests.helpers.profiles import DEFAULT_KEY, OTHER_KEY, START, make_loadout

if TYPE_CHECKING:
    from profilesync.adapters.sqlalchemy import SqlAlchemyStorage

KEY = DEFAULT_KEY


def test_profile_row_is_created_once(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        profiles = uow.repositories.profiles
        assert not profiles.exists(KEY)
        assert profiles.ensure(KEY, now=START)
        assert not profiles.ensure(KEY, now=START + timedelta(hours=1))
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.profiles.exists(KEY)
        assert not uow.repositories.profiles.exists(OTHER_KEY)


def test_settings_round_trip_nested_json(sqlite_storage: SqlAlchemyStorage) -> None:
    settings = {"itemSize": 50, "collapsedSections": {"inventory": True}, "wishListSource": None}
    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        assert uow.repositories.settings.get(KEY) is None
        uow.repositories.settings.save(KEY, settings)
        uow.repositories.settings.save(KEY, {**settings, "itemSize": 48})
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.settings.get(KEY) == {**settings, "itemSize": 48}


def test_loadout_upsert_preserves_items_and_timestamps(sqlite_storage: SqlAlchemyStorage) -> None:
    loadout = make_loadout(
        class_type=DestinyClass.WARLOCK,
        equipped=[
            LoadoutItem(hash=3260753130, id="6917529535406042119", socket_overrides={0: 11, 7: 12}),
            LoadoutItem(hash=1, amount=5),
        ],
        unequipped=[LoadoutItem(hash=2)],
        parameters={"statConstraints": [{"statHash": 144602215, "minTier": 4}]},
        notes="for raids",
    )
    loadout.emblem_hash = 4_294_967_295
    loadout.auto_stat_mods = [1, 2]
    loadout.created_at = START
    loadout.last_updated_at = START + timedelta(seconds=1)

    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        uow.repositories.loadouts.save(KEY, loadout)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        stored = uow.repositories.loadouts.get(KEY, loadout.id)

    assert stored == loadout
    assert stored is not None
    assert stored.created_at is not None
    assert stored.created_at.tzinfo is not None


def test_loadouts_are_scoped_per_profile(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        for key in (KEY, OTHER_KEY):
            uow.repositories.profiles.ensure(key, now=START)
        mine = make_loadout("shared-id", name="mine")
        mine.created_at = mine.last_updated_at = START
        theirs = make_loadout("shared-id", name="theirs")
        theirs.created_at = theirs.last_updated_at = START
        uow.repositories.loadouts.save(KEY, mine)
        uow.repositories.loadouts.save(OTHER_KEY, theirs)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.loadouts.delete(KEY, "shared-id")
        assert not uow.repositories.loadouts.delete(KEY, "shared-id")
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.loadouts.list(KEY) == []
        assert [loadout.name for loadout in uow.repositories.loadouts.list(OTHER_KEY)] == ["theirs"]


def test_item_annotations_upsert_and_bulk_delete(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        repo = uow.repositories.item_annotations
        uow.repositories.profiles.ensure(KEY, now=START)
        repo.save(KEY, ItemAnnotation(id="1", tag=TagValue.KEEP))
        repo.save(KEY, ItemAnnotation(id="1", tag=TagValue.JUNK, notes="dupe", crafted_date=1700))
        repo.save(KEY, ItemAnnotation(id="2", notes="only notes"))
        repo.save(KEY, ItemAnnotation(id="3", tag=TagValue.ARCHIVE))
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        repo = uow.repositories.item_annotations
        assert repo.get(KEY, "1") == ItemAnnotation(
            id="1", tag=TagValue.JUNK, notes="dupe", crafted_date=1700
        )
        assert repo.delete(KEY, ["1", "3", "404"]) == 2
        assert repo.delete(KEY, []) == 0
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.item_annotations.list(KEY) == [
            ItemAnnotation(id="2", notes="only notes")
        ]


def test_tracked_triumphs(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        repo = uow.repositories.tracked_triumphs
        uow.repositories.profiles.ensure(KEY, now=START)
        repo.track(KEY, 3_000_000_000)
        repo.track(KEY, 5)
        assert repo.is_tracked(KEY, 5)
        assert repo.untrack(KEY, 5)
        assert not repo.untrack(KEY, 5)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.tracked_triumphs.list(KEY) == [3_000_000_000]


def test_searches_are_listed_by_usage(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        repo = uow.repositories.searches
        uow.repositories.profiles.ensure(KEY, now=START)
        repo.record_usage(KEY, "is:titan", used_at=START)
        for _ in range(3):
            repo.record_usage(KEY, "is:hunter", used_at=START)
        repo.mark_saved(KEY, "is:hunter", saved=True)
        repo.record_usage(KEY, "is:titan", used_at=START - timedelta(days=1))
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        searches = uow.repositories.searches.list(KEY)

    assert [(search.query, search.usage_count) for search in searches] == [
        ("is:hunter", 3),
        ("is:titan", 2),
    ]
    assert searches[0].saved
    assert searches[1].last_used_at == START


def test_saving_an_unused_search_creates_it_without_usage(
    sqlite_storage: SqlAlchemyStorage,
) -> None:
    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        uow.repositories.searches.mark_saved(KEY, "is:exotic", saved=True)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.searches.get(KEY, "is:exotic") == Search(
            query="is:exotic", usage_count=0, saved=True, last_used_at=None
        )


def test_replacing_a_loadout_keeps_its_created_at(sqlite_storage: SqlAlchemyStorage) -> None:
    first = make_loadout(name="first")
    first.created_at = first.last_updated_at = START
    second = make_loadout(name="second")
    second.created_at = second.last_updated_at = START + timedelta(hours=1)

    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        uow.repositories.loadouts.save(KEY, first)
        uow.repositories.loadouts.save(KEY, second)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        stored = uow.repositories.loadouts.get(KEY, first.id)

    assert stored is not None
    assert stored.name == "second"
    assert stored.created_at == START
    assert stored.last_updated_at == START + timedelta(hours=1)


def test_unknown_loadout_fields_are_kept(sqlite_storage: SqlAlchemyStorage) -> None:
    loadout = make_loadout(equipped=[LoadoutItem(hash=7, extra={"craftedDate": 1700})])
    loadout.extra = {"inGameIdentifiers": {"icon": 12}}
    loadout.created_at = loadout.last_updated_at = START

    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        uow.repositories.loadouts.save(KEY, loadout)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.loadouts.get(KEY, loadout.id) == loadout


def test_tracking_twice_is_a_no_op(sqlite_storage: SqlAlchemyStorage) -> None:
    with sqlite_storage.unit_of_work() as uow:
        uow.repositories.profiles.ensure(KEY, now=START)
        uow.repositories.tracked_triumphs.track(KEY, 42)
        uow.repositories.tracked_triumphs.track(KEY, 42)
        uow.commit()

    with sqlite_storage.unit_of_work() as uow:
        assert uow.repositories.tracked_triumphs.list(KEY) == [42]
