from __future__ import annotations

from datetime import timedelta

from profilesync.domain.model import ItemAnnotation, Search, TagValue, TrackedTriumph
from profilesync.domain.profile_reads import load_profile
from profilesync.domain.updates import (
    BatchDispatcher,
    LoadoutUpdate,
    SettingUpdate,
    TrackTriumphUpdate,
)
from tests.helpers.profiles import DEFAULT_KEY, OTHER_KEY, START, SteppingClock, make_loadout
from tests.helpers.storage import FakeStorageGateway


def test_unknown_profile_reads_as_empty(fake_gateway: FakeStorageGateway) -> None:
    snapshot = load_profile(fake_gateway, DEFAULT_KEY)

    assert snapshot.settings == {}
    assert snapshot.loadouts == []
    assert snapshot.tags == []
    assert snapshot.triumphs == []
    assert snapshot.searches == []
    assert fake_gateway.read_only == 1
    assert fake_gateway.transactions == 0


def test_snapshot_orders_loadouts_and_triumphs(fake_gateway: FakeStorageGateway) -> None:
    dispatcher = BatchDispatcher(fake_gateway, clock=SteppingClock(step=timedelta(minutes=1)))
    dispatcher.apply_batch(
        DEFAULT_KEY,
        [
            LoadoutUpdate(loadout=make_loadout("older")),
            LoadoutUpdate(loadout=make_loadout("newer")),
            TrackTriumphUpdate(triumph=TrackedTriumph(30, True)),
            TrackTriumphUpdate(triumph=TrackedTriumph(10, True)),
            SettingUpdate(settings={"itemSize": 50}),
        ],
    )
    fake_gateway.state.annotations[(DEFAULT_KEY, "1")] = ItemAnnotation(id="1", tag=TagValue.KEEP)
    fake_gateway.state.searches[(OTHER_KEY, "is:titan")] = Search(query="is:titan", usage_count=1)

    snapshot = load_profile(fake_gateway, DEFAULT_KEY)

    assert [loadout.id for loadout in snapshot.loadouts] == ["newer", "older"]
    assert snapshot.loadouts[0].last_updated_at == START + timedelta(minutes=1)
    assert snapshot.triumphs == [10, 30]
    assert snapshot.settings == {"itemSize": 50}
    assert snapshot.tags == [ItemAnnotation(id="1", tag=TagValue.KEEP)]
    assert snapshot.searches == []
