from __future__ import annotations

from datetime import timedelta

import pytest

from profilesync.adapters.wire import (
    InvalidRequestError,
    build_profile_response,
    build_update_response,
    dump_response,
    parse_update,
    parse_update_request,
    parse_updates,
    resolve_profile_key,
)
from profilesync.domain.errors import ValidationError
from profilesync.domain.model import (
    DestinyClass,
    DestinyVersion,
    ItemAnnotation,
    LoadoutItem,
    Search,
    TagValue,
    TrackedTriumph,
)
from profilesync.domain.profile_reads import ProfileSnapshot
from profilesync.domain.updates import (
    UNSET,
    DeleteLoadoutUpdate,
    LoadoutUpdate,
    OperationResult,
    RejectedUpdate,
    SavedSearchUpdate,
    SettingUpdate,
    TagCleanupUpdate,
    TagUpdate,
    TrackTriumphUpdate,
    UsedSearchUpdate,
)
from tests.helpers.profiles import DEFAULT_KEY, START, make_loadout


def test_request_envelope_defaults_to_destiny_2() -> None:
    request = parse_update_request({"platformMembershipId": "123", "updates": []})

    key = resolve_profile_key(request)

    assert key.platform_membership_id == "123"
    assert key.destiny_version is DestinyVersion.D2


def test_explicit_key_arguments_override_the_body() -> None:
    request = parse_update_request(
        {"platformMembershipId": "123", "destinyVersion": 2, "updates": []}
    )

    key = resolve_profile_key(
        request, platform_membership_id="456", destiny_version=DestinyVersion.D1
    )

    assert (key.platform_membership_id, key.destiny_version) == ("456", DestinyVersion.D1)


def test_missing_membership_id_is_an_invalid_request() -> None:
    request = parse_update_request({"updates": []})

    with pytest.raises(InvalidRequestError, match="membership id"):
        resolve_profile_key(request)


def test_overlong_membership_id_is_an_invalid_request() -> None:
    request = parse_update_request({"platformMembershipId": "9" * 33, "updates": []})

    with pytest.raises(InvalidRequestError, match="exceeds 32"):
        resolve_profile_key(request)


@pytest.mark.parametrize("payload", [[], {"updates": "nope"}, {"destinyVersion": 3, "updates": []}])
def test_malformed_envelope_is_an_invalid_request(payload: object) -> None:
    with pytest.raises(InvalidRequestError):
        parse_update_request(payload)


def test_tag_update_distinguishes_null_from_absent() -> None:
    update = parse_update({"action": "tag", "payload": {"id": "1", "tag": None}})

    assert isinstance(update, TagUpdate)
    assert update.annotation.tag is None
    assert update.annotation.notes is UNSET
    assert update.annotation.crafted_date is UNSET


def test_tag_update_with_all_fields() -> None:
    update = parse_update(
        {
            "action": "tag",
            "payload": {"id": "1", "tag": "favorite", "notes": "roll", "craftedDate": 1700},
        }
    )

    assert isinstance(update, TagUpdate)
    assert update.annotation.tag is TagValue.FAVORITE
    assert update.annotation.notes == "roll"
    assert update.annotation.crafted_date == 1700


def test_every_action_is_translated() -> None:
    raw_updates = [
        {"action": "tag_cleanup", "payload": ["1", "2"]},
        {"action": "setting", "payload": {"itemSize": 50}},
        {"action": "delete_loadout", "payload": "loadout-1"},
        {"action": "track_triumph", "payload": {"recordHash": 1234, "tracked": False}},
        {"action": "search", "payload": {"query": "is:weapon"}},
        {"action": "save_search", "payload": {"query": "is:weapon", "saved": True}},
    ]

    updates = parse_updates(
        parse_update_request({"platformMembershipId": "1", "updates": raw_updates})
    )

    assert updates == [
        TagCleanupUpdate(item_ids=["1", "2"]),
        SettingUpdate(settings={"itemSize": 50}),
        DeleteLoadoutUpdate(loadout_id="loadout-1"),
        TrackTriumphUpdate(triumph=TrackedTriumph(1234, False)),
        UsedSearchUpdate(query="is:weapon"),
        SavedSearchUpdate(query="is:weapon", saved=True),
    ]


def test_loadout_payload_ignores_client_timestamps() -> None:
    update = parse_update(
        {
            "action": "loadout",
            "payload": {
                "id": "l1",
                "name": "PvP Hunter",
                "classType": 1,
                "clearSpace": True,
                "equipped": [
                    {"id": "6917529535406042119", "hash": 1, "socketOverrides": {"2": 33}}
                ],
                "unequipped": [{"hash": 2, "amount": 4}],
                "parameters": {"query": "is:exotic"},
                "autoStatMods": [5],
                "createdAt": 1,
                "lastUpdatedAt": 2,
            },
        }
    )

    assert isinstance(update, LoadoutUpdate)
    loadout = update.loadout
    assert loadout.class_type is DestinyClass.HUNTER
    assert loadout.clear_space
    assert loadout.equipped == [
        LoadoutItem(hash=1, id="6917529535406042119", socket_overrides={2: 33})
    ]
    assert loadout.unequipped == [LoadoutItem(hash=2, amount=4)]
    assert loadout.parameters == {"query": "is:exotic"}
    assert loadout.auto_stat_mods == [5]
    assert loadout.created_at is None
    assert loadout.last_updated_at is None


@pytest.mark.parametrize(
    ("raw", "action"),
    [
        ({"action": "tag", "payload": {"tag": "keep"}}, "tag"),
        ({"action": "loadout", "payload": {"id": "l1", "name": "x", "classType": 9}}, "loadout"),
        ({"action": "track_triumph", "payload": {"recordHash": "abc", "tracked": True}}, None),
        ({"action": "teleport", "payload": {}}, None),
        ({"payload": {}}, None),
        ("not an object", None),
    ],
)
def test_malformed_update_becomes_rejected_in_place(raw: object, action: str | None) -> None:
    update = parse_update(raw)

    assert isinstance(update, RejectedUpdate)
    assert update.reason.startswith("Malformed")
    if action is not None:
        assert update.action == action


def test_update_response_omits_empty_messages() -> None:
    response = build_update_response(
        [OperationResult.success(), OperationResult.from_error(ValidationError("bad"))]
    )

    assert dump_response(response) == {
        "results": [{"status": "Success"}, {"status": "ValidationError", "message": "bad"}]
    }


def test_profile_response_uses_epoch_millis_and_camel_case() -> None:
    loadout = make_loadout(equipped=[LoadoutItem(hash=1, socket_overrides={0: 2})])
    loadout.created_at = START
    loadout.last_updated_at = START + timedelta(seconds=1)
    snapshot = ProfileSnapshot(
        key=DEFAULT_KEY,
        settings={"itemSize": 50},
        loadouts=[loadout],
        tags=[ItemAnnotation(id="1", tag=TagValue.JUNK, crafted_date=1700)],
        triumphs=[1, 2],
        searches=[Search(query="is:titan", usage_count=2, saved=True, last_used_at=START)],
    )

    body = dump_response(build_profile_response(snapshot))

    start_ms = int(START.timestamp() * 1000)
    assert body["settings"] == {"itemSize": 50}
    assert body["triumphs"] == [1, 2]
    assert body["tags"] == [{"id": "1", "tag": "junk", "craftedDate": 1700}]
    assert body["searches"] == [
        {"query": "is:titan", "usageCount": 2, "saved": True, "lastUsage": start_ms}
    ]
    [wire_loadout] = body["loadouts"]
    assert wire_loadout["classType"] == 0
    assert wire_loadout["createdAt"] == start_ms
    assert wire_loadout["lastUpdatedAt"] == start_ms + 1000
    assert wire_loadout["equipped"] == [{"hash": 1, "socketOverrides": {"0": 2}}]
    assert "notes" not in wire_loadout


def test_unknown_loadout_fields_are_kept_and_returned() -> None:
    update = parse_update(
        {
            "action": "loadout",
            "payload": {
                "id": "l1",
                "name": "Raid Titan",
                "classType": 0,
                "equipped": [{"hash": 1, "craftedDate": 1700}],
                "inGameIdentifiers": {"icon": 12},
                "createdAt": 1,
            },
        }
    )

    assert isinstance(update, LoadoutUpdate)
    loadout = update.loadout
    assert loadout.extra == {"inGameIdentifiers": {"icon": 12}}
    assert loadout.equipped == [LoadoutItem(hash=1, extra={"craftedDate": 1700})]

    loadout.created_at = loadout.last_updated_at = START
    snapshot = ProfileSnapshot(key=DEFAULT_KEY, loadouts=[loadout])
    body = dump_response(build_profile_response(snapshot))

    [wire_loadout] = body["loadouts"]
    assert wire_loadout["inGameIdentifiers"] == {"icon": 12}
    assert wire_loadout["equipped"] == [{"hash": 1, "craftedDate": 1700}]
    assert wire_loadout["createdAt"] == int(START.timestamp() * 1000)
