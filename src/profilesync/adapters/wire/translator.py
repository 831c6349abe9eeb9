"""Translate wire payloads to domain updates and domain results back to the wire."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from functools import singledispatch
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from profilesync.domain.model import (
    MAX_MEMBERSHIP_ID_LENGTH,
    DestinyVersion,
    ItemAnnotation,
    Loadout,
    LoadoutItem,
    ProfileKey,
    Search,
    TrackedTriumph,
    UpdateAction,
)
from profilesync.domain.updates import (
    UNSET,
    DeleteLoadoutUpdate,
    ItemAnnotationPatch,
    LoadoutUpdate,
    ProfileUpdate,  # noqa: TC001
    RejectedUpdate,
    SavedSearchUpdate,
    SettingUpdate,
    TagCleanupUpdate,
    TagUpdate,
    TrackTriumphUpdate,
    UsedSearchUpdate,
)

from .schema import (
    DeleteLoadoutUpdateModel,
    ItemAnnotationModel,
    LoadoutItemModel,
    LoadoutModel,
    LoadoutUpdateModel,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    ProfileUpdateResultModel,
    SavedSearchUpdateModel,
    SearchModel,
    SettingUpdateModel,
    TagCleanupUpdateModel,
    TagUpdateModel,
    TrackTriumphUpdateModel,
    UsedSearchUpdateModel,
    profile_update_adapter,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from profilesync.domain.profile_reads import ProfileSnapshot
    from profilesync.domain.updates import BatchEntry, OperationResult

log = getLogger(__name__)

_MAX_REPORTED_ERRORS = 3


class InvalidRequestError(ValueError):
    """Raised when the batch envelope itself cannot be understood."""


def parse_update_request(payload: object) -> ProfileUpdateRequest:
    try:
        return ProfileUpdateRequest.model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidRequestError(f"Invalid profile update request: {_describe(exc)}") from exc


def resolve_profile_key(
    request: ProfileUpdateRequest,
    *,
    platform_membership_id: str | None = None,
    destiny_version: DestinyVersion | None = None,
) -> ProfileKey:
    """Build the profile key, letting explicit arguments override the request body."""

    membership_id = (platform_membership_id or request.platform_membership_id or "").strip()
    if not membership_id:
        raise InvalidRequestError("A platform membership id is required")
    if len(membership_id) > MAX_MEMBERSHIP_ID_LENGTH:
        raise InvalidRequestError(
            f"Platform membership id exceeds {MAX_MEMBERSHIP_ID_LENGTH} characters"
        )
    return ProfileKey(
        platform_membership_id=membership_id,
        destiny_version=destiny_version or request.destiny_version,
    )


def parse_updates(request: ProfileUpdateRequest) -> list[BatchEntry]:
    return [parse_update(raw) for raw in request.updates]


def parse_update(raw: object) -> BatchEntry:
    """Parse one raw update; a malformed one becomes a ``RejectedUpdate`` in place."""

    try:
        model = profile_update_adapter.validate_python(raw)
    except PydanticValidationError as exc:
        action = _raw_action(raw)
        log.debug("Malformed %s update: %s", action or "unknown", exc)
        return RejectedUpdate(
            reason=f"Malformed {action or 'profile'} update: {_describe(exc)}",
            action=action,
        )
    return _to_domain_update(model)


def build_update_response(results: Sequence[OperationResult]) -> ProfileUpdateResponse:
    return ProfileUpdateResponse(
        results=[
            ProfileUpdateResultModel(status=result.status.value, message=result.message)
            for result in results
        ]
    )


def build_profile_response(snapshot: ProfileSnapshot) -> ProfileResponse:
    return ProfileResponse(
        settings=dict(snapshot.settings),
        loadouts=[_loadout_to_model(loadout) for loadout in snapshot.loadouts],
        tags=[_annotation_to_model(annotation) for annotation in snapshot.tags],
        triumphs=list(snapshot.triumphs),
        searches=[_search_to_model(search) for search in snapshot.searches],
    )


def dump_response(response: ProfileUpdateResponse | ProfileResponse) -> dict[str, Any]:
    return response.model_dump(mode="json", by_alias=True, exclude_none=True)


@singledispatch
def _to_domain_update(model: object) -> ProfileUpdate:
    raise TypeError(f"Unsupported update model: {type(model).__name__}")


@_to_domain_update.register
def _(model: TagUpdateModel) -> ProfileUpdate:
    payload = model.payload
    sent = payload.model_fields_set
    return TagUpdate(
        annotation=ItemAnnotationPatch(
            id=payload.id,
            tag=payload.tag if "tag" in sent else UNSET,
            notes=payload.notes if "notes" in sent else UNSET,
            crafted_date=payload.crafted_date if "crafted_date" in sent else UNSET,
        )
    )


@_to_domain_update.register
def _(model: TagCleanupUpdateModel) -> ProfileUpdate:
    return TagCleanupUpdate(item_ids=list(model.payload))


@_to_domain_update.register
def _(model: SettingUpdateModel) -> ProfileUpdate:
    return SettingUpdate(settings=dict(model.payload))


@_to_domain_update.register
def _(model: LoadoutUpdateModel) -> ProfileUpdate:
    return LoadoutUpdate(loadout=_loadout_from_model(model.payload))


@_to_domain_update.register
def _(model: DeleteLoadoutUpdateModel) -> ProfileUpdate:
    return DeleteLoadoutUpdate(loadout_id=model.payload)


@_to_domain_update.register
def _(model: TrackTriumphUpdateModel) -> ProfileUpdate:
    payload = model.payload
    return TrackTriumphUpdate(
        triumph=TrackedTriumph(record_hash=payload.record_hash, tracked=payload.tracked)
    )


@_to_domain_update.register
def _(model: UsedSearchUpdateModel) -> ProfileUpdate:
    return UsedSearchUpdate(query=model.payload.query)


@_to_domain_update.register
def _(model: SavedSearchUpdateModel) -> ProfileUpdate:
    return SavedSearchUpdate(query=model.payload.query, saved=model.payload.saved)


def _loadout_from_model(model: LoadoutModel) -> Loadout:
    # createdAt / lastUpdatedAt are owned by the server
    return Loadout(
        id=model.id,
        name=model.name,
        notes=model.notes,
        class_type=model.class_type,
        emblem_hash=model.emblem_hash,
        clear_space=model.clear_space,
        equipped=[_item_from_model(item) for item in model.equipped],
        unequipped=[_item_from_model(item) for item in model.unequipped],
        parameters=model.parameters,
        auto_stat_mods=model.auto_stat_mods,
        extra=_extra_fields(model),
    )


def _item_from_model(model: LoadoutItemModel) -> LoadoutItem:
    return LoadoutItem(
        hash=model.hash,
        id=model.id,
        amount=model.amount,
        socket_overrides=None if model.socket_overrides is None else dict(model.socket_overrides),
        extra=_extra_fields(model),
    )


def _loadout_to_model(loadout: Loadout) -> LoadoutModel:
    return LoadoutModel(
        id=loadout.id,
        name=loadout.name,
        notes=loadout.notes,
        class_type=loadout.class_type,
        emblem_hash=loadout.emblem_hash,
        clear_space=loadout.clear_space,
        equipped=[_item_to_model(item) for item in loadout.equipped],
        unequipped=[_item_to_model(item) for item in loadout.unequipped],
        parameters=loadout.parameters,
        auto_stat_mods=loadout.auto_stat_mods,
        created_at=_to_epoch_millis(loadout.created_at),
        last_updated_at=_to_epoch_millis(loadout.last_updated_at),
        **(loadout.extra or {}),
    )


def _item_to_model(item: LoadoutItem) -> LoadoutItemModel:
    return LoadoutItemModel(
        id=item.id,
        hash=item.hash,
        amount=item.amount,
        socket_overrides=item.socket_overrides,
        **(item.extra or {}),
    )


def _extra_fields(model: LoadoutModel | LoadoutItemModel) -> dict[str, Any] | None:
    return dict(model.model_extra) if model.model_extra else None


def _annotation_to_model(annotation: ItemAnnotation) -> ItemAnnotationModel:
    return ItemAnnotationModel(
        id=annotation.id,
        tag=annotation.tag,
        notes=annotation.notes,
        crafted_date=annotation.crafted_date,
    )


def _search_to_model(search: Search) -> SearchModel:
    return SearchModel(
        query=search.query,
        usage_count=search.usage_count,
        saved=search.saved,
        last_usage=_to_epoch_millis(search.last_used_at),
    )


def _to_epoch_millis(value: datetime | None) -> int | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def _raw_action(raw: object) -> str | None:
    if not isinstance(raw, Mapping):
        return None
    action = raw.get("action")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    if isinstance(action, str) and action in UpdateAction:
        return action
    return None


def _describe(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    parts = [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in errors[:_MAX_REPORTED_ERRORS]
    ]
    if len(errors) > _MAX_REPORTED_ERRORS:
        parts.append(f"and {len(errors) - _MAX_REPORTED_ERRORS} more")
    return "; ".join(parts)
