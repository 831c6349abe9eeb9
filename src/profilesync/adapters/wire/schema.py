"""Pydantic models describing the profile sync JSON payloads."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from profilesync.domain.model import DestinyClass, DestinyVersion, TagValue


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ItemAnnotationModel(WireModel):
    id: str
    tag: TagValue | None = None
    notes: str | None = None
    crafted_date: int | None = Field(default=None, alias="craftedDate")


class LoadoutItemModel(WireModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    hash: int
    amount: int | None = None
    socket_overrides: dict[int, int] | None = Field(default=None, alias="socketOverrides")


class LoadoutModel(WireModel):
    """Unknown fields are kept and stored as sent."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    notes: str | None = None
    class_type: DestinyClass = Field(alias="classType")
    emblem_hash: int | None = Field(default=None, alias="emblemHash")
    clear_space: bool = Field(default=False, alias="clearSpace")
    equipped: list[LoadoutItemModel] = Field(default_factory=list["LoadoutItemModel"])
    unequipped: list[LoadoutItemModel] = Field(default_factory=list["LoadoutItemModel"])
    parameters: dict[str, Any] | None = None
    auto_stat_mods: list[int] | None = Field(default=None, alias="autoStatMods")
    # epoch milliseconds; ignored on input
    created_at: int | None = Field(default=None, alias="createdAt")
    last_updated_at: int | None = Field(default=None, alias="lastUpdatedAt")


class TrackTriumphPayload(WireModel):
    record_hash: int = Field(alias="recordHash")
    tracked: bool


class UsedSearchPayload(WireModel):
    query: str


class SavedSearchPayload(WireModel):
    query: str
    saved: bool


class TagUpdateModel(WireModel):
    action: Literal["tag"]
    payload: ItemAnnotationModel


class TagCleanupUpdateModel(WireModel):
    action: Literal["tag_cleanup"]
    payload: list[str]


class SettingUpdateModel(WireModel):
    action: Literal["setting"]
    payload: dict[str, Any]


class LoadoutUpdateModel(WireModel):
    action: Literal["loadout"]
    payload: LoadoutModel


class DeleteLoadoutUpdateModel(WireModel):
    action: Literal["delete_loadout"]
    payload: str


class TrackTriumphUpdateModel(WireModel):
    action: Literal["track_triumph"]
    payload: TrackTriumphPayload


class UsedSearchUpdateModel(WireModel):
    action: Literal["search"]
    payload: UsedSearchPayload


class SavedSearchUpdateModel(WireModel):
    action: Literal["save_search"]
    payload: SavedSearchPayload


ProfileUpdateModel = Annotated[
    TagUpdateModel
    | TagCleanupUpdateModel
    | SettingUpdateModel
    | LoadoutUpdateModel
    | DeleteLoadoutUpdateModel
    | TrackTriumphUpdateModel
    | UsedSearchUpdateModel
    | SavedSearchUpdateModel,
    Field(discriminator="action"),
]

profile_update_adapter: TypeAdapter[ProfileUpdateModel] = TypeAdapter(ProfileUpdateModel)


class ProfileUpdateRequest(WireModel):
    """Batch envelope; updates stay raw so each one is parsed on its own."""

    platform_membership_id: str | None = Field(default=None, alias="platformMembershipId")
    destiny_version: DestinyVersion = Field(default=DestinyVersion.D2, alias="destinyVersion")
    updates: list[Any]


class ProfileUpdateResultModel(WireModel):
    status: str
    message: str | None = None


class ProfileUpdateResponse(WireModel):
    results: list[ProfileUpdateResultModel]


class SearchModel(WireModel):
    query: str
    usage_count: int = Field(alias="usageCount")
    saved: bool
    last_usage: int | None = Field(default=None, alias="lastUsage")


class ProfileResponse(WireModel):
    settings: dict[str, Any] | None = None
    loadouts: list[LoadoutModel] | None = None
    tags: list[ItemAnnotationModel] | None = None
    triumphs: list[int] | None = None
    searches: list[SearchModel] | None = None
