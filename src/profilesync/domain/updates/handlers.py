"""Apply one validated profile update against transactional repositories.

Handlers are idempotent under retry of the same update. They run inside the
transaction opened for their update and see everything earlier updates in the
same batch committed.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime  # noqa: TC003
from functools import singledispatch
from logging import getLogger

from profilesync.domain.model import ItemAnnotation, ProfileKey
from profilesync.domain.ports.unit_of_work import ProfileRepositories  # noqa: TC001

from .dto import (
    UNSET,
    DeleteLoadoutUpdate,
    ItemAnnotationPatch,
    LoadoutUpdate,
    SavedSearchUpdate,
    SettingUpdate,
    TagCleanupUpdate,
    TagUpdate,
    TrackTriumphUpdate,
    UsedSearchUpdate,
)

log = getLogger(__name__)


@singledispatch
def apply_update(
    update: object,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    _ = (repositories, key, now)
    raise TypeError(f"Unsupported profile update: {type(update).__name__}")


@apply_update.register
def _(
    update: TagUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    patch = update.annotation
    existing = repositories.item_annotations.get(key, patch.id)
    annotation = _patch_annotation(existing or ItemAnnotation(id=patch.id), patch)
    if annotation.is_empty:
        # nothing left worth keeping
        repositories.item_annotations.delete(key, [patch.id])
        return
    repositories.item_annotations.save(key, annotation)


@apply_update.register
def _(
    update: TagCleanupUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    deleted = repositories.item_annotations.delete(key, update.item_ids)
    log.debug("Tag cleanup for %s removed %s of %s", key, deleted, len(update.item_ids))


@apply_update.register
def _(
    update: SettingUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    merged = dict(repositories.settings.get(key) or {})
    merged.update(update.settings)
    repositories.settings.save(key, merged)


@apply_update.register
def _(
    update: LoadoutUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    existing = repositories.loadouts.get(key, update.loadout.id)
    created_at = now if existing is None or existing.created_at is None else existing.created_at
    last_updated_at = max(now, created_at)
    if existing is not None and existing.last_updated_at is not None:
        last_updated_at = max(last_updated_at, existing.last_updated_at)
    repositories.loadouts.save(
        key,
        replace(update.loadout, created_at=created_at, last_updated_at=last_updated_at),
    )


@apply_update.register
def _(
    update: DeleteLoadoutUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    _ = now
    if not repositories.loadouts.delete(key, update.loadout_id):
        log.debug("Loadout %s not present for %s; nothing to delete", update.loadout_id, key)


@apply_update.register
def _(
    update: TrackTriumphUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    triumphs = repositories.tracked_triumphs
    wanted = update.triumph
    is_tracked = triumphs.is_tracked(key, wanted.record_hash)
    if wanted.tracked and not is_tracked:
        triumphs.track(key, wanted.record_hash)
    elif not wanted.tracked and is_tracked:
        triumphs.untrack(key, wanted.record_hash)


@apply_update.register
def _(
    update: UsedSearchUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    repositories.searches.record_usage(key, update.query, used_at=now)


@apply_update.register
def _(
    update: SavedSearchUpdate,
    repositories: ProfileRepositories,
    key: ProfileKey,
    now: datetime,
) -> None:
    repositories.profiles.ensure(key, now=now)
    repositories.searches.mark_saved(key, update.query, saved=update.saved)


def _patch_annotation(current: ItemAnnotation, patch: ItemAnnotationPatch) -> ItemAnnotation:
    return ItemAnnotation(
        id=current.id,
        tag=current.tag if patch.tag is UNSET else patch.tag,
        notes=current.notes if patch.notes is UNSET else patch.notes,
        crafted_date=current.crafted_date if patch.crafted_date is UNSET else patch.crafted_date,
    )
