"""Public interface for the JSON wire adapter."""

from __future__ import annotations

from .schema import (
    ItemAnnotationModel,
    LoadoutItemModel,
    LoadoutModel,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    ProfileUpdateResultModel,
    SearchModel,
)
from .translator import (
    InvalidRequestError,
    build_profile_response,
    build_update_response,
    dump_response,
    parse_update,
    parse_update_request,
    parse_updates,
    resolve_profile_key,
)

__all__ = [
    "InvalidRequestError",
    "ItemAnnotationModel",
    "LoadoutItemModel",
    "LoadoutModel",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "ProfileUpdateResponse",
    "ProfileUpdateResultModel",
    "SearchModel",
    "build_profile_response",
    "build_update_response",
    "dump_response",
    "parse_update",
    "parse_update_request",
    "parse_updates",
    "resolve_profile_key",
]
