"""Typed convenience operations built on RestClient.invoke.

Each operation is one function; optional arguments live on a small options
object instead of overloads.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from fbrest.core import methods
from fbrest.core.errors import ParameterValidationError, ResponseParseError
from fbrest.core.preferences import (
    decode_preference,
    encode_preference,
    validate_pref_id,
    validate_pref_value,
)
from fbrest.core.response import CallResult, text_content

from .rest import PathLike, RestClient


@dataclass(frozen=True)
class StatusOptions:
    status: Optional[str] = None
    clear: bool = False
    status_includes_verb: bool = False


@dataclass(frozen=True)
class PhotoUploadOptions:
    caption: Optional[str] = None
    album_id: Optional[int] = None


def users_get_logged_in_user(client: RestClient) -> int:
    result = client.invoke(methods.USERS_GET_LOGGED_IN_USER)
    return client.extract_int(result.tree)


def users_is_app_added(client: RestClient) -> bool:
    result = client.invoke(methods.USERS_IS_APP_ADDED)
    return client.extract_boolean(result.tree)


def users_has_app_permission(client: RestClient, permission: str) -> bool:
    if not permission:
        raise ParameterValidationError("permission name is required")
    result = client.invoke(methods.USERS_HAS_APP_PERMISSION, [("ext_perm", permission)])
    return client.extract_boolean(result.tree)


def users_set_status(client: RestClient, options: StatusOptions) -> bool:
    """Set or clear the user's status line.

    Exactly one of `options.status` and `options.clear` must be given.
    """

    if options.clear and options.status:
        raise ParameterValidationError("pass either a status or clear=True, not both")
    if not options.clear and not options.status:
        raise ParameterValidationError("a status is required unless clear=True")

    params: List[Tuple[str, object]] = []
    if options.clear:
        params.append(("clear", True))
    else:
        params.append(("status", options.status))
        if options.status_includes_verb:
            params.append(("status_includes_verb", True))
    result = client.invoke(methods.USERS_SET_STATUS, params)
    return client.extract_boolean(result.tree)


def fql_query(client: RestClient, query: str) -> CallResult:
    if not query or not query.strip():
        raise ParameterValidationError("query must be a non-empty string")
    return client.invoke(methods.FQL_QUERY, [("query", query)])


def friends_get(client: RestClient) -> CallResult:
    return client.invoke(methods.FRIENDS_GET)


def photos_upload(
    client: RestClient, photo: PathLike, options: Optional[PhotoUploadOptions] = None
) -> CallResult:
    opts = options or PhotoUploadOptions()
    params: List[Tuple[str, object]] = []
    if opts.album_id is not None:
        params.append(("aid", opts.album_id))
    if opts.caption is not None:
        params.append(("caption", opts.caption))
    return client.invoke_upload(methods.PHOTOS_UPLOAD, params, photo)


def sms_can_send(client: RestClient, user_id: Optional[int] = None) -> bool:
    """A status code of 0 means the application may text the user."""

    uid = user_id if user_id is not None else users_get_logged_in_user(client)
    result = client.invoke(methods.SMS_CAN_SEND, [("uid", uid)])
    return client.extract_int(result.tree) == 0


def data_get_user_preference(client: RestClient, pref_id: int) -> Optional[str]:
    """Read one preference; None when it is not set."""

    validate_pref_id(pref_id)
    result = client.invoke(methods.DATA_GET_USER_PREFERENCE, [("pref_id", pref_id)])
    root = result.tree.documentElement
    if root is None or not root.hasChildNodes():
        return None
    return decode_preference(text_content(root))


def data_get_user_preferences(client: RestClient) -> Dict[int, Optional[str]]:
    """All preferences set for the current user, keyed by id. Never None."""

    result = client.invoke(methods.DATA_GET_USER_PREFERENCES)
    out: Dict[int, Optional[str]] = {}
    for pref in result.tree.getElementsByTagName("preference"):
        ids = pref.getElementsByTagName("pref_id")
        values = pref.getElementsByTagName("value")
        if not ids:
            raise ResponseParseError("preference entry without <pref_id>")
        try:
            pref_id = int(text_content(ids[0]))
        except ValueError as e:
            raise ResponseParseError("preference id is not an integer") from e
        out[pref_id] = decode_preference(text_content(values[0]) if values else None)
    return out


def data_set_user_preference(client: RestClient, pref_id: int, value: Optional[str]) -> None:
    """Store one preference. `None` clears it; `""` and `"0"` are stored literally."""

    validate_pref_id(pref_id)
    validate_pref_value(value)
    client.invoke(
        methods.DATA_SET_USER_PREFERENCE,
        [("pref_id", pref_id), ("value", encode_preference(value))],
    )


def data_set_user_preferences(
    client: RestClient, values: Mapping[int, Optional[str]], replace: bool = False
) -> None:
    """Store several preferences at once; `replace` drops any not listed."""

    encoded: Dict[str, str] = {}
    for pref_id, value in values.items():
        validate_pref_id(pref_id)
        validate_pref_value(value)
        encoded[str(pref_id)] = encode_preference(value)

    params: List[Tuple[str, object]] = [("values", json.dumps(encoded, separators=(",", ":")))]
    if replace:
        params.append(("replace", True))
    client.invoke(methods.DATA_SET_USER_PREFERENCES, params)
