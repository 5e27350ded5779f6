from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

# Parameters the client appends to every call on its own:
# method, api_key, v, call_id, session_key, sig.
NUM_AUTOAPPENDED_PARAMS = 6


@dataclass(frozen=True, slots=True)
class MethodDescriptor:
    """Static description of a remote operation.

    `num_params` is the number of operation-specific parameters; it is only
    a sizing hint and never limits what a caller may pass.
    """

    name: str
    requires_session: bool = False
    takes_file: bool = False
    num_params: int = 0

    @property
    def num_total_params(self) -> int:
        return self.num_params + NUM_AUTOAPPENDED_PARAMS


AUTH_CREATE_TOKEN = MethodDescriptor("facebook.auth.createToken")
AUTH_GET_SESSION = MethodDescriptor("facebook.auth.getSession", num_params=1)

USERS_GET_LOGGED_IN_USER = MethodDescriptor("facebook.users.getLoggedInUser", True)
USERS_IS_APP_ADDED = MethodDescriptor("facebook.users.isAppAdded", True)
USERS_HAS_APP_PERMISSION = MethodDescriptor("facebook.users.hasAppPermission", True, num_params=1)
USERS_SET_STATUS = MethodDescriptor("facebook.users.setStatus", True, num_params=3)
USERS_GET_INFO = MethodDescriptor("facebook.users.getInfo", True, num_params=2)

FRIENDS_GET = MethodDescriptor("facebook.friends.get", True, num_params=1)
FRIENDS_ARE_FRIENDS = MethodDescriptor("facebook.friends.areFriends", True, num_params=2)

FQL_QUERY = MethodDescriptor("facebook.fql.query", True, num_params=1)

PHOTOS_GET = MethodDescriptor("facebook.photos.get", True, num_params=3)
PHOTOS_UPLOAD = MethodDescriptor("facebook.photos.upload", True, takes_file=True, num_params=3)

SMS_CAN_SEND = MethodDescriptor("facebook.sms.canSend", True, num_params=1)
SMS_SEND = MethodDescriptor("facebook.sms.send", True, num_params=4)

DATA_GET_USER_PREFERENCE = MethodDescriptor("facebook.data.getUserPreference", True, num_params=1)
DATA_GET_USER_PREFERENCES = MethodDescriptor("facebook.data.getUserPreferences", True)
DATA_SET_USER_PREFERENCE = MethodDescriptor("facebook.data.setUserPreference", True, num_params=2)
DATA_SET_USER_PREFERENCES = MethodDescriptor("facebook.data.setUserPreferences", True, num_params=2)

CATALOG: Dict[str, MethodDescriptor] = {
    m.name: m
    for m in (
        AUTH_CREATE_TOKEN,
        AUTH_GET_SESSION,
        USERS_GET_LOGGED_IN_USER,
        USERS_IS_APP_ADDED,
        USERS_HAS_APP_PERMISSION,
        USERS_SET_STATUS,
        USERS_GET_INFO,
        FRIENDS_GET,
        FRIENDS_ARE_FRIENDS,
        FQL_QUERY,
        PHOTOS_GET,
        PHOTOS_UPLOAD,
        SMS_CAN_SEND,
        SMS_SEND,
        DATA_GET_USER_PREFERENCE,
        DATA_GET_USER_PREFERENCES,
        DATA_SET_USER_PREFERENCE,
        DATA_SET_USER_PREFERENCES,
    )
}


def lookup_method(name: str) -> Optional[MethodDescriptor]:
    """Find a catalogued method by full name or by its short form (`users.isAppAdded`)."""

    if name in CATALOG:
        return CATALOG[name]
    return CATALOG.get(f"facebook.{name}")
