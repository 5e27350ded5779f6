from __future__ import annotations

from typing import Optional

from .errors import ParameterValidationError

MIN_PREF_ID = 0
MAX_PREF_ID = 200
MAX_VALUE_LENGTH = 127

# Stored value that clears a preference.
_CLEARED = "0"
_PREFIX = "_"


def validate_pref_id(pref_id: int) -> int:
    if isinstance(pref_id, bool) or not isinstance(pref_id, int):
        raise ParameterValidationError("The preference id must be an integer value from 0-200.")
    if pref_id < MIN_PREF_ID or pref_id > MAX_PREF_ID:
        raise ParameterValidationError("The preference id must be an integer value from 0-200.")
    return pref_id


def validate_pref_value(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParameterValidationError("The preference value must be a string or None.")
    if len(value) > MAX_VALUE_LENGTH:
        raise ParameterValidationError(
            f"The preference value cannot be longer than {MAX_VALUE_LENGTH} characters."
        )
    return value


def encode_preference(value: Optional[str]) -> str:
    """Encode a preference for storage.

    Every real value gets a `_` prefix, so `""` and `"0"` survive as
    themselves while `None` maps to the unprefixed clear marker.
    """

    if value is None:
        return _CLEARED
    return _PREFIX + validate_pref_value(value)


def decode_preference(stored: Optional[str]) -> Optional[str]:
    """Inverse of `encode_preference`.

    Values written by other clients without the prefix are returned as-is.
    """

    if stored is None or stored == "" or stored == _CLEARED:
        return None
    if stored.startswith(_PREFIX):
        return stored[len(_PREFIX):]
    return stored
