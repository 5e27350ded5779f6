import pytest

from fbrest.core.errors import ErrorCode, ParameterValidationError
from fbrest.core.preferences import (
    decode_preference,
    encode_preference,
    validate_pref_id,
    validate_pref_value,
)


def test_none_and_empty_string_do_not_collide() -> None:
    assert encode_preference(None) != encode_preference("")
    assert decode_preference(encode_preference(None)) is None
    assert decode_preference(encode_preference("")) == ""


@pytest.mark.parametrize("value", ["0", "_", "abc", "_leading", " spaced "])
def test_values_survive_encoding(value) -> None:
    assert decode_preference(encode_preference(value)) == value


def test_unprefixed_values_from_elsewhere_pass_through() -> None:
    assert decode_preference("legacy") == "legacy"
    assert decode_preference("") is None
    assert decode_preference(None) is None


@pytest.mark.parametrize("pref_id", [-1, 201, True, "3"])
def test_pref_id_bounds(pref_id) -> None:
    with pytest.raises(ParameterValidationError) as ei:
        validate_pref_id(pref_id)
    assert ei.value.code == ErrorCode.GEN_INVALID_PARAMETER


def test_pref_value_length() -> None:
    assert validate_pref_value("x" * 127) == "x" * 127
    assert validate_pref_value(None) is None
    with pytest.raises(ParameterValidationError):
        validate_pref_value("x" * 128)


@pytest.mark.parametrize("value", [7, b"bytes", ["list"]])
def test_non_string_values_rejected(value) -> None:
    with pytest.raises(ParameterValidationError):
        validate_pref_value(value)
    with pytest.raises(ParameterValidationError):
        encode_preference(value)
