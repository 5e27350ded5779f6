import hashlib
import itertools

import pytest

from fbrest.core.params import ParameterSet
from fbrest.core.signing import (
    SIGNATURE_KEY,
    generate_signature,
    sign_parameters,
    verify_signature,
)


def _params(pairs) -> ParameterSet:
    ps = ParameterSet()
    ps.merge(pairs)
    return ps


def test_signature_is_md5_of_sorted_pairs_and_secret() -> None:
    expected = hashlib.md5(b"a=1b=2S").hexdigest()
    assert generate_signature({"a": "1", "b": "2"}, "S") == expected
    assert generate_signature({"b": "2", "a": "1"}, "S") == expected


def test_signature_independent_of_insertion_order() -> None:
    pairs = [("method", "facebook.users.getInfo"), ("api_key", "k"), ("v", "1.0"), ("uids", "1,2")]
    signatures = {
        generate_signature(_params(perm), "secret") for perm in itertools.permutations(pairs)
    }
    assert len(signatures) == 1


def test_signature_changes_with_value_secret_and_keys() -> None:
    base = {"a": "1", "b": "2"}
    sig = generate_signature(base, "S")

    assert generate_signature({"a": "1", "b": "3"}, "S") != sig
    assert generate_signature(base, "T") != sig
    assert generate_signature({"a": "1", "b": "2", "c": "3"}, "S") != sig
    assert generate_signature({"a": "1"}, "S") != sig


def test_signature_is_lowercase_hex_over_utf8() -> None:
    sig = generate_signature({"name": "café"}, "s")
    assert sig == hashlib.md5("name=cafés".encode("utf-8")).hexdigest()
    assert len(sig) == 32
    assert sig == sig.lower()


def test_sign_parameters_adds_signature_once() -> None:
    ps = _params({"a": "1", "b": "2"})
    sig = sign_parameters(ps, "S")
    assert ps.get(SIGNATURE_KEY) == sig
    with pytest.raises(AssertionError):
        sign_parameters(ps, "S")


def test_verify_signature_roundtrip() -> None:
    ps = _params({"uid": "8055", "method": "facebook.users.isAppAdded"})
    sign_parameters(ps, "secret")
    received = ps.as_dict()

    assert verify_signature(received, "secret") is True
    assert verify_signature(received, "other") is False
    received["uid"] = "8056"
    assert verify_signature(received, "secret") is False
    assert verify_signature({"uid": "1"}, "secret") is False
