from __future__ import annotations

import hashlib
from typing import Iterable, Mapping, Tuple, Union

from .params import ParameterSet

SIGNATURE_KEY = "sig"


def _canonical_string(items: Iterable[Tuple[str, str]], secret: str) -> str:
    """Concatenate `key=value` pairs in ascending key order, then the secret.

    There is no delimiter between pairs.
    """

    body = "".join(f"{k}={v}" for k, v in sorted(items))
    return body + secret


def generate_signature(
    params: Union[ParameterSet, Mapping[str, str]], secret: str
) -> str:
    """Compute the request signature as a lowercase hex MD5 digest.

    The result does not depend on parameter insertion order.

    Security notes:
    - MD5 is what the remote service verifies; it is not a choice made here.
    - The secret is never part of the transmitted parameters.

    """

    items = params.items()
    canonical = _canonical_string(((str(k), str(v)) for k, v in items), secret or "")
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def sign_parameters(params: ParameterSet, secret: str) -> str:
    """Sign a finalized ParameterSet and add the signature under `sig`."""

    if SIGNATURE_KEY in params:
        raise AssertionError("parameter set is already signed")
    signature = generate_signature(params, secret)
    params.put(SIGNATURE_KEY, signature)
    return signature


def verify_signature(params: Mapping[str, str], secret: str) -> bool:
    """Check a received parameter mapping (e.g. a canvas POST) against its `sig`."""

    expected = params.get(SIGNATURE_KEY)
    if not expected:
        return False
    unsigned = {k: v for k, v in params.items() if k != SIGNATURE_KEY}
    return generate_signature(unsigned, secret) == expected
