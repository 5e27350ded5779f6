from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import ParameterValidationError

log = logging.getLogger("fbrest.request")

ParamPairs = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def coerce_value(name: str, value: Any) -> str:
    """Render a parameter value as the string sent on the wire.

    Booleans use the remote API's `true`/`false` spelling.
    """

    if value is None:
        raise ParameterValidationError(f"parameter {name!r} has no value")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


def iter_pairs(pairs: Optional[ParamPairs]) -> Iterator[Tuple[str, Any]]:
    """Yield (name, value) pairs from a mapping or a pair sequence, preserving order."""

    if pairs is None:
        return
    if isinstance(pairs, Mapping):
        yield from pairs.items()
        return
    for name, value in pairs:
        yield name, value


class ParameterSet:
    """Ordered collection of uniquely named string parameters.

    Inserting an existing name overwrites the previous value. Overrides are
    reported through `merge`, never treated as errors.
    """

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def put(self, name: str, value: Any) -> Optional[str]:
        """Set a parameter and return the value it replaced, if any."""

        if not isinstance(name, str) or not name:
            raise ParameterValidationError("parameter names must be non-empty strings")
        old = self._values.get(name)
        self._values[name] = coerce_value(name, value)
        return old

    def merge(self, pairs: Optional[ParamPairs]) -> List[str]:
        """Insert caller pairs; later values win. Returns the overridden names."""

        overridden: List[str] = []
        for name, value in iter_pairs(pairs):
            old = self.put(name, value)
            if old is not None:
                overridden.append(name)
                log.info("param_override", extra={"param": name})
        return overridden

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._values.items())

    def sorted_items(self) -> List[Tuple[str, str]]:
        return sorted(self._values.items())

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ParameterSet(names={list(self._values)})"
