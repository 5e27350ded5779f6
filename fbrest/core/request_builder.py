from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional

from .errors import ParameterValidationError
from .methods import MethodDescriptor
from .params import ParameterSet, ParamPairs
from .session import SessionState
from .signing import SIGNATURE_KEY

log = logging.getLogger("fbrest.request")

TARGET_API_VERSION = "1.0"


class CallIdSource:
    """Strictly increasing, time-derived call ids (milliseconds)."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = Lock()

    def next(self) -> int:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = max(now, self._last + 1)
            return self._last


class RequestBuilder:
    """Merge caller parameters with method metadata and session data.

    The result is unsigned; signing happens after this step.
    """

    def __init__(
        self, api_key: str, session: SessionState, call_ids: Optional[CallIdSource] = None
    ) -> None:
        self._api_key = api_key
        self._session = session
        self._call_ids = call_ids or CallIdSource()

    def build(self, method: MethodDescriptor, pairs: Optional[ParamPairs] = None) -> ParameterSet:
        params = ParameterSet()
        params.put("method", method.name)
        params.put("api_key", self._api_key)
        params.put("v", TARGET_API_VERSION)

        # Some methods accept a session but work without one (e.g. for pages).
        if method.requires_session and self._session.session_key is not None:
            params.put("call_id", self._call_ids.next())
            params.put("session_key", self._session.session_key)

        params.merge(pairs)

        if SIGNATURE_KEY in params:
            raise ParameterValidationError(f"callers may not supply {SIGNATURE_KEY!r}")
        if len(params) > method.num_total_params:
            log.debug(
                "param_count_exceeds_descriptor",
                extra={"method": method.name, "count": len(params)},
            )
        return params
