from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """
    Enumerated failure kinds.

    Callers branch on `kind` instead of catching one broad exception type.
    """

    VALIDATION = "VALIDATION"
    TRANSPORT = "TRANSPORT"
    PARSE = "PARSE"
    APPLICATION = "APPLICATION"


class ErrorCode(IntEnum):
    """Well-known error codes returned in the error envelope."""

    GEN_UNKNOWN_ERROR = 1
    GEN_SERVICE_ERROR = 2
    GEN_UNKNOWN_METHOD = 3
    GEN_TOO_MANY_CALLS = 4
    GEN_BAD_IP = 5
    GEN_INVALID_PARAMETER = 100
    GEN_INVALID_API_KEY = 101
    GEN_SESSION_EXPIRED = 102
    GEN_INVALID_CALL_ID = 103
    GEN_INCORRECT_SIGNATURE = 104


class RestClientError(Exception):
    """
    Base exception for all client failures.
    """

    kind: ErrorKind = ErrorKind.APPLICATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class ParameterValidationError(RestClientError):
    """
    Raised when caller-supplied arguments fail a local precondition.

    Always raised before any network activity.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, code: int = ErrorCode.GEN_INVALID_PARAMETER) -> None:
        super().__init__(message)
        self.code = int(code)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["code"] = self.code
        return out


class TransportError(RestClientError):
    """
    Raised on connection failures, timeouts and HTTP-level failures.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["status"] = self.status
        return out


class ResponseParseError(RestClientError):
    """
    Raised when a response body is not well-formed markup, or lacks a
    structure the caller depends on.
    """

    kind = ErrorKind.PARSE


class StructuredError(RestClientError):
    """
    Raised when the remote side reports failure through the error envelope.

    This is the only error kind the convenience layer is expected to
    branch on.
    """

    kind = ErrorKind.APPLICATION

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = int(code)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["code"] = self.code
        return out
