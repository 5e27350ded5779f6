from __future__ import annotations

import logging
import os
import ssl
import time
from dataclasses import dataclass
from http.client import HTTPConnection, HTTPException, HTTPSConnection
from typing import BinaryIO, Iterator, List, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote_plus
from urllib.request import HTTPHandler, HTTPSHandler, Request, build_opener

from fbrest.core.errors import ParameterValidationError, TransportError
from fbrest.core.params import ParameterSet

log = logging.getLogger("fbrest.http")

CRLF = "\r\n"
PREF = "--"
UPLOAD_BUFFER_SIZE = 512
UPLOAD_CONTENT_TYPE = "image/jpeg"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """HTTP response wrapper.

    Security notes:
    - Treat `body_bytes` as untrusted.

    """

    status: int
    headers: Mapping[str, str]
    body_bytes: bytes


def encode_form(params: ParameterSet, *, encode: bool = True) -> bytes:
    """Serialize parameters as `k=v&k=v`, percent-encoding values as UTF-8."""

    parts = []
    for key, value in params.items():
        parts.append(f"{key}={quote_plus(value, encoding='utf-8') if encode else value}")
    return "&".join(parts).encode("utf-8")


def new_boundary() -> str:
    """Boundary token: the current time in milliseconds, as hex."""

    return format(int(time.time() * 1000), "x")


def _multipart_head(params: ParameterSet, boundary: str, file_name: str) -> bytes:
    chunks: List[str] = []
    for key, value in params.items():
        chunks.append(PREF + boundary + CRLF)
        chunks.append(f'Content-disposition: form-data; name="{key}"')
        chunks.append(CRLF + CRLF)
        chunks.append(value)
        chunks.append(CRLF)
    chunks.append(PREF + boundary + CRLF)
    chunks.append(f'Content-disposition: form-data; filename="{file_name}"' + CRLF)
    chunks.append(f"Content-Type: {UPLOAD_CONTENT_TYPE}" + CRLF)
    chunks.append(CRLF)
    return "".join(chunks).encode("utf-8")


def _multipart_tail(boundary: str) -> bytes:
    return (CRLF + PREF + boundary + PREF + CRLF).encode("utf-8")


def multipart_length(params: ParameterSet, boundary: str, file_name: str, file_size: int) -> int:
    return (
        len(_multipart_head(params, boundary, file_name))
        + file_size
        + len(_multipart_tail(boundary))
    )


def iter_multipart(
    params: ParameterSet,
    boundary: str,
    file_name: str,
    fileobj: BinaryIO,
    *,
    chunk_size: int = UPLOAD_BUFFER_SIZE,
) -> Iterator[bytes]:
    """Stream a multipart/form-data body: one part per parameter, then the file.

    The file is read in `chunk_size` blocks and never held in memory whole.
    The caller owns `fileobj` and must close it.
    """

    yield _multipart_head(params, boundary, file_name)
    while True:
        block = fileobj.read(chunk_size)
        if not block:
            break
        yield block
    yield _multipart_tail(boundary)


class _ConnectTimeoutHTTPConnection(HTTPConnection):
    # Timeout bounds connection setup only; reads then block.
    def connect(self) -> None:
        super().connect()
        self.sock.settimeout(None)


class _ConnectTimeoutHTTPSConnection(HTTPSConnection):
    def connect(self) -> None:
        super().connect()
        self.sock.settimeout(None)


class _ConnectTimeoutHTTPHandler(HTTPHandler):
    def http_open(self, req):
        return self.do_open(_ConnectTimeoutHTTPConnection, req)


class _ConnectTimeoutHTTPSHandler(HTTPSHandler):
    def __init__(self, context: ssl.SSLContext) -> None:
        super().__init__(context=context)
        self._ctx = context

    def https_open(self, req):
        return self.do_open(_ConnectTimeoutHTTPSConnection, req, context=self._ctx)


class HttpTransport:
    """Blocking stdlib transport for the REST endpoint.

    One request per call: no pooling, no retry.

    Security notes:
    - Uses the default SSL context (verification ON).
    - Never logs parameter values or file bytes.

    """

    def __init__(self, timeout_ms: Optional[int] = None) -> None:
        self.timeout_ms = timeout_ms
        self._opener = build_opener(
            _ConnectTimeoutHTTPHandler(),
            _ConnectTimeoutHTTPSHandler(ssl.create_default_context()),
        )

    def post_form(self, url: str, params: ParameterSet, *, encode: bool = True) -> HttpResponse:
        """HTTP POST application/x-www-form-urlencoded."""

        body = encode_form(params, encode=encode)
        req = Request(url=url, data=body, method="POST")
        req.add_header("Content-Type", FORM_CONTENT_TYPE)
        req.add_header("Content-Length", str(len(body)))
        return self._do_request(req)

    def post_multipart(self, url: str, params: ParameterSet, file_path: str) -> HttpResponse:
        """HTTP POST multipart/form-data with exactly one file part.

        The body is streamed from disk; the file handle is closed on every
        exit path.
        """

        if not os.path.isfile(file_path):
            raise ParameterValidationError(f"upload file not found: {file_path}")
        boundary = new_boundary()
        file_name = os.path.basename(file_path)
        try:
            fh = open(file_path, "rb")
        except OSError as e:
            raise ParameterValidationError(f"upload file not readable: {e}") from e

        with fh:
            size = os.fstat(fh.fileno()).st_size
            req = Request(
                url=url,
                data=iter_multipart(params, boundary, file_name, fh),
                method="POST",
            )
            req.add_header("Content-Type", f"multipart/form-data; boundary={boundary}")
            req.add_header("Content-Length", str(multipart_length(params, boundary, file_name, size)))
            req.add_header("MIME-version", "1.0")
            return self._do_request(req)

    def _do_request(self, req: Request) -> HttpResponse:
        kwargs = {}
        if self.timeout_ms is not None:
            kwargs["timeout"] = self.timeout_ms / 1000.0
        try:
            with self._opener.open(req, **kwargs) as resp:
                body = resp.read()
                headers = {k: v for k, v in resp.headers.items()}
                return HttpResponse(status=int(resp.status), headers=headers, body_bytes=body)
        except HTTPError as e:
            try:
                body = e.read() if hasattr(e, "read") else b""
            finally:
                e.close()
            headers = dict(getattr(e, "headers", {}) or {})
            return HttpResponse(
                status=int(getattr(e, "code", 0) or 0), headers=headers, body_bytes=body
            )
        except (URLError, HTTPException, OSError) as e:
            reason = getattr(e, "reason", e)
            log.warning("transport_error", extra={"url": req.full_url, "error": str(reason)})
            raise TransportError(f"network error: {reason}") from e
