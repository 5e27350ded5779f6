from __future__ import annotations

import logging
import os
from typing import Any, Optional, Protocol, Union
from xml.dom.minidom import Document

from fbrest.core import methods
from fbrest.core.errors import (
    ParameterValidationError,
    ResponseParseError,
    StructuredError,
    TransportError,
)
from fbrest.core.methods import MethodDescriptor
from fbrest.core.params import ParameterSet, ParamPairs
from fbrest.core.request_builder import CallIdSource, RequestBuilder
from fbrest.core.response import (
    CallResult,
    check_error,
    extract_boolean,
    extract_int,
    extract_string,
    first_element_text,
    parse_response,
    render_tree,
)
from fbrest.core.session import SessionState
from fbrest.core.signing import SIGNATURE_KEY, sign_parameters

from .config import ClientConfig
from .http import HttpResponse, HttpTransport

log = logging.getLogger("fbrest.client")

PathLike = Union[str, "os.PathLike[str]"]

_MASKED = {"session_key", SIGNATURE_KEY}


class Transport(Protocol):
    def post_form(self, url: str, params: ParameterSet, *, encode: bool = True) -> HttpResponse: ...

    def post_multipart(self, url: str, params: ParameterSet, file_path: str) -> HttpResponse: ...


class RestClient:
    """Signed call pipeline for the REST endpoint.

    Each call builds a parameter set, signs it, sends it and parses the
    answer; the result is returned to the caller rather than kept on the
    instance.

    Not safe for concurrent calls: the session changes under a running
    handshake. Use one instance per thread or lock around it.

    Security notes:
    - The application secret and session secret never leave the process.
    - Debug logging masks the session key and signature.

    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[Transport] = None,
        call_ids: Optional[CallIdSource] = None,
    ) -> None:
        self.config = config
        self.session = SessionState(desktop=config.desktop, session_key=config.session_key)
        self._transport: Transport = transport or HttpTransport(timeout_ms=config.timeout_ms)
        self._builder = RequestBuilder(config.api_key, self.session, call_ids)

    @classmethod
    def from_env(cls, **overrides: Any) -> "RestClient":
        return cls(ClientConfig.from_env(**overrides))

    # ---- collaborator interface ----

    def invoke(self, method: MethodDescriptor, params: Optional[ParamPairs] = None) -> CallResult:
        """Call a remote operation that does not upload a file."""

        if method.takes_file:
            raise ParameterValidationError(
                f"{method.name} uploads a file; use invoke_upload(...)"
            )
        return self._call(method, params, None)

    def invoke_upload(
        self, method: MethodDescriptor, params: Optional[ParamPairs], file: PathLike
    ) -> CallResult:
        """Call a remote operation that uploads exactly one file."""

        if not method.takes_file:
            raise ParameterValidationError(f"{method.name} does not take a file")
        path = os.fspath(file)
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise ParameterValidationError(f"upload file missing or unreadable: {path}")
        return self._call(method, params, path)

    extract_boolean = staticmethod(extract_boolean)
    extract_int = staticmethod(extract_int)
    extract_string = staticmethod(extract_string)

    def get_session_key(self) -> Optional[str]:
        return self.session.session_key

    def get_user_id(self) -> Optional[int]:
        return self.session.user_id

    def get_session_expires(self) -> Optional[int]:
        return self.session.expires

    def is_session_established(self) -> bool:
        return self.session.is_established

    # ---- authentication handshake ----

    def create_token(self) -> str:
        """Obtain a one-time auth token (Unauthenticated -> TokenIssued)."""

        result = self.invoke(methods.AUTH_CREATE_TOKEN)
        token = extract_string(result.tree)
        self.session.issue_token(token)
        return token

    def get_session(self, auth_token: Optional[str] = None) -> str:
        """Exchange an auth token for a session and store it.

        Uses the staged token from `create_token` when none is given.
        """

        token = auth_token or self.session.auth_token
        if not token:
            raise ParameterValidationError("no auth token: call create_token() or pass one")
        result = self.invoke(methods.AUTH_GET_SESSION, [("auth_token", token)])
        tree = result.tree

        session_key = _required_text(tree, "session_key")
        user_id = _required_int(tree, "uid")
        expires_text = first_element_text(tree, "expires")
        expires = int(expires_text) if expires_text and expires_text.strip() else None
        secret = _required_text(tree, "secret") if self.config.desktop else None

        self.session.establish(
            session_key=session_key, user_id=user_id, expires=expires, session_secret=secret
        )
        log.info("session_established", extra={"user_id": user_id, "expires": expires})
        return session_key

    # ---- pipeline ----

    def _endpoint(self, method: MethodDescriptor) -> str:
        # Installed applications must fetch their session secret over TLS.
        if self.config.desktop and method == methods.AUTH_GET_SESSION:
            return self.config.secure_server_url
        return self.config.server_url

    def _call(
        self, method: MethodDescriptor, pairs: Optional[ParamPairs], file_path: Optional[str]
    ) -> CallResult:
        params = self._builder.build(method, pairs)
        secret = self.session.signing_secret(self.config.secret, method.requires_session)
        sign_parameters(params, secret)

        if self.config.debug:
            log.debug(
                "api_call",
                extra={
                    "method": method.name,
                    "params": {
                        k: ("***" if k in _MASKED else v) for k, v in params.items()
                    },
                },
            )

        url = self._endpoint(method)
        if file_path is not None:
            resp = self._transport.post_multipart(url, params, file_path)
        else:
            resp = self._transport.post_form(url, params)

        return self._handle_response(method, resp)

    def _handle_response(self, method: MethodDescriptor, resp: HttpResponse) -> CallResult:
        try:
            tree, raw_text = parse_response(resp.body_bytes)
        except ResponseParseError:
            if resp.status >= 400:
                log.warning(
                    "transport_error", extra={"method": method.name, "status": resp.status}
                )
                raise TransportError(f"HTTP {resp.status} from server", status=resp.status)
            raise

        if self.config.debug:
            log.debug("api_response\n%s", render_tree(tree, method.name + "| "))

        try:
            check_error(tree, raw_text)
        except StructuredError as e:
            log.warning("api_error", extra={"method": method.name, "error_code": e.code})
            raise

        if resp.status >= 400:
            log.warning("transport_error", extra={"method": method.name, "status": resp.status})
            raise TransportError(f"HTTP {resp.status} from server", status=resp.status)
        return CallResult(tree=tree, raw_text=raw_text)


def _required_text(tree: Document, tag: str) -> str:
    text = first_element_text(tree, tag)
    if text is None:
        raise ResponseParseError(f"session response has no <{tag}>")
    return text


def _required_int(tree: Document, tag: str) -> int:
    text = _required_text(tree, tag)
    try:
        return int(text)
    except ValueError as e:
        raise ResponseParseError(f"<{tag}> is not an integer: {text!r}") from e
