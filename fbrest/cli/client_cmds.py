from __future__ import annotations

import argparse
import json
import sys
from typing import List, Tuple

from pydantic import ValidationError

from fbrest.client.config import ClientConfig
from fbrest.client.operations import PhotoUploadOptions, photos_upload
from fbrest.client.rest import RestClient
from fbrest.core.errors import ParameterValidationError, RestClientError
from fbrest.core.methods import MethodDescriptor, lookup_method


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _client(args: argparse.Namespace) -> RestClient:
    try:
        cfg = ClientConfig.from_env(
            api_key=args.api_key,
            secret=args.secret,
            server_url=args.server_url,
            session_key=args.session_key,
            timeout_ms=args.timeout_ms,
            desktop=True if args.desktop else None,
            debug=True if args.debug else None,
        )
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ParameterValidationError(f"invalid client configuration: {fields}") from e
    return RestClient(cfg)


def _parse_pairs(raw: List[str]) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for item in raw:
        if "=" not in item:
            raise ParameterValidationError(f"expected name=value, got {item!r}")
        name, value = item.split("=", 1)
        pairs.append((name, value))
    return pairs


def _resolve_method(args: argparse.Namespace) -> MethodDescriptor:
    known = lookup_method(args.method)
    if known is not None:
        return known
    name = args.method if args.method.startswith("facebook.") else f"facebook.{args.method}"
    return MethodDescriptor(name, requires_session=args.session)


def _report(e: RestClientError) -> int:
    print(json.dumps(e.to_dict(), sort_keys=True), file=sys.stderr)
    return 2


def cmd_call(args: argparse.Namespace) -> int:
    """Invoke any remote method and print the raw response."""
    try:
        method = _resolve_method(args)
        result = _client(args).invoke(method, _parse_pairs(args.params))
    except RestClientError as e:
        return _report(e)
    print(result.raw_text)
    return 0


def cmd_create_token(args: argparse.Namespace) -> int:
    try:
        token = _client(args).create_token()
    except RestClientError as e:
        return _report(e)
    _print_json({"auth_token": token})
    return 0


def cmd_get_session(args: argparse.Namespace) -> int:
    """Exchange an auth token for a session.

    Security notes:
    - Prints the session key; the session secret is never printed.

    """
    try:
        c = _client(args)
        c.get_session(args.token)
    except RestClientError as e:
        return _report(e)
    _print_json(
        {
            "session_key": c.get_session_key(),
            "uid": c.get_user_id(),
            "expires": c.get_session_expires(),
        }
    )
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """Upload a photo."""
    try:
        result = photos_upload(
            _client(args),
            args.file,
            PhotoUploadOptions(caption=args.caption, album_id=args.album_id),
        )
    except RestClientError as e:
        return _report(e)
    print(result.raw_text)
    return 0


def register_client_commands(sub: argparse._SubParsersAction) -> None:
    """Register the remote-call commands."""

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--api-key", default=None, help="Application API key (FBREST_API_KEY)")
    common.add_argument("--secret", default=None, help="Application secret (FBREST_SECRET)")
    common.add_argument("--server-url", default=None, help="REST endpoint URL")
    common.add_argument("--session-key", default=None, help="Existing session key")
    common.add_argument("--timeout-ms", type=int, default=None, help="Connect timeout (ms)")
    common.add_argument("--desktop", action="store_true", help="Installed-application mode")
    common.add_argument("--debug", action="store_true", help="Log requests and response trees")

    call = sub.add_parser("call", parents=[common], help="Invoke a remote method")
    call.add_argument("method", help="Method name, e.g. users.getLoggedInUser")
    call.add_argument("params", nargs="*", help="Parameters as name=value")
    call.add_argument(
        "--session",
        action="store_true",
        help="Treat an uncatalogued method as session-scoped",
    )
    call.set_defaults(func=cmd_call)

    ct = sub.add_parser("create-token", parents=[common], help="Create a one-time auth token")
    ct.set_defaults(func=cmd_create_token)

    gs = sub.add_parser("get-session", parents=[common], help="Exchange a token for a session")
    gs.add_argument("token", help="Auth token from create-token or the login callback")
    gs.set_defaults(func=cmd_get_session)

    up = sub.add_parser("upload", parents=[common], help="Upload a photo")
    up.add_argument("file", help="Path to local image")
    up.add_argument("--caption", default=None, help="Photo caption")
    up.add_argument("--album-id", type=int, default=None, help="Target album id")
    up.set_defaults(func=cmd_upload)
