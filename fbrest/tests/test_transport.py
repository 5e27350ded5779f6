import builtins
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs

import pytest

from fbrest.client import http as http_module
from fbrest.client.config import ClientConfig
from fbrest.client.http import HttpTransport
from fbrest.client.rest import RestClient
from fbrest.core import methods
from fbrest.core.errors import ErrorKind, ParameterValidationError, TransportError
from fbrest.core.params import ParameterSet
from fbrest.core.signing import verify_signature
from fbrest.tests.payloads import scalar_xml


class _Handler(BaseHTTPRequestHandler):
    def do_POST(self) -> None:
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length)
        if self.server.delay:
            time.sleep(self.server.delay)
        self.server.captured.append(
            {"path": self.path, "headers": self.headers, "body": body}
        )
        status, payload = self.server.reply
        self.send_response(status)
        self.send_header("Content-Type", "text/xml; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args) -> None:
        return


@pytest.fixture
def server():
    srv = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    srv.captured = []
    srv.delay = 0.0
    srv.reply = (200, scalar_xml("users_isAppAdded_response", "1"))
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    try:
        yield srv
    finally:
        srv.shutdown()
        srv.server_close()


def _url(srv) -> str:
    return f"http://127.0.0.1:{srv.server_address[1]}/restserver.php"


def _params(**kw) -> ParameterSet:
    ps = ParameterSet()
    ps.merge(kw)
    return ps


def _closed_port() -> int:
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_post_form_sends_urlencoded_body(server) -> None:
    resp = HttpTransport(timeout_ms=2000).post_form(_url(server), _params(method="m", q="a b&c"))

    assert resp.status == 200
    assert b"users_isAppAdded_response" in resp.body_bytes
    req = server.captured[0]
    assert req["path"] == "/restserver.php"
    assert req["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(req["body"].decode("ascii")) == {"method": ["m"], "q": ["a b&c"]}


def test_post_multipart_streams_file(server, tmp_path) -> None:
    photo = tmp_path / "photo.jpg"
    data = bytes(range(256)) * 10
    photo.write_bytes(data)

    resp = HttpTransport().post_multipart(_url(server), _params(caption="hi"), str(photo))

    assert resp.status == 200
    req = server.captured[0]
    ctype = req["headers"]["Content-Type"]
    assert ctype.startswith("multipart/form-data; boundary=")
    boundary = ctype.split("boundary=", 1)[1]
    assert int(req["headers"]["Content-Length"]) == len(req["body"])
    assert data in req["body"]
    assert req["body"].endswith(f"--{boundary}--\r\n".encode())


def test_post_multipart_missing_file(server, tmp_path) -> None:
    with pytest.raises(ParameterValidationError):
        HttpTransport().post_multipart(_url(server), _params(), str(tmp_path / "nope.jpg"))
    assert server.captured == []


def test_http_error_status_is_returned(server) -> None:
    server.reply = (500, b"oops")
    resp = HttpTransport().post_form(_url(server), _params(a="1"))
    assert resp.status == 500
    assert resp.body_bytes == b"oops"


def test_connection_failure_raises_transport_error() -> None:
    with pytest.raises(TransportError) as ei:
        HttpTransport(timeout_ms=500).post_form(
            f"http://127.0.0.1:{_closed_port()}/", _params(a="1")
        )
    assert ei.value.kind is ErrorKind.TRANSPORT


def test_rest_client_end_to_end_signature_verifies(server) -> None:
    cfg = ClientConfig(api_key="key123", secret="app-secret", server_url=_url(server))
    client = RestClient(cfg)

    result = client.invoke(methods.USERS_IS_APP_ADDED)

    assert client.extract_boolean(result.tree) is True
    sent = {k: v[0] for k, v in parse_qs(server.captured[0]["body"].decode("ascii")).items()}
    assert sent["method"] == "facebook.users.isAppAdded"
    assert sent["api_key"] == "key123"
    assert verify_signature(sent, "app-secret")


def test_rest_client_http_500_without_envelope(server) -> None:
    server.reply = (500, b"<html>down</html>")
    client = RestClient(ClientConfig(api_key="k", secret="s", server_url=_url(server)))
    with pytest.raises(TransportError) as ei:
        client.invoke(methods.USERS_IS_APP_ADDED)
    assert ei.value.status == 500


def test_timeout_bounds_connect_not_read(server) -> None:
    server.delay = 0.6

    resp = HttpTransport(timeout_ms=150).post_form(_url(server), _params(a="1"))

    assert resp.status == 200
    assert len(server.captured) == 1


def test_upload_file_closed_when_transport_fails(monkeypatch, tmp_path) -> None:
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(b"\xff\xd8" * 600)
    opened = []

    def spy_open(*args, **kwargs):
        fh = builtins.open(*args, **kwargs)
        opened.append(fh)
        return fh

    monkeypatch.setattr(http_module, "open", spy_open, raising=False)

    with pytest.raises(TransportError):
        HttpTransport(timeout_ms=500).post_multipart(
            f"http://127.0.0.1:{_closed_port()}/", _params(caption="x"), str(photo)
        )

    assert opened
    assert all(fh.closed for fh in opened)


def test_upload_file_closed_after_success(monkeypatch, server, tmp_path) -> None:
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(b"jpeg")
    opened = []

    def spy_open(*args, **kwargs):
        fh = builtins.open(*args, **kwargs)
        opened.append(fh)
        return fh

    monkeypatch.setattr(http_module, "open", spy_open, raising=False)

    assert HttpTransport().post_multipart(_url(server), _params(), str(photo)).status == 200
    assert len(opened) == 1 and opened[0].closed
