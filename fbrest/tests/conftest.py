from __future__ import annotations

from typing import Any, Tuple

import pytest

from fbrest.client.config import ClientConfig
from fbrest.client.rest import RestClient
from fbrest.core.request_builder import CallIdSource
from fbrest.tests.payloads import FakeTransport


@pytest.fixture
def make_client():
    """Factory: make_client(*responses, **config) -> (RestClient, FakeTransport)."""

    def _make(*responses: Any, **cfg: Any) -> Tuple[RestClient, FakeTransport]:
        transport = FakeTransport(*responses)
        config = ClientConfig(api_key="key123", secret="app-secret", **cfg)
        client = RestClient(
            config, transport=transport, call_ids=CallIdSource(clock=lambda: 1700000000.0)
        )
        return client, transport

    return _make


@pytest.fixture
def fake_transport_cls():
    return FakeTransport
