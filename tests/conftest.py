from __future__ import annotations

import pytest

from tradfri import CoapClient, Credentials, GatewayConfig

from .fakeendpoint import FakeGateway

GATEWAY_HOST = "127.0.0.1"
MOCK_IDENTITY = "mock-identity"
MOCK_KEY = "mock-key"  # noqa: S105


def resource(path: str) -> str:
    return f"coaps://{GATEWAY_HOST}:5684/{path}"


@pytest.fixture()
def gateway():
    """Return a mock gateway answering a few resources."""
    return FakeGateway(
        {
            "15001": b"[65536,65537]",
            "15001/65536": b'{"9001":"Bulb","9003":65536}',
            "status": b"42",
            "broken": b"{not json",
        }
    )


@pytest.fixture()
def config():
    return GatewayConfig(GATEWAY_HOST)


@pytest.fixture()
async def client(config, gateway):
    """Return a client connected to the mock gateway."""
    client = CoapClient(config, endpoint_factory=gateway)
    assert await client.set_credentials(Credentials(MOCK_IDENTITY, MOCK_KEY))
    yield client
    await client.close()
