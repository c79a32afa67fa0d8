import pytest
from aiocoap import GET, Message
from aiocoap.credentials import CredentialsMap, CredentialsMissingError

from tradfri import CoapClient, Credentials, GatewayConfig, TransportState
from tradfri.transports import DtlsEndpoint

from .fakeendpoint import FakeGateway

# Client tests are not designed for real gateways
pytestmark = [pytest.mark.requires_dummy]

CREDS = Credentials("identity", "key")


def _dtls_credentials(client: CoapClient, uri: str):
    """Look up the PSK a DTLS endpoint of the session would use for uri."""
    endpoint = DtlsEndpoint(
        config=client.config, credentials=client.credentials, host=client.session.peer
    )
    credentials = CredentialsMap()
    credentials.load_from_dict(endpoint.credentials_table)
    return credentials.credentials_from_request(Message(code=GET, uri=uri))


def test_resource_uri():
    client = CoapClient(GatewayConfig("127.0.0.1"))
    assert client.resource_uri("15001", 65536) == "coaps://127.0.0.1:5684/15001/65536"


async def test_resource_uri_of_hostname_config(mocker, gateway):
    gateway.responses["15001"] = b"[]"
    mocker.patch("tradfri.session.resolve_host", return_value="192.0.2.10")
    client = CoapClient(GatewayConfig("gw-0123.local"), endpoint_factory=gateway)
    stale = client.resource_uri("15001")
    assert await client.set_credentials(CREDS)

    uri = client.resource_uri("15001")
    assert uri == "coaps://192.0.2.10:5684/15001"
    assert _dtls_credentials(client, uri).psk == b"key"
    with pytest.raises(CredentialsMissingError):
        _dtls_credentials(client, stale)

    assert await client.get(uri) == "[]"
    assert gateway.violations == []
    await client.close()


async def test_resource_uri_follows_host_resolver(gateway):
    gateway.responses["15001"] = b"[]"
    addresses = iter(["192.0.2.20", "192.0.2.21"])

    async def _resolver():
        return next(addresses)

    client = CoapClient(
        GatewayConfig("gw-0123.local", host_resolver=_resolver),
        endpoint_factory=gateway,
    )
    assert await client.set_credentials(CREDS)
    uri = client.resource_uri("15001")
    assert uri == "coaps://192.0.2.20:5684/15001"
    assert _dtls_credentials(client, uri).client_identity == b"identity"
    assert await client.get(uri) == "[]"

    assert await client.set_credentials(CREDS)
    assert client.resource_uri("15001") == "coaps://192.0.2.21:5684/15001"
    # Locators of the previous peer no longer reach the gateway
    assert await client.get(uri) is None
    assert len(gateway.violations) == 1
    await client.close()


def test_repr_and_defaults():
    client = CoapClient(GatewayConfig("127.0.0.1"))
    assert repr(client) == "<CoapClient 127.0.0.1 (NOT_ESTABLISHED)>"
    assert client.timeout == GatewayConfig.DEFAULT_TIMEOUT
    assert client.credentials is None
    assert client.last_error is None


async def test_connect_uses_configured_credentials(gateway):
    client = CoapClient(
        GatewayConfig("127.0.0.1", credentials=CREDS), endpoint_factory=gateway
    )
    assert await client.connect()
    assert client.state is TransportState.ESTABLISHED
    assert client.session.endpoint.credentials == CREDS
    await client.close()
    assert client.state is TransportState.NOT_ESTABLISHED


async def test_connect_without_credentials(gateway):
    client = CoapClient(GatewayConfig("127.0.0.1"), endpoint_factory=gateway)
    assert await client.connect() is False
    assert gateway.endpoints == []


async def test_set_credentials_never_raises():
    client = CoapClient(
        GatewayConfig("127.0.0.1"), endpoint_factory=FakeGateway(fail_start=True)
    )
    outcomes = []
    client.add_rebuild_listener(lambda ok, ex: outcomes.append(ok))

    assert await client.set_credentials(CREDS) is False
    assert client.state is TransportState.FAILED
    assert isinstance(client.last_error, OSError)
    assert outcomes == [False]
