"""Python interface for the CoAP API of IKEA TRÅDFRI gateways.

All communication goes through a :class:`CoapClient`::

>>> from tradfri import CoapClient, Credentials, GatewayConfig, JSON
>>> client = CoapClient(GatewayConfig("192.168.1.10"))
>>> await client.set_credentials(Credentials("my-identity", "my-psk"))
>>> await client.get(client.resource_uri("15001"), JSON)
[65536, 65537]

Requests return None on timeouts and transport or decoding errors.
"""

from tradfri.auth import generate_psk
from tradfri.client import CoapClient
from tradfri.credentials import Credentials
from tradfri.exceptions import (
    DecodeError,
    EncodeError,
    SubscriptionError,
    TimeoutError,
    TradfriException,
    TransportNotAvailableError,
)
from tradfri.gatewayconfig import GatewayConfig
from tradfri.session import SecureSession, TransportState
from tradfri.shape import JSON, RAW_TEXT, RawText, Structured
from tradfri.subscription import Subscription
from tradfri.version import __version__

__all__ = [
    "CoapClient",
    "Credentials",
    "GatewayConfig",
    "SecureSession",
    "TransportState",
    "Subscription",
    "JSON",
    "RAW_TEXT",
    "RawText",
    "Structured",
    "generate_psk",
    "TradfriException",
    "TimeoutError",
    "TransportNotAvailableError",
    "EncodeError",
    "DecodeError",
    "SubscriptionError",
    "__version__",
]
