"""Configuration for connecting to a gateway.

The gateway is addressed by its host name or IP address and the fixed
CoAP-over-DTLS port. The configuration can be stored and restored:

>>> from tradfri import Credentials, GatewayConfig
>>> config = GatewayConfig("192.168.1.10", credentials=Credentials("me", "key"))
>>> config.to_dict_control_credentials(exclude_credentials=True)
{'host': '192.168.1.10', 'port': 5684, 'timeout': 20000}

"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any, Self

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.types import SerializationStrategy

from .credentials import Credentials
from .codec import DataClassJSONMixin

#: Callable returning the current address of the gateway
HostResolver = Callable[[], Awaitable[str]]


class _GatewayConfigBaseMixin(DataClassJSONMixin):
    """Base class for serialization mixin."""

    class Config(BaseConfig):
        """Serialization config."""

        omit_none = True


class _DoNotSerialize(SerializationStrategy):
    def serialize(self, value: Any) -> None:
        return None

    def deserialize(self, value: Any) -> None:
        return None


@dataclass
class GatewayConfig(_GatewayConfigBaseMixin):
    """Class to represent the parameters that determine how to reach a gateway."""

    DEFAULT_PORT = 5684
    DEFAULT_TIMEOUT = 20000
    #: IP address or hostname
    host: str
    #: CoAP over DTLS port of the gateway
    port: int = DEFAULT_PORT
    #: Timeout for request/response exchanges, in milliseconds
    timeout: int = DEFAULT_TIMEOUT
    #: PSK credentials for the gateway
    credentials: Credentials | None = None

    # compare=False will be excluded from object comparison.
    #: Resolve the gateway address on every rebuild instead of using host.
    host_resolver: HostResolver | None = field(
        default=None,
        compare=False,
        metadata=field_options(serialization_strategy=_DoNotSerialize()),
    )

    def __pre_serialize__(self) -> Self:
        return replace(self, host_resolver=None)

    @property
    def timeout_seconds(self) -> float:
        """Return the exchange timeout in seconds."""
        return self.timeout / 1000

    def to_dict_control_credentials(
        self, *, exclude_credentials: bool = False
    ) -> dict[str, Any]:
        """Convert the config to a dict controlling whether to keep credentials.

        The default is the same as calling to_dict().
        """
        if not exclude_credentials:
            return self.to_dict()
        return replace(self, credentials=None).to_dict()
