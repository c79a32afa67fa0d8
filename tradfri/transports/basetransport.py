"""Base class for all endpoint implementations.

All endpoint classes must derive from this to implement the common interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aiocoap import Message
    from aiocoap.protocol import Request

    from tradfri.credentials import Credentials
    from tradfri.gatewayconfig import GatewayConfig


class BaseEndpoint(ABC):
    """Base class for a secured session to one gateway."""

    def __init__(
        self,
        *,
        config: GatewayConfig,
        credentials: Credentials,
        host: str,
    ) -> None:
        """Create an endpoint bound to host and credentials."""
        self._config = config
        self._credentials = credentials
        self._host = host
        self._port = config.port

    @property
    def host(self) -> str:
        """The resolved peer address the endpoint is bound to."""
        return self._host

    @property
    def credentials(self) -> Credentials:
        """The credentials the endpoint authenticates with."""
        return self._credentials

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Return True if the endpoint can no longer be used."""

    @abstractmethod
    async def start(self) -> None:
        """Set up the secured session."""

    @abstractmethod
    def request(self, message: Message) -> Request:
        """Issue a request and return its pending handle."""

    @abstractmethod
    async def close(self) -> None:
        """Close the endpoint and release its resources."""
