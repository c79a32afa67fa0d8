"""Client communicating with the gateway using CoAP over DTLS.

>>> from tradfri import CoapClient, Credentials, GatewayConfig
>>> client = CoapClient(GatewayConfig("192.168.1.10"))
>>> await client.set_credentials(Credentials("my-identity", "my-psk"))
True
>>> await client.get(client.resource_uri("15001"))
'[65536,65537]'

Requests never raise for gateway or transport failures, ``None`` is returned
instead. A failed credential change is reported by the return value of
:meth:`CoapClient.set_credentials` and by :attr:`CoapClient.last_error`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from yarl import URL

from .credentials import Credentials
from .dispatcher import ExchangeDispatcher
from .gatewayconfig import GatewayConfig
from .session import EndpointFactory, RebuildListener, SecureSession, TransportState
from .shape import RAW_TEXT, ResultShape
from .subscription import (
    ErrorHandler,
    NotificationHandler,
    Subscription,
    SubscriptionManager,
)
from .transports import DtlsEndpoint

_LOGGER = logging.getLogger(__name__)


class CoapClient:
    """Client for one gateway."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        endpoint_factory: EndpointFactory = DtlsEndpoint,
    ) -> None:
        self._config = config
        self._session = SecureSession(config, endpoint_factory=endpoint_factory)
        self._dispatcher = ExchangeDispatcher(self._session)
        self._subscriptions = SubscriptionManager(self._session)

    def __repr__(self) -> str:
        return f"<CoapClient {self._config.host} ({self.state.name})>"

    @property
    def config(self) -> GatewayConfig:
        """Return the gateway configuration."""
        return self._config

    @property
    def session(self) -> SecureSession:
        """Return the session owning the secured endpoint."""
        return self._session

    @property
    def credentials(self) -> Credentials | None:
        """Return the credentials used to authenticate to the gateway."""
        return self._config.credentials

    async def set_credentials(self, credentials: Credentials) -> bool:
        """Change the credentials and rebuild the secured session.

        The credentials are kept even if the session cannot be established,
        so the call can be retried. Returns True if the session is usable.
        """
        self._config.credentials = credentials
        return await self._session.rebuild(credentials)

    async def connect(self) -> bool:
        """Establish the session with the configured credentials."""
        if self._config.credentials is None:
            _LOGGER.debug("No credentials configured for %s", self._config.host)
            return False
        return await self._session.rebuild(self._config.credentials)

    @property
    def timeout(self) -> int:
        """Return the exchange timeout in milliseconds."""
        return self._config.timeout

    def set_timeout(self, milliseconds: int) -> None:
        """Change the timeout for future exchanges, in milliseconds."""
        self._config.timeout = milliseconds

    @property
    def state(self) -> TransportState:
        """Return the session state."""
        return self._session.state

    @property
    def last_error(self) -> BaseException | None:
        """Return the error of the last failed session rebuild."""
        return self._session.last_error

    def add_rebuild_listener(
        self, listener: RebuildListener
    ) -> Callable[[], None]:
        """Register a callback for the outcome of session rebuilds."""
        return self._session.add_rebuild_listener(listener)

    def resource_uri(self, *segments: str | int) -> str:
        """Return the locator of a resource on the gateway.

        Once a session is established the locator addresses the resolved
        peer of the session, locators should be built after connecting and
        again after every credential change.
        """
        host = self._session.peer or self._config.host
        url = URL.build(scheme="coaps", host=host, port=self._config.port)
        for segment in segments:
            url = url / str(segment)
        return str(url)

    async def get(self, path: str, shape: ResultShape = RAW_TEXT) -> Any:
        """Make a GET request to path."""
        return await self._dispatcher.get(path, shape)

    async def post(
        self, path: str, payload: Any, shape: ResultShape = RAW_TEXT
    ) -> Any:
        """Make a POST request with payload to path."""
        return await self._dispatcher.post(path, payload, shape)

    async def put(
        self, path: str, payload: Any, shape: ResultShape = RAW_TEXT
    ) -> Any:
        """Make a PUT request with payload to path."""
        return await self._dispatcher.put(path, payload, shape)

    async def observe(
        self,
        path: str,
        handler: NotificationHandler,
        shape: ResultShape = RAW_TEXT,
        *,
        error_handler: ErrorHandler | None = None,
    ) -> Subscription:
        """Observe path, calling handler for every notification."""
        return await self._subscriptions.observe(
            path, handler, shape, error_handler=error_handler
        )

    async def close(self) -> None:
        """Cancel all subscriptions and close the session."""
        self._subscriptions.cancel_all()
        await self._session.close()
