"""Secured session management for the gateway.

The session owns at most one endpoint. Every credential change tears the
current endpoint down and builds a new one from scratch. A single lock
serializes endpoint replacement against issuing requests, so a request is
never sent on an endpoint that is being closed.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING

from .credentials import Credentials
from .exceptions import TransportNotAvailableError, _ConnectionError
from .gatewayconfig import GatewayConfig
from .transports import BaseEndpoint, DtlsEndpoint

if TYPE_CHECKING:
    from aiocoap import Message
    from aiocoap.protocol import Request

_LOGGER = logging.getLogger(__name__)

EndpointFactory = Callable[..., BaseEndpoint]
RebuildListener = Callable[[bool, "BaseException | None"], None]


class TransportState(Enum):
    """Enum for session state."""

    NOT_ESTABLISHED = auto()  # No credentials set yet
    ESTABLISHED = auto()  # Ready to send requests
    FAILED = auto()  # Last rebuild failed


async def resolve_host(host: str, port: int) -> str:
    """Resolve host to an IP address."""
    loop = asyncio.get_running_loop()
    try:
        addrinfo = await loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except OSError as ex:
        raise _ConnectionError(f"Unable to resolve {host}: {ex}", ex) from ex
    # getaddrinfo returns a list of 5 tuples, the address is in the last one
    # (family, type, proto, canonname, sockaddr)
    return addrinfo[0][4][0]


class SecureSession:
    """Owner of the secured endpoint to the gateway."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        endpoint_factory: EndpointFactory = DtlsEndpoint,
    ) -> None:
        self._config = config
        self._endpoint_factory = endpoint_factory
        self._endpoint: BaseEndpoint | None = None
        self._lock = asyncio.Lock()
        self._state = TransportState.NOT_ESTABLISHED
        self._last_error: BaseException | None = None
        self._listeners: list[RebuildListener] = []

    @property
    def config(self) -> GatewayConfig:
        """Return the gateway configuration."""
        return self._config

    @property
    def state(self) -> TransportState:
        """Return the state of the session."""
        return self._state

    @property
    def last_error(self) -> BaseException | None:
        """Return the error of the last failed rebuild, if any."""
        return self._last_error

    @property
    def endpoint(self) -> BaseEndpoint | None:
        """Return the current endpoint."""
        return self._endpoint

    @property
    def peer(self) -> str | None:
        """Return the address the current endpoint is bound to.

        Request locators must use this address, the PSK of the endpoint is
        keyed on it.
        """
        if self._endpoint is None:
            return None
        return self._endpoint.host

    def add_rebuild_listener(self, listener: RebuildListener) -> Callable[[], None]:
        """Register a callback called with the outcome of every rebuild.

        Returns a callable removing the listener again.
        """
        self._listeners.append(listener)

        def _remove() -> None:
            self._listeners.remove(listener)

        return _remove

    async def _get_peer_address(self) -> str:
        if self._config.host_resolver is not None:
            host = await self._config.host_resolver()
        else:
            host = self._config.host
        return await resolve_host(host, self._config.port)

    async def _teardown(self) -> None:
        endpoint = self._endpoint
        self._endpoint = None
        if endpoint is not None:
            await endpoint.close()

    async def rebuild(self, credentials: Credentials) -> bool:
        """Replace the current endpoint with one using credentials.

        Never raises for endpoint construction failures, the failure is
        available via :attr:`state` and :attr:`last_error` and passed to the
        rebuild listeners.
        """
        async with self._lock:
            try:
                await self._teardown()
                host = await self._get_peer_address()
                endpoint = self._endpoint_factory(
                    config=self._config, credentials=credentials, host=host
                )
                await endpoint.start()
            except Exception as ex:
                _LOGGER.warning(
                    "Unable to establish session with %s: %s", self._config.host, ex
                )
                self._state = TransportState.FAILED
                self._last_error = ex
                ok = False
            else:
                self._endpoint = endpoint
                self._state = TransportState.ESTABLISHED
                self._last_error = None
                ok = True
                _LOGGER.debug("Session with %s established", host)

        for listener in list(self._listeners):
            try:
                listener(ok, self._last_error)
            except Exception:
                _LOGGER.exception("Error in rebuild listener")
        return ok

    async def issue(self, message: Message) -> Request:
        """Issue message on the current endpoint."""
        async with self._lock:
            endpoint = self._endpoint
            if endpoint is None or endpoint.closed:
                raise TransportNotAvailableError(
                    f"No session established with {self._config.host}",
                    host=self._config.host,
                )
            return endpoint.request(message)

    async def close(self) -> None:
        """Close the current endpoint."""
        async with self._lock:
            await self._teardown()
            self._state = TransportState.NOT_ESTABLISHED
