"""Implementation of the CoAP over DTLS-PSK endpoint.

The gateway only accepts DTLS with pre-shared keys. The endpoint holds an
aiocoap client context whose credential table has exactly one entry, the
gateway address mapped to the PSK identity and key.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiocoap import Context, Message
from yarl import URL

from tradfri.exceptions import TransportNotAvailableError, _ConnectionError

from .basetransport import BaseEndpoint

if TYPE_CHECKING:
    from aiocoap.protocol import Request

_LOGGER = logging.getLogger(__name__)


class DtlsEndpoint(BaseEndpoint):
    """Endpoint sending CoAP messages over a DTLS-PSK secured session."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._context: Context | None = None
        self._base_url = URL.build(scheme="coaps", host=self._host, port=self._port)

    @property
    def closed(self) -> bool:
        """Return True if the context is not running."""
        return self._context is None

    @property
    def credentials_table(self) -> dict[str, dict]:
        """The aiocoap credential table for the gateway."""
        return {
            f"{self._base_url}/*": {
                "dtls": {
                    "psk": self._credentials.key.encode(),
                    "client-identity": self._credentials.identity.encode(),
                }
            }
        }

    async def start(self) -> None:
        """Create the client context and load the PSK."""
        _LOGGER.debug("Creating DTLS endpoint for %s", self._base_url)
        try:
            context = await Context.create_client_context()
        except OSError as ex:
            raise _ConnectionError(
                f"Unable to create endpoint for {self._host}: {ex}", ex
            ) from ex

        try:
            context.client_credentials.load_from_dict(self.credentials_table)
        except Exception:
            await context.shutdown()
            raise

        self._context = context
        _LOGGER.debug("DTLS endpoint for %s started", self._base_url)

    def request(self, message: Message) -> Request:
        """Issue the message on the client context."""
        if self._context is None:
            raise TransportNotAvailableError(
                f"Endpoint for {self._host} is closed", host=self._host
            )
        return self._context.request(message)

    async def close(self) -> None:
        """Shut down the client context, cancelling pending requests."""
        context = self._context
        self._context = None
        if context:
            _LOGGER.debug("Shutting down DTLS endpoint for %s", self._base_url)
            await context.shutdown()
