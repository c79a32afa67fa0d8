"""Request/response exchanges with the gateway.

Every exchange is bounded by the session timeout. Any failure, be it a
timeout, a transport error, an unencodable payload or an undecodable response,
yields ``None``. No retries are attempted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from aiocoap import GET, POST, PUT, Message
from aiocoap.numbers.codes import Code

from .codec import encode
from .exceptions import EncodeError, TimeoutError, TradfriException
from .session import SecureSession
from .shape import RAW_TEXT, ResultShape, decode

if TYPE_CHECKING:
    from aiocoap.protocol import Request

_LOGGER = logging.getLogger(__name__)

#: CoAP Content-Format number for application/json
CONTENT_FORMAT_JSON = 50

_NO_PAYLOAD = object()


async def wait_for_response(request: Request, timeout: float) -> Message:
    """Wait for the response to request for at most timeout seconds."""
    try:
        return await asyncio.wait_for(request.response, timeout)
    except asyncio.TimeoutError as ex:
        raise TimeoutError(f"No response within {timeout}s") from ex


def response_text(response: Message) -> str:
    """Return the payload of a response as text."""
    return response.payload.decode("utf-8", errors="replace")


class ExchangeDispatcher:
    """Perform exchanges on the endpoint of a session."""

    def __init__(self, session: SecureSession) -> None:
        self._session = session

    async def exchange(
        self,
        method: Code,
        path: str,
        payload: Any = _NO_PAYLOAD,
        shape: ResultShape = RAW_TEXT,
    ) -> Any:
        """Send a request to path and return the response in shape.

        Returns None if the exchange failed for any reason.
        """
        if payload is _NO_PAYLOAD:
            message = Message(code=method, uri=path)
        else:
            try:
                body = encode(payload).encode()
            except EncodeError as ex:
                _LOGGER.debug("Not sending %s %s: %s", method, path, ex)
                return None
            message = Message(
                code=method,
                uri=path,
                payload=body,
                content_format=CONTENT_FORMAT_JSON,
            )

        timeout = self._session.config.timeout_seconds

        try:
            request = await self._session.issue(message)
            _LOGGER.debug("%s %s sent", method, path)
            response = await wait_for_response(request, timeout)
        except TimeoutError:
            _LOGGER.debug("%s %s timed out after %ss", method, path, timeout)
            return None
        except asyncio.CancelledError:
            # The pending request is cancelled when its endpoint is shut down,
            # the calling task itself still propagates its cancellation.
            if (task := asyncio.current_task()) and task.cancelling():
                raise
            _LOGGER.debug("%s %s was interrupted", method, path)
            return None
        except Exception as ex:
            # aiocoap reports transport failures with its own error classes
            _LOGGER.debug("%s %s failed: %s", method, path, ex)
            return None

        if not response.code.is_successful():
            _LOGGER.debug("%s %s responded with %s", method, path, response.code)

        text = response_text(response)
        _LOGGER.debug("%s %s response: %s", method, path, text)
        try:
            return decode(text, shape)
        except TradfriException as ex:
            _LOGGER.debug("%s %s: %s", method, path, ex)
            return None

    async def get(self, path: str, shape: ResultShape = RAW_TEXT) -> Any:
        """Send a GET request to path."""
        return await self.exchange(GET, path, shape=shape)

    async def post(
        self, path: str, payload: Any, shape: ResultShape = RAW_TEXT
    ) -> Any:
        """Send a POST request with payload to path."""
        return await self.exchange(POST, path, payload, shape)

    async def put(
        self, path: str, payload: Any, shape: ResultShape = RAW_TEXT
    ) -> Any:
        """Send a PUT request with payload to path."""
        return await self.exchange(PUT, path, payload, shape)
