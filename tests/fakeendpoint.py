from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiocoap import CONTENT, Message
from aiocoap.error import NotObservable
from yarl import URL

from tradfri.transports import BaseEndpoint

_LOGGER = logging.getLogger(__name__)


class FakeObservation:
    """Observation part of a pending request, iterated like aiocoap's."""

    def __init__(self) -> None:
        self.cancelled = False
        self._queue: asyncio.Queue[Message | BaseException | None] = asyncio.Queue()

    def __aiter__(self) -> FakeObservation:
        return self

    async def __anext__(self) -> Message:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    def callback(self, response: Message) -> None:
        self._queue.put_nowait(response)

    def error(self, exception: BaseException) -> None:
        if not isinstance(exception, NotObservable):
            self._queue.put_nowait(exception)
        self.cancel()

    def cancel(self) -> None:
        if self.cancelled:
            raise AssertionError("ClientObservation cancelled twice")
        self.cancelled = True
        self._queue.put_nowait(None)


class FakeRequest:
    """Pending request as returned by an aiocoap context."""

    def __init__(self, message: Message, endpoint: FakeEndpoint) -> None:
        self.message = message
        self.endpoint = endpoint
        self.response: asyncio.Future[Message] = (
            asyncio.get_running_loop().create_future()
        )
        self.observation = FakeObservation()

    @property
    def path(self) -> str:
        return "/".join(self.message.opt.uri_path)

    @property
    def host(self) -> str | None:
        return URL(self.message.get_request_uri()).host

    @property
    def observing(self) -> bool:
        return self.message.opt.observe is not None


class FakeEndpoint(BaseEndpoint):
    """Endpoint answering requests from a FakeGateway.

    Like the DTLS endpoint, only requests addressed to the host the endpoint
    is bound to find the PSK, any other request is recorded as a violation.
    """

    def __init__(self, *, gateway: FakeGateway, number: int, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.gateway = gateway
        self.number = number
        self.started = False
        self.closing = False
        self._closed = False
        self.requests: list[FakeRequest] = []

    @property
    def closed(self) -> bool:
        return self._closed or not self.started

    async def start(self) -> None:
        self.gateway.events.append(("start", self.number))
        await asyncio.sleep(self.gateway.delay)
        if self.gateway.fail_start:
            raise OSError("Unable to bind socket")
        self.started = True

    def request(self, message: Message) -> FakeRequest:
        request = FakeRequest(message, self)
        if not self.started or self.closing or self._closed:
            self.gateway.violations.append((self.number, message))
        elif request.host != self.host:
            self.gateway.violations.append((self.number, message))
            request.response.set_exception(
                ConnectionError(f"No suitable credentials for {request.host}")
            )
            return request
        self.requests.append(request)
        self.gateway.receive(request)
        return request

    async def close(self) -> None:
        self.closing = True
        self.gateway.events.append(("close", self.number))
        await asyncio.sleep(self.gateway.delay)
        for request in self.requests:
            if not request.response.done():
                request.response.cancel()
            if request.observing and not request.observation.cancelled:
                request.observation.error(ConnectionError("Endpoint shut down"))
        self._closed = True


class FakeGateway:
    """Mock gateway and endpoint factory.

    Responds to every request for a configured path, paths without a
    configured response never respond. Observe registrations are accepted
    unless the path is in ``not_observable``.
    """

    def __init__(
        self,
        responses: dict[str, bytes] | None = None,
        *,
        delay: float = 0,
        fail_start: bool = False,
    ) -> None:
        self.responses = responses or {}
        self.delay = delay
        self.fail_start = fail_start
        self.not_observable: set[str] = set()
        self.endpoints: list[FakeEndpoint] = []
        self.events: list[tuple[str, int]] = []
        self.violations: list[tuple[int, Message]] = []
        self.sent: list[FakeRequest] = []

    def __call__(self, **kwargs: Any) -> FakeEndpoint:
        number = len(self.endpoints)
        self.events.append(("create", number))
        endpoint = FakeEndpoint(gateway=self, number=number, **kwargs)
        self.endpoints.append(endpoint)
        return endpoint

    def receive(self, request: FakeRequest) -> None:
        self.sent.append(request)
        _LOGGER.debug("Fake gateway received %s", request.path)
        if (payload := self.responses.get(request.path)) is None:
            return
        asyncio.get_running_loop().call_soon(self._respond, request, payload)

    def _respond(self, request: FakeRequest, payload: bytes) -> None:
        if request.response.done():
            return
        if request.observing and request.path not in self.not_observable:
            request.response.set_result(
                Message(code=CONTENT, payload=payload, observe=0)
            )
            return
        request.response.set_result(Message(code=CONTENT, payload=payload))
        if request.observing:
            # aiocoap ends the relation right after such a response
            request.observation.error(NotObservable())

    def _observers(self, path: str) -> list[FakeRequest]:
        return [
            request
            for request in self.sent
            if request.path == path
            and request.observing
            and not request.observation.cancelled
        ]

    def notify(self, path: str, payload: bytes) -> None:
        """Send a notification to every active observer of path."""
        for request in self._observers(path):
            request.observation.callback(Message(code=CONTENT, payload=payload))

    def fail_observers(self, path: str, error: Exception) -> None:
        for request in self._observers(path):
            request.observation.error(error)

    async def settle(self) -> None:
        """Let observers process what was sent to them."""
        for _ in range(10):
            await asyncio.sleep(0)
