"""Observe relations with the gateway.

An observe relation delivers every notification the gateway sends for a
resource to a handler. The session timeout only bounds the registration,
the relation itself lives until it is cancelled or the transport fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from aiocoap import GET, Message

from .dispatcher import response_text, wait_for_response
from .exceptions import SubscriptionError, TradfriException
from .session import SecureSession
from .shape import RAW_TEXT, ResultShape, decode

if TYPE_CHECKING:
    from aiocoap.protocol import Request

_LOGGER = logging.getLogger(__name__)

NotificationHandler = Callable[[Any], None]
ErrorHandler = Callable[[BaseException], None]


class Subscription:
    """Handle of an observe relation."""

    def __init__(
        self,
        path: str,
        handler: NotificationHandler,
        shape: ResultShape = RAW_TEXT,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self._path = path
        self._handler = handler
        self._shape = shape
        self._error_handler = error_handler
        self._request: Request | None = None
        self._task: asyncio.Task | None = None
        self._established = False
        self._pending: list[Message] = []
        self._ended = False
        self._error: BaseException | None = None
        self._cancelled = False
        self._on_done: Callable[[Subscription], None] | None = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<Subscription {self._path} ({state})>"

    @property
    def path(self) -> str:
        """Return the observed resource."""
        return self._path

    @property
    def cancelled(self) -> bool:
        """Return True if no further notifications will be delivered."""
        return self._cancelled

    def _attach(self, request: Request) -> None:
        self._request = request
        self._task = asyncio.create_task(self._receive())

    async def _receive(self) -> None:
        """Consume notifications until the relation ends."""
        assert self._request is not None
        try:
            async for response in self._request.observation:
                if self._established:
                    self._deliver(response)
                else:
                    self._pending.append(response)
        except Exception as ex:
            self._error = ex
        else:
            self._error = SubscriptionError(
                "Relation was ended by the gateway", path=self._path
            )
        self._ended = True
        if self._established:
            self._report()

    def _establish(self, response: Message) -> None:
        self._established = True
        self._deliver(response)
        pending, self._pending = self._pending, []
        for notification in pending:
            self._deliver(notification)
        if self._ended:
            self._report()

    def _deliver(self, response: Message) -> None:
        if self._cancelled:
            return
        text = response_text(response)
        _LOGGER.debug("Notification for %s: %s", self._path, text)
        try:
            value = decode(text, self._shape)
        except TradfriException as ex:
            _LOGGER.debug("Skipping notification for %s: %s", self._path, ex)
            return
        try:
            self._handler(value)
        except Exception:
            _LOGGER.exception("Error in notification handler for %s", self._path)

    def _report(self) -> None:
        if self._cancelled:
            return
        _LOGGER.debug("Observe relation for %s ended: %s", self._path, self._error)
        self._finish()
        if self._error_handler is None or self._error is None:
            return
        try:
            self._error_handler(self._error)
        except Exception:
            _LOGGER.exception("Error in error handler for %s", self._path)

    def _finish(self) -> None:
        self._cancelled = True
        self._pending.clear()
        if self._on_done is not None:
            self._on_done(self)
            self._on_done = None

    def _stop(self) -> None:
        # aiocoap cancels a relation itself when it fails or the gateway
        # ends it, a second cancel is an error
        if self._request is not None and not self._request.observation.cancelled:
            self._request.observation.cancel()
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    def cancel(self) -> None:
        """Stop delivering notifications and cancel the relation."""
        if self._cancelled:
            return
        _LOGGER.debug("Cancelling observe relation for %s", self._path)
        self._finish()
        self._stop()


class SubscriptionManager:
    """Open observe relations on the endpoint of a session."""

    def __init__(self, session: SecureSession) -> None:
        self._session = session
        self._subscriptions: set[Subscription] = set()

    @property
    def subscriptions(self) -> set[Subscription]:
        """Return the active subscriptions."""
        return set(self._subscriptions)

    async def observe(
        self,
        path: str,
        handler: NotificationHandler,
        shape: ResultShape = RAW_TEXT,
        *,
        error_handler: ErrorHandler | None = None,
    ) -> Subscription:
        """Observe path, calling handler with every notification.

        Raises :class:`SubscriptionError` if the relation cannot be established.
        """
        subscription = Subscription(path, handler, shape, error_handler)
        timeout = self._session.config.timeout_seconds
        message = Message(code=GET, uri=path, observe=0)

        try:
            request = await self._session.issue(message)
        except TradfriException as ex:
            raise SubscriptionError(str(ex), path=path) from ex

        subscription._attach(request)
        try:
            response = await wait_for_response(request, timeout)
        except asyncio.CancelledError as ex:
            subscription.cancel()
            if (task := asyncio.current_task()) and task.cancelling():
                raise
            raise SubscriptionError("Registration was interrupted", path=path) from ex
        except Exception as ex:
            subscription.cancel()
            raise SubscriptionError(f"Registration failed: {ex}", path=path) from ex

        if not response.code.is_successful():
            subscription.cancel()
            raise SubscriptionError(
                f"Registration rejected with {response.code}", path=path
            )
        if response.opt.observe is None:
            subscription.cancel()
            raise SubscriptionError("Resource is not observable", path=path)

        self._subscriptions.add(subscription)
        subscription._on_done = self._subscriptions.discard
        subscription._establish(response)
        _LOGGER.debug("Observing %s", path)
        return subscription

    def cancel_all(self) -> None:
        """Cancel every active subscription."""
        for subscription in list(self._subscriptions):
            subscription.cancel()
