"""python-tradfri-coap exceptions."""

from __future__ import annotations

from asyncio import TimeoutError as _asyncioTimeoutError
from typing import Any


class TradfriException(Exception):
    """Base exception for library errors."""


class TimeoutError(TradfriException, _asyncioTimeoutError):
    """Timeout exception for gateway exchanges."""

    def __repr__(self) -> str:
        return TradfriException.__repr__(self)

    def __str__(self) -> str:
        return TradfriException.__str__(self)


class _ConnectionError(TradfriException):
    """Connection exception for transport errors."""


class TransportNotAvailableError(TradfriException):
    """No secured endpoint is currently established."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.host = kwargs.get("host")
        super().__init__(*args)


class EncodeError(TradfriException):
    """A payload could not be serialized."""


class DecodeError(TradfriException):
    """A response payload could not be converted to the requested shape."""


class SubscriptionError(TradfriException):
    """An observe relation could not be established."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.path = kwargs.get("path")
        super().__init__(*args)

    def __str__(self) -> str:
        path = f" (path={self.path})" if self.path else ""
        return super().__str__() + path
