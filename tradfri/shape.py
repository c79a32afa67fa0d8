"""Result shapes for gateway responses.

A shape tells the client what to do with a response payload:

* :data:`RAW_TEXT` returns the payload text as received.
* :class:`Structured` decodes the payload as JSON and hands the decoded value
  to a decoder, e.g. a mashumaro dataclass via :meth:`Structured.of`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .codec import decode_json
from .exceptions import DecodeError

_T = TypeVar("_T")


class RawText:
    """Shape returning the raw response payload."""

    def __repr__(self) -> str:
        return "RAW_TEXT"


RAW_TEXT = RawText()


@dataclass(frozen=True)
class Structured(Generic[_T]):
    """Shape decoding a JSON payload with a decoder."""

    decoder: Callable[[Any], _T]

    @classmethod
    def of(cls, type_: Any) -> Structured:
        """Return a shape decoding into a mashumaro dataclass."""
        return cls(type_.from_dict)


def _identity(value: Any) -> Any:
    return value


#: Shape returning the decoded JSON value itself
JSON: Structured[Any] = Structured(_identity)

ResultShape = RawText | Structured


def decode(text: str, shape: ResultShape) -> Any:
    """Convert the response text to the requested shape."""
    if isinstance(shape, RawText):
        return text

    value = decode_json(text)
    try:
        return shape.decoder(value)
    except Exception as ex:
        raise DecodeError(f"Unable to decode response: {ex}") from ex
