"""JSON encoding of request and response payloads."""

from __future__ import annotations

from typing import Any

from .exceptions import DecodeError, EncodeError

try:
    import orjson

    def _dumps(value: Any, indent: bool) -> str:
        return orjson.dumps(
            value, option=orjson.OPT_INDENT_2 if indent else None
        ).decode()

    _loads = orjson.loads
except ImportError:
    import json

    def _dumps(value: Any, indent: bool) -> str:
        # Separators specified for consistency with orjson
        return json.dumps(value, separators=(",", ":"), indent=2 if indent else None)

    _loads = json.loads


try:
    from mashumaro.mixins.orjson import DataClassORJSONMixin

    DataClassJSONMixin = DataClassORJSONMixin
except ImportError:
    from mashumaro.mixins.json import DataClassJSONMixin as JSONMixin

    DataClassJSONMixin = JSONMixin  # type: ignore[assignment, misc]


def encode(value: Any, *, indent: bool = False) -> str:
    """Encode value as JSON text."""
    try:
        return _dumps(value, indent)
    except (TypeError, ValueError) as ex:
        raise EncodeError(f"Unable to encode payload: {ex}") from ex


def decode_json(text: str | bytes) -> Any:
    """Decode JSON text."""
    try:
        return _loads(text)
    except ValueError as ex:
        raise DecodeError(f"Invalid JSON: {ex}") from ex
