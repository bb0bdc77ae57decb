"""
Upstream chunk -> gateway DeltaEvent mapping.

Upstream:  {"id", "choices": [{"delta": {"role"?, "content"?}, "finish_reason"?}]}
Gateway:   {"id", "delta": {"role"?, "content"}, "finishReason"?}
"""

from typing import Any, Optional

import orjson

from gateway.models.stream import DeltaEvent, DeltaFragment


class FrameParseError(ValueError):
    """A single upstream frame could not be mapped. Recoverable."""


def _optional_str(value: Any, field: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise FrameParseError(f"Expected string for '{field}', got {type(value).__name__}")


def transcode(payload: str) -> DeltaEvent:
    """Map one upstream `data:` payload to a DeltaEvent.

    Raises:
        FrameParseError: payload is not JSON or does not have the expected shape
    """
    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise FrameParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise FrameParseError("Payload is not a JSON object")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise FrameParseError("Payload has no choices")
    choice = choices[0]
    if not isinstance(choice, dict):
        raise FrameParseError("First choice is not an object")

    delta = choice.get("delta")
    if delta is None:
        delta = {}
    elif not isinstance(delta, dict):
        raise FrameParseError("Choice delta is not an object")

    identifier = data.get("id")
    if identifier is not None and not isinstance(identifier, (str, int)):
        raise FrameParseError("Payload id is not a string")

    return DeltaEvent(
        id=str(identifier) if identifier is not None else None,
        delta=DeltaFragment(
            role=_optional_str(delta.get("role"), "role"),
            content=_optional_str(delta.get("content"), "content") or "",
        ),
        finish_reason=_optional_str(choice.get("finish_reason"), "finish_reason"),
    )
