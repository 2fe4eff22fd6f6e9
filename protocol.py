"""JSON envelope used on the websocket.

Every frame in either direction is a JSON object of the form
``{"event": <name>, "data": <payload>}``.
"""

import json
from typing import Any, Dict, Tuple

from constants import MAX_MESSAGE_BYTES


class ProtocolError(Exception):
    """Raised when an incoming frame can't be decoded into an event."""


def decode_message(raw: str, max_bytes: int = MAX_MESSAGE_BYTES) -> Tuple[str, Any]:
    """Parse a text frame into ``(event, data)``."""
    if len(raw.encode("utf-8")) > max_bytes:
        raise ProtocolError("message exceeds max size")
    try:
        message = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        # RecursionError: pathologically nested arrays/objects
        raise ProtocolError(f"bad json: {exc}") from exc
    if not isinstance(message, dict):
        raise ProtocolError("message must be an object")
    event = message.get("event")
    if not isinstance(event, str) or not event:
        raise ProtocolError("missing event name")
    return event, message.get("data")


def build_message(event: str, data: Any = None) -> Dict[str, Any]:
    return {"event": event, "data": data}


def encode_message(message: Dict[str, Any]) -> str:
    try:
        return json.dumps(message, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"cannot encode message: {exc}") from exc
