"""Wire message model and JSON codec.

Every frame on the wire is a flat JSON object:

    {"type": "chat", "data": {...}, "timestamp": 1700000000000,
     "sessionId": "quiz-7", "userId": "user-42"}

``sessionId`` and ``userId`` are omitted when unset. ``encode_message`` and
``decode_message`` are exact inverses of each other.
"""

from __future__ import annotations

import json
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from macrobius_realtime.protocol.exceptions import MessageDecodeError

__all__ = ["Message", "decode_message", "encode_message", "now_ms"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class Message(BaseModel):
    """Unit of communication in both directions.

    Attributes:
        type: Discriminates handler dispatch
        data: Caller-defined payload
        timestamp: Epoch milliseconds, stamped when the message is created
        session_id: Scopes the message to a logical session (quiz, group, request)
        user_id: Identity of the sending client

    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str = Field(min_length=1)
    data: Any = None
    timestamp: int = Field(default_factory=now_ms)
    session_id: str | None = Field(default=None, alias="sessionId")
    user_id: str | None = Field(default=None, alias="userId")


def encode_message(message: Message) -> str:
    """Serialize a Message to its JSON wire frame."""
    payload: dict[str, Any] = message.model_dump(mode="json", by_alias=True)
    for optional in ("sessionId", "userId"):
        if payload.get(optional) is None:
            _ = payload.pop(optional, None)
    return json.dumps(payload, separators=(",", ":"))


def decode_message(frame: str | bytes) -> Message:
    """Parse a JSON wire frame into a Message.

    Raises:
        MessageDecodeError: Frame is not JSON, not an object, or fails validation

    """
    try:
        raw = json.loads(frame)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MessageDecodeError("invalid_json", frame) from e

    if not isinstance(raw, dict):
        raise MessageDecodeError("not_an_object", frame)

    try:
        return Message.model_validate(raw)
    except ValidationError as e:
        reason = "missing_type" if "type" not in raw else "invalid_fields"
        raise MessageDecodeError(reason, frame) from e
