"""Base exception types for channel protocol errors.

Errors raise exceptions instead of returning None; every channel exception
derives from ``ChannelError`` so callers can catch the whole family at once.
"""

from __future__ import annotations


class ChannelError(Exception):
    """Base exception for all realtime channel errors."""


class MessageDecodeError(ChannelError):
    """Inbound frame cannot be decoded into a Message.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_json", "missing_type")
        data_preview: First 64 characters of the frame (keeps payloads out of logs)
    """

    def __init__(self, reason: str, data: str | bytes = "") -> None:
        self.reason: str = reason
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        self.data_preview: str = data[:64]
        super().__init__(f"Message decode failed: {reason}")
