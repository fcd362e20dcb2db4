"""Exception types for the transport and channel layers.

This module defines the connection error taxonomy surfaced to channel
callers, extending the protocol exceptions.
"""

from __future__ import annotations

from enum import Enum

from macrobius_realtime.protocol.exceptions import ChannelError


class ConnectionErrorReason(Enum):
    """Why a connection attempt or the connection itself failed."""

    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport_failure"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    CANCELLED = "cancelled"


class ChannelConnectionError(ChannelError):
    """Connection could not be established or was abandoned.

    Raised from the first ``Channel.connect()`` call and delivered to error
    observers.

    Note: Named ChannelConnectionError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        reason: Failure category
        state: Connection state when error occurred
        detail: Human-readable detail (underlying error text, attempt counts)

    """

    def __init__(self, reason: ConnectionErrorReason, state: str = "unknown", detail: str = "") -> None:
        """Initialize connection error with reason, state and detail."""
        self.reason: ConnectionErrorReason = reason
        self.state: str = state
        self.detail: str = detail
        message = f"Connection error: {reason.value} (state: {state})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TransportError(ChannelError):
    """Transport failed to open, send or receive.

    Raised when:
    - WebSocket handshake rejected or host unreachable
    - Write attempted on a closed transport
    - Protocol-level error frame received

    Attributes:
        reason: Specific failure reason

    """

    def __init__(self, reason: str) -> None:
        """Initialize transport error with reason."""
        self.reason: str = reason
        super().__init__(f"Transport failed: {reason}")


class OutboundQueueFullError(ChannelError):
    """Outbound queue reached its cap under the REJECT overflow policy.

    Attributes:
        message_type: Type of the message that was rejected
        max_size: Configured queue cap

    """

    def __init__(self, message_type: str, max_size: int) -> None:
        """Initialize queue-full error."""
        self.message_type: str = message_type
        self.max_size: int = max_size
        super().__init__(f"Outbound queue full ({max_size} messages), rejected '{message_type}'")


class ChannelClosedError(ChannelError):
    """Channel was destroyed and can no longer be used."""

    def __init__(self, operation: str) -> None:
        """Initialize closed-channel error."""
        self.operation: str = operation
        super().__init__(f"Channel destroyed, cannot {operation}")
