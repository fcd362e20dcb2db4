"""Channel transport package.

Provides the reconnecting Channel and the pieces it is built from:
- channel.py: Channel state machine, outbound queue and inbound dispatch
- socket_abstraction.py: Transport protocol and the aiohttp WebSocket transport
- retry_policy.py: Reconnect backoff, timers and queue bounds
- exceptions.py: Connection and queue errors
"""

from .channel import Channel, ConnectionState, ConnectionStateHandler, ErrorHandler, MessageHandler
from .exceptions import (
    ChannelClosedError,
    ChannelConnectionError,
    ConnectionErrorReason,
    OutboundQueueFullError,
    TransportError,
)
from .retry_policy import QueueConfig, QueueOverflowPolicy, ReconnectPolicy, TimeoutConfig
from .socket_abstraction import Transport, WebSocketTransport, build_target_url

__all__ = [
    "Channel",
    "ChannelClosedError",
    "ChannelConnectionError",
    "ConnectionErrorReason",
    "ConnectionState",
    "ConnectionStateHandler",
    "ErrorHandler",
    "MessageHandler",
    "OutboundQueueFullError",
    "QueueConfig",
    "QueueOverflowPolicy",
    "ReconnectPolicy",
    "TimeoutConfig",
    "Transport",
    "TransportError",
    "WebSocketTransport",
    "build_target_url",
]
