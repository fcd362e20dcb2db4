"""Channel wire protocol - message model, JSON codec and message types.

Public API:
- Message model and codec (Message, encode_message, decode_message)
- Protocol exceptions (ChannelError, MessageDecodeError)
- Message type constants (``message_types`` module)
"""

from macrobius_realtime.protocol import message_types
from macrobius_realtime.protocol.exceptions import ChannelError, MessageDecodeError
from macrobius_realtime.protocol.message import Message, decode_message, encode_message, now_ms

__all__ = [
    "ChannelError",
    "Message",
    "MessageDecodeError",
    "decode_message",
    "encode_message",
    "message_types",
    "now_ms",
]
