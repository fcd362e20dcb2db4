"""Unit tests for channel exception types."""

from __future__ import annotations

from macrobius_realtime.protocol.exceptions import ChannelError, MessageDecodeError
from macrobius_realtime.transport.exceptions import (
    ChannelClosedError,
    ChannelConnectionError,
    ConnectionErrorReason,
    OutboundQueueFullError,
    TransportError,
)


class TestChannelConnectionError:
    def test_message_includes_reason_state_and_detail(self):
        err = ChannelConnectionError(ConnectionErrorReason.TIMEOUT, state="connecting", detail="no open within 10.0s")

        assert err.reason is ConnectionErrorReason.TIMEOUT
        assert err.state == "connecting"
        assert str(err) == "Connection error: timeout (state: connecting): no open within 10.0s"

    def test_defaults(self):
        err = ChannelConnectionError(ConnectionErrorReason.CANCELLED)

        assert str(err) == "Connection error: cancelled (state: unknown)"
        assert err.detail == ""

    def test_does_not_shadow_builtin(self):
        err = ChannelConnectionError(ConnectionErrorReason.TRANSPORT_FAILURE)

        assert not isinstance(err, ConnectionError)


class TestErrorHierarchy:
    def test_all_errors_share_base(self):
        errors = [
            ChannelConnectionError(ConnectionErrorReason.MAX_RETRIES_EXCEEDED),
            TransportError("refused"),
            OutboundQueueFullError("chat", 10),
            ChannelClosedError("send"),
            MessageDecodeError("invalid_json", "{"),
        ]

        assert all(isinstance(err, ChannelError) for err in errors)

    def test_messages(self):
        assert str(TransportError("refused")) == "Transport failed: refused"
        assert str(OutboundQueueFullError("chat", 10)) == "Outbound queue full (10 messages), rejected 'chat'"
        assert str(ChannelClosedError("send")) == "Channel destroyed, cannot send"

    def test_decode_error_preview_from_bytes(self):
        err = MessageDecodeError("invalid_json", b"\xff\xfeabc")

        assert err.data_preview.endswith("abc")
        assert str(err) == "Message decode failed: invalid_json"
