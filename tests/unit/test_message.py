"""Unit tests for the wire message model and JSON codec."""

from __future__ import annotations

import json

import pytest

from macrobius_realtime.protocol.exceptions import MessageDecodeError
from macrobius_realtime.protocol.message import Message, decode_message, encode_message, now_ms
from tests.helpers.expectations import expect_exception


class TestEncodeMessage:
    """Tests for encode_message."""

    def test_encodes_wire_field_names(self):
        message = Message(type="chat", data={"text": "hi"}, timestamp=1700000000000, session_id="quiz-7", user_id="u1")

        frame = json.loads(encode_message(message))

        assert frame == {
            "type": "chat",
            "data": {"text": "hi"},
            "timestamp": 1700000000000,
            "sessionId": "quiz-7",
            "userId": "u1",
        }

    def test_omits_unset_optional_fields(self):
        frame = json.loads(encode_message(Message(type="chat", timestamp=5)))

        assert frame == {"type": "chat", "data": None, "timestamp": 5}

    def test_frame_is_compact(self):
        assert " " not in encode_message(Message(type="chat", data={"a": [1, 2]}, timestamp=1))


class TestDecodeMessage:
    """Tests for decode_message."""

    def test_decodes_wire_field_names(self):
        message = decode_message('{"type":"quiz_update","data":[1],"timestamp":9,"sessionId":"s","userId":"u"}')

        assert message.type == "quiz_update"
        assert message.data == [1]
        assert message.timestamp == 9
        assert message.session_id == "s"
        assert message.user_id == "u"

    def test_decodes_bytes(self):
        assert decode_message(b'{"type":"pong"}').type == "pong"

    def test_missing_timestamp_is_stamped(self):
        before = now_ms()
        message = decode_message('{"type":"chat"}')

        assert message.timestamp >= before
        assert message.data is None

    @pytest.mark.parametrize(
        ("frame", "reason"),
        [
            ("not json", "invalid_json"),
            ("[1, 2]", "not_an_object"),
            ('"chat"', "not_an_object"),
            ('{"data": 1}', "missing_type"),
            ('{"type": ""}', "invalid_fields"),
            ('{"type": "chat", "timestamp": "yesterday"}', "invalid_fields"),
        ],
    )
    def test_rejects_malformed_frames(self, frame: str, reason: str):
        err = expect_exception(decode_message, MessageDecodeError, frame)

        assert err.reason == reason
        assert err.data_preview == frame[:64]

    def test_preview_is_truncated(self):
        frame = "x" * 500

        err = expect_exception(decode_message, MessageDecodeError, frame)

        assert len(err.data_preview) == 64


class TestMessageModel:
    """Tests for the Message model itself."""

    def test_message_is_immutable(self):
        message = Message(type="chat")

        with pytest.raises(ValueError):
            message.type = "other"  # type: ignore[misc]

    def test_populate_by_field_or_alias(self):
        by_alias = Message.model_validate({"type": "chat", "sessionId": "s"})
        by_name = Message(type="chat", session_id="s")

        assert by_alias.session_id == by_name.session_id == "s"
