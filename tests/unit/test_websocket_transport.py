"""Unit tests for the WebSocket transport abstraction.

Tests cover:
- Target URL construction
- Open/send/receive/close against a mocked aiohttp session
- Error mapping to TransportError and session cleanup
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from macrobius_realtime.transport.exceptions import TransportError
from macrobius_realtime.transport.socket_abstraction import Transport, WebSocketTransport, build_target_url
from tests.helpers.expectations import expect_async_exception, expect_exception
from tests.helpers.fake_transport import FakeTransport

TARGET = "ws://backend.test:8080/ws?userId=user-1"


def make_ws(frames: list[SimpleNamespace] | None = None) -> MagicMock:
    """Mock ClientWebSocketResponse that replays ``frames``."""
    ws = MagicMock()
    ws.closed = False
    ws.close_code = None
    ws.send_str = AsyncMock()
    ws.exception = MagicMock(return_value=RuntimeError("bad frame"))
    ws.__aiter__.return_value = frames or []

    async def close(code: int, message: bytes) -> bool:
        ws.closed = True
        ws.close_code = code
        return True

    ws.close = AsyncMock(side_effect=close)
    return ws


def make_session(ws: MagicMock | None = None) -> MagicMock:
    session = MagicMock()
    session.ws_connect = AsyncMock(return_value=ws or make_ws())
    session.close = AsyncMock()
    return session


class TestBuildTargetUrl:
    @pytest.mark.parametrize(
        ("base_url", "expected"),
        [
            ("http://backend:8080", "ws://backend:8080/ws?userId=user-1"),
            ("https://api.example.org", "wss://api.example.org/ws?userId=user-1"),
            ("ws://backend:8080/", "ws://backend:8080/ws?userId=user-1"),
            ("wss://api.example.org/realtime", "wss://api.example.org/realtime/ws?userId=user-1"),
            ("http://backend:8080?region=eu", "ws://backend:8080/ws?region=eu&userId=user-1"),
        ],
    )
    def test_maps_scheme_and_appends_path(self, base_url: str, expected: str):
        assert build_target_url(base_url, "user-1") == expected

    def test_identity_is_escaped(self):
        assert build_target_url("http://backend", "ana maria&co") == "ws://backend/ws?userId=ana+maria%26co"

    def test_custom_path(self):
        assert build_target_url("http://backend", "u", path="/socket") == "ws://backend/socket?userId=u"

    def test_unsupported_scheme(self):
        err = expect_exception(build_target_url, ValueError, "ftp://backend", "u")

        assert "ftp://backend" in str(err)


class TestWebSocketTransport:
    def test_satisfies_transport_protocol(self):
        assert isinstance(WebSocketTransport(session=make_session()), Transport)
        assert isinstance(FakeTransport(), Transport)

    @pytest.mark.asyncio
    async def test_open_success(self):
        session = make_session()
        transport = WebSocketTransport(session=session, max_message_bytes=1024)

        await transport.open(TARGET)

        session.ws_connect.assert_awaited_once_with(TARGET, autoping=True, max_msg_size=1024)
        assert transport.is_open is True
        assert transport.url == TARGET

    @pytest.mark.asyncio
    async def test_open_failure_maps_to_transport_error(self):
        session = make_session()
        session.ws_connect.side_effect = aiohttp.ClientConnectionError("refused")
        transport = WebSocketTransport(session=session)

        err = await expect_async_exception(transport.open(TARGET), TransportError)

        assert "refused" in err.reason
        assert transport.is_open is False
        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_open_failure_closes_owned_session(self):
        session = make_session()
        session.ws_connect.side_effect = OSError("unreachable")

        with patch("aiohttp.ClientSession", return_value=session):
            transport = WebSocketTransport()
            _ = await expect_async_exception(transport.open(TARGET), TransportError)

        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_writes_text_frame(self):
        ws = make_ws()
        transport = WebSocketTransport(session=make_session(ws))
        await transport.open(TARGET)

        await transport.send('{"type":"chat"}')

        ws.send_str.assert_awaited_once_with('{"type":"chat"}')

    @pytest.mark.asyncio
    async def test_send_before_open_fails(self):
        transport = WebSocketTransport(session=make_session())

        _ = await expect_async_exception(transport.send("{}"), TransportError)

    @pytest.mark.asyncio
    async def test_send_failure_maps_to_transport_error(self):
        ws = make_ws()
        ws.send_str.side_effect = aiohttp.ClientConnectionError("reset")
        transport = WebSocketTransport(session=make_session(ws))
        await transport.open(TARGET)

        err = await expect_async_exception(transport.send("{}"), TransportError)

        assert err.reason.startswith("send failed")

    @pytest.mark.asyncio
    async def test_receive_yields_text_and_binary(self):
        ws = make_ws(
            [
                SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data='{"type":"a"}'),
                SimpleNamespace(type=aiohttp.WSMsgType.BINARY, data=b'{"type":"b"}'),
                SimpleNamespace(type=aiohttp.WSMsgType.PING, data=b""),
            ],
        )
        transport = WebSocketTransport(session=make_session(ws))
        await transport.open(TARGET)

        frames = [frame async for frame in transport.receive()]

        assert frames == ['{"type":"a"}', '{"type":"b"}']

    @pytest.mark.asyncio
    async def test_receive_error_frame_raises(self):
        ws = make_ws([SimpleNamespace(type=aiohttp.WSMsgType.ERROR, data=None)])
        transport = WebSocketTransport(session=make_session(ws))
        await transport.open(TARGET)

        async def drain() -> None:
            async for _frame in transport.receive():
                pass

        err = await expect_async_exception(drain(), TransportError)
        assert "bad frame" in err.reason

    @pytest.mark.asyncio
    async def test_close_sends_close_frame(self):
        ws = make_ws()
        session = make_session(ws)
        transport = WebSocketTransport(session=session)
        await transport.open(TARGET)

        await transport.close(1000, "Client disconnecting")
        await transport.close(1000, "Client disconnecting")

        ws.close.assert_awaited_once_with(code=1000, message=b"Client disconnecting")
        assert transport.is_open is False
        assert transport.close_code == 1000
        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_releases_owned_session(self):
        session = make_session()

        with patch("aiohttp.ClientSession", return_value=session):
            transport = WebSocketTransport()
            await transport.open(TARGET)
            await transport.close()

        session.close.assert_awaited_once()
        assert repr(transport) == f"WebSocketTransport({TARGET}, closed)"
