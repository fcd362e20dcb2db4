"""Asyncio WebSocket transport abstraction with instrumentation."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable
from urllib.parse import urlencode, urlsplit, urlunsplit

import aiohttp

from macrobius_realtime.const import (
    CLIENT_CLOSE_CODE,
    CLIENT_CLOSE_REASON,
    MACROBIUS_WS_MAX_MESSAGE_BYTES,
    MACROBIUS_WS_PATH,
)
from macrobius_realtime.transport.exceptions import TransportError

logger = logging.getLogger(__name__)

_SCHEME_MAP = {"http": "ws", "https": "wss", "ws": "ws", "wss": "wss"}


def build_target_url(base_url: str, identity: str, path: str = MACROBIUS_WS_PATH) -> str:
    """Build the connection target for ``identity``.

    ``http``/``https`` base URLs are mapped to ``ws``/``wss``. ``path`` is
    appended to any path already on the base URL and the identity is carried
    as the ``userId`` query parameter.

    Example:
        >>> build_target_url("http://backend:8080", "user 42")
        'ws://backend:8080/ws?userId=user+42'
    """
    parts = urlsplit(base_url)
    scheme = _SCHEME_MAP.get(parts.scheme.lower())
    if scheme is None:
        msg = f"Unsupported URL scheme for channel target: {base_url!r}"
        raise ValueError(msg)

    full_path = parts.path.rstrip("/")
    if path:
        full_path = f"{full_path}/{path.lstrip('/')}"

    query = urlencode({"userId": identity})
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((scheme, parts.netloc, full_path, query, ""))


@runtime_checkable
class Transport(Protocol):
    """One physical duplex connection.

    A transport is single-use: the channel asks its factory for a fresh one
    on every (re)connection attempt.
    """

    async def open(self, url: str) -> None:
        """Open the connection; raise TransportError on failure."""
        ...

    async def send(self, frame: str) -> None:
        """Write one text frame; raise TransportError on failure."""
        ...

    def receive(self) -> AsyncIterator[str]:
        """Iterate inbound text frames until the peer closes."""
        ...

    async def close(self, code: int = CLIENT_CLOSE_CODE, reason: str = CLIENT_CLOSE_REASON) -> None:
        """Close the connection (idempotent)."""
        ...

    @property
    def is_open(self) -> bool: ...

    @property
    def close_code(self) -> int | None: ...


class WebSocketTransport:
    """WebSocket transport built on ``aiohttp``.

    Creates and owns its ``ClientSession`` unless one is injected; an
    injected session is left open on ``close()``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_message_bytes: int = MACROBIUS_WS_MAX_MESSAGE_BYTES,
    ):
        """
        Initialize transport parameters.

        Args:
            session: Shared aiohttp session (a private one is created if None)
            max_message_bytes: Largest inbound frame accepted
        """
        self._session = session
        self._owns_session = session is None
        self.max_message_bytes = max_message_bytes
        self.url: str | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None

    async def open(self, url: str) -> None:
        """
        Perform the WebSocket handshake.

        Raises:
            TransportError: Handshake rejected or host unreachable
        """
        self.url = url
        start_time = time.perf_counter()
        if self._session is None:
            self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(
                url,
                autoping=True,
                max_msg_size=self.max_message_bytes,
            )
        except (aiohttp.ClientError, OSError) as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "WebSocket open to %s failed after %.1fms: %s",
                url,
                elapsed_ms,
                e,
                extra={"url": url, "elapsed_ms": elapsed_ms, "error_type": type(e).__name__},
            )
            await self._close_session()
            raise TransportError(f"open failed: {e}") from e
        except BaseException:
            # Cancellation (connect timeout, disconnect) must not leak the session
            await self._close_session()
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "WebSocket open to %s in %.1fms",
            url,
            elapsed_ms,
            extra={"url": url, "elapsed_ms": elapsed_ms},
        )

    async def send(self, frame: str) -> None:
        """
        Write one text frame.

        Raises:
            TransportError: Transport not open or write failed
        """
        ws = self._ws
        if ws is None or ws.closed:
            raise TransportError("send on closed transport")
        try:
            await ws.send_str(frame)
        except (aiohttp.ClientError, OSError) as e:
            raise TransportError(f"send failed: {e}") from e

    async def receive(self) -> AsyncIterator[str]:
        """
        Yield inbound text frames until the connection closes.

        Binary frames are decoded as UTF-8. Iteration ends normally on a
        close frame.

        Raises:
            TransportError: Protocol error reported by aiohttp
        """
        ws = self._ws
        if ws is None:
            raise TransportError("receive on unopened transport")
        async for msg in ws:
            if msg.type is aiohttp.WSMsgType.TEXT:
                yield msg.data
            elif msg.type is aiohttp.WSMsgType.BINARY:
                yield msg.data.decode("utf-8", errors="replace")
            elif msg.type is aiohttp.WSMsgType.ERROR:
                raise TransportError(f"receive failed: {ws.exception()}")

    async def close(self, code: int = CLIENT_CLOSE_CODE, reason: str = CLIENT_CLOSE_REASON) -> None:
        """Close the WebSocket, then the owned session."""
        ws = self._ws
        try:
            if ws is not None and not ws.closed:
                logger.debug("Closing WebSocket to %s", self.url, extra={"code": code, "reason": reason})
                _ = await ws.close(code=code, message=reason.encode())
        except (aiohttp.ClientError, OSError) as e:
            logger.warning(
                "Error closing WebSocket: %s",
                e,
                extra={"url": self.url, "error_type": type(e).__name__},
            )
        finally:
            await self._close_session()

    async def _close_session(self) -> None:
        if self._owns_session and self._session is not None:
            session, self._session = self._session, None
            await session.close()

    @property
    def is_open(self) -> bool:
        """Check if the WebSocket is open."""
        return self._ws is not None and not self._ws.closed

    @property
    def close_code(self) -> int | None:
        """Close code reported by the peer (None while open)."""
        return self._ws.close_code if self._ws is not None else None

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"WebSocketTransport({self.url}, {status})"
