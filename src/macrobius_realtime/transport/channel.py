"""Resilient duplex messaging channel with reconnection, queuing and dispatch.

This module implements the Channel class which keeps a logical, always
available message channel to the platform backend over an unreliable
WebSocket transport.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any

from macrobius_realtime.const import (
    CLIENT_CLOSE_CODE,
    CLIENT_CLOSE_REASON,
    MACROBIUS_WS_PATH,
    MACROBIUS_WS_URL,
)
from macrobius_realtime.correlation import correlation_context
from macrobius_realtime.events import (
    SYSTEM_NOTIFICATION_EVENT,
    USER_PRESENCE_EVENT,
    EventBus,
    PlatformEventSink,
)
from macrobius_realtime.logging_abstraction import ChannelLogger, get_logger
from macrobius_realtime.metrics import registry
from macrobius_realtime.protocol import message_types
from macrobius_realtime.protocol.exceptions import MessageDecodeError
from macrobius_realtime.protocol.message import Message, decode_message, encode_message, now_ms
from macrobius_realtime.transport.exceptions import (
    ChannelClosedError,
    ChannelConnectionError,
    ConnectionErrorReason,
    OutboundQueueFullError,
    TransportError,
)
from macrobius_realtime.transport.retry_policy import (
    QueueConfig,
    QueueOverflowPolicy,
    ReconnectPolicy,
    TimeoutConfig,
)
from macrobius_realtime.transport.socket_abstraction import Transport, WebSocketTransport, build_target_url

logger = get_logger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


MessageHandler = Callable[[Message], None]
ConnectionStateHandler = Callable[[ConnectionState], None]
ErrorHandler = Callable[[ChannelConnectionError], None]
TransportFactory = Callable[[], Transport]


class Channel:
    """Owns one transport connection, its reconnection state and its queues.

    **State machine**: ``DISCONNECTED → CONNECTING → CONNECTED``; on an
    unrequested close ``CONNECTED → RECONNECTING → CONNECTING → CONNECTED``;
    any state ``→ DISCONNECTED`` on ``disconnect()`` or once the retry cap is
    exceeded.

    **Execution model**: all state lives on one asyncio event loop and is
    mutated only from transport callbacks, timer tasks and the public
    methods, so no lock is taken. ``send()`` never suspends.

    **Ordering**: messages sent while not connected are queued and drained
    into the send buffer, in order, before observers hear about the
    ``CONNECTED`` transition, so nothing sent afterwards can overtake them.
    A single writer task flushes the send buffer; whatever it has not
    written when the transport closes goes back to the head of the queue.

    **Tasks**: session (open + receive loop), writer, heartbeat and
    reconnect timer. ``disconnect()`` cancels all of them.
    """

    def __init__(
        self,
        url: str = MACROBIUS_WS_URL,
        *,
        name: str = "default",
        transport_factory: TransportFactory | None = None,
        timeout_config: TimeoutConfig | None = None,
        reconnect_policy: ReconnectPolicy | None = None,
        queue_config: QueueConfig | None = None,
        event_sink: PlatformEventSink | None = None,
        ws_path: str = MACROBIUS_WS_PATH,
    ) -> None:
        """Initialize channel.

        Args:
            url: Backend base URL (http(s) or ws(s))
            name: Label used in logs and metrics
            transport_factory: Builds a fresh Transport per attempt (defaults to WebSocketTransport)
            timeout_config: Connect timeout and heartbeat interval
            reconnect_policy: Backoff and retry cap
            queue_config: Outbound queue cap and overflow policy
            event_sink: Receives system notifications and presence updates
            ws_path: Path appended to ``url`` when opening the transport

        """
        self.url: str = url
        self.name: str = name
        self.ws_path: str = ws_path
        self._transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self.reconnect_policy: ReconnectPolicy = reconnect_policy or ReconnectPolicy()
        self.queue_config: QueueConfig = queue_config or QueueConfig()
        self.event_sink: PlatformEventSink = event_sink if event_sink is not None else EventBus()
        self._log: ChannelLogger = logger.bind(channel=name)

        self._identity: str | None = None
        self._target: str | None = None
        self._state: ConnectionState = ConnectionState.DISCONNECTED
        self._retry_count: int = 0
        self._retry_delay: float = self.reconnect_policy.initial_delay_seconds
        self._intentionally_closed: bool = False
        self._disconnecting: bool = False
        self._destroyed: bool = False

        self._outbound_queue: deque[Message] = deque()
        self._send_buffer: deque[tuple[Message, str]] = deque()
        self._send_ready: asyncio.Event = asyncio.Event()

        self._type_handlers: dict[str, list[MessageHandler]] = {}
        self._state_observers: list[ConnectionStateHandler] = []
        self._error_observers: list[ErrorHandler] = []

        self._transport: Transport | None = None
        self._pending_connect: asyncio.Future[None] | None = None
        self._session_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._closing_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------ API

    async def connect(self, identity: str) -> None:
        """Open the channel as ``identity``.

        Returns once the transport is open. No-op while already connected or
        connecting. A failure of this attempt is raised here and reported to
        error observers; the channel keeps retrying in the background either
        way.

        Raises:
            ChannelConnectionError: TIMEOUT, TRANSPORT_FAILURE, or CANCELLED
                if ``disconnect()`` runs first or is still in progress
            ChannelClosedError: Channel was destroyed
            ValueError: Empty identity or unsupported URL scheme

        """
        self._ensure_usable("connect")
        if not identity:
            msg = "identity is required"
            raise ValueError(msg)
        if self._disconnecting:
            raise ChannelConnectionError(
                ConnectionErrorReason.CANCELLED,
                state=self._state.value,
                detail="disconnect in progress",
            )
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            self._log.debug("Connect ignored, channel already %s", self._state.value)
            return

        self._target = build_target_url(self.url, identity, self.ws_path)
        self._identity = identity
        self._log = logger.bind(channel=self.name, identity=identity)
        self._intentionally_closed = False
        self._cancel_reconnect_timer()
        if self._state is ConnectionState.DISCONNECTED:
            # Explicit connect starts a new failure streak
            self._reset_backoff()

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending_connect = future
        self._start_attempt()
        await future

    async def disconnect(self) -> None:
        """Close the channel and stop reconnecting (idempotent).

        Suppresses auto-reconnect before the first suspension point, rejects
        a pending ``connect()`` with CANCELLED, cancels every timer and closes
        the transport. ``connect()`` calls made while this runs are rejected
        with CANCELLED too.
        """
        self._intentionally_closed = True
        self._reject_pending_connect("disconnect requested")

        if self._state is ConnectionState.DISCONNECTED and not self._has_live_tasks():
            return

        self._log.info("Disconnecting channel...")
        self._disconnecting = True
        try:
            # Stop writing first, then the reconnect timer, then reading
            await self._cancel_task(self._heartbeat_task)
            self._heartbeat_task = None
            await self._cancel_task(self._writer_task)
            self._writer_task = None
            await self._cancel_task(self._reconnect_task)
            self._reconnect_task = None
            await self._cancel_task(self._session_task)
            self._session_task = None

            transport, self._transport = self._transport, None
            if transport is not None:
                await transport.close(CLIENT_CLOSE_CODE, CLIENT_CLOSE_REASON)
        finally:
            self._disconnecting = False
            self._intentionally_closed = True
            self._reject_pending_connect("disconnect requested")
            self._requeue_unsent()
            self._set_state(ConnectionState.DISCONNECTED)
            self._log.info("Disconnect complete", extra={"queued": len(self._outbound_queue)})

    def send(self, message_type: str, payload: Any = None, session_id: str | None = None) -> None:
        """Send a message, fire-and-forget.

        Transmitted immediately when connected, queued otherwise. The
        payload must be JSON-serializable; that is checked here so errors
        surface to the caller.

        Raises:
            OutboundQueueFullError: Queue at its cap under the REJECT policy
            ChannelClosedError: Channel was destroyed

        """
        self._ensure_usable("send")
        message = Message(
            type=message_type,
            data=payload,
            timestamp=now_ms(),
            session_id=session_id,
            user_id=self._identity,
        )
        frame = encode_message(message)

        if self._state is ConnectionState.CONNECTED:
            self._send_buffer.append((message, frame))
            self._send_ready.set()
            return

        self._enqueue(message)

    def on(self, message_type: str, handler: MessageHandler) -> None:
        """Register ``handler`` for inbound messages of ``message_type``."""
        self._ensure_usable("register handlers")
        if message_types.is_channel_consumed(message_type):
            self._log.warning(
                "Handler registered for '%s', which the channel consumes internally; it will not be called",
                message_type,
            )
        self._type_handlers.setdefault(message_type, []).append(handler)

    def off(self, message_type: str, handler: MessageHandler) -> None:
        """Remove the first registration of ``handler`` for ``message_type``."""
        handlers = self._type_handlers.get(message_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._type_handlers[message_type]

    def on_connection_state(self, handler: ConnectionStateHandler) -> None:
        """Register an observer for every connection state transition."""
        self._ensure_usable("register observers")
        self._state_observers.append(handler)

    def off_connection_state(self, handler: ConnectionStateHandler) -> None:
        if handler in self._state_observers:
            self._state_observers.remove(handler)

    def on_error(self, handler: ErrorHandler) -> None:
        """Register an observer for connection errors."""
        self._ensure_usable("register observers")
        self._error_observers.append(handler)

    def off_error(self, handler: ErrorHandler) -> None:
        if handler in self._error_observers:
            self._error_observers.remove(handler)

    def clear_message_queue(self) -> int:
        """Discard every queued message; returns how many were discarded."""
        count = len(self._outbound_queue)
        self._outbound_queue.clear()
        registry.record_queue_depth(self.name, 0)
        self._log.info("Message queue cleared", extra={"discarded": count})
        return count

    async def destroy(self) -> None:
        """Disconnect, clear queues and handler tables, forbid further use."""
        if self._destroyed:
            return
        await self.disconnect()
        self._destroyed = True
        self._type_handlers.clear()
        self._state_observers.clear()
        self._error_observers.clear()
        _ = self.clear_message_queue()
        self._send_buffer.clear()
        self._log.info("Channel destroyed")

    # ------------------------------------------------------------ accessors

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def queued_messages(self) -> int:
        """Messages waiting for a connection."""
        return len(self._outbound_queue)

    @property
    def retry_count(self) -> int:
        """Consecutive failed (re)connection attempts since the last success."""
        return self._retry_count

    @property
    def retry_delay(self) -> float:
        """Current backoff delay in seconds (``retry_delay_ms`` for milliseconds)."""
        return self._retry_delay

    @property
    def retry_delay_ms(self) -> int:
        """Current backoff delay in milliseconds, as reported to the platform."""
        return round(self._retry_delay * 1000)

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def connection_info(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "connected": self.is_connected,
            "user_id": self._identity,
            "queued_messages": len(self._outbound_queue),
            "reconnect_attempts": self._retry_count,
            "backend_url": self.url,
        }

    def get_statistics(self) -> dict[str, Any]:
        return {
            "connection_state": self._state.value,
            "reconnect_attempts": self._retry_count,
            "retry_delay_seconds": self._retry_delay,
            "retry_delay_ms": self.retry_delay_ms,
            "queued_messages": len(self._outbound_queue),
            "unsent_messages": len(self._send_buffer),
            "registered_handlers": sum(len(handlers) for handlers in self._type_handlers.values()),
            "registered_message_types": len(self._type_handlers),
            "connection_state_handlers": len(self._state_observers),
            "error_handlers": len(self._error_observers),
        }

    # ------------------------------------------------------------ lifecycle

    def _start_attempt(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        task = asyncio.create_task(self._run_session(), name=f"channel-{self.name}-session")
        task.add_done_callback(self._on_session_done)
        self._session_task = task

    async def _run_session(self) -> None:
        """Open the transport, then route inbound frames until it closes.

        **Task Lifecycle**:
        - **Start**: ``connect()`` or the reconnect timer
        - **Stop**: cancelled by ``disconnect()``
        - **End of stream**: tears down writer/heartbeat, requeues unsent
          messages and hands off to ``_on_transport_closed``
        """
        transport = self._transport_factory()
        self._transport = transport
        target = self._target or build_target_url(self.url, self._identity or "", self.ws_path)
        timeout = self.timeout_config.connect_timeout_seconds
        start_time = time.perf_counter()

        self._log.info("→ Opening channel transport", extra={"attempt": self._retry_count, "timeout": timeout})
        try:
            await asyncio.wait_for(transport.open(target), timeout=timeout)
        except TimeoutError:
            await transport.close()
            self._on_open_failed(
                ChannelConnectionError(
                    ConnectionErrorReason.TIMEOUT,
                    state=self._state.value,
                    detail=f"transport did not open within {timeout:.1f}s",
                ),
            )
            return
        except (TransportError, OSError) as e:
            await transport.close()
            self._on_open_failed(
                ChannelConnectionError(
                    ConnectionErrorReason.TRANSPORT_FAILURE,
                    state=self._state.value,
                    detail=str(e),
                ),
            )
            return

        registry.record_connect_latency(self.name, time.perf_counter() - start_time)
        self._on_transport_open(transport)

        close_reason = "closed_by_peer"
        try:
            async for frame in transport.receive():
                self._on_frame(frame)
        except TransportError as e:
            self._log.warning("Transport receive failed", extra={"error": str(e)})
            close_reason = "transport_error"

        self._log.info("Channel transport closed", extra={"reason": close_reason, "close_code": transport.close_code})
        await self._stop_io_tasks()
        await transport.close()
        self._requeue_unsent()
        self._on_transport_closed(close_reason)

    def _on_session_done(self, task: asyncio.Task[None]) -> None:
        """Settle whatever a session task left behind when it ended abnormally.

        A cancelled session rejects the connect() waiting on it. A crashed
        session is treated as a failed attempt: the caller (if any) and error
        observers get TRANSPORT_FAILURE and the retry schedule carries on.
        """
        if task.cancelled():
            if task is self._session_task:
                self._reject_pending_connect("session cancelled")
            return
        error = task.exception()
        if error is None:
            return
        self._log.error(
            "Channel session crashed",
            extra={"error": str(error), "error_type": type(error).__name__},
        )
        for io_task in (self._writer_task, self._heartbeat_task):
            if io_task is not None and not io_task.done():
                _ = io_task.cancel()
        self._writer_task = self._heartbeat_task = None
        self._requeue_unsent()

        transport, self._transport = self._transport, None
        if transport is not None:
            closing = asyncio.create_task(transport.close(), name=f"channel-{self.name}-close")
            self._closing_tasks.add(closing)
            closing.add_done_callback(self._closing_tasks.discard)

        failure = ChannelConnectionError(
            ConnectionErrorReason.TRANSPORT_FAILURE,
            state=self._state.value,
            detail=f"{type(error).__name__}: {error}",
        )
        failure.__cause__ = error
        if self._pending_connect is None:
            self._notify_error(failure)
        self._on_open_failed(failure)

    def _on_transport_open(self, transport: Transport) -> None:
        self._reset_backoff()
        registry.record_connect(self.name, "success")

        self._writer_task = asyncio.create_task(self._write_loop(transport), name=f"channel-{self.name}-writer")
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(), name=f"channel-{self.name}-heartbeat")

        # Drain before observers run so their sends land after the backlog
        self._drain_outbound_queue()
        self._set_state(ConnectionState.CONNECTED)
        self._log.info("Channel connected")

        pending = self._pending_connect
        self._pending_connect = None
        if pending is not None and not pending.done():
            pending.set_result(None)

    def _on_open_failed(self, error: ChannelConnectionError) -> None:
        registry.record_connect(self.name, error.reason.value)
        self._log.warning(
            "Channel connection attempt failed: %s",
            error.reason.value,
            extra={"detail": error.detail, "retry_count": self._retry_count},
        )
        pending = self._pending_connect
        self._pending_connect = None
        if pending is not None and not pending.done():
            # Only a caller-initiated attempt reports its own failure
            self._notify_error(error)
            pending.set_exception(error)
        self._transport = None
        self._on_transport_closed(error.reason.value)

    def _on_transport_closed(self, reason: str) -> None:
        """Apply the close transition: stop, or schedule the next attempt."""
        self._transport = None
        self._cancel_reconnect_timer()
        if self._intentionally_closed or self._destroyed:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._retry_count += 1
        if self.reconnect_policy.exhausted(self._retry_count):
            self._log.error("Max reconnection attempts reached", extra={"max_retries": self.reconnect_policy.max_retries})
            self._set_state(ConnectionState.DISCONNECTED)
            self._notify_error(
                ChannelConnectionError(
                    ConnectionErrorReason.MAX_RETRIES_EXCEEDED,
                    state=ConnectionState.DISCONNECTED.value,
                    detail=f"{self._retry_count} consecutive failures",
                ),
            )
            return

        self._retry_delay = self.reconnect_policy.base_delay(self._retry_count)
        delay = self.reconnect_policy.get_delay(self._retry_count)
        registry.record_reconnection(self.name, reason)
        self._set_state(ConnectionState.RECONNECTING)
        self._log.info(
            "Scheduling reconnect attempt %d/%d in %.1fs",
            self._retry_count,
            self.reconnect_policy.max_retries,
            delay,
            extra={"reason": reason},
        )
        self._reconnect_task = asyncio.create_task(
            self._reconnect_after(delay),
            name=f"channel-{self.name}-reconnect",
        )

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._intentionally_closed or self._destroyed or self._identity is None:
            return
        self._log.info(
            "Attempting to reconnect (%d/%d)...",
            self._retry_count,
            self.reconnect_policy.max_retries,
        )
        self._reconnect_task = None
        self._start_attempt()

    def _reset_backoff(self) -> None:
        self._retry_count = 0
        self._retry_delay = self.reconnect_policy.initial_delay_seconds

    def _reject_pending_connect(self, detail: str) -> None:
        pending = self._pending_connect
        self._pending_connect = None
        if pending is not None and not pending.done():
            pending.set_exception(
                ChannelConnectionError(ConnectionErrorReason.CANCELLED, state=self._state.value, detail=detail),
            )

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        registry.record_connection_state(self.name, state.value)
        self._log.debug(
            "Channel state %s → %s",
            previous.value,
            state.value,
            extra={"queued": len(self._outbound_queue)},
        )
        for observer in tuple(self._state_observers):
            try:
                observer(state)
            except Exception as e:
                self._log.exception(
                    "Connection state observer failed",
                    extra={"error": str(e), "error_type": type(e).__name__},
                )

    def _notify_error(self, error: ChannelConnectionError) -> None:
        for observer in tuple(self._error_observers):
            try:
                observer(error)
            except Exception as e:
                self._log.exception("Error observer failed", extra={"error": str(e), "error_type": type(e).__name__})

    # ------------------------------------------------------------- outbound

    def _enqueue(self, message: Message) -> None:
        config = self.queue_config
        if config.bounded and len(self._outbound_queue) >= config.max_size:
            registry.record_message_dropped(self.name, config.overflow_policy.value)
            if config.overflow_policy is QueueOverflowPolicy.REJECT:
                self._log.warning(
                    "Outbound queue full, rejecting message",
                    extra={"message_type": message.type, "max_size": config.max_size},
                )
                raise OutboundQueueFullError(message.type, config.max_size)
            evicted = self._outbound_queue.popleft()
            self._log.warning(
                "Outbound queue full, evicted oldest message",
                extra={"evicted_type": evicted.type, "max_size": config.max_size},
            )

        self._outbound_queue.append(message)
        registry.record_message_queued(self.name, message.type)
        registry.record_queue_depth(self.name, len(self._outbound_queue))
        self._log.debug(
            "Channel not connected, message queued",
            extra={"message_type": message.type, "state": self._state.value},
        )

    def _drain_outbound_queue(self) -> None:
        if not self._outbound_queue:
            return
        self._log.info("Processing %d queued messages", len(self._outbound_queue))
        while self._outbound_queue:
            message = self._outbound_queue.popleft()
            if message.user_id is None and self._identity is not None:
                # Queued before the identity was known
                message = message.model_copy(update={"user_id": self._identity})
            self._send_buffer.append((message, encode_message(message)))
        registry.record_queue_depth(self.name, 0)
        self._send_ready.set()

    def _requeue_unsent(self) -> None:
        if not self._send_buffer:
            return
        unsent = [message for message, _ in self._send_buffer]
        self._send_buffer.clear()
        self._outbound_queue.extendleft(reversed(unsent))
        registry.record_queue_depth(self.name, len(self._outbound_queue))
        self._log.info("Requeued %d unsent messages", len(unsent))

    async def _write_loop(self, transport: Transport) -> None:
        """Flush the send buffer to the transport in order."""
        while True:
            _ = await self._send_ready.wait()
            self._send_ready.clear()
            while self._send_buffer:
                message, frame = self._send_buffer[0]
                try:
                    await transport.send(frame)
                except (TransportError, OSError) as e:
                    self._log.warning(
                        "Transport write failed, closing connection",
                        extra={"error": str(e), "message_type": message.type},
                    )
                    await transport.close()
                    return
                _ = self._send_buffer.popleft()
                registry.record_message_sent(self.name, message.type)

    async def _heartbeat_loop(self) -> None:
        interval = self.timeout_config.heartbeat_interval_seconds
        while True:
            await asyncio.sleep(interval)
            if self._state is ConnectionState.CONNECTED:
                self.send(message_types.PING, {"timestamp": now_ms()})
                registry.record_heartbeat(self.name, "sent")
                self._log.debug("Heartbeat sent")

    # -------------------------------------------------------------- inbound

    def _on_frame(self, frame: str) -> None:
        try:
            message = decode_message(frame)
        except MessageDecodeError as e:
            registry.record_decode_error(self.name)
            self._log.warning("Error parsing inbound message", extra={"reason": e.reason, "preview": e.data_preview})
            return
        registry.record_message_received(self.name, message.type)
        self._dispatch(message)

    def _dispatch(self, message: Message) -> None:
        """Route one inbound message.

        Liveness replies are consumed, system notifications and presence
        updates go to the platform event sink, and every other type goes to
        the handlers registered for it, in registration order. A handler
        that raises is logged and does not stop the rest.
        """
        with correlation_context(message.session_id, auto_generate=False):
            if message.type == message_types.PONG:
                registry.record_heartbeat(self.name, "pong")
                self._log.debug("Heartbeat reply received")
                return
            if message.type == message_types.SYSTEM_NOTIFICATION:
                self._log.info("System notification")
                self._publish(SYSTEM_NOTIFICATION_EVENT, message.data)
                return
            if message.type in message_types.PRESENCE_TYPES:
                self._log.debug("User presence update: %s", message.type)
                self._publish(USER_PRESENCE_EVENT, {"type": message.type, "data": message.data})
                return

            handlers = tuple(self._type_handlers.get(message.type, ()))
            if not handlers:
                self._log.debug("No handlers for message type '%s'", message.type)
            for handler in handlers:
                try:
                    handler(message)
                except Exception as e:
                    registry.record_handler_error(self.name, message.type)
                    self._log.exception(
                        "Message handler failed",
                        extra={"message_type": message.type, "error": str(e), "error_type": type(e).__name__},
                    )

    def _publish(self, event: str, detail: Any) -> None:
        try:
            self.event_sink.publish(event, detail)
        except Exception as e:
            self._log.exception("Platform event sink failed", extra={"event": event, "error": str(e)})

    # -------------------------------------------------------------- helpers

    def _ensure_usable(self, operation: str) -> None:
        if self._destroyed:
            raise ChannelClosedError(operation)

    def _has_live_tasks(self) -> bool:
        tasks = (self._session_task, self._writer_task, self._heartbeat_task, self._reconnect_task)
        return any(task is not None and not task.done() for task in tasks) or self._transport is not None

    def _cancel_reconnect_timer(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            _ = task.cancel()

    async def _stop_io_tasks(self) -> None:
        await self._cancel_task(self._heartbeat_task)
        self._heartbeat_task = None
        await self._cancel_task(self._writer_task)
        self._writer_task = None

    @staticmethod
    async def _cancel_task(task: asyncio.Task[Any] | None) -> None:
        if task is None or task.done() or task is asyncio.current_task():
            return
        _ = task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def __repr__(self) -> str:
        return f"Channel({self.name!r}, {self.url}, {self._state.value}, queued={len(self._outbound_queue)})"
