"""Prometheus metrics registry for the realtime channel."""

import threading
from typing import Final

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

_CONNECTION_STATES: Final = ("disconnected", "connecting", "connected", "reconnecting")

# Message flow
channel_messages_sent_total: Final = Counter(
    "channel_messages_sent_total",
    "Total messages written to the transport",
    ["channel", "message_type"],
)

channel_messages_queued_total: Final = Counter(
    "channel_messages_queued_total",
    "Total messages queued while not connected",
    ["channel", "message_type"],
)

channel_messages_received_total: Final = Counter(
    "channel_messages_received_total",
    "Total inbound messages decoded",
    ["channel", "message_type"],
)

channel_messages_dropped_total: Final = Counter(
    "channel_messages_dropped_total",
    "Total outbound messages evicted or rejected by the queue overflow policy",
    ["channel", "policy"],
)

channel_decode_errors_total: Final = Counter(
    "channel_decode_errors_total",
    "Total inbound frames that failed to decode",
    ["channel"],
)

channel_handler_errors_total: Final = Counter(
    "channel_handler_errors_total",
    "Total exceptions raised by registered message handlers",
    ["channel", "message_type"],
)

channel_outbound_queue_depth: Final = Gauge(
    "channel_outbound_queue_depth",
    "Messages waiting in the outbound queue",
    ["channel"],
)

# Connection lifecycle
channel_connection_state: Final = Gauge(
    "channel_connection_state",
    "Current connection state",
    ["channel", "state"],
)

channel_connect_total: Final = Counter(
    "channel_connect_total",
    "Total connection attempts",
    ["channel", "outcome"],
)

channel_reconnection_total: Final = Counter(
    "channel_reconnection_total",
    "Total scheduled reconnection attempts",
    ["channel", "reason"],
)

channel_heartbeat_total: Final = Counter(
    "channel_heartbeat_total",
    "Total heartbeat events",
    ["channel", "outcome"],
)

channel_connect_latency_seconds: Final = Histogram(
    "channel_connect_latency_seconds",
    "Time from opening the transport to the connection being established",
    ["channel"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)
            _server_state["started"] = True


def record_message_sent(channel: str, message_type: str) -> None:
    """Record a message written to the transport."""
    channel_messages_sent_total.labels(channel=channel, message_type=message_type).inc()


def record_message_queued(channel: str, message_type: str) -> None:
    """Record a message queued while disconnected."""
    channel_messages_queued_total.labels(channel=channel, message_type=message_type).inc()


def record_message_received(channel: str, message_type: str) -> None:
    """Record an inbound message."""
    channel_messages_received_total.labels(channel=channel, message_type=message_type).inc()


def record_message_dropped(channel: str, policy: str) -> None:
    """Record a message rejected or evicted by the overflow policy."""
    channel_messages_dropped_total.labels(channel=channel, policy=policy).inc()


def record_decode_error(channel: str) -> None:
    """Record an undecodable inbound frame."""
    channel_decode_errors_total.labels(channel=channel).inc()


def record_handler_error(channel: str, message_type: str) -> None:
    """Record a handler exception."""
    channel_handler_errors_total.labels(channel=channel, message_type=message_type).inc()


def record_queue_depth(channel: str, depth: int) -> None:
    """Record the outbound queue depth."""
    channel_outbound_queue_depth.labels(channel=channel).set(depth)


def record_connection_state(channel: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in _CONNECTION_STATES:
        value = 1 if s == state else 0
        channel_connection_state.labels(channel=channel, state=s).set(value)


def record_connect(channel: str, outcome: str) -> None:
    """Record a connection attempt outcome."""
    channel_connect_total.labels(channel=channel, outcome=outcome).inc()


def record_reconnection(channel: str, reason: str) -> None:
    """Record a scheduled reconnection."""
    channel_reconnection_total.labels(channel=channel, reason=reason).inc()


def record_heartbeat(channel: str, outcome: str) -> None:
    """Record a heartbeat event ("sent" or "pong")."""
    channel_heartbeat_total.labels(channel=channel, outcome=outcome).inc()


def record_connect_latency(channel: str, latency_seconds: float) -> None:
    """Record connection establishment latency."""
    channel_connect_latency_seconds.labels(channel=channel).observe(latency_seconds)
