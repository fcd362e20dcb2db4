from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import uvloop

from macrobius_realtime.const import (
    CHANNEL_VERSION,
    MACROBIUS_DEBUG,
    MACROBIUS_ENABLE_METRICS,
    MACROBIUS_METRICS_PORT,
    MACROBIUS_WS_URL,
)
from macrobius_realtime.correlation import correlation_context
from macrobius_realtime.events import SYSTEM_NOTIFICATION_EVENT, USER_PRESENCE_EVENT, EventBus
from macrobius_realtime.logging_abstraction import get_logger, set_log_level
from macrobius_realtime.metrics import start_metrics_server
from macrobius_realtime.protocol.message import Message
from macrobius_realtime.transport.channel import Channel, ConnectionState, TransportFactory
from macrobius_realtime.transport.exceptions import ChannelConnectionError

logger = get_logger(__name__)


def _json_argument(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"invalid JSON payload: {e}"
        raise argparse.ArgumentTypeError(msg) from e


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Macrobius realtime channel probe")
    _ = parser.add_argument("--url", default=MACROBIUS_WS_URL, help="Backend base URL")
    _ = parser.add_argument("--user-id", required=True, dest="user_id", help="Identity to connect as")
    _ = parser.add_argument("--send", metavar="TYPE", dest="send_type", help="Message type to send once connected")
    _ = parser.add_argument(
        "--data",
        type=_json_argument,
        default=None,
        help="JSON payload for --send",
    )
    _ = parser.add_argument("--session-id", dest="session_id", default=None, help="Session id for --send")
    _ = parser.add_argument(
        "--listen",
        metavar="TYPE",
        action="append",
        default=[],
        help="Message type to print when received (repeatable)",
    )
    _ = parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Seconds to stay connected before reporting statistics",
    )
    _ = parser.add_argument(
        "--metrics",
        action="store_true",
        default=MACROBIUS_ENABLE_METRICS,
        help="Expose Prometheus metrics while running",
    )
    _ = parser.add_argument("--metrics-port", type=int, default=MACROBIUS_METRICS_PORT, dest="metrics_port")
    _ = parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    args = parser.parse_args(argv)
    if args.data is not None and args.send_type is None:
        parser.error("--data requires --send")
    return args


def enable_debug_logging() -> None:
    """Lower the package logger and its handlers to DEBUG."""
    set_log_level(logging.DEBUG)


async def run_probe(args: argparse.Namespace, transport_factory: TransportFactory | None = None) -> int:
    """Connect, optionally send one message, print traffic, report statistics.

    Returns:
        Process exit code (0 on success, 1 if the initial connect failed)

    """
    events = EventBus()
    channel = Channel(args.url, name="cli", transport_factory=transport_factory, event_sink=events)

    def print_message(message: Message) -> None:
        print(json.dumps({"type": message.type, "data": message.data}), flush=True)

    def print_event(event: str, detail: Any) -> None:
        print(json.dumps({"event": event, "detail": detail}), flush=True)

    def report_state(state: ConnectionState) -> None:
        logger.info("Connection state: %s", state.value)

    def report_error(error: ChannelConnectionError) -> None:
        logger.error("Channel error: %s", error, extra={"reason": error.reason.value})

    for message_type in args.listen:
        channel.on(message_type, print_message)
    events.subscribe(SYSTEM_NOTIFICATION_EVENT, print_event)
    events.subscribe(USER_PRESENCE_EVENT, print_event)
    channel.on_connection_state(report_state)
    channel.on_error(report_error)

    try:
        await channel.connect(args.user_id)
    except ChannelConnectionError as e:
        logger.error("Initial connect failed: %s", e, extra={"url": args.url})
        await channel.destroy()
        return 1

    try:
        if args.send_type:
            channel.send(args.send_type, args.data, session_id=args.session_id)
        await asyncio.sleep(args.duration)
        print(json.dumps(channel.get_statistics(), indent=2), flush=True)
    finally:
        await channel.destroy()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the channel probe."""
    with correlation_context():
        args = parse_cli(argv)
        logger.info("Starting Macrobius channel probe", extra={"version": CHANNEL_VERSION})
        if args.debug or MACROBIUS_DEBUG:
            enable_debug_logging()
            logger.info("Debug logging enabled")
        if args.metrics:
            start_metrics_server(args.metrics_port)

        try:
            return uvloop.run(run_probe(args))
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
            return 130


if __name__ == "__main__":
    sys.exit(main())
