"""Metrics module."""

from . import registry
from .registry import (
    record_connection_state,
    record_handler_error,
    record_message_dropped,
    record_message_queued,
    record_message_received,
    record_message_sent,
    start_metrics_server,
)

__all__ = [
    "record_connection_state",
    "record_handler_error",
    "record_message_dropped",
    "record_message_queued",
    "record_message_received",
    "record_message_sent",
    "registry",
    "start_metrics_server",
]
