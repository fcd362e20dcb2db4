import os

from macrobius_realtime import __version__

__all__ = [
    "CHANNEL_VERSION",
    "CLIENT_CLOSE_CODE",
    "CLIENT_CLOSE_REASON",
    "MACROBIUS_CONNECT_TIMEOUT",
    "MACROBIUS_DEBUG",
    "MACROBIUS_ENABLE_METRICS",
    "MACROBIUS_HEARTBEAT_INTERVAL",
    "MACROBIUS_LOG_FORMAT",
    "MACROBIUS_LOG_HUMAN_OUTPUT",
    "MACROBIUS_LOG_JSON_FILE",
    "MACROBIUS_MAX_QUEUE_SIZE",
    "MACROBIUS_MAX_RETRIES",
    "MACROBIUS_METRICS_PORT",
    "MACROBIUS_QUEUE_OVERFLOW",
    "MACROBIUS_RECONNECT_INITIAL_DELAY",
    "MACROBIUS_RECONNECT_MAX_DELAY",
    "MACROBIUS_WS_MAX_MESSAGE_BYTES",
    "MACROBIUS_WS_PATH",
    "MACROBIUS_WS_URL",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")

CHANNEL_VERSION: str = __version__
CLIENT_CLOSE_CODE: int = 1000
CLIENT_CLOSE_REASON: str = "Client disconnecting"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


MACROBIUS_WS_URL: str = os.environ.get("MACROBIUS_WS_URL", "ws://localhost:8080")
MACROBIUS_WS_PATH: str = os.environ.get("MACROBIUS_WS_PATH", "/ws")
MACROBIUS_WS_MAX_MESSAGE_BYTES: int = _env_int("MACROBIUS_WS_MAX_MESSAGE_BYTES", 4 * 1024 * 1024)

# Timers (seconds)
MACROBIUS_CONNECT_TIMEOUT: float = _env_float("MACROBIUS_CONNECT_TIMEOUT", 10.0)
MACROBIUS_HEARTBEAT_INTERVAL: float = _env_float("MACROBIUS_HEARTBEAT_INTERVAL", 30.0)
MACROBIUS_RECONNECT_INITIAL_DELAY: float = _env_float("MACROBIUS_RECONNECT_INITIAL_DELAY", 1.0)
MACROBIUS_RECONNECT_MAX_DELAY: float = _env_float("MACROBIUS_RECONNECT_MAX_DELAY", 30.0)
MACROBIUS_MAX_RETRIES: int = _env_int("MACROBIUS_MAX_RETRIES", 10)

# Outbound queue: 0 disables the size cap
MACROBIUS_MAX_QUEUE_SIZE: int = _env_int("MACROBIUS_MAX_QUEUE_SIZE", 1000)
_queue_overflow = os.environ.get("MACROBIUS_QUEUE_OVERFLOW", "reject").casefold()
MACROBIUS_QUEUE_OVERFLOW: str = (
    _queue_overflow if _queue_overflow in ("reject", "drop_oldest", "unbounded") else "reject"
)

MACROBIUS_DEBUG: bool = os.environ.get("MACROBIUS_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
MACROBIUS_LOG_FORMAT: str = os.environ.get("MACROBIUS_LOG_FORMAT", "human")  # "json", "human", or "both"
_json_file = os.environ.get("MACROBIUS_LOG_JSON_FILE")  # JSON lines go to stderr when unset
MACROBIUS_LOG_JSON_FILE: str | None = _json_file if _json_file else None
MACROBIUS_LOG_HUMAN_OUTPUT: str = os.environ.get("MACROBIUS_LOG_HUMAN_OUTPUT", "stderr")  # "stdout" or "stderr"

# Prometheus exporter
MACROBIUS_ENABLE_METRICS: bool = os.environ.get("MACROBIUS_ENABLE_METRICS", "0").casefold() in YES_ANSWER
MACROBIUS_METRICS_PORT: int = _env_int("MACROBIUS_METRICS_PORT", 9400)
