"""Structured logging for the realtime channel.

Every module logger hands its records to the handlers installed once on the
``macrobius_realtime`` package logger. A record carries the active
correlation id plus the context bound to its ``ChannelLogger`` (channel
name, identity) merged with per-call ``extra``. Output is a human-readable
line, a JSON object per line, or both, chosen by ``MACROBIUS_LOG_FORMAT``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing_extensions import override

from macrobius_realtime.correlation import get_correlation_id

__all__ = [
    "PACKAGE_LOGGER",
    "ChannelLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
    "set_log_level",
]

PACKAGE_LOGGER = "macrobius_realtime"


def _record_context(record: logging.LogRecord) -> dict[str, object]:
    context = getattr(record, "context", None)
    return dict(context) if isinstance(context, Mapping) else {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context under ``context``."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        context = _record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time level logger [corr] > message | key=value ...``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s %(correlation)s > %(message)s",
            datefmt="%H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"
        line = super().format(record)
        context = _record_context(record)
        if context:
            line = f"{line} | " + " | ".join(f"{key}={value}" for key, value in context.items())
        return line


def configure_logging(
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    level: int | None = None,
) -> logging.Logger:
    """Install the package handlers, replacing any installed earlier.

    Args:
        log_format: "human", "json" or "both" (default ``MACROBIUS_LOG_FORMAT``)
        json_file: Append JSON lines here instead of stderr
        human_output: "stdout" or "stderr" for human-readable lines
        level: Package log level (DEBUG when ``MACROBIUS_DEBUG`` is set, else INFO)

    Returns:
        The package logger

    """
    from macrobius_realtime.const import (
        MACROBIUS_DEBUG,
        MACROBIUS_LOG_FORMAT,
        MACROBIUS_LOG_HUMAN_OUTPUT,
        MACROBIUS_LOG_JSON_FILE,
    )

    log_format = log_format or MACROBIUS_LOG_FORMAT
    json_file = json_file or MACROBIUS_LOG_JSON_FILE
    human_output = human_output or MACROBIUS_LOG_HUMAN_OUTPUT
    if level is None:
        level = logging.DEBUG if MACROBIUS_DEBUG else logging.INFO

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if log_format in ("json", "both"):
        if json_file:
            path = Path(json_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            json_handler: logging.Handler = logging.FileHandler(path, mode="a")
        else:
            json_handler = logging.StreamHandler(sys.stderr)
        json_handler.setFormatter(JSONFormatter())
        handlers.append(json_handler)
    if log_format in ("human", "both") or not handlers:
        human_handler = logging.StreamHandler(sys.stdout if human_output == "stdout" else sys.stderr)
        human_handler.setFormatter(HumanReadableFormatter())
        handlers.append(human_handler)

    for handler in handlers:
        handler.setLevel(level)
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return package_logger


def set_log_level(level: int) -> None:
    """Set the package logger and its handlers to ``level``."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        handler.setLevel(level)


class ChannelLogger:
    """Logger that stamps bound context onto every record.

    ``bind`` returns a new logger with extra context, so a channel binds its
    name (and later its identity) once instead of passing them at every call.
    Per-call ``extra`` wins over bound keys.
    """

    def __init__(self, logger: logging.Logger, context: Mapping[str, object] | None = None) -> None:
        self.logger: logging.Logger = logger
        self.context: dict[str, object] = dict(context or {})

    def bind(self, **context: object) -> ChannelLogger:
        return ChannelLogger(self.logger, {**self.context, **context})

    def _log(
        self,
        level: int,
        msg: str,
        args: tuple[object, ...],
        extra: Mapping[str, object] | None,
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        context = {**self.context, **extra} if extra else self.context
        # stacklevel=3 attributes the record to the caller, not this wrapper
        self.logger.log(level, msg, *args, extra={"context": context}, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, args, extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, args, extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, args, extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, args, extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, msg, args, extra, exc_info=True)


def get_logger(name: str) -> ChannelLogger:
    """Logger for ``name``; installs the package handlers on first use."""
    if not logging.getLogger(PACKAGE_LOGGER).handlers:
        _ = configure_logging()
    return ChannelLogger(logging.getLogger(name))
