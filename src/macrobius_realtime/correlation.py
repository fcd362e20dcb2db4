"""Correlation ids attached to channel log records.

Inbound messages that carry a session id are dispatched inside a scope bound
to that id, so log lines emitted by handlers trace back to the live quiz,
study group or analysis request they belong to. The CLI opens one scope for
its whole run.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = ["correlation_context", "get_correlation_id"]

_current_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("macrobius_correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _current_id.get()


@contextmanager
def correlation_context(correlation_id: str | None = None, auto_generate: bool = True) -> Iterator[str | None]:
    """Bind ``correlation_id`` for the duration of the block.

    Without an id a random 32-character hex id is used, unless
    ``auto_generate`` is off; then the block runs with no id at all, so a
    message without a session id does not inherit the surrounding one.
    """
    if correlation_id is None and auto_generate:
        correlation_id = uuid.uuid4().hex
    token = _current_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _current_id.reset(token)
