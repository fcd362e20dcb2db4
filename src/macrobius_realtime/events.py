"""Platform-wide event sink for broadcast channel events.

System notifications and presence updates are not routed through the
per-type handler registry; the channel publishes them to an injected sink so
any part of the platform can listen without subscribing to the channel.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final, Protocol, runtime_checkable

from macrobius_realtime.logging_abstraction import get_logger

__all__ = [
    "SYSTEM_NOTIFICATION_EVENT",
    "USER_PRESENCE_EVENT",
    "EventBus",
    "EventListener",
    "PlatformEventSink",
]

logger = get_logger(__name__)

SYSTEM_NOTIFICATION_EVENT: Final = "system_notification"
USER_PRESENCE_EVENT: Final = "user_presence"

EventListener = Callable[[str, Any], None]


@runtime_checkable
class PlatformEventSink(Protocol):
    """Capability the channel calls into for platform-wide events."""

    def publish(self, event: str, detail: Any) -> None: ...


class EventBus:
    """In-process fan-out implementation of PlatformEventSink.

    Listeners are called synchronously in subscription order. A listener
    that raises is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}

    def subscribe(self, event: str, listener: EventListener) -> None:
        """Register ``listener`` for ``event``."""
        self._listeners.setdefault(event, []).append(listener)

    def unsubscribe(self, event: str, listener: EventListener) -> None:
        """Remove the first registration of ``listener`` for ``event``."""
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def publish(self, event: str, detail: Any) -> None:
        """Deliver ``detail`` to every listener of ``event``."""
        listeners = tuple(self._listeners.get(event, ()))
        logger.debug("Publishing platform event", extra={"event": event, "listeners": len(listeners)})
        for listener in listeners:
            try:
                listener(event, detail)
            except Exception as e:
                logger.exception(
                    "Platform event listener failed",
                    extra={"event": event, "error": str(e), "error_type": type(e).__name__},
                )

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))
