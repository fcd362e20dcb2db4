"""Reconnect backoff policy and timer configuration for the channel."""

from __future__ import annotations

import random
from enum import Enum

from macrobius_realtime.const import (
    MACROBIUS_CONNECT_TIMEOUT,
    MACROBIUS_HEARTBEAT_INTERVAL,
    MACROBIUS_MAX_QUEUE_SIZE,
    MACROBIUS_MAX_RETRIES,
    MACROBIUS_QUEUE_OVERFLOW,
    MACROBIUS_RECONNECT_INITIAL_DELAY,
    MACROBIUS_RECONNECT_MAX_DELAY,
)


class TimeoutConfig:
    """Fixed timers used by the channel.

    Attributes:
        connect_timeout_seconds: Deadline for the transport to open
        heartbeat_interval_seconds: Period between outbound liveness messages
    """

    def __init__(
        self,
        connect_timeout_seconds: float = MACROBIUS_CONNECT_TIMEOUT,
        heartbeat_interval_seconds: float = MACROBIUS_HEARTBEAT_INTERVAL,
    ):
        if connect_timeout_seconds <= 0:
            raise ValueError("connect_timeout_seconds must be positive")
        if heartbeat_interval_seconds <= 0:
            raise ValueError("heartbeat_interval_seconds must be positive")
        self.connect_timeout_seconds = connect_timeout_seconds
        self.heartbeat_interval_seconds = heartbeat_interval_seconds

    def __repr__(self) -> str:
        return (
            f"TimeoutConfig(connect={self.connect_timeout_seconds:.1f}s, "
            f"heartbeat={self.heartbeat_interval_seconds:.1f}s)"
        )


class ReconnectPolicy:
    """Geometric backoff with a retry cap.

    The n-th consecutive failed attempt (1-indexed) waits
    ``min(initial_delay * 2 ** (n - 1), max_delay)`` seconds, giving
    1s, 2s, 4s, ... 30s with the defaults. After ``max_retries`` consecutive
    failures the channel stops reconnecting.
    """

    def __init__(
        self,
        initial_delay_seconds: float = MACROBIUS_RECONNECT_INITIAL_DELAY,
        max_delay_seconds: float = MACROBIUS_RECONNECT_MAX_DELAY,
        max_retries: int = MACROBIUS_MAX_RETRIES,
        jitter_factor: float = 0.0,
    ):
        """Initialize reconnect policy.

        Args:
            initial_delay_seconds: Delay before the first reconnect attempt
            max_delay_seconds: Delay cap
            max_retries: Consecutive failures tolerated before giving up
            jitter_factor: Jitter as fraction of delay (default: 0.0 = deterministic)
        """
        if initial_delay_seconds <= 0:
            raise ValueError("initial_delay_seconds must be positive")
        if max_delay_seconds < initial_delay_seconds:
            raise ValueError("max_delay_seconds must be >= initial_delay_seconds")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.initial_delay_seconds = initial_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.max_retries = max_retries
        self.jitter_factor = jitter_factor

    def base_delay(self, attempt: int) -> float:
        """Backoff delay without jitter.

        Args:
            attempt: Consecutive failure count (1-indexed)

        Returns:
            Delay in seconds (capped at max_delay_seconds)
        """
        delay = self.initial_delay_seconds * (2 ** max(attempt - 1, 0))
        return min(delay, self.max_delay_seconds)

    def get_delay(self, attempt: int) -> float:
        """Backoff delay for ``attempt`` plus jitter."""
        delay = self.base_delay(attempt)
        return delay + self.jitter(delay)

    def jitter(self, delay: float) -> float:
        """Random value between 0 and delay * jitter_factor."""
        if self.jitter_factor <= 0:
            return 0.0
        return random.uniform(0, delay * self.jitter_factor)

    def exhausted(self, retry_count: int) -> bool:
        """True once ``retry_count`` consecutive failures exceed the cap."""
        return retry_count > self.max_retries

    def __repr__(self) -> str:
        return (
            f"ReconnectPolicy(initial_delay={self.initial_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"max_retries={self.max_retries}, "
            f"jitter_factor={self.jitter_factor})"
        )


class QueueOverflowPolicy(Enum):
    """What ``send()`` does when the outbound queue is at its cap."""

    REJECT = "reject"
    DROP_OLDEST = "drop_oldest"
    UNBOUNDED = "unbounded"


class QueueConfig:
    """Outbound queue bounds.

    Attributes:
        max_size: Cap on queued messages (ignored when policy is UNBOUNDED)
        overflow_policy: Behavior at the cap
    """

    def __init__(
        self,
        max_size: int = MACROBIUS_MAX_QUEUE_SIZE,
        overflow_policy: QueueOverflowPolicy | str = MACROBIUS_QUEUE_OVERFLOW,
    ):
        policy = QueueOverflowPolicy(overflow_policy)
        if max_size <= 0:
            policy = QueueOverflowPolicy.UNBOUNDED
        self.max_size = max_size
        self.overflow_policy = policy

    @property
    def bounded(self) -> bool:
        return self.overflow_policy is not QueueOverflowPolicy.UNBOUNDED

    def __repr__(self) -> str:
        return f"QueueConfig(max_size={self.max_size}, overflow_policy={self.overflow_policy.value})"
