"""Shared fixtures for unit tests.

This module provides a fast-timer Channel wired to an in-memory transport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from macrobius_realtime.events import EventBus
from macrobius_realtime.transport.channel import Channel
from tests.helpers.channels import make_channel
from tests.helpers.fake_transport import FakeTransportFactory


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    """Fresh fake transport per connection attempt."""
    return FakeTransportFactory()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest_asyncio.fixture
async def channel(transport_factory: FakeTransportFactory, event_bus: EventBus) -> AsyncIterator[Channel]:
    """Channel over the fake transport; destroyed after the test."""
    channel = make_channel(transport_factory, event_bus)
    yield channel
    await channel.destroy()
