import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from memora.application.event_channel import EventChannel
from memora.domain.events import CardCreated
from memora.domain.ports import EventSubscriber


def _subscriber(side_effect=None):
    sub = MagicMock(spec=EventSubscriber)
    sub.handle = AsyncMock(side_effect=side_effect)
    return sub


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber_in_order():
    calls = []
    first = _subscriber(lambda e: calls.append("first"))
    second = _subscriber(lambda e: calls.append("second"))
    channel = EventChannel([first, second])

    event = CardCreated(card_id="c1", user_id="u1", deck_id="d1")
    await channel.publish(event)

    first.handle.assert_awaited_once_with(event)
    second.handle.assert_awaited_once_with(event)
    assert calls == ["first", "second"]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others(caplog):
    broken = _subscriber(RuntimeError("boom"))
    healthy = _subscriber()
    channel = EventChannel([broken, healthy])

    # Must not raise
    await channel.publish(CardCreated(card_id="c1", user_id="u1"))

    healthy.handle.assert_awaited_once()
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_hung_subscriber_times_out():
    async def hang(event):
        await asyncio.sleep(5)

    slow = _subscriber(hang)
    healthy = _subscriber()
    channel = EventChannel([slow, healthy], timeout=0.05)

    await channel.publish(CardCreated(card_id="c1", user_id="u1"))

    healthy.handle.assert_awaited_once()


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_noop():
    channel = EventChannel()
    await channel.publish(CardCreated(card_id="c1", user_id="u1"))
    assert channel.subscribers == ()
