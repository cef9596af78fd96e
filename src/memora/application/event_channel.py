"""
In-process event channel.

Subscribers are fixed at construction. Events are not persisted and cannot be
replayed; a subscriber only sees events published after it was registered.
"""

import asyncio
import logging
from collections.abc import Iterable

from memora.domain.constants import SUBSCRIBER_TIMEOUT
from memora.domain.events import DomainEvent
from memora.domain.ports import EventSubscriber

logger = logging.getLogger(__name__)


class EventChannel:
    def __init__(
        self,
        subscribers: Iterable[EventSubscriber] = (),
        timeout: float = SUBSCRIBER_TIMEOUT,
    ):
        self._subscribers: tuple[EventSubscriber, ...] = tuple(subscribers)
        self.timeout = timeout

    @property
    def subscribers(self) -> tuple[EventSubscriber, ...]:
        return self._subscribers

    async def publish(self, event: DomainEvent) -> None:
        """
        Deliver the event to every subscriber, one after another.

        A failing or hung subscriber is logged and skipped; it neither stops
        delivery to the others nor surfaces to the publisher.
        """
        name = type(event).__name__
        for subscriber in self._subscribers:
            try:
                await asyncio.wait_for(subscriber.handle(event), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.error(
                    f"Subscriber {type(subscriber).__name__} timed out handling {name}"
                )
            except Exception as e:
                logger.error(
                    f"Subscriber {type(subscriber).__name__} failed handling {name}: {e}",
                    exc_info=True,
                )
        logger.debug(f"Event published: {name} -> {len(self._subscribers)} subscriber(s)")
