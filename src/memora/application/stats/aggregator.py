"""
Statistics aggregator: event subscriber that maintains precomputed counters.

All arithmetic happens inside the StatsStore's atomic operations; this class
only decides which counters an event touches.
"""

import logging

from memora.domain.constants import CORRECT_SCORE_THRESHOLD
from memora.domain.events import CardCreated, CardReviewed, DomainEvent
from memora.domain.ports import EventSubscriber, StatsStore

logger = logging.getLogger(__name__)


class StatisticsAggregator(EventSubscriber):
    """
    Keeps UserStats and DeckStats current as reviews and card creations occur.

    Delivery is at-least-once and not deduplicated: the same CardCreated
    published twice counts twice.
    """

    def __init__(
        self,
        stats_store: StatsStore,
        correct_threshold: float = CORRECT_SCORE_THRESHOLD,
    ):
        self._store = stats_store
        self.correct_threshold = correct_threshold

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, CardReviewed):
            await self._on_card_reviewed(event)
        elif isinstance(event, CardCreated):
            await self._on_card_created(event)
        else:
            logger.debug(f"Ignoring unsupported event {type(event).__name__}")

    async def add_cards(self, deck_id: str, user_id: str, count: int) -> None:
        """Bulk-add to a deck's card count in a single store call."""
        if count <= 0:
            return
        await self._store.adjust_card_count(deck_id, user_id, count)
        logger.info(f"Deck {deck_id} card count increased by {count}")

    async def _on_card_reviewed(self, event: CardReviewed) -> None:
        is_correct = event.score >= self.correct_threshold
        review_date = event.occurred_at.date()

        await self._store.increment_user_after_review(event.user_id, is_correct, review_date)

        if event.deck_id:
            await self._store.increment_deck_after_review(
                event.deck_id, event.user_id, is_correct, review_date
            )

        logger.info(
            f"Statistics updated for user {event.user_id} after reviewing card {event.card_id}"
        )

    async def _on_card_created(self, event: CardCreated) -> None:
        if not event.deck_id:
            return
        await self._store.adjust_card_count(event.deck_id, event.user_id, 1)
        logger.info(f"Deck {event.deck_id} card count incremented")
