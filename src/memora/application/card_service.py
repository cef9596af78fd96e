"""
Card creation and bulk-import hand-off.

File parsing happens upstream; this service receives question/answer pairs,
persists them and fires the follow-up work (events, stats, embeddings).
"""

import logging
from dataclasses import dataclass

from memora.application.embedding_worker import EmbeddingBackfillWorker
from memora.application.event_channel import EventChannel
from memora.application.ids import generate_card_id
from memora.application.stats.aggregator import StatisticsAggregator
from memora.domain.constants import MAX_IMPORT_CARDS
from memora.domain.events import CardCreated
from memora.domain.models import Card
from memora.domain.ports import CardStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    cards_imported: int
    cards_skipped: int


class CardService:
    def __init__(
        self,
        card_store: CardStore,
        events: EventChannel,
        aggregator: StatisticsAggregator,
        backfill: EmbeddingBackfillWorker,
        max_import_cards: int = MAX_IMPORT_CARDS,
    ):
        self._cards = card_store
        self._events = events
        self._aggregator = aggregator
        self._backfill = backfill
        self.max_import_cards = max_import_cards

    async def create_card(
        self,
        user_id: str,
        question: str,
        answer: str,
        deck_id: str | None = None,
    ) -> Card:
        """
        Create a card with a fresh memory state.

        The answer embedding is generated in the background; the card is usable
        (with heuristic-quality validation) before it arrives.
        """
        card = Card(
            id=generate_card_id(),
            user_id=user_id,
            question=question,
            answer=answer,
            deck_id=deck_id,
        )
        card.id = await self._cards.insert(card)

        await self._events.publish(CardCreated(card_id=card.id, user_id=user_id, deck_id=deck_id))
        self._backfill.spawn([(card.id, card.answer)])
        return card

    async def import_cards(
        self,
        user_id: str,
        deck_id: str,
        pairs: list[tuple[str, str]],
    ) -> ImportResult:
        """
        Bulk-insert question/answer pairs into a deck.

        Blank pairs and pairs beyond the import cap are skipped. The deck card
        count is bumped once by the number imported rather than per card.
        """
        cards: list[Card] = []
        skipped = 0

        for question, answer in pairs:
            question, answer = question.strip(), answer.strip()
            if not question or not answer:
                logger.warning(f"Skipping import pair with blank side: {question!r}")
                skipped += 1
                continue
            if len(cards) >= self.max_import_cards:
                skipped += 1
                continue
            cards.append(
                Card(
                    id=generate_card_id(),
                    user_id=user_id,
                    question=question,
                    answer=answer,
                    deck_id=deck_id,
                )
            )

        if not cards:
            return ImportResult(cards_imported=0, cards_skipped=skipped)

        card_ids = await self._cards.bulk_insert(cards)
        await self._aggregator.add_cards(deck_id, user_id, len(card_ids))

        self._backfill.spawn([(cid, card.answer) for cid, card in zip(card_ids, cards)])

        logger.info(f"Imported {len(card_ids)} card(s) into deck {deck_id} ({skipped} skipped)")
        return ImportResult(cards_imported=len(card_ids), cards_skipped=skipped)
