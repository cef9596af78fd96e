"""
In-memory store adapters.

Process-local and non-persistent; used in tests and when no database path is
configured. Cards are copied on the way in and out so callers never share
mutable state with the store. Stats mutations hold a lock for the whole
read-modify-write so concurrent events cannot lose increments.
"""

import asyncio
import copy
from datetime import date

from memora.domain.models import Card, DeckStats, ReviewLogEntry, UserStats
from memora.domain.ports import CardStore, ReviewLogStore, StatsStore


class InMemoryCardStore(CardStore):
    def __init__(self):
        self._cards: dict[str, Card] = {}

    async def find_by_id(self, card_id: str) -> Card | None:
        card = self._cards.get(card_id)
        return copy.deepcopy(card) if card else None

    async def insert(self, card: Card) -> str:
        self._cards[card.id] = copy.deepcopy(card)
        return card.id

    async def bulk_insert(self, cards: list[Card]) -> list[str]:
        for card in cards:
            self._cards[card.id] = copy.deepcopy(card)
        return [card.id for card in cards]

    async def update(self, card: Card) -> None:
        stored = self._cards.get(card.id)
        updated = copy.deepcopy(card)
        updated.answer_embedding = stored.answer_embedding if stored else None
        self._cards[card.id] = updated

    async def update_embedding(self, card_id: str, embedding: list[float]) -> None:
        card = self._cards.get(card_id)
        if card is not None:
            card.answer_embedding = list(embedding)


class InMemoryReviewLogStore(ReviewLogStore):
    def __init__(self):
        self._entries: list[ReviewLogEntry] = []

    async def append(self, entry: ReviewLogEntry) -> None:
        self._entries.append(entry)

    async def list_for_card(self, card_id: str) -> list[ReviewLogEntry]:
        return [e for e in self._entries if e.card_id == card_id]


def _bump(stats: UserStats | DeckStats, is_correct: bool, review_date: date) -> None:
    stats.total_reviews += 1
    if is_correct:
        stats.correct_reviews += 1
    if stats.last_active_date != review_date:
        stats.days_studied += 1
    stats.last_active_date = review_date


class InMemoryStatsStore(StatsStore):
    def __init__(self):
        self._users: dict[str, UserStats] = {}
        self._decks: dict[str, DeckStats] = {}
        self._lock = asyncio.Lock()

    def _user(self, user_id: str) -> UserStats:
        return self._users.setdefault(user_id, UserStats(user_id=user_id))

    def _deck(self, deck_id: str, user_id: str) -> DeckStats:
        return self._decks.setdefault(deck_id, DeckStats(deck_id=deck_id, user_id=user_id))

    async def get_or_create_user(self, user_id: str) -> UserStats:
        async with self._lock:
            return copy.copy(self._user(user_id))

    async def get_or_create_deck(self, deck_id: str, user_id: str) -> DeckStats:
        async with self._lock:
            return copy.copy(self._deck(deck_id, user_id))

    async def increment_user_after_review(
        self, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        async with self._lock:
            _bump(self._user(user_id), is_correct, review_date)

    async def increment_deck_after_review(
        self, deck_id: str, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        async with self._lock:
            _bump(self._deck(deck_id, user_id), is_correct, review_date)

    async def adjust_card_count(self, deck_id: str, user_id: str, delta: int) -> None:
        async with self._lock:
            deck = self._deck(deck_id, user_id)
            deck.total_card_count = max(0, deck.total_card_count + delta)
