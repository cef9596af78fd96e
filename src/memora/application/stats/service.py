"""
Stats query service, the read side of the precomputed statistics.

Follows Dependency Inversion: depends on the StatsStore abstraction,
not concrete adapter implementations.
"""

import logging

from memora.domain.models import DeckStats, UserStats
from memora.domain.ports import StatsStore

logger = logging.getLogger(__name__)


class StatsService:
    def __init__(self, stats_store: StatsStore):
        self._store = stats_store

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Fetch a user's counters, creating a zeroed row on first access."""
        return await self._store.get_or_create_user(user_id)

    async def get_deck_stats(self, deck_id: str, user_id: str) -> DeckStats:
        """Fetch a deck's counters, creating a zeroed row on first access."""
        return await self._store.get_or_create_deck(deck_id, user_id)
