"""
Ports (interfaces) for the review engine.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import date

from .events import DomainEvent
from .models import Card, DeckStats, ReviewLogEntry, UserStats, ValidationOutcome


class CardStore(ABC):
    """
    Port for card persistence. MemoryState is stored as an embedded field.

    Implementations:
        - InMemoryCardStore: process-local dict, used in tests and dev mode.
        - SqliteCardStore: single-file SQLite database.
    """

    @abstractmethod
    async def find_by_id(self, card_id: str) -> Card | None:
        pass

    @abstractmethod
    async def insert(self, card: Card) -> str:
        pass

    @abstractmethod
    async def bulk_insert(self, cards: list[Card]) -> list[str]:
        """
        Insert many cards at once.

        Returns:
            The ids of the inserted cards, in input order.
        """
        pass

    @abstractmethod
    async def update(self, card: Card) -> None:
        """
        Persist the card's content and memory state.

        The stored answer embedding is left untouched; only update_embedding
        writes it.
        """
        pass

    @abstractmethod
    async def update_embedding(self, card_id: str, embedding: list[float]) -> None:
        pass


class ReviewLogStore(ABC):
    """Append-only store for review audit records."""

    @abstractmethod
    async def append(self, entry: ReviewLogEntry) -> None:
        pass

    @abstractmethod
    async def list_for_card(self, card_id: str) -> list[ReviewLogEntry]:
        """Entries for a card, oldest first."""
        pass


class StatsStore(ABC):
    """
    Port for precomputed statistics.

    Every mutating method must be atomic at the store: concurrent events for
    the same user or deck must never lose an increment.
    """

    @abstractmethod
    async def get_or_create_user(self, user_id: str) -> UserStats:
        pass

    @abstractmethod
    async def get_or_create_deck(self, deck_id: str, user_id: str) -> DeckStats:
        pass

    @abstractmethod
    async def increment_user_after_review(
        self, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        """
        Upsert the user row, then atomically bump total_reviews, correct_reviews
        (if is_correct) and days_studied (if review_date differs from
        last_active_date), and set last_active_date.
        """
        pass

    @abstractmethod
    async def increment_deck_after_review(
        self, deck_id: str, user_id: str, is_correct: bool, review_date: date
    ) -> None:
        pass

    @abstractmethod
    async def adjust_card_count(self, deck_id: str, user_id: str, delta: int) -> None:
        pass


class EmbeddingService(ABC):
    """Capability: turn text into a semantic vector. May fail."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        pass


class JudgmentService(ABC):
    """Capability: ask a generative model to score an answer. May fail."""

    @abstractmethod
    async def judge(self, expected: str, actual: str, context: str) -> float:
        """
        Returns:
            Score in [0.0, 1.0].
        """
        pass


class AnswerValidator(ABC):
    """Grades a free-text answer against the expected one."""

    @abstractmethod
    async def validate(
        self,
        expected_answer: str,
        user_answer: str,
        question_context: str,
        expected_embedding: list[float] | None = None,
    ) -> ValidationOutcome:
        pass


class EventSubscriber(ABC):
    """Receives every event published on the channel."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        pass
