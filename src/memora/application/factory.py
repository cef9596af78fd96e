"""
Engine Factory
Centralizes the logic for selecting backends and wiring the review engine.
"""

import logging
from dataclasses import dataclass, field

from memora.application.card_service import CardService, ImportResult
from memora.application.config import AppConfig
from memora.application.embedding_worker import EmbeddingBackfillWorker
from memora.application.event_channel import EventChannel
from memora.application.review_service import ReviewResult, ReviewService
from memora.application.stats import StatisticsAggregator, StatsService
from memora.application.validation import CascadingValidator, HeuristicValidator
from memora.domain.events import CardCreated
from memora.domain.models import Card
from memora.domain.ports import (
    AnswerValidator,
    CardStore,
    EmbeddingService,
    ReviewLogStore,
    StatsStore,
)
from memora.infrastructure.adapters.openai_backend import (
    OpenAIBackend,
    UnavailableEmbeddingService,
)
from memora.infrastructure.adapters.stores import (
    InMemoryCardStore,
    InMemoryReviewLogStore,
    InMemoryStatsStore,
    SqliteCardStore,
    SqliteDatabase,
    SqliteReviewLogStore,
    SqliteStatsStore,
)

logger = logging.getLogger(__name__)


def get_stores(config: AppConfig) -> tuple[CardStore, ReviewLogStore, StatsStore]:
    """
    Returns the card, review-log and stats stores selected by config.
    """
    if config.database_path:
        db = SqliteDatabase(config.database_path)
        logger.info(f"Storage: SQLite ({config.database_path})")
        return SqliteCardStore(db), SqliteReviewLogStore(db), SqliteStatsStore(db)

    logger.info("Storage: in-memory")
    return InMemoryCardStore(), InMemoryReviewLogStore(), InMemoryStatsStore()


def get_validator(config: AppConfig) -> tuple[AnswerValidator, EmbeddingService]:
    """
    Returns the answer validator and the embedding service backing it.

    Without an API key the heuristic validator is used and embeddings are
    unavailable (backfill logs and skips every card).
    """
    if not config.has_ai_backend:
        logger.info("Validator: heuristic (no API key configured)")
        return HeuristicValidator(), UnavailableEmbeddingService()

    backend = OpenAIBackend(
        api_key=config.openai_api_key.get_secret_value(),
        base_url=config.openai_base_url,
        embedding_model=config.embedding_model,
        judgment_model=config.judgment_model,
        timeout=config.request_timeout,
    )
    validator = CascadingValidator(
        embedder=backend,
        judge=backend,
        embedding_threshold=config.embedding_threshold,
        borderline_threshold=config.borderline_threshold,
        timeout=config.request_timeout,
    )
    logger.info(f"Validator: cascading ({config.embedding_model} / {config.judgment_model})")
    return validator, backend


@dataclass
class ReviewEngine:
    """
    The wired engine. This is the surface the HTTP layer and CLI talk to.
    """

    config: AppConfig
    card_store: CardStore
    review_log_store: ReviewLogStore
    stats_store: StatsStore
    validator: AnswerValidator
    embedder: EmbeddingService
    events: EventChannel
    aggregator: StatisticsAggregator
    backfill: EmbeddingBackfillWorker
    reviews: ReviewService
    cards: CardService
    stats: StatsService
    _closers: list = field(default_factory=list)

    async def submit_review(self, card_id: str, user_id: str, answer_text: str) -> ReviewResult:
        return await self.reviews.submit_review(card_id, user_id, answer_text)

    async def on_card_created(self, card_id: str, user_id: str, deck_id: str | None = None) -> None:
        await self.events.publish(CardCreated(card_id=card_id, user_id=user_id, deck_id=deck_id))

    def backfill_embeddings(self, pairs: list[tuple[str, str]]) -> None:
        self.backfill.spawn(pairs)

    async def create_card(
        self, user_id: str, question: str, answer: str, deck_id: str | None = None
    ) -> Card:
        return await self.cards.create_card(user_id, question, answer, deck_id)

    async def import_cards(
        self, user_id: str, deck_id: str, pairs: list[tuple[str, str]]
    ) -> ImportResult:
        return await self.cards.import_cards(user_id, deck_id, pairs)

    async def aclose(self) -> None:
        """Let in-flight backfills finish, then release backend resources."""
        await self.backfill.wait_idle()
        for close in self._closers:
            result = close()
            if hasattr(result, "__await__"):
                await result


def build_engine(
    config: AppConfig,
    stores: tuple[CardStore, ReviewLogStore, StatsStore] | None = None,
    validator: AnswerValidator | None = None,
    embedder: EmbeddingService | None = None,
) -> ReviewEngine:
    """
    Wire every component explicitly. Subscribers are fixed here, at startup.

    Args:
        config: Resolved application config.
        stores: Optional (card, log, stats) stores; selected from config otherwise.
        validator: Optional validator override (tests, custom strategies).
        embedder: Optional embedding service override for the backfill worker.
    """
    card_store, log_store, stats_store = stores or get_stores(config)

    closers: list = []
    if validator is None or embedder is None:
        default_validator, default_embedder = get_validator(config)
        validator = validator or default_validator
        embedder = embedder or default_embedder
        if isinstance(default_embedder, OpenAIBackend):
            closers.append(default_embedder.aclose)

    if isinstance(card_store, SqliteCardStore):
        closers.append(card_store.db.close)

    aggregator = StatisticsAggregator(stats_store, correct_threshold=config.correct_threshold)
    events = EventChannel([aggregator], timeout=config.subscriber_timeout)
    backfill = EmbeddingBackfillWorker(
        card_store,
        embedder,
        max_concurrency=config.embedding_workers,
        timeout=config.request_timeout,
    )

    return ReviewEngine(
        config=config,
        card_store=card_store,
        review_log_store=log_store,
        stats_store=stats_store,
        validator=validator,
        embedder=embedder,
        events=events,
        aggregator=aggregator,
        backfill=backfill,
        reviews=ReviewService(
            card_store,
            log_store,
            validator,
            events,
            enforce_ownership=config.enforce_card_ownership,
            strict_grades=config.strict_grades,
        ),
        cards=CardService(card_store, events, aggregator, backfill),
        stats=StatsService(stats_store),
        _closers=closers,
    )
