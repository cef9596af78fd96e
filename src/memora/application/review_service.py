"""
Review orchestration: the use case behind "submit an answer for a card".

Steps run strictly in order: load, validate, grade, schedule, persist card,
append log, publish. The card update and the log append are separate store
calls; a failure between them leaves the card advanced without a log entry,
so callers must treat a failed review as "unknown outcome".
"""

import logging
from dataclasses import dataclass

from memora.application.event_channel import EventChannel
from memora.application.scheduler import advance, score_to_grade
from memora.domain.errors import CardAccessDeniedError, CardNotFoundError
from memora.domain.events import CardReviewed
from memora.domain.models import Grade, ReviewLogEntry, ValidationMethod, utcnow
from memora.domain.ports import AnswerValidator, CardStore, ReviewLogStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of a successful review."""

    card_id: str
    score: float
    grade: Grade
    method: ValidationMethod
    scheduled_days: int


class ReviewService:
    def __init__(
        self,
        card_store: CardStore,
        review_log_store: ReviewLogStore,
        validator: AnswerValidator,
        events: EventChannel,
        enforce_ownership: bool = True,
        strict_grades: bool = True,
    ):
        """
        Args:
            card_store: Port for loading and saving cards.
            review_log_store: Append-only audit log.
            validator: Strategy that scores the submitted answer.
            events: Channel receiving CardReviewed after every review.
            enforce_ownership: Reject reviews of cards owned by another user.
            strict_grades: Passed to the scheduler; see advance().
        """
        self._cards = card_store
        self._logs = review_log_store
        self._validator = validator
        self._events = events
        self.enforce_ownership = enforce_ownership
        self.strict_grades = strict_grades

    async def submit_review(self, card_id: str, user_id: str, user_answer: str) -> ReviewResult:
        card = await self._cards.find_by_id(card_id)
        if card is None:
            raise CardNotFoundError(card_id)

        if self.enforce_ownership and card.user_id != user_id:
            raise CardAccessDeniedError(card_id, user_id)

        outcome = await self._validator.validate(
            card.answer,
            user_answer,
            card.question,
            expected_embedding=card.answer_embedding,
        )
        grade = score_to_grade(outcome.score)

        now = utcnow()
        card.memory = advance(card.memory, grade, strict=self.strict_grades, now=now)
        card.updated_at = now
        await self._cards.update(card)

        await self._logs.append(
            ReviewLogEntry(
                card_id=card.id,
                user_id=user_id,
                submitted_answer=user_answer,
                expected_answer=card.answer,
                score=outcome.score,
                method=outcome.method,
                grade=grade,
                timestamp=now,
            )
        )

        await self._events.publish(
            CardReviewed(
                card_id=card.id,
                user_id=user_id,
                score=outcome.score,
                grade=grade,
                deck_id=card.deck_id,
            )
        )

        logger.info(
            f"Card {card.id} reviewed by {user_id}: score={outcome.score:.2f} "
            f"method={outcome.method.value} grade={grade.name} "
            f"next_in={card.memory.scheduled_days}d"
        )

        return ReviewResult(
            card_id=card.id,
            score=outcome.score,
            grade=grade,
            method=outcome.method,
            scheduled_days=card.memory.scheduled_days,
        )
