"""
Domain models for scheduling, grading and statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum, IntEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleState(str, Enum):
    NEW = "New"
    LEARNING = "Learning"
    REVIEW = "Review"
    RELEARNING = "Relearning"


class Grade(IntEnum):
    """Four-level review outcome driving the scheduler."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class ValidationMethod(str, Enum):
    """Which stage of the validator produced a score."""

    EXACT = "exact"
    EMBEDDING = "embedding"
    GENERATIVE_JUDGMENT = "generative_judgment"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class MemoryState:
    """
    Scheduling state owned by a single card.

    Attributes:
        stability: Modeled retention strength (>= 0).
        difficulty: Intrinsic hardness, bounded to [1, 10] once graded.
        elapsed_days: Days since the last review; reset to 0 on every grading.
        scheduled_days: Days until the card is due again.
        repetitions: Number of gradings so far.
        lapses: Number of "Again" gradings.
        lifecycle_state: New, Learning, Review or Relearning.
        last_reviewed_at: UTC timestamp of the last grading.
    """

    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: int = 0
    scheduled_days: int = 0
    repetitions: int = 0
    lapses: int = 0
    lifecycle_state: LifecycleState = LifecycleState.NEW
    last_reviewed_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "stability": self.stability,
            "difficulty": self.difficulty,
            "elapsed_days": self.elapsed_days,
            "scheduled_days": self.scheduled_days,
            "repetitions": self.repetitions,
            "lapses": self.lapses,
            "lifecycle_state": self.lifecycle_state.value,
            "last_reviewed_at": (
                self.last_reviewed_at.isoformat() if self.last_reviewed_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryState":
        last = data.get("last_reviewed_at")
        return cls(
            stability=float(data.get("stability", 0.0)),
            difficulty=float(data.get("difficulty", 0.0)),
            elapsed_days=int(data.get("elapsed_days", 0)),
            scheduled_days=int(data.get("scheduled_days", 0)),
            repetitions=int(data.get("repetitions", 0)),
            lapses=int(data.get("lapses", 0)),
            lifecycle_state=LifecycleState(data.get("lifecycle_state", "New")),
            last_reviewed_at=datetime.fromisoformat(last) if last else None,
        )


@dataclass(frozen=True)
class ValidationOutcome:
    """Transient result of grading a free-text answer."""

    score: float  # 0.0-1.0
    method: ValidationMethod


@dataclass
class Card:
    """A flashcard. Owns its MemoryState and optional answer embedding."""

    id: str
    user_id: str
    question: str
    answer: str
    deck_id: str | None = None
    memory: MemoryState = field(default_factory=MemoryState)
    answer_embedding: list[float] | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ReviewLogEntry:
    """Immutable, append-only audit record of one review."""

    card_id: str
    user_id: str
    submitted_answer: str
    expected_answer: str
    score: float
    method: ValidationMethod
    grade: Grade
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class UserStats:
    """Precomputed per-user counters, updated incrementally."""

    user_id: str
    total_reviews: int = 0
    correct_reviews: int = 0
    days_studied: int = 0
    last_active_date: date | None = None

    @property
    def accuracy_percentage(self) -> float:
        if self.total_reviews == 0:
            return 0.0
        return self.correct_reviews / self.total_reviews * 100.0


@dataclass
class DeckStats:
    """Precomputed per-deck counters, updated incrementally."""

    deck_id: str
    user_id: str
    total_card_count: int = 0
    total_reviews: int = 0
    correct_reviews: int = 0
    days_studied: int = 0
    last_active_date: date | None = None

    @property
    def accuracy_percentage(self) -> float:
        if self.total_reviews == 0:
            return 0.0
        return self.correct_reviews / self.total_reviews * 100.0
