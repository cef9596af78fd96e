# Domain Package
from .errors import (
    CardAccessDeniedError,
    CardNotFoundError,
    InvalidGradeError,
    MemoraError,
    TransientExternalFailure,
    ValidationFailure,
)
from .events import CardCreated, CardReviewed, DomainEvent
from .models import (
    Card,
    DeckStats,
    Grade,
    LifecycleState,
    MemoryState,
    ReviewLogEntry,
    UserStats,
    ValidationMethod,
    ValidationOutcome,
)

__all__ = [
    "Card",
    "CardAccessDeniedError",
    "CardCreated",
    "CardNotFoundError",
    "CardReviewed",
    "DeckStats",
    "DomainEvent",
    "Grade",
    "InvalidGradeError",
    "LifecycleState",
    "MemoraError",
    "MemoryState",
    "ReviewLogEntry",
    "TransientExternalFailure",
    "UserStats",
    "ValidationFailure",
    "ValidationMethod",
    "ValidationOutcome",
]
