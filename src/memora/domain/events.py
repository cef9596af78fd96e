"""
Domain events carried by the in-process event channel.

Events are ephemeral: they live only for the duration of dispatch.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .models import Grade, utcnow


@dataclass(frozen=True)
class CardReviewed:
    card_id: str
    user_id: str
    score: float
    grade: Grade
    deck_id: str | None = None
    occurred_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CardCreated:
    card_id: str
    user_id: str
    deck_id: str | None = None
    occurred_at: datetime = field(default_factory=utcnow)


DomainEvent = CardReviewed | CardCreated
