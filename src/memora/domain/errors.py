"""
Exception taxonomy for the review engine.

The HTTP layer maps these onto status codes; the core itself only raises them.
"""


class MemoraError(Exception):
    """Base class for every error raised by the engine."""


class CardNotFoundError(MemoraError):
    """The requested card does not exist."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class CardAccessDeniedError(MemoraError):
    """The requesting user does not own the card."""

    def __init__(self, card_id: str, user_id: str):
        super().__init__(f"User {user_id} may not review card {card_id}")
        self.card_id = card_id
        self.user_id = user_id


class ValidationFailure(MemoraError):
    """
    The generative-judgment backend failed.

    Terminal for a review: it is the last stage of the cascade, so there is
    nothing left to fall back to.
    """


class TransientExternalFailure(MemoraError):
    """An embedding call failed or timed out. Callers recover locally."""


class InvalidGradeError(MemoraError, ValueError):
    """A grade outside 1..4 was passed to the scheduler in strict mode."""

    def __init__(self, grade: int):
        super().__init__(f"Grade must be between 1 and 4, got {grade!r}")
        self.grade = grade
