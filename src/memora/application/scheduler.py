"""
Scheduler for the card memory state machine.

This is a pure computation module with no I/O.
"""

import math
from dataclasses import replace
from datetime import datetime

from memora.domain.constants import (
    AGAIN_DIFFICULTY_DELTA,
    AGAIN_STABILITY_FACTOR,
    EASY_DIFFICULTY_DELTA,
    EASY_FACTOR,
    EASY_SCORE,
    GOOD_FACTOR,
    GOOD_SCORE,
    HARD_DIFFICULTY_DELTA,
    HARD_FACTOR,
    HARD_SCORE,
    INITIAL_DIFFICULTY,
    INITIAL_STABILITY,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    MIN_STABILITY,
)
from memora.domain.errors import InvalidGradeError
from memora.domain.models import Grade, LifecycleState, MemoryState, utcnow


def score_to_grade(score: float) -> Grade:
    """Map a validation score (0.0-1.0) onto a review grade."""
    if score >= EASY_SCORE:
        return Grade.EASY
    if score >= GOOD_SCORE:
        return Grade.GOOD
    if score >= HARD_SCORE:
        return Grade.HARD
    return Grade.AGAIN


def _coerce_grade(grade: int, strict: bool) -> Grade:
    try:
        return Grade(grade)
    except ValueError:
        if strict:
            raise InvalidGradeError(grade) from None
        return Grade.GOOD


def _interval(stability: float, factor: float) -> int:
    return max(math.floor(stability * factor), 1)


def advance(
    state: MemoryState,
    grade: int,
    strict: bool = True,
    now: datetime | None = None,
) -> MemoryState:
    """
    Compute the memory state that follows a grading.

    Args:
        state: Current memory state of the card.
        grade: 1=Again, 2=Hard, 3=Good, 4=Easy.
        strict: Reject grades outside 1..4 with InvalidGradeError. When False,
            unknown grades are treated as Good.
        now: Review timestamp; defaults to the current UTC time.

    Returns:
        A new MemoryState. The input is never mutated.
    """
    rating = _coerce_grade(grade, strict)

    stability = state.stability
    difficulty = state.difficulty
    if state.repetitions == 0:
        stability = INITIAL_STABILITY
        difficulty = INITIAL_DIFFICULTY

    repetitions = state.repetitions + 1
    lapses = state.lapses
    in_learning = repetitions <= 1

    if rating is Grade.AGAIN:
        lapses += 1
        stability = max(stability * AGAIN_STABILITY_FACTOR, MIN_STABILITY)
        difficulty = min(difficulty + AGAIN_DIFFICULTY_DELTA, MAX_DIFFICULTY)
        scheduled_days = 1
        lifecycle = LifecycleState.RELEARNING
    elif rating is Grade.HARD:
        stability *= HARD_FACTOR
        difficulty = min(difficulty + HARD_DIFFICULTY_DELTA, MAX_DIFFICULTY)
        scheduled_days = _interval(stability, HARD_FACTOR)
        lifecycle = LifecycleState.LEARNING if in_learning else LifecycleState.REVIEW
    elif rating is Grade.GOOD:
        stability *= GOOD_FACTOR
        scheduled_days = _interval(stability, GOOD_FACTOR)
        lifecycle = LifecycleState.LEARNING if in_learning else LifecycleState.REVIEW
    else:
        stability *= EASY_FACTOR
        difficulty = max(difficulty - EASY_DIFFICULTY_DELTA, MIN_DIFFICULTY)
        scheduled_days = _interval(stability, EASY_FACTOR)
        lifecycle = LifecycleState.REVIEW

    return replace(
        state,
        stability=stability,
        difficulty=difficulty,
        elapsed_days=0,
        scheduled_days=scheduled_days,
        repetitions=repetitions,
        lapses=lapses,
        lifecycle_state=lifecycle,
        last_reviewed_at=now or utcnow(),
    )
