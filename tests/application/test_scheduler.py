from datetime import datetime, timezone

import pytest

from memora.application.scheduler import advance, score_to_grade
from memora.domain.errors import InvalidGradeError
from memora.domain.models import Grade, LifecycleState, MemoryState


@pytest.mark.parametrize(
    "score,expected",
    [
        (0.95, Grade.EASY),
        (0.9, Grade.EASY),
        (0.75, Grade.GOOD),
        (0.7, Grade.GOOD),
        (0.55, Grade.HARD),
        (0.5, Grade.HARD),
        (0.30, Grade.AGAIN),
        (0.0, Grade.AGAIN),
    ],
)
def test_score_to_grade(score, expected):
    assert score_to_grade(score) == expected


@pytest.mark.parametrize("grade", [1, 2, 3, 4])
def test_advance_always_increments_repetitions_and_resets_elapsed(grade):
    state = MemoryState(
        stability=3.0, difficulty=6.0, elapsed_days=7, scheduled_days=5,
        repetitions=4, lapses=1, lifecycle_state=LifecycleState.REVIEW,
    )
    nxt = advance(state, grade)
    assert nxt.repetitions == state.repetitions + 1
    assert nxt.elapsed_days == 0
    assert nxt.last_reviewed_at is not None


def test_advance_fresh_card_good():
    nxt = advance(MemoryState(), Grade.GOOD)

    assert nxt.lifecycle_state == LifecycleState.LEARNING
    assert nxt.stability == 2.5
    assert nxt.difficulty == 5.0
    assert nxt.scheduled_days == 6  # floor(2.5 * 2.5)
    assert nxt.repetitions == 1
    assert nxt.lapses == 0


def test_first_grading_overrides_stored_defaults():
    # Whatever the state held, the first grading starts from 1.0 / 5.0
    state = MemoryState(stability=40.0, difficulty=9.0)
    nxt = advance(state, Grade.GOOD)
    assert nxt.stability == 2.5
    assert nxt.difficulty == 5.0


def test_two_goods_reach_review():
    state = advance(MemoryState(), Grade.GOOD)
    assert state.lifecycle_state == LifecycleState.LEARNING

    state = advance(state, Grade.GOOD)
    assert state.lifecycle_state == LifecycleState.REVIEW
    assert state.repetitions == 2
    assert state.stability == pytest.approx(6.25)
    assert state.scheduled_days == 15  # floor(6.25 * 2.5)


def test_again_after_progress_relearns():
    state = advance(advance(MemoryState(), Grade.GOOD), Grade.GOOD)
    before = state.stability

    state = advance(state, Grade.AGAIN)

    assert state.lifecycle_state == LifecycleState.RELEARNING
    assert state.lapses == 1
    assert state.scheduled_days == 1
    assert state.stability == pytest.approx(before * 0.5)
    assert state.difficulty == 6.0


def test_again_on_fresh_card():
    state = advance(MemoryState(), Grade.AGAIN)
    assert state.lifecycle_state == LifecycleState.RELEARNING
    assert state.lapses == 1
    assert state.stability == 0.5
    assert state.difficulty == 6.0


def test_again_stability_floor_and_difficulty_ceiling():
    state = MemoryState(stability=0.15, difficulty=9.5, repetitions=10)
    nxt = advance(state, Grade.AGAIN)
    assert nxt.stability == 0.1
    assert nxt.difficulty == 10.0


def test_hard_first_and_later():
    first = advance(MemoryState(), Grade.HARD)
    assert first.lifecycle_state == LifecycleState.LEARNING
    assert first.stability == pytest.approx(1.2)
    assert first.difficulty == pytest.approx(5.15)
    assert first.scheduled_days == 1  # floor(1.44)

    second = advance(first, Grade.HARD)
    assert second.lifecycle_state == LifecycleState.REVIEW


def test_easy_is_review_immediately():
    nxt = advance(MemoryState(), Grade.EASY)
    assert nxt.lifecycle_state == LifecycleState.REVIEW
    assert nxt.stability == 4.0
    assert nxt.difficulty == pytest.approx(4.85)
    assert nxt.scheduled_days == 16


def test_easy_difficulty_floor():
    state = MemoryState(stability=2.0, difficulty=1.05, repetitions=3)
    assert advance(state, Grade.EASY).difficulty == 1.0


def test_advance_does_not_mutate_input():
    state = MemoryState()
    advance(state, Grade.EASY)
    assert state.repetitions == 0
    assert state.lifecycle_state == LifecycleState.NEW


def test_advance_uses_given_timestamp():
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert advance(MemoryState(), Grade.GOOD, now=now).last_reviewed_at == now


@pytest.mark.parametrize("bad", [0, 5, -1, 42])
def test_out_of_range_grade_rejected_when_strict(bad):
    with pytest.raises(InvalidGradeError):
        advance(MemoryState(), bad)


def test_out_of_range_grade_treated_as_good_when_lenient():
    lenient = advance(MemoryState(), 7, strict=False)
    good = advance(MemoryState(), Grade.GOOD, now=lenient.last_reviewed_at)
    assert lenient == good
