import asyncio
from unittest.mock import AsyncMock

import pytest

from memora.application.validation import (
    CascadingValidator,
    HeuristicValidator,
    cosine_similarity,
    jaccard_similarity,
    parse_score,
)
from memora.domain.errors import TransientExternalFailure, ValidationFailure
from memora.domain.models import ValidationMethod


def _embedder(vectors: dict[str, list[float]]):
    embedder = AsyncMock()
    embedder.embed.side_effect = lambda text: vectors[text]
    return embedder


@pytest.fixture
def judge():
    j = AsyncMock()
    j.judge.return_value = 0.8
    return j


# --- Helpers ---


def test_cosine_similarity():
    assert cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


def test_cosine_similarity_degenerate_inputs():
    assert cosine_similarity([1.0, 2.0], [1.0]) == 0.0
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_jaccard_similarity():
    assert jaccard_similarity("the cat sat", "the cat ran") == pytest.approx(2 / 4)
    assert jaccard_similarity("", "") == 0.0


@pytest.mark.parametrize(
    "text,expected",
    [
        ("0.75", 0.75),
        ("  1.0\n", 1.0),
        ("Score: 0.4", 0.4),
        ("1.7", 1.0),
        ("-0.2", 0.0),
        (".8", 0.8),
        ("Score: .65", 0.65),
        ("8/10", 0.8),
        ("3 / 4", 0.75),
        ("7/0", 1.0),
        ("nan", 0.0),
        ("excellent", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_parse_score(text, expected):
    assert parse_score(text) == pytest.approx(expected)


# --- Cascade ---


@pytest.mark.asyncio
async def test_exact_match_short_circuits(judge):
    embedder = AsyncMock()
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("Paris", "  paris ", "Capital of France?")

    assert outcome.score == 1.0
    assert outcome.method == ValidationMethod.EXACT
    assert embedder.embed.await_count == 0
    assert judge.judge.await_count == 0


@pytest.mark.asyncio
async def test_high_embedding_similarity_skips_judgment(judge):
    embedder = _embedder({"automobile": [1.0, 0.0], "car": [0.95, 0.05]})
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("automobile", "car", "Synonym?")

    assert outcome.method == ValidationMethod.EMBEDDING
    assert outcome.score >= 0.85
    assert embedder.embed.await_count == 2
    assert judge.judge.await_count == 0


@pytest.mark.asyncio
async def test_borderline_similarity_falls_through_to_judgment(judge):
    # cos = 0.7: borderline
    embedder = _embedder({"a": [1.0, 0.0], "b": [0.7, 0.71414284]})
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("a", "b", "Q")

    assert outcome.method == ValidationMethod.GENERATIVE_JUDGMENT
    assert outcome.score == 0.8
    judge.judge.assert_awaited_once_with("a", "b", "Q")


@pytest.mark.asyncio
async def test_low_similarity_still_asks_judgment(judge):
    embedder = _embedder({"a": [1.0, 0.0], "b": [0.0, 1.0]})
    judge.judge.return_value = 0.1
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("a", "b", "Q")

    assert outcome.method == ValidationMethod.GENERATIVE_JUDGMENT
    assert outcome.score == 0.1


@pytest.mark.asyncio
async def test_embedding_failure_recovers_via_judgment(judge):
    embedder = AsyncMock()
    embedder.embed.side_effect = RuntimeError("connection refused")
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("Berlin", "berlin city", "Capital of Germany?")

    assert outcome.method == ValidationMethod.GENERATIVE_JUDGMENT
    judge.judge.assert_awaited_once()


@pytest.mark.asyncio
async def test_embedding_timeout_recovers_via_judgment(judge):
    async def slow(text):
        await asyncio.sleep(5)
        return [1.0]

    embedder = AsyncMock()
    embedder.embed.side_effect = slow
    validator = CascadingValidator(embedder, judge, timeout=0.05)

    outcome = await validator.validate("x", "y", "Q")

    assert outcome.method == ValidationMethod.GENERATIVE_JUDGMENT


@pytest.mark.asyncio
async def test_judgment_failure_propagates_as_validation_failure():
    embedder = AsyncMock()
    embedder.embed.side_effect = TransientExternalFailure("down")
    judge = AsyncMock()
    judge.judge.side_effect = RuntimeError("503 from model")
    validator = CascadingValidator(embedder, judge)

    with pytest.raises(ValidationFailure):
        await validator.validate("x", "y", "Q")


@pytest.mark.asyncio
async def test_judgment_timeout_is_validation_failure():
    async def hang(*args):
        await asyncio.sleep(5)

    embedder = AsyncMock()
    embedder.embed.side_effect = TransientExternalFailure("down")
    judge = AsyncMock()
    judge.judge.side_effect = hang
    validator = CascadingValidator(embedder, judge, timeout=0.05)

    with pytest.raises(ValidationFailure):
        await validator.validate("x", "y", "Q")


@pytest.mark.asyncio
async def test_judgment_score_is_clamped():
    embedder = AsyncMock()
    embedder.embed.side_effect = TransientExternalFailure("down")
    judge = AsyncMock()
    judge.judge.return_value = 1.4
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate("x", "y", "Q")
    assert outcome.score == 1.0


@pytest.mark.asyncio
async def test_stored_expected_embedding_is_reused(judge):
    embedder = _embedder({"car": [0.95, 0.05]})
    validator = CascadingValidator(embedder, judge)

    outcome = await validator.validate(
        "automobile", "car", "Synonym?", expected_embedding=[1.0, 0.0]
    )

    assert outcome.method == ValidationMethod.EMBEDDING
    embedder.embed.assert_awaited_once_with("car")


# --- Heuristic ---


@pytest.mark.asyncio
async def test_heuristic_exact_match():
    outcome = await HeuristicValidator().validate("Hola", " hola", "Hello in Spanish?")
    assert outcome.score == 1.0
    assert outcome.method == ValidationMethod.EXACT


@pytest.mark.asyncio
async def test_heuristic_word_overlap():
    outcome = await HeuristicValidator().validate(
        "the mitochondria", "The powerhouse mitochondria", "Q"
    )
    assert outcome.method == ValidationMethod.HEURISTIC
    assert outcome.score == pytest.approx(2 / 3)


@pytest.mark.asyncio
async def test_heuristic_no_overlap():
    outcome = await HeuristicValidator().validate("red", "blue", "Q")
    assert outcome.score == 0.0
    assert outcome.method == ValidationMethod.HEURISTIC
