"""
Answer validation strategies.

CascadingValidator tries increasingly expensive checks until one is confident:
exact match, then embedding similarity, then a generative-model judgment.
HeuristicValidator needs no external backend at all.
"""

import asyncio
import logging
import math
import re

from memora.domain.constants import (
    BORDERLINE_THRESHOLD,
    EMBEDDING_THRESHOLD,
    REQUEST_TIMEOUT,
)
from memora.domain.errors import TransientExternalFailure, ValidationFailure
from memora.domain.models import ValidationMethod, ValidationOutcome
from memora.domain.ports import AnswerValidator, EmbeddingService, JudgmentService

logger = logging.getLogger(__name__)

_NUMBER = r"-?(?:\d+(?:\.\d*)?|\.\d+)"
_NUMBER_RE = re.compile(_NUMBER)
_FRACTION_RE = re.compile(rf"({_NUMBER})\s*/\s*({_NUMBER})")


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 for mismatched or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def jaccard_similarity(expected: str, actual: str) -> float:
    """Word-set overlap between two already-normalized strings."""
    expected_words = set(expected.split())
    actual_words = set(actual.split())
    union = expected_words | actual_words
    if not union:
        return 0.0
    return len(expected_words & actual_words) / len(union)


def parse_score(text: str | None) -> float:
    """
    Extract a score from a model response.

    A bare number is taken as is. Otherwise the first "a/b" fraction or, failing
    that, the first number in the text is used. Unparsable responses score 0.0;
    parsed values are clamped to [0, 1].
    """
    if not text:
        return 0.0
    text = text.strip()
    try:
        value = float(text)
    except ValueError:
        fraction = _FRACTION_RE.search(text)
        if fraction and float(fraction.group(2)) != 0:
            value = float(fraction.group(1)) / float(fraction.group(2))
        else:
            match = _NUMBER_RE.search(text)
            if not match:
                return 0.0
            value = float(match.group(0))
    if not math.isfinite(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


class CascadingValidator(AnswerValidator):
    """
    Primary validator: exact -> embedding -> generative judgment.

    Embedding failures are recovered by falling through to judgment.
    Judgment failures raise ValidationFailure; nothing follows it.
    """

    def __init__(
        self,
        embedder: EmbeddingService,
        judge: JudgmentService,
        embedding_threshold: float = EMBEDDING_THRESHOLD,
        borderline_threshold: float = BORDERLINE_THRESHOLD,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._embedder = embedder
        self._judge = judge
        self.embedding_threshold = embedding_threshold
        self.borderline_threshold = borderline_threshold
        self.timeout = timeout

    async def validate(
        self,
        expected_answer: str,
        user_answer: str,
        question_context: str,
        expected_embedding: list[float] | None = None,
    ) -> ValidationOutcome:
        # 1. Exact match
        if normalize_answer(expected_answer) == normalize_answer(user_answer):
            return ValidationOutcome(score=1.0, method=ValidationMethod.EXACT)

        # 2. Embedding similarity
        try:
            similarity = await self._embedding_similarity(
                expected_answer, user_answer, expected_embedding
            )
        except TransientExternalFailure as e:
            logger.warning(f"Embedding check failed: {e}, falling back to judgment")
        else:
            if similarity >= self.embedding_threshold:
                return ValidationOutcome(score=similarity, method=ValidationMethod.EMBEDDING)
            if similarity >= self.borderline_threshold:
                logger.info(
                    f"Embedding score borderline ({similarity:.3f}), falling back to judgment"
                )

        # 3. Generative judgment (most expensive, last resort)
        score = await self._judgment(expected_answer, user_answer, question_context)
        return ValidationOutcome(score=score, method=ValidationMethod.GENERATIVE_JUDGMENT)

    async def _embedding_similarity(
        self,
        expected_answer: str,
        user_answer: str,
        expected_embedding: list[float] | None,
    ) -> float:
        try:
            if expected_embedding:
                actual = await asyncio.wait_for(
                    self._embedder.embed(user_answer), timeout=self.timeout
                )
                expected = expected_embedding
            else:
                expected, actual = await asyncio.wait_for(
                    asyncio.gather(
                        self._embedder.embed(expected_answer),
                        self._embedder.embed(user_answer),
                    ),
                    timeout=self.timeout,
                )
        except TransientExternalFailure:
            raise
        except asyncio.TimeoutError as e:
            raise TransientExternalFailure(
                f"embedding timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise TransientExternalFailure(str(e)) from e

        return cosine_similarity(expected, actual)

    async def _judgment(self, expected: str, actual: str, context: str) -> float:
        try:
            score = await asyncio.wait_for(
                self._judge.judge(expected, actual, context), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ValidationFailure(f"judgment timed out after {self.timeout}s") from e
        except ValidationFailure:
            raise
        except Exception as e:
            raise ValidationFailure(f"judgment backend failed: {e}") from e
        return min(max(float(score), 0.0), 1.0)


class HeuristicValidator(AnswerValidator):
    """
    Fallback used when no embedding or judgment backend is configured.

    Exact match scores 1.0; anything else is scored by word-set Jaccard overlap.
    """

    async def validate(
        self,
        expected_answer: str,
        user_answer: str,
        question_context: str,
        expected_embedding: list[float] | None = None,
    ) -> ValidationOutcome:
        expected = normalize_answer(expected_answer)
        actual = normalize_answer(user_answer)

        if expected == actual:
            return ValidationOutcome(score=1.0, method=ValidationMethod.EXACT)

        return ValidationOutcome(
            score=jaccard_similarity(expected, actual),
            method=ValidationMethod.HEURISTIC,
        )
