"""
OpenAI-compatible HTTP backend.

Implements both EmbeddingService (/embeddings) and JudgmentService
(/chat/completions) over a shared httpx client. Any server speaking the same
wire format (OpenAI, Azure proxies, local gateways) works via base_url.
"""

import logging
from typing import Any

import httpx

from memora.application.validation import parse_score
from memora.domain.constants import (
    EMBEDDING_MODEL,
    JUDGMENT_MAX_TOKENS,
    JUDGMENT_MODEL,
    OPENAI_BASE_URL,
    REQUEST_TIMEOUT,
)
from memora.domain.errors import TransientExternalFailure
from memora.domain.ports import EmbeddingService, JudgmentService

JUDGMENT_RUBRIC = """You are an expert tutor evaluating student answers.
Compare the student's answer with the expected answer in the context of the question.
Rate the answer from 0.0 to 1.0 based on semantic correctness and completeness.
Consider:
- Meaning and intent (more important than exact wording)
- Grammatical correctness
- Completeness of the response

Respond with ONLY a number between 0.0 and 1.0, nothing else."""


class OpenAIBackend(EmbeddingService, JudgmentService):
    """Embedding + judgment adapter for an OpenAI-compatible REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_BASE_URL,
        embedding_model: str = EMBEDDING_MODEL,
        judgment_model: str = JUDGMENT_MODEL,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.embedding_model = embedding_model
        self.judgment_model = judgment_model
        self.timeout = timeout
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._client

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        resp = await self._get_client().post(path, json=payload)
        resp.raise_for_status()
        return resp.json()

    async def embed(self, text: str) -> list[float]:
        try:
            data = await self._post(
                "/embeddings", {"model": self.embedding_model, "input": text}
            )
        except httpx.HTTPError as e:
            raise TransientExternalFailure(f"embedding request failed: {e}") from e

        items = data.get("data") or []
        if not items:
            raise TransientExternalFailure("No embedding returned from API")
        return [float(x) for x in items[0]["embedding"]]

    async def judge(self, expected: str, actual: str, context: str) -> float:
        user_prompt = (
            f"Question: {context}\n\n"
            f"Expected Answer: {expected}\n\n"
            f"Student Answer: {actual}\n\n"
            f"Score:"
        )
        data = await self._post(
            "/chat/completions",
            {
                "model": self.judgment_model,
                "messages": [
                    {"role": "system", "content": JUDGMENT_RUBRIC},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": 0.0,
                "max_tokens": JUDGMENT_MAX_TOKENS,
            },
        )

        choices = data.get("choices") or []
        if not choices:
            raise ValueError("No response from judgment model")
        content = choices[0].get("message", {}).get("content")
        score = parse_score(content)
        self.logger.debug(f"Judgment response {content!r} -> {score}")
        return score

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class UnavailableEmbeddingService(EmbeddingService):
    """Placeholder used when no API key is configured. Always fails."""

    async def embed(self, text: str) -> list[float]:
        raise TransientExternalFailure("Embedding generation not available without an API key")
