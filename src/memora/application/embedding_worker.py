"""
Detached background worker that backfills answer embeddings.

Spawning returns immediately. Each (card_id, text) pair is embedded and stored
independently; a failure is logged and the pair skipped, never retried.
"""

import asyncio
import logging

from memora.domain.constants import EMBEDDING_WORKERS, REQUEST_TIMEOUT
from memora.domain.ports import CardStore, EmbeddingService


class EmbeddingBackfillWorker:
    def __init__(
        self,
        card_store: CardStore,
        embedder: EmbeddingService,
        max_concurrency: int = EMBEDDING_WORKERS,
        timeout: float = REQUEST_TIMEOUT,
        logger: logging.Logger | None = None,
    ):
        self._cards = card_store
        self._embedder = embedder
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._tasks: set[asyncio.Task] = set()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, pairs: list[tuple[str, str]]) -> None:
        """Schedule embedding generation for the given cards and return at once."""
        if not pairs:
            return
        task = asyncio.get_running_loop().create_task(self._run(list(pairs)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.logger.debug(f"Spawned embedding backfill for {len(pairs)} card(s)")

    async def wait_idle(self) -> None:
        """Block until every spawned backfill has finished. Used on shutdown."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, pairs: list[tuple[str, str]]) -> None:
        await asyncio.gather(*(self._process(card_id, text) for card_id, text in pairs))

    async def _process(self, card_id: str, text: str) -> None:
        async with self._semaphore:
            try:
                embedding = await asyncio.wait_for(
                    self._embedder.embed(text), timeout=self.timeout
                )
            except Exception as e:
                self.logger.warning(f"Failed to generate embedding for card {card_id}: {e}")
                return

            try:
                await self._cards.update_embedding(card_id, embedding)
            except Exception as e:
                self.logger.warning(f"Failed to store embedding for card {card_id}: {e}")
