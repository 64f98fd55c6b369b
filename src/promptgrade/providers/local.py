"""Local embedding provider backed by sentence-transformers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from promptgrade.providers.base import EmbeddingResponse
from promptgrade.assertions.base import TokenUsage

DEFAULT_LOCAL_EMBEDDING_MODEL = "all-MiniLM-L6-v2"

for _name in ("huggingface_hub", "transformers", "sentence_transformers", "filelock"):
    logging.getLogger(_name).setLevel(logging.ERROR)

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """Embeds text with a sentence-transformers model on this machine.

    The model is loaded on first use. Encoding runs in a worker thread so
    the event loop stays free. No tokens are billed, so usage is always zero.
    """

    def __init__(self, model: str = DEFAULT_LOCAL_EMBEDDING_MODEL):
        self.model = model
        self._encoder: Any = None

    def id(self) -> str:
        return f"local:embedding:{self.model}"

    def __repr__(self) -> str:
        return f"<LocalEmbeddingProvider {self.model!r}>"

    def _load_model(self) -> Any:
        if self._encoder is None:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading sentence-transformers model {self.model}")
            self._encoder = SentenceTransformer(self.model)
        return self._encoder

    def _encode(self, text: str) -> list[float]:
        vector = self._load_model().encode(text)
        return [float(x) for x in vector]

    async def call_embedding_api(self, text: str) -> EmbeddingResponse:
        try:
            embedding = await asyncio.to_thread(self._encode, text)
        except (OSError, RuntimeError) as e:
            logger.warning(f"Local embedding with {self.model} failed: {e}")
            return EmbeddingResponse(error=f"Embedding error: {e}", token_usage=TokenUsage())
        return EmbeddingResponse(embedding=embedding, token_usage=TokenUsage())
