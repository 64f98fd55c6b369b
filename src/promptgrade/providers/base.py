from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from promptgrade.assertions.base import TokenUsage


@dataclass
class ProviderResponse:
    output: str | None = None
    error: str | None = None
    token_usage: TokenUsage | None = None


@dataclass
class EmbeddingResponse:
    embedding: list[float] | None = None
    error: str | None = None
    token_usage: TokenUsage | None = None


@runtime_checkable
class CompletionProvider(Protocol):
    def id(self) -> str:
        """Identifier this provider was loaded from, e.g. ``openai:chat:gpt-4``."""
        ...

    async def call_api(self, prompt: str) -> ProviderResponse:
        """Generate a completion for ``prompt``."""
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    def id(self) -> str:
        ...

    async def call_embedding_api(self, text: str) -> EmbeddingResponse:
        """Embed ``text`` into a single vector."""
        ...
