from __future__ import annotations

from typing import Callable, Union

from promptgrade.settings import ProviderSettings, load_settings
from promptgrade.providers.base import (
    CompletionProvider,
    EmbeddingProvider,
    EmbeddingResponse,
    ProviderResponse,
)
from promptgrade.providers.local import LocalEmbeddingProvider
from promptgrade.providers.openai import (
    OpenAiChatCompletionProvider,
    OpenAiCompletionProvider,
    OpenAiEmbeddingProvider,
)

ApiProvider = Union[CompletionProvider, EmbeddingProvider]

_PROVIDERS: dict[str, Callable[[str | None, ProviderSettings], ApiProvider]] = {
    "openai:chat": lambda model, settings: OpenAiChatCompletionProvider(
        *([model] if model else []), settings=settings
    ),
    "openai:completion": lambda model, settings: OpenAiCompletionProvider(
        *([model] if model else []), settings=settings
    ),
    "openai:embedding": lambda model, settings: OpenAiEmbeddingProvider(
        *([model] if model else []), settings=settings
    ),
    "local:embedding": lambda model, settings: LocalEmbeddingProvider(
        *([model] if model else [])
    ),
}


def load_api_provider(
    provider_id: str, settings: ProviderSettings | None = None
) -> ApiProvider:
    """Construct a provider from an identifier such as ``openai:chat:gpt-4``.

    ``openai:<model>`` is shorthand for ``openai:chat:<model>``. Model names
    may themselves contain colons.
    """
    settings = settings or load_settings()
    parts = provider_id.split(":", 2)
    prefix = ":".join(parts[:2])
    model = parts[2] if len(parts) > 2 else None

    factory = _PROVIDERS.get(prefix)
    if factory is not None:
        return factory(model, settings)
    if parts[0] == "openai" and len(parts) > 1 and parts[1]:
        return OpenAiChatCompletionProvider(provider_id.split(":", 1)[1], settings=settings)
    raise ValueError(
        f"Unknown provider: {provider_id!r}. "
        f"Available: {', '.join(sorted(_PROVIDERS))}"
    )


def get_default_grading_provider(
    settings: ProviderSettings | None = None,
) -> CompletionProvider:
    settings = settings or load_settings()
    provider = load_api_provider(settings.grading_provider, settings=settings)
    if not isinstance(provider, CompletionProvider):
        raise ValueError(
            f"Grading provider {settings.grading_provider!r} cannot generate completions"
        )
    return provider


def get_default_embedding_provider(
    settings: ProviderSettings | None = None,
) -> EmbeddingProvider:
    settings = settings or load_settings()
    provider = load_api_provider(settings.embedding_provider, settings=settings)
    if not isinstance(provider, EmbeddingProvider):
        raise ValueError(
            f"Embedding provider {settings.embedding_provider!r} cannot produce embeddings"
        )
    return provider


__all__ = [
    "ApiProvider",
    "CompletionProvider",
    "EmbeddingProvider",
    "EmbeddingResponse",
    "LocalEmbeddingProvider",
    "OpenAiChatCompletionProvider",
    "OpenAiCompletionProvider",
    "OpenAiEmbeddingProvider",
    "ProviderResponse",
    "get_default_embedding_provider",
    "get_default_grading_provider",
    "load_api_provider",
]
