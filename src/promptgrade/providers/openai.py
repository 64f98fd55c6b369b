"""OpenAI-backed completion and embedding providers."""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import APIError, AsyncOpenAI

from promptgrade.assertions.base import TokenUsage
from promptgrade.settings import ProviderSettings, load_settings
from promptgrade.providers.base import EmbeddingResponse, ProviderResponse

DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
DEFAULT_COMPLETION_MODEL = "text-davinci-003"
DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"

logger = logging.getLogger(__name__)


def _usage(usage: Any) -> TokenUsage:
    if usage is None:
        return TokenUsage()
    prompt = getattr(usage, "prompt_tokens", 0) or 0
    completion = getattr(usage, "completion_tokens", 0) or 0
    total = getattr(usage, "total_tokens", 0) or prompt + completion
    return TokenUsage(total=total, prompt=prompt, completion=completion)


class OpenAiGenericProvider:
    """Shared client handling for the OpenAI providers.

    The client is created on first use so that constructing a provider never
    needs credentials.
    """

    kind = "generic"

    def __init__(self, model: str, settings: ProviderSettings | None = None):
        self.model = model
        self.settings = settings or load_settings()
        self._client: AsyncOpenAI | None = None

    def id(self) -> str:
        return f"openai:{self.kind}:{self.model}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model!r}>"

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Raises openai.OpenAIError when no API key is configured.
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
            )
        return self._client


class OpenAiChatCompletionProvider(OpenAiGenericProvider):
    kind = "chat"

    def __init__(self, model: str = DEFAULT_CHAT_MODEL, settings: ProviderSettings | None = None):
        super().__init__(model, settings)

    @staticmethod
    def _to_messages(prompt: str) -> list[dict[str, Any]]:
        """Use ``prompt`` as a message list if it is one, else wrap it as a user message."""
        try:
            parsed = json.loads(prompt)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list) and all(
            isinstance(m, dict) and "role" in m and "content" in m for m in parsed
        ):
            return parsed
        return [{"role": "user", "content": prompt}]

    async def call_api(self, prompt: str) -> ProviderResponse:
        client = self._get_client()
        messages = self._to_messages(prompt)
        logger.debug(f"Calling OpenAI chat model {self.model} with {len(messages)} message(s)")
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except APIError as e:
            logger.warning(f"OpenAI chat call failed: {e}")
            return ProviderResponse(error=f"API call error: {e}")

        try:
            output = resp.choices[0].message.content
        except (IndexError, AttributeError) as e:
            return ProviderResponse(
                error=f"API response error: {e}", token_usage=_usage(resp.usage)
            )
        return ProviderResponse(output=output, token_usage=_usage(resp.usage))


class OpenAiCompletionProvider(OpenAiGenericProvider):
    kind = "completion"

    def __init__(
        self, model: str = DEFAULT_COMPLETION_MODEL, settings: ProviderSettings | None = None
    ):
        super().__init__(model, settings)

    async def call_api(self, prompt: str) -> ProviderResponse:
        client = self._get_client()
        logger.debug(f"Calling OpenAI completion model {self.model}")
        try:
            resp = await client.completions.create(
                model=self.model,
                prompt=prompt,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except APIError as e:
            logger.warning(f"OpenAI completion call failed: {e}")
            return ProviderResponse(error=f"API call error: {e}")

        try:
            output = resp.choices[0].text
        except (IndexError, AttributeError) as e:
            return ProviderResponse(
                error=f"API response error: {e}", token_usage=_usage(resp.usage)
            )
        return ProviderResponse(output=output, token_usage=_usage(resp.usage))


class OpenAiEmbeddingProvider(OpenAiGenericProvider):
    kind = "embedding"

    def __init__(
        self, model: str = DEFAULT_EMBEDDING_MODEL, settings: ProviderSettings | None = None
    ):
        super().__init__(model, settings)

    async def call_embedding_api(self, text: str) -> EmbeddingResponse:
        client = self._get_client()
        logger.debug(f"Calling OpenAI embedding model {self.model} ({len(text)} chars)")
        try:
            resp = await client.embeddings.create(model=self.model, input=text)
        except APIError as e:
            logger.warning(f"OpenAI embedding call failed: {e}")
            return EmbeddingResponse(error=f"API call error: {e}")

        usage = _usage(resp.usage)
        if not resp.data:
            return EmbeddingResponse(error="No embedding returned", token_usage=usage)
        return EmbeddingResponse(embedding=list(resp.data[0].embedding), token_usage=usage)
