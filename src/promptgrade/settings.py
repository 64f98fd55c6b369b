"""Provider settings read from the environment."""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel

DEFAULT_GRADING_PROVIDER = "openai:chat:gpt-4"
DEFAULT_EMBEDDING_PROVIDER = "openai:embedding:text-embedding-ada-002"


class ProviderSettings(BaseModel):
    grading_provider: str = DEFAULT_GRADING_PROVIDER
    embedding_provider: str = DEFAULT_EMBEDDING_PROVIDER
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    temperature: float = 0.0
    max_tokens: int = 1024


_SETTINGS_ENV = {
    "grading_provider": "PROMPTGRADE_GRADING_PROVIDER",
    "embedding_provider": "PROMPTGRADE_EMBEDDING_PROVIDER",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_base_url": "OPENAI_API_BASE_URL",
    "temperature": "OPENAI_TEMPERATURE",
    "max_tokens": "OPENAI_MAX_TOKENS",
}


def load_settings(environ: Mapping[str, str] | None = None) -> ProviderSettings:
    """Build provider settings from environment variables (unset or empty ones keep defaults)."""
    env = os.environ if environ is None else environ
    values = {
        field: env[var] for field, var in _SETTINGS_ENV.items() if env.get(var)
    }
    return ProviderSettings(**values)
