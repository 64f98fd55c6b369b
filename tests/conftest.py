"""Pytest configuration and fixtures."""

import logging

import pytest

from promptgrade.assertions.base import TokenUsage
from promptgrade.providers.base import EmbeddingResponse, ProviderResponse


@pytest.fixture(autouse=True)
def cleanup_loggers():
    """Clean up promptgrade loggers after each test so handlers don't leak."""
    yield

    loggers_to_remove = [
        name
        for name in logging.Logger.manager.loggerDict.keys()
        if name.startswith("promptgrade")
    ]

    for name in loggers_to_remove:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        del logging.Logger.manager.loggerDict[name]


@pytest.fixture(autouse=True)
def isolate_provider_env(monkeypatch):
    """Keep real credentials and provider overrides out of tests."""
    for var in (
        "OPENAI_API_KEY",
        "OPENAI_API_BASE_URL",
        "OPENAI_TEMPERATURE",
        "OPENAI_MAX_TOKENS",
        "PROMPTGRADE_GRADING_PROVIDER",
        "PROMPTGRADE_EMBEDDING_PROVIDER",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeCompletionProvider:
    """Returns canned responses and records the prompts it was sent."""

    def __init__(self, output=None, error=None, token_usage=None):
        self.output = output
        self.error = error
        self.token_usage = token_usage
        self.prompts = []

    def id(self):
        return "fake:chat"

    async def call_api(self, prompt):
        self.prompts.append(prompt)
        return ProviderResponse(
            output=self.output, error=self.error, token_usage=self.token_usage
        )


class FakeEmbeddingProvider:
    """Looks texts up in a fixed table of vectors."""

    def __init__(self, vectors, errors=None, tokens_per_call=0):
        self.vectors = vectors
        self.errors = errors or {}
        self.tokens_per_call = tokens_per_call
        self.calls = []

    def id(self):
        return "fake:embedding"

    async def call_embedding_api(self, text):
        self.calls.append(text)
        usage = TokenUsage(
            total=self.tokens_per_call, prompt=self.tokens_per_call, completion=0
        )
        if text in self.errors:
            return EmbeddingResponse(error=self.errors[text], token_usage=usage)
        return EmbeddingResponse(embedding=self.vectors.get(text), token_usage=usage)


@pytest.fixture
def grader():
    return FakeCompletionProvider(
        output='{"pass": true, "reason": "Looks good"}',
        token_usage=TokenUsage(total=15, prompt=10, completion=5),
    )


@pytest.fixture
def embeddings():
    # cos(expected, close) = 0.9, cos(expected, far) = 0.0
    return FakeEmbeddingProvider(
        {
            "expected": [1.0, 0.0],
            "close": [0.9, 0.4358898943540674],
            "far": [0.0, 1.0],
            "zero": [0.0, 0.0],
            "short": [1.0],
        },
        tokens_per_call=3,
    )


@pytest.fixture
def use_embeddings(monkeypatch, embeddings):
    """Route the default embedding provider to the fake one."""
    monkeypatch.setattr(
        "promptgrade.assertions.similarity.get_default_embedding_provider",
        lambda: embeddings,
    )
    return embeddings
