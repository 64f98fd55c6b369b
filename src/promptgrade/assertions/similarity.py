"""Embedding-based semantic similarity check."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import numpy as np

from promptgrade.assertions.base import GradingResult, TokenUsage
from promptgrade.providers import EmbeddingProvider, get_default_embedding_provider

DEFAULT_SIMILARITY_THRESHOLD = 0.75


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Raises ValueError for empty vectors, vectors of different length, and
    zero-magnitude vectors, none of which have a defined angle.
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.ndim != 1 or va.size == 0:
        raise ValueError("Embeddings must be non-empty vectors")
    if va.shape != vb.shape:
        raise ValueError(
            f"Embeddings have different dimensions ({va.size} vs {vb.size})"
        )
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        raise ValueError("Cannot compare zero-magnitude embeddings")
    return float(np.dot(va, vb) / norm)


async def matches_similarity(
    expected: str,
    output: str,
    threshold: float,
    *,
    provider: EmbeddingProvider | None = None,
    logger: logging.Logger | None = None,
) -> GradingResult:
    if logger is None:
        logger = logging.getLogger(__name__)
    if provider is None:
        provider = get_default_embedding_provider()

    logger.info(f"Evaluating similarity with {provider.id()} (threshold={threshold})")

    tasks = [
        asyncio.ensure_future(provider.call_embedding_api(expected)),
        asyncio.ensure_future(provider.call_embedding_api(output)),
    ]
    try:
        expected_embedding, output_embedding = await asyncio.gather(*tasks)
    except BaseException:
        # Stop the other call and collect its outcome before re-raising.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    tokens_used = TokenUsage.of(expected_embedding.token_usage) + output_embedding.token_usage

    if expected_embedding.error or output_embedding.error:
        error = expected_embedding.error or output_embedding.error
        logger.warning(f"Embedding call failed: {error}")
        return GradingResult(passed=False, reason=error, tokens_used=tokens_used)

    if not expected_embedding.embedding or not output_embedding.embedding:
        return GradingResult(
            passed=False, reason="Embedding not found", tokens_used=tokens_used
        )

    try:
        similarity = cosine_similarity(
            expected_embedding.embedding, output_embedding.embedding
        )
    except ValueError as e:
        return GradingResult(passed=False, reason=str(e), tokens_used=tokens_used)

    passed = similarity >= threshold
    logger.info(f"Similarity {similarity:.4f}, threshold {threshold}, passed={passed}")

    if not passed:
        return GradingResult(
            passed=False,
            reason=f"Similarity {similarity} is less than threshold {threshold}",
            tokens_used=tokens_used,
        )
    return GradingResult(
        passed=True,
        reason=f"Similarity {similarity} is greater than or equal to threshold {threshold}",
        tokens_used=tokens_used,
    )
