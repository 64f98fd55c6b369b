from promptgrade.assertions import (
    GradingResult,
    TokenUsage,
    assertion_from_string,
    matches_llm_rubric,
    matches_similarity,
)
from promptgrade.config import AtomicTestCase, GradingConfig, TestCase
from promptgrade.runner import run_assertion, run_assertions

__all__ = [
    "AtomicTestCase",
    "GradingConfig",
    "GradingResult",
    "TestCase",
    "TokenUsage",
    "assertion_from_string",
    "matches_llm_rubric",
    "matches_similarity",
    "run_assertion",
    "run_assertions",
]
