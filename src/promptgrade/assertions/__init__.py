"""Assertion system for grading model outputs."""

from promptgrade.assertions.base import GradingResult, TokenUsage
from promptgrade.assertions.parser import assertion_from_string
from promptgrade.assertions.rubric import matches_llm_rubric
from promptgrade.assertions.similarity import matches_similarity

__all__ = [
    "GradingResult",
    "TokenUsage",
    "assertion_from_string",
    "matches_llm_rubric",
    "matches_similarity",
]
