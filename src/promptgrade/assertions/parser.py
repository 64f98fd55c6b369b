"""Shorthand assertion syntax.

    similar: text            -> similar, threshold 0.8
    similar(0.9): text       -> similar, threshold 0.9
    fn: len(output) > 0      -> javascript (``eval:`` is the legacy prefix)
    grade: is polite         -> llm-rubric
    is-json / contains-json  -> that type
    anything else            -> equals
"""

from __future__ import annotations

import re

from promptgrade.config import (
    Assertion,
    ContainsJsonAssertion,
    EqualsAssertion,
    IsJsonAssertion,
    JavascriptAssertion,
    LlmRubricAssertion,
    SimilarAssertion,
)

SIMILAR_PATTERN = re.compile(r"similar(?::|\((\d+(?:\.\d+)?)\):)")

DEFAULT_SHORTHAND_SIMILARITY_THRESHOLD = 0.8

_FUNCTION_PREFIXES = ("fn:", "eval:")
_RUBRIC_PREFIX = "grade:"


def assertion_from_string(expected: str) -> Assertion:
    """Parse one shorthand string into an assertion. Never raises."""
    match = SIMILAR_PATTERN.match(expected)
    if match:
        threshold = (
            float(match.group(1))
            if match.group(1)
            else DEFAULT_SHORTHAND_SIMILARITY_THRESHOLD
        )
        return SimilarAssertion(value=expected[match.end():].strip(), threshold=threshold)

    for prefix in _FUNCTION_PREFIXES:
        if expected.startswith(prefix):
            return JavascriptAssertion(value=expected[len(prefix):])

    if expected.startswith(_RUBRIC_PREFIX):
        return LlmRubricAssertion(value=expected[len(_RUBRIC_PREFIX):])

    if expected == "is-json":
        return IsJsonAssertion()
    if expected == "contains-json":
        return ContainsJsonAssertion()

    return EqualsAssertion(value=expected)
