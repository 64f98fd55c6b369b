from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel

from promptgrade.assertions.base import GradingResult, TokenUsage
from promptgrade.assertions.deterministic import (
    check_contains_json,
    check_equals,
    check_is_json,
    check_predicate,
)
from promptgrade.assertions.rubric import matches_llm_rubric, resolve_grading_config
from promptgrade.assertions.similarity import (
    DEFAULT_SIMILARITY_THRESHOLD,
    matches_similarity,
)
from promptgrade.config import (
    Assertion,
    AssertionType,
    ContainsJsonAssertion,
    EqualsAssertion,
    IsJsonAssertion,
    JavascriptAssertion,
    LlmRubricAssertion,
    SimilarAssertion,
    TestCase,
    parse_assertion,
)


async def run_assertion(
    assertion: Assertion | Mapping[str, Any],
    test: TestCase,
    output: str,
    *,
    logger: logging.Logger | None = None,
) -> GradingResult:
    """Dispatch one assertion to the check for its type.

    Accepts an assertion model or a plain dict such as
    ``{"type": "similar", "value": "hello", "threshold": 0.9}``.

    Raises ValueError for unknown assertion types and for ``similar`` or
    ``llm-rubric`` assertions without a value. Every other outcome,
    including provider errors, is returned as a GradingResult.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if not isinstance(assertion, BaseModel):
        assertion = parse_assertion(assertion)

    if isinstance(assertion, EqualsAssertion):
        return check_equals(assertion.value, output, logger=logger)
    if isinstance(assertion, IsJsonAssertion):
        return check_is_json(output, logger=logger)
    if isinstance(assertion, ContainsJsonAssertion):
        return check_contains_json(output, logger=logger)
    if isinstance(assertion, JavascriptAssertion):
        return check_predicate(assertion.value, output, logger=logger)
    if isinstance(assertion, SimilarAssertion):
        if not assertion.value:
            raise ValueError("Similarity assertion must have a string value")
        threshold = (
            assertion.threshold
            if assertion.threshold is not None
            else DEFAULT_SIMILARITY_THRESHOLD
        )
        return await matches_similarity(assertion.value, output, threshold, logger=logger)
    if isinstance(assertion, LlmRubricAssertion):
        if not assertion.value:
            raise ValueError("Rubric assertion must have a string value")
        return await matches_llm_rubric(assertion.value, output, test.options, logger=logger)

    raise ValueError(f"Unknown assertion type: '{getattr(assertion, 'type', assertion)}'")


def _needs_grader(test: TestCase) -> bool:
    return any(a.type == AssertionType.LLM_RUBRIC.value for a in test.assertions)


async def run_assertions(
    test: TestCase, output: str, *, logger: logging.Logger | None = None
) -> GradingResult:
    """Evaluate the test's assertions in order against ``output``.

    Returns the first failing result unchanged; assertions after it are not
    evaluated. When everything passes, token usage of all assertions is
    summed into the returned result.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    tokens_used = TokenUsage()

    if not test.assertions:
        return GradingResult(passed=True, reason="No assertions", tokens_used=tokens_used)

    if test.options is not None and _needs_grader(test):
        test = test.model_copy(update={"options": resolve_grading_config(test.options)})

    for index, assertion in enumerate(test.assertions):
        logger.info(f"Assertion {index + 1}/{len(test.assertions)}: {assertion.type}")
        result = await run_assertion(assertion, test, output, logger=logger)
        if not result.passed:
            logger.info(f"Assertion {index + 1} failed: {result.reason}")
            return result
        tokens_used = tokens_used + result.tokens_used

    logger.info(f"All {len(test.assertions)} assertions passed")
    return GradingResult(passed=True, reason="All assertions passed", tokens_used=tokens_used)
