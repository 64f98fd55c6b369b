"""Deterministic assertion checks (equality, JSON shape, code predicates)."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from promptgrade.assertions.base import GradingResult
from promptgrade.assertions.predicate import evaluate_predicate

# Greedy: spans from the first opening bracket to the last closing one.
_JSON_PATTERN = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def parse_json(text: str) -> Any:
    """Parse strict JSON text.

    Unlike a bare json.loads, NaN, Infinity and -Infinity are rejected.
    Raises ValueError (JSONDecodeError is a subclass).
    """
    return json.loads(text, parse_constant=_reject_constant)


def _logger(logger: logging.Logger | None) -> logging.Logger:
    return logger if logger is not None else logging.getLogger(__name__)


def check_equals(expected: str, output: str, logger: logging.Logger | None = None) -> GradingResult:
    """Check that the output is exactly the expected string."""
    passed = expected == output
    _logger(logger).info(f"Checking equals: {expected!r} passed={passed}")
    return GradingResult(
        passed=passed,
        reason="Assertion passed" if passed else f'Expected output "{expected}"',
    )


def check_is_json(output: str, logger: logging.Logger | None = None) -> GradingResult:
    """Check that the whole output is valid JSON text."""
    try:
        parse_json(output)
    except ValueError as e:
        _logger(logger).info(f"Checking is-json: invalid ({e})")
        return GradingResult(
            passed=False,
            reason=f"Expected output to be valid JSON, but it isn't.\nError: {e}",
        )
    _logger(logger).info("Checking is-json: valid")
    return GradingResult(passed=True, reason="Assertion passed")


def contains_json(text: str) -> bool:
    match = _JSON_PATTERN.search(text)
    if match is None:
        return False
    try:
        parse_json(match.group(0))
    except ValueError:
        return False
    return True


def check_contains_json(output: str, logger: logging.Logger | None = None) -> GradingResult:
    """Check that the output embeds a bracketed JSON object or array."""
    passed = contains_json(output)
    _logger(logger).info(f"Checking contains-json: passed={passed}")
    return GradingResult(
        passed=passed,
        reason="Assertion passed" if passed else "Expected output to contain valid JSON",
    )


def check_predicate(source: str, output: str, logger: logging.Logger | None = None) -> GradingResult:
    """Evaluate a predicate expression with ``output`` bound.

    Any error raised while compiling or running the predicate becomes a
    failing result carrying the error message.
    """
    log = _logger(logger)
    log.info(f"Checking predicate: {source.strip()}")
    try:
        passed = bool(evaluate_predicate(source, output))
    except Exception as e:
        log.info(f"Predicate raised {type(e).__name__}: {e}")
        return GradingResult(
            passed=False, reason=f"Custom function threw error: {e}"
        )

    log.info(f"Predicate returned {passed}")
    return GradingResult(
        passed=passed,
        reason="Assertion passed" if passed else "Custom function returned false",
    )
