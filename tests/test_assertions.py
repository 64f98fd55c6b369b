"""Tests for the deterministic assertion checks."""

import asyncio

import pytest

from promptgrade.assertions.base import GradingResult, TokenUsage
from promptgrade.assertions.deterministic import (
    check_contains_json,
    check_equals,
    check_is_json,
    check_predicate,
    contains_json,
)
from promptgrade.config import TestCase
from promptgrade.runner import run_assertion


# --- check_equals ---


def test_equals_pass():
    result = check_equals("Hello", "Hello")
    assert isinstance(result, GradingResult)
    assert result.passed is True
    assert result.reason == "Assertion passed"
    assert result.tokens_used is None


def test_equals_fail():
    result = check_equals("Hello", "Hello!")
    assert result.passed is False
    assert result.reason == 'Expected output "Hello"'


def test_equals_is_exact():
    assert check_equals("Hello", "hello").passed is False
    assert check_equals("Hello", "Hello ").passed is False


# --- check_is_json ---


def test_is_json_pass():
    assert check_is_json('{"a": 1}').passed is True
    assert check_is_json("[1, 2, 3]").passed is True


def test_is_json_fail():
    result = check_is_json("{a: 1}")
    assert result.passed is False
    assert result.reason.startswith("Expected output to be valid JSON, but it isn't.\nError: ")


def test_is_json_rejects_surrounding_prose():
    assert check_is_json('Sure! {"a": 1}').passed is False


@pytest.mark.parametrize("text", ["NaN", "Infinity", "-Infinity", '{"score": NaN}'])
def test_is_json_rejects_non_standard_constants(text):
    result = check_is_json(text)
    assert result.passed is False
    assert result.reason.startswith("Expected output to be valid JSON, but it isn't.\nError: ")


# --- check_contains_json ---


def test_contains_json_embedded_object():
    result = check_contains_json('Here you go: {"name": "x", "tags": [1, 2]} thanks')
    assert result.passed is True
    assert result.reason == "Assertion passed"


def test_contains_json_array():
    assert contains_json("result: [1, 2, 3]") is True


def test_contains_json_fail():
    result = check_contains_json("no braces at all")
    assert result.passed is False
    assert result.reason == "Expected output to contain valid JSON"


def test_contains_json_invalid_bracketed_text():
    assert contains_json("a {not json} b") is False


def test_contains_json_rejects_non_standard_constants():
    assert contains_json("values: [Infinity]") is False
    assert check_contains_json('result {"x": -Infinity}').passed is False


def test_contains_json_span_is_greedy():
    # The span runs to the last closing brace, so two objects do not parse.
    assert contains_json('{"a": 1} and {"b": 2}') is False


# --- check_predicate ---


def test_predicate_true():
    result = check_predicate("len(output) > 3", "Hello")
    assert result.passed is True
    assert result.reason == "Assertion passed"


def test_predicate_false():
    result = check_predicate("output.startswith('Bye')", "Hello")
    assert result.passed is False
    assert result.reason == "Custom function returned false"


def test_predicate_result_is_coerced_to_bool():
    assert check_predicate("output.count('l')", "Hello").passed is True
    assert check_predicate("''", "Hello").passed is False


def test_predicate_error_is_graded():
    result = check_predicate("int(output) > 1", "not a number")
    assert result.passed is False
    assert result.reason.startswith("Custom function threw error: ")


def test_predicate_syntax_error_is_graded():
    result = check_predicate("output ==", "x")
    assert result.passed is False
    assert result.reason.startswith("Custom function threw error: ")


def test_predicate_with_leading_whitespace():
    assert check_predicate(" output == 'x'", "x").passed is True


# --- run_assertion dispatcher ---


def test_run_assertion_accepts_dict():
    result = asyncio.run(
        run_assertion({"type": "equals", "value": "Hi"}, TestCase(), "Hi")
    )
    assert result.passed is True


def test_run_assertion_javascript_dict():
    result = asyncio.run(
        run_assertion(
            {"type": "javascript", "value": "'json' in output"}, TestCase(), "a json b"
        )
    )
    assert result.passed is True


def test_run_assertion_unknown_type_raises():
    with pytest.raises(ValueError, match="Unknown assertion type: 'regex'"):
        asyncio.run(run_assertion({"type": "regex", "value": "x"}, TestCase(), "x"))


def test_run_assertion_missing_type_raises():
    with pytest.raises(ValueError, match="Unknown assertion type"):
        asyncio.run(run_assertion({"value": "x"}, TestCase(), "x"))


def test_run_assertion_similar_without_value_raises():
    with pytest.raises(ValueError, match="Similarity assertion must have a string value"):
        asyncio.run(run_assertion({"type": "similar", "value": ""}, TestCase(), "x"))


def test_run_assertion_rubric_without_value_raises():
    with pytest.raises(ValueError, match="Rubric assertion must have a string value"):
        asyncio.run(run_assertion({"type": "llm-rubric", "value": ""}, TestCase(), "x"))


def test_run_assertion_similar_uses_default_threshold(use_embeddings):
    # 0.9 similarity clears the 0.75 default
    result = asyncio.run(
        run_assertion({"type": "similar", "value": "expected"}, TestCase(), "close")
    )
    assert result.passed is True
    assert "threshold 0.75" in result.reason


def test_run_assertion_similar_respects_zero_threshold(use_embeddings):
    result = asyncio.run(
        run_assertion(
            {"type": "similar", "value": "expected", "threshold": 0.0}, TestCase(), "far"
        )
    )
    assert result.passed is True
    assert result.tokens_used == TokenUsage(total=6, prompt=6, completion=0)
