"""Tests for evaluating a test case's assertions in order."""

import asyncio

import pytest

from promptgrade.assertions.base import TokenUsage
from promptgrade.config import (
    EqualsAssertion,
    GradingConfig,
    JavascriptAssertion,
    LlmRubricAssertion,
    SimilarAssertion,
    TestCase,
)
from promptgrade.runner import run_assertions

from conftest import FakeCompletionProvider


def test_no_assertions_passes():
    result = asyncio.run(run_assertions(TestCase(), "anything"))
    assert result.passed is True
    assert result.reason == "No assertions"
    assert result.tokens_used == TokenUsage()


def test_all_deterministic_pass():
    test = TestCase(
        assertions=[
            EqualsAssertion(value="Hello"),
            JavascriptAssertion(value="len(output) == 5"),
        ]
    )
    result = asyncio.run(run_assertions(test, "Hello"))
    assert result.passed is True
    assert result.reason == "All assertions passed"
    assert result.tokens_used == TokenUsage()


def test_first_failure_is_returned():
    test = TestCase(
        assertions=[
            EqualsAssertion(value="Hello"),
            EqualsAssertion(value="Goodbye"),
            JavascriptAssertion(value="False"),
        ]
    )
    result = asyncio.run(run_assertions(test, "Hello"))
    assert result.passed is False
    assert result.reason == 'Expected output "Goodbye"'


def test_short_circuits_after_failure(grader):
    test = TestCase(
        assertions=[EqualsAssertion(value="nope"), LlmRubricAssertion(value="is polite")],
        options=GradingConfig(provider=grader),
    )
    result = asyncio.run(run_assertions(test, "Hello"))
    assert result.passed is False
    assert grader.prompts == []


def test_tokens_accumulate_across_assertions(grader, use_embeddings):
    test = TestCase(
        assertions=[
            SimilarAssertion(value="expected", threshold=0.8),
            LlmRubricAssertion(value="is close"),
            EqualsAssertion(value="close"),
        ],
        options=GradingConfig(provider=grader),
    )
    result = asyncio.run(run_assertions(test, "close"))
    assert result.passed is True
    assert result.tokens_used == TokenUsage(total=21, prompt=16, completion=5)


def test_failing_result_carries_only_its_own_tokens(use_embeddings):
    grader = FakeCompletionProvider(
        output='{"pass": false, "reason": "Not polite"}',
        token_usage=TokenUsage(total=15, prompt=10, completion=5),
    )
    test = TestCase(
        assertions=[
            SimilarAssertion(value="expected", threshold=0.8),
            LlmRubricAssertion(value="is polite"),
        ],
        options=GradingConfig(provider=grader),
    )
    result = asyncio.run(run_assertions(test, "close"))
    assert result.passed is False
    assert result.reason == "Not polite"
    assert result.tokens_used == TokenUsage(total=15, prompt=10, completion=5)


def test_rubric_without_options_raises():
    test = TestCase(assertions=[LlmRubricAssertion(value="is polite")])
    with pytest.raises(ValueError, match="grading config"):
        asyncio.run(run_assertions(test, "hi"))


def test_provider_string_resolved_once(monkeypatch, grader):
    calls = []

    def fake_load(provider_id):
        calls.append(provider_id)
        return grader

    monkeypatch.setattr("promptgrade.assertions.rubric.load_api_provider", fake_load)
    test = TestCase(
        assertions=[LlmRubricAssertion(value="a"), LlmRubricAssertion(value="b")],
        options=GradingConfig(provider="openai:chat:gpt-4"),
    )
    result = asyncio.run(run_assertions(test, "hi"))
    assert result.passed is True
    assert calls == ["openai:chat:gpt-4"]
    assert len(grader.prompts) == 2
    assert result.tokens_used.total == 30


def test_provider_not_resolved_without_rubric(monkeypatch):
    def fail_load(provider_id):
        raise AssertionError("provider should not be loaded")

    monkeypatch.setattr("promptgrade.assertions.rubric.load_api_provider", fail_load)
    test = TestCase(
        assertions=[EqualsAssertion(value="hi")],
        options=GradingConfig(provider="openai:chat:gpt-4"),
    )
    assert asyncio.run(run_assertions(test, "hi")).passed is True


def test_test_case_from_yaml_style_dict():
    test = TestCase(
        **{
            "description": "greets",
            "assert": [
                {"type": "equals", "value": "Hi"},
                {"type": "javascript", "value": "output.istitle()"},
            ],
        }
    )
    assert asyncio.run(run_assertions(test, "Hi")).passed is True


def test_logs_progress(caplog):
    import logging

    logger = logging.getLogger("runner_progress")
    test = TestCase(assertions=[EqualsAssertion(value="x")])
    with caplog.at_level(logging.INFO, logger="runner_progress"):
        asyncio.run(run_assertions(test, "x", logger=logger))
    assert "Assertion 1/1: equals" in caplog.text
    assert "All 1 assertions passed" in caplog.text
