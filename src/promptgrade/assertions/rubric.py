"""LLM-as-judge rubric grading."""

from __future__ import annotations

import json
import logging
from typing import Any

from jinja2 import Environment, TemplateError

from promptgrade.assertions.base import GradingResult, TokenUsage
from promptgrade.assertions.deterministic import parse_json
from promptgrade.config import GradingConfig
from promptgrade.prompts import DEFAULT_GRADING_PROMPT
from promptgrade.providers import (
    CompletionProvider,
    get_default_grading_provider,
    load_api_provider,
)

_env = Environment(autoescape=False, keep_trailing_newline=True)


def _as_message_list(template: str) -> list[dict[str, Any]] | None:
    try:
        parsed = json.loads(template)
    except json.JSONDecodeError:
        return None
    if isinstance(parsed, list) and all(
        isinstance(m, dict) and isinstance(m.get("content"), str) for m in parsed
    ):
        return parsed
    return None


def render_prompt(template: str, content: str, rubric: str) -> str:
    """Render a grading prompt template with ``content`` and ``rubric``.

    A template that is a JSON list of chat messages is rendered message by
    message and serialized again, so quotes or newlines in the graded
    content cannot break the JSON.
    """
    variables = {"content": content, "rubric": rubric}
    try:
        messages = _as_message_list(template)
        if messages is None:
            return _env.from_string(template).render(**variables)
        rendered = [
            {**m, "content": _env.from_string(m["content"]).render(**variables)}
            for m in messages
        ]
    except TemplateError as e:
        raise ValueError(f"Invalid rubric prompt template: {e}") from e
    return json.dumps(rendered)


def resolve_provider(provider: str | CompletionProvider | None) -> CompletionProvider:
    if provider is None:
        return get_default_grading_provider()
    if isinstance(provider, str):
        loaded = load_api_provider(provider)
        if not isinstance(loaded, CompletionProvider):
            raise ValueError(f"Provider {provider!r} cannot be used for grading")
        return loaded
    return provider


def resolve_grading_config(options: GradingConfig) -> GradingConfig:
    """Return a copy of ``options`` whose provider is a live handle."""
    if options.provider is not None and not isinstance(options.provider, str):
        return options
    return options.model_copy(update={"provider": resolve_provider(options.provider)})


def _failure(reason: str, usage: TokenUsage | None) -> GradingResult:
    return GradingResult(passed=False, reason=reason, tokens_used=TokenUsage.of(usage))


async def matches_llm_rubric(
    expected: str,
    output: str,
    options: GradingConfig | None,
    *,
    logger: logging.Logger | None = None,
) -> GradingResult:
    if logger is None:
        logger = logging.getLogger(__name__)
    if options is None:
        raise ValueError(
            "Cannot grade output without grading config. "
            "Specify the --provider option or a grading config."
        )

    prompt = render_prompt(options.rubric_prompt or DEFAULT_GRADING_PROMPT, output, expected)
    provider = resolve_provider(options.provider)
    logger.info(f"Grading against rubric with {provider.id()}")
    logger.debug(f"Grading prompt: {prompt}")

    resp = await provider.call_api(prompt)
    if resp.error or not resp.output:
        reason = resp.error or "No output"
        logger.warning(f"Grading call failed: {reason}")
        return _failure(reason, resp.token_usage)

    try:
        parsed = parse_json(resp.output)
    except ValueError:
        return _failure(f"Output is not valid JSON: {resp.output}", resp.token_usage)
    if not isinstance(parsed, dict) or not isinstance(parsed.get("pass"), bool):
        return _failure(
            f"Output is not a valid grading result: {resp.output}", resp.token_usage
        )

    passed = parsed["pass"]
    reason = parsed.get("reason")
    if not isinstance(reason, str) or not reason:
        reason = "Grader passed the output" if passed else "Grader failed the output"
    logger.info(f"Grader verdict: passed={passed} reason={reason}")
    return GradingResult(
        passed=passed, reason=reason, tokens_used=TokenUsage.of(resp.token_usage)
    )
