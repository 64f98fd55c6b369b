"""Base data structures for the assertion system."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TokenUsage:
    """Token counters reported by a provider call.

    Counters are additive: ``a + b`` sums each field independently.
    """

    total: int = 0
    prompt: int = 0
    completion: int = 0

    def __add__(self, other: TokenUsage | None) -> TokenUsage:
        if other is None:
            return TokenUsage(self.total, self.prompt, self.completion)
        return TokenUsage(
            total=self.total + other.total,
            prompt=self.prompt + other.prompt,
            completion=self.completion + other.completion,
        )

    @classmethod
    def of(cls, usage: TokenUsage | None) -> TokenUsage:
        """Copy ``usage``, treating None as zero usage."""
        return cls() + usage

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "prompt": self.prompt, "completion": self.completion}


@dataclass
class GradingResult:
    """Verdict of evaluating one assertion or a whole test case.

    Attributes:
        passed: Whether the check held.
        reason: Human-readable explanation. Always set, also on pass.
        tokens_used: Tokens consumed by provider calls made for this
            verdict. None for purely local checks.
    """

    passed: bool
    reason: str
    tokens_used: TokenUsage | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"pass": self.passed, "reason": self.reason}
        if self.tokens_used is not None:
            data["tokensUsed"] = self.tokens_used.to_dict()
        return data
