from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Mapping, Union

import yaml
from expandvars import expandvars
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from promptgrade.providers.base import CompletionProvider


class AssertionType(str, Enum):
    EQUALS = "equals"
    IS_JSON = "is-json"
    CONTAINS_JSON = "contains-json"
    JAVASCRIPT = "javascript"
    SIMILAR = "similar"
    LLM_RUBRIC = "llm-rubric"


class EqualsAssertion(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["equals"] = "equals"
    value: str


class IsJsonAssertion(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["is-json"] = "is-json"


class ContainsJsonAssertion(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["contains-json"] = "contains-json"


class JavascriptAssertion(BaseModel):
    """Predicate over ``output``, evaluated by the restricted expression evaluator."""

    model_config = ConfigDict(extra="forbid")
    type: Literal["javascript"] = "javascript"
    value: str


class SimilarAssertion(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["similar"] = "similar"
    value: str
    threshold: float | None = None


class LlmRubricAssertion(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["llm-rubric"] = "llm-rubric"
    value: str


ASSERTION_MODELS = (
    EqualsAssertion,
    IsJsonAssertion,
    ContainsJsonAssertion,
    JavascriptAssertion,
    SimilarAssertion,
    LlmRubricAssertion,
)

Assertion = Annotated[
    Union[
        EqualsAssertion,
        IsJsonAssertion,
        ContainsJsonAssertion,
        JavascriptAssertion,
        SimilarAssertion,
        LlmRubricAssertion,
    ],
    Field(discriminator="type"),
]

_ASSERTION_ADAPTER: TypeAdapter[Assertion] = TypeAdapter(Assertion)
_KNOWN_TYPES = frozenset(t.value for t in AssertionType)


def parse_assertion(data: Mapping[str, Any] | BaseModel) -> Assertion:
    """Validate a plain mapping into one of the assertion models.

    Raises ValueError for unknown assertion types and for mappings that do
    not fit the model of their type.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    atype = data.get("type")
    if atype not in _KNOWN_TYPES:
        raise ValueError(f"Unknown assertion type: '{atype}'")
    return _ASSERTION_ADAPTER.validate_python(dict(data))


def assertion_json_schema() -> dict[str, Any]:
    return _ASSERTION_ADAPTER.json_schema()


class GradingConfig(BaseModel):
    """Options for rubric grading.

    ``provider`` is either an identifier understood by ``load_api_provider``
    or an already constructed completion provider.
    """

    model_config = ConfigDict(
        extra="forbid", arbitrary_types_allowed=True, populate_by_name=True
    )
    provider: str | CompletionProvider | None = None
    rubric_prompt: str | None = Field(default=None, alias="rubricPrompt")


class TestCase(BaseModel):
    __test__ = False

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    description: str | None = None
    assertions: list[Assertion] = Field(default_factory=list, alias="assert")
    options: GradingConfig | None = None


AtomicTestCase = TestCase


def load_grading_config(path: Path) -> GradingConfig:
    """Load grading options from a YAML file.

    ``${VAR}`` references are expanded from the environment before parsing.
    A ``rubric_prompt_file`` key is read relative to the YAML file.
    """
    text = path.read_text()
    try:
        text = expandvars(text, nounset=True)
    except Exception as e:
        raise ValueError(f"Grading config {path} references an unset variable: {e}") from e

    raw = yaml.safe_load(text) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Grading config {path} must be a mapping")

    prompt_file = raw.pop("rubric_prompt_file", None)
    if prompt_file is not None:
        if "rubric_prompt" in raw or "rubricPrompt" in raw:
            raise ValueError(
                "Specify only one of rubric_prompt and rubric_prompt_file"
            )
        raw["rubric_prompt"] = (path.parent / prompt_file).read_text()

    return GradingConfig(**raw)
