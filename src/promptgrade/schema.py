"""Generate JSON Schema and docs for structured assertions."""

from __future__ import annotations

import json
from pathlib import Path

from promptgrade.config import ASSERTION_MODELS, assertion_json_schema


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def generate_json_schema() -> dict:
    schema = assertion_json_schema()
    schema["title"] = "Assertion"
    return schema


def write_json_schema(path: Path) -> None:
    _ensure_parent(path)
    path.write_text(json.dumps(generate_json_schema(), indent=2) + "\n")


def generate_schema_doc() -> str:
    lines: list[str] = []
    lines.append("# promptgrade assertions")
    lines.append("")
    lines.append("This doc is generated from the Pydantic models.")
    lines.append("")
    for model in ASSERTION_MODELS:
        atype = model.model_fields["type"].default
        fields = [name for name in model.model_fields if name != "type"]
        if fields:
            lines.append(f"- `{atype}`: {{ {', '.join(fields)} }}")
        else:
            lines.append(f"- `{atype}`")
    lines.append("")
    return "\n".join(lines)


def write_schema_doc(path: Path) -> None:
    _ensure_parent(path)
    path.write_text(generate_schema_doc())
