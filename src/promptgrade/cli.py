from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer

app = typer.Typer(name="promptgrade", help="Grade LLM outputs against assertions")


def _build_grading_config(
    grading_config: str | None, provider: str | None, rubric_prompt: str | None
):
    from promptgrade.config import GradingConfig, load_grading_config

    options = (
        load_grading_config(Path(grading_config))
        if grading_config is not None
        else GradingConfig()
    )
    updates = {}
    if provider is not None:
        updates["provider"] = provider
    if rubric_prompt is not None:
        updates["rubric_prompt"] = Path(rubric_prompt).read_text()
    return options.model_copy(update=updates) if updates else options


@app.command()
def check(
    output: str | None = typer.Argument(None, help="Candidate output to grade"),
    output_file: str | None = typer.Option(
        None, "--output-file", "-f", help="Read the candidate output from this file"
    ),
    assertion: list[str] | None = typer.Option(
        None,
        "--assert",
        "-a",
        help="Shorthand assertion, e.g. 'similar(0.9): hello' (repeatable)",
    ),
    grading_config: str | None = typer.Option(
        None, help="YAML file with provider / rubric_prompt for rubric grading"
    ),
    provider: str | None = typer.Option(
        None, help="Grading provider id, e.g. openai:chat:gpt-4"
    ),
    rubric_prompt: str | None = typer.Option(
        None, help="Path to a rubric prompt template (jinja2)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output to terminal"
    ),
    debug_log: str | None = typer.Option(None, help="Append debug output to this file"),
):
    """Grade one output against shorthand assertions, evaluated in order."""
    from openai import OpenAIError

    from promptgrade.assertions.parser import assertion_from_string
    from promptgrade.config import TestCase
    from promptgrade.runner import run_assertions
    from promptgrade.verbose import setup_logger

    if output_file is not None:
        path = Path(output_file)
        if not path.exists():
            typer.echo(f"Error: output file not found: {output_file}", err=True)
            raise typer.Exit(2)
        text = path.read_text()
    elif output is not None:
        text = output
    else:
        typer.echo("Error: provide OUTPUT or --output-file", err=True)
        raise typer.Exit(2)

    logger = setup_logger(
        verbose=verbose, debug_file=Path(debug_log) if debug_log else None
    )

    try:
        options = _build_grading_config(grading_config, provider, rubric_prompt)
        test = TestCase(
            assertions=[assertion_from_string(a) for a in assertion or []],
            options=options,
        )
        result = asyncio.run(run_assertions(test, text, logger=logger))
    except (ValueError, OSError, OpenAIError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        status = "PASS" if result.passed else "FAIL"
        typer.echo(f"{status}: {result.reason}")
        if result.tokens_used is not None and result.tokens_used.total:
            tu = result.tokens_used
            typer.echo(
                f"Tokens: {tu.total} (prompt {tu.prompt}, completion {tu.completion})"
            )

    if not result.passed:
        raise typer.Exit(1)


@app.command()
def parse(
    shorthand: str = typer.Argument(help="Shorthand assertion string"),
):
    """Show the structured assertion a shorthand string parses to."""
    from promptgrade.assertions.parser import assertion_from_string

    typer.echo(assertion_from_string(shorthand).model_dump_json(exclude_none=True))


@app.command()
def schema(
    out: str = typer.Option(
        "schemas/assertion.schema.json", help="Output path for JSON Schema"
    ),
    doc: str | None = typer.Option(None, help="Optional output path for a Markdown summary"),
):
    """Generate JSON Schema for structured assertions."""
    from promptgrade.schema import write_json_schema, write_schema_doc

    out_path = Path(out)
    write_json_schema(out_path)
    typer.echo(f"Wrote schema: {out_path}")
    if doc is not None:
        write_schema_doc(Path(doc))
        typer.echo(f"Wrote docs: {doc}")
