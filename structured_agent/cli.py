"""structured-agent CLI.

Runs an agent defined in a TOML file against a JSON input, and checks
JSON Schemas and data files from the command line.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from structured_agent import __version__
from structured_agent.config import build_agent, load_agent_config
from structured_agent.errors import (
    InvalidSchemaError,
    LLMExecutionError,
    MaxIterationsExceededError,
    SchemaValidationError,
    StructuredAgentError,
)
from structured_agent.keys import load_keys_env
from structured_agent.schemas.agent import AttemptRecord
from structured_agent.validator import SchemaValidator

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="structured-agent",
    help="Schema-validated JSON from language models, with automatic repair.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"structured-agent {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Schema-validated JSON from language models, with automatic repair."""


# ── Helpers ──────────────────────────────────────────────────────


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_json(source: str) -> Any:
    """Read JSON from a file path, or stdin when ``source`` is '-'."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Cannot read {source}:[/red] {e}")
        raise typer.Exit(1) from None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]Invalid JSON in {source}:[/red] {e}")
        raise typer.Exit(1) from None


def _attempts_table(attempts: list[AttemptRecord]) -> Table:
    """Render attempt records as a Rich table."""
    table = Table(title="Attempts")
    table.add_column("Step", style="bold")
    table.add_column("Backend")
    table.add_column("Model")
    table.add_column("Tokens in/out", justify="right")
    table.add_column("Valid")
    table.add_column("Errors")

    for attempt in attempts:
        tokens_in = attempt.meta.input_tokens
        tokens_out = attempt.meta.output_tokens
        tokens = f"{'-' if tokens_in is None else tokens_in}/{'-' if tokens_out is None else tokens_out}"
        table.add_row(
            attempt.step,
            attempt.meta.backend,
            attempt.meta.model,
            tokens,
            "[green]yes[/green]" if attempt.validation.valid else "[red]no[/red]",
            "\n".join(attempt.validation.errors),
        )
    return table


# ── structured-agent run ─────────────────────────────────────────


@app.command()
def run(
    config: Path = typer.Argument(..., help="Agent definition (TOML)"),
    input_path: str = typer.Option(
        "-", "--input", "-i",
        help="JSON input file ('-' reads stdin)",
    ),
    ref: str = typer.Option(
        None, "--ref",
        help="Correlation token echoed back with the result",
    ),
    max_iterations: int = typer.Option(
        None, "--max-iterations", "-n",
        min=0,
        help="Override the configured review budget",
    ),
    show_attempts: bool = typer.Option(
        False, "--show-attempts",
        help="Print a table of generation/review attempts",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Run an agent on a JSON input and print the validated output."""
    _configure_logging(verbose)
    load_keys_env()

    try:
        agent = build_agent(load_agent_config(config), max_iterations=max_iterations)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading agent config:[/red] {e}")
        raise typer.Exit(1) from None
    except StructuredAgentError as e:
        err_console.print(f"[red]Invalid agent definition:[/red] {e}")
        raise typer.Exit(1) from None

    payload = _read_json(input_path)

    try:
        result = asyncio.run(agent.run(payload, ref=ref))
    except SchemaValidationError as e:
        err_console.print("[red]Input does not match the input schema:[/red]")
        err_console.print(SchemaValidator.format_errors(e.violations))
        raise typer.Exit(1) from None
    except LLMExecutionError as e:
        err_console.print(f"[red]Model call failed:[/red] {e}")
        raise typer.Exit(1) from None
    except MaxIterationsExceededError as e:
        err_console.print(f"[red]{e}[/red]")
        err_console.print(_attempts_table(e.attempts))
        raise typer.Exit(1) from None

    if show_attempts:
        err_console.print(_attempts_table(result.metadata))
    if result.ref is not None:
        err_console.print(f"ref: {result.ref}")
    console.print_json(data=result.output)


# ── structured-agent check ───────────────────────────────────────


@app.command()
def check(
    schema: Path = typer.Argument(..., help="JSON Schema file"),
    data: Path = typer.Argument(None, help="Optional JSON data file to validate"),
) -> None:
    """Check that a JSON Schema compiles, and optionally validate data against it."""
    validator = SchemaValidator()
    try:
        compiled = validator.compile(_read_json(str(schema)))
    except InvalidSchemaError as e:
        err_console.print(f"[red]Invalid schema:[/red] {e.diagnostic}")
        raise typer.Exit(1) from None

    if data is None:
        console.print(f"[green]Schema OK:[/green] {schema}")
        return

    try:
        validator.validate(compiled, _read_json(str(data)))
    except SchemaValidationError as e:
        console.print(f"[red]Invalid:[/red] {data}")
        for violation in e.violations:
            console.print(f"  - {violation.render()}", markup=False)
        raise typer.Exit(1) from None

    console.print(f"[green]Valid:[/green] {data}")
