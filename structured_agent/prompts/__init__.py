"""Prompt templates for generation and repair.

Loads Markdown prompt templates from the prompts/ directory and renders
them with Jinja2 variable substitution. Used by the agent to build the
generation messages and the reviewer's repair messages.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment
from pydantic import TypeAdapter

from structured_agent.schemas.messages import ChatMessage, Role

# Directory containing the .md prompt template files
_PROMPTS_DIR = Path(__file__).parent

# Converts model instances, datetimes and other validated values to JSON types
_JSON_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def render_prompt(template_name: str, **variables: object) -> str:
    """Load a prompt template and render it with Jinja2 variables.

    Args:
        template_name: Name of the template file (without .md extension).
                       Must correspond to a file in the prompts/ directory.
        **variables: Template variables to inject.

    Returns:
        The fully rendered prompt string.

    Raises:
        FileNotFoundError: If the template file does not exist.
    """
    path = _PROMPTS_DIR / f"{template_name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    template_text = path.read_text(encoding="utf-8")

    # Default Undefined renders as empty string so optional blocks are skipped
    env = Environment(loader=BaseLoader(), keep_trailing_newline=True)
    template = env.from_string(template_text)
    return template.render(**variables)


def dump_json(data: Any) -> str:
    """Serialize any value pydantic can dump in JSON mode.

    Covers model instances and ``datetime`` values that passed input
    validation, not only plain JSON types.
    """
    return json.dumps(_JSON_ADAPTER.dump_python(data, mode="json"), ensure_ascii=False)


def to_json_text(data: Any) -> str:
    """Serialize a payload for a prompt; raw strings pass through as-is."""
    if isinstance(data, str):
        return data
    return dump_json(data)


def build_generation_messages(
    system_prompt: str, schema_text: str, input_payload: Any
) -> list[ChatMessage]:
    """System instructions + rendered output schema, then the input as JSON."""
    system = render_prompt("generation", system_prompt=system_prompt, schema=schema_text)
    return [
        ChatMessage(role=Role.SYSTEM, content=system),
        ChatMessage(role=Role.USER, content=dump_json(input_payload)),
    ]


def build_review_messages(
    invalid_payload: Any,
    errors: list[str],
    original_input: Any,
    schema_text: str,
) -> list[ChatMessage]:
    """Reviewer persona, then the invalid payload with its errors and context."""
    user = render_prompt(
        "review",
        original_input=dump_json(original_input),
        invalid_payload=to_json_text(invalid_payload),
        errors=errors,
        schema=schema_text,
    )
    return [
        ChatMessage(role=Role.SYSTEM, content=render_prompt("reviewer_system")),
        ChatMessage(role=Role.USER, content=user),
    ]
