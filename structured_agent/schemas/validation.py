"""Validation result schemas.

Defines the structured violation reported by the schema validator and the
outcome recorded for every generation/review attempt.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Violation(BaseModel):
    """A single schema violation inside a payload."""

    path: list[str | int] = Field(
        default_factory=list,
        description="Keys and indices leading to the offending value (empty = root)",
    )
    message: str = Field(description="Human-readable description of the violation")

    def render(self) -> str:
        """Render as ``path: message``, or just the message at the root."""
        location = render_path(self.path)
        return f"{location}: {self.message}" if location else self.message


class ValidationOutcome(BaseModel):
    """Result of validating one payload against the output schema."""

    valid: bool = Field(description="Whether the payload satisfied the schema")
    errors: list[str] = Field(
        default_factory=list,
        description="Formatted violations, in order (empty iff valid)",
    )


def render_path(path: list[str | int]) -> str:
    """Render a violation path as ``items[0].name``."""
    rendered = ""
    for segment in path:
        if isinstance(segment, int):
            rendered += f"[{segment}]"
        elif rendered:
            rendered += f".{segment}"
        else:
            rendered = str(segment)
    return rendered
