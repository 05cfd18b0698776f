"""Error taxonomy for structured-agent.

Every error raised by the agent derives from StructuredAgentError and
carries a ``kind`` discriminant, so callers can branch on ``err.kind``
without subtype tests. Each kind attaches its own payload attribute.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from structured_agent.schemas.agent import AttemptRecord
    from structured_agent.schemas.validation import Violation


class ErrorKind(StrEnum):
    """Discriminant for the structured-agent error taxonomy."""

    INVALID_SCHEMA = "invalid_schema"
    INVALID_INPUT_SCHEMA = "invalid_input_schema"
    INVALID_OUTPUT_SCHEMA = "invalid_output_schema"
    SCHEMA_VALIDATION = "schema_validation"
    LLM_EXECUTION = "llm_execution"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"


class StructuredAgentError(Exception):
    """Base exception for all structured-agent errors."""

    kind: ClassVar[ErrorKind]


class InvalidSchemaError(StructuredAgentError):
    """Raised when a schema description fails to compile.

    Attributes:
        diagnostic: The underlying compiler message.
    """

    kind = ErrorKind.INVALID_SCHEMA

    def __init__(self, diagnostic: str, message: str = "Invalid schema provided") -> None:
        self.diagnostic = diagnostic
        super().__init__(f"{message}: {diagnostic}")


class InvalidInputSchemaError(StructuredAgentError):
    """The agent's input schema failed to compile."""

    kind = ErrorKind.INVALID_INPUT_SCHEMA

    def __init__(self, cause: InvalidSchemaError) -> None:
        self.cause = cause
        super().__init__(f"Failed to compile input schema: {cause.diagnostic}")


class InvalidOutputSchemaError(StructuredAgentError):
    """The agent's output schema failed to compile."""

    kind = ErrorKind.INVALID_OUTPUT_SCHEMA

    def __init__(self, cause: InvalidSchemaError) -> None:
        self.cause = cause
        super().__init__(f"Failed to compile output schema: {cause.diagnostic}")


class SchemaValidationError(StructuredAgentError):
    """Data does not satisfy a compiled schema.

    Attributes:
        violations: Ordered structured violations (path + message).
    """

    kind = ErrorKind.SCHEMA_VALIDATION

    def __init__(
        self, violations: list[Violation], message: str = "Data validation failed"
    ) -> None:
        self.violations = violations
        super().__init__(f"{message} ({len(violations)} violation(s))")


class LLMExecutionError(StructuredAgentError):
    """A backend call failed at the transport or provider level.

    Attributes:
        original_error: The provider exception, if one triggered this error.
        backend: Name of the backend that failed (empty if unknown).
    """

    kind = ErrorKind.LLM_EXECUTION

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        backend: str = "",
    ) -> None:
        self.original_error = original_error
        self.backend = backend
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)


class UnknownBackendError(LLMExecutionError):
    """The backend factory could not recognize the supplied client object."""

    def __init__(self, instance: object) -> None:
        self.instance = instance
        super().__init__(
            f"Unknown LLM instance type provided: {type(instance).__name__}"
        )


class MaxIterationsExceededError(StructuredAgentError):
    """The review loop ran out of budget without a valid payload.

    Attributes:
        max_iterations: The review budget that was exhausted.
        attempts: Every generation/review attempt, in order.
    """

    kind = ErrorKind.MAX_ITERATIONS_EXCEEDED

    def __init__(self, max_iterations: int, attempts: list[AttemptRecord]) -> None:
        self.max_iterations = max_iterations
        self.attempts = attempts
        super().__init__(
            f"Failed to generate valid JSON after {max_iterations} review iterations"
        )

    @property
    def last_errors(self) -> list[str]:
        """Validation errors of the final attempt."""
        if not self.attempts:
            return []
        return list(self.attempts[-1].validation.errors)
