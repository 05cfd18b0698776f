"""structured-agent: schema-validated JSON from language models."""

__version__ = "0.1.0"

from structured_agent.agent import StructuredAgent, parse_payload
from structured_agent.errors import (
    ErrorKind,
    InvalidInputSchemaError,
    InvalidOutputSchemaError,
    InvalidSchemaError,
    LLMExecutionError,
    MaxIterationsExceededError,
    SchemaValidationError,
    StructuredAgentError,
    UnknownBackendError,
)
from structured_agent.providers import LLMBackend, create_backend
from structured_agent.schemas import (
    AgentConfig,
    AgentResult,
    AttemptRecord,
    ChatMessage,
    GenerationConfig,
    LLMSpec,
    ModelRequest,
    ModelResponse,
    ResponseMeta,
)
from structured_agent.validator import SchemaValidator

__all__ = [
    "AgentConfig",
    "AgentResult",
    "AttemptRecord",
    "ChatMessage",
    "ErrorKind",
    "GenerationConfig",
    "InvalidInputSchemaError",
    "InvalidOutputSchemaError",
    "InvalidSchemaError",
    "LLMBackend",
    "LLMExecutionError",
    "LLMSpec",
    "MaxIterationsExceededError",
    "ModelRequest",
    "ModelResponse",
    "ResponseMeta",
    "SchemaValidationError",
    "SchemaValidator",
    "StructuredAgent",
    "StructuredAgentError",
    "UnknownBackendError",
    "create_backend",
]
