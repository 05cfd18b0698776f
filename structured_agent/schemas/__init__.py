"""structured-agent schema definitions.

Pydantic v2 models shared by the validator, backends, and the agent loop.
"""

from structured_agent.schemas.agent import (
    GENERATION_STEP,
    AgentConfig,
    AgentResult,
    AttemptRecord,
    LLMSpec,
    review_step,
)
from structured_agent.schemas.config import AgentFileConfig, BackendConfig
from structured_agent.schemas.messages import (
    ChatMessage,
    GenerationConfig,
    ModelRequest,
    ModelResponse,
    ResponseMeta,
    Role,
)
from structured_agent.schemas.validation import (
    ValidationOutcome,
    Violation,
    render_path,
)

__all__ = [
    "GENERATION_STEP",
    "AgentConfig",
    "AgentFileConfig",
    "AgentResult",
    "AttemptRecord",
    "BackendConfig",
    "ChatMessage",
    "GenerationConfig",
    "LLMSpec",
    "ModelRequest",
    "ModelResponse",
    "ResponseMeta",
    "Role",
    "ValidationOutcome",
    "Violation",
    "render_path",
    "review_step",
]
