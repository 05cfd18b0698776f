"""structured-agent backend layer.

The backend layer is the only way models are called by the agent. Every
model interaction goes through the LLMBackend interface; create_backend
resolves callers' objects into it.
"""

from structured_agent.providers.anthropic_backend import AnthropicClientBackend
from structured_agent.providers.base import LLMBackend, is_backend
from structured_agent.providers.factory import create_backend
from structured_agent.providers.google_backend import GoogleGenAIBackend
from structured_agent.providers.litellm_backend import LiteLLMBackend
from structured_agent.providers.openai_backend import DeepSeekBackend, OpenAIClientBackend

__all__ = [
    "AnthropicClientBackend",
    "DeepSeekBackend",
    "GoogleGenAIBackend",
    "LLMBackend",
    "LiteLLMBackend",
    "OpenAIClientBackend",
    "create_backend",
    "is_backend",
]
