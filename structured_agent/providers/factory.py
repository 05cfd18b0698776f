"""Backend factory.

Resolves anything that can talk to a model into the uniform LLMBackend
capability. Objects that already expose ``complete`` are used unchanged;
BackendConfig builds a LiteLLM backend; native provider clients are
recognized by shape and wrapped in the matching adapter.
"""

from __future__ import annotations

import logging
from typing import Any

from structured_agent.errors import UnknownBackendError
from structured_agent.providers.anthropic_backend import AnthropicClientBackend
from structured_agent.providers.base import LLMBackend, is_backend
from structured_agent.providers.google_backend import GoogleGenAIBackend
from structured_agent.providers.litellm_backend import LiteLLMBackend
from structured_agent.providers.openai_backend import DeepSeekBackend, OpenAIClientBackend
from structured_agent.schemas.config import BackendConfig

logger = logging.getLogger(__name__)

# base_url fragments of OpenAI-compatible providers needing their own adapter
_OPENAI_COMPATIBLE: dict[str, type[OpenAIClientBackend]] = {
    "deepseek": DeepSeekBackend,
}


def _has_callable(instance: object, dotted: str) -> bool:
    """Whether ``instance`` exposes a callable at the dotted attribute path."""
    target: Any = instance
    for part in dotted.split("."):
        target = getattr(target, part, None)
        if target is None:
            return False
    return callable(target)


def _openai_adapter(client: Any) -> OpenAIClientBackend:
    base_url = str(getattr(client, "base_url", "") or "").lower()
    for marker, adapter in _OPENAI_COMPATIBLE.items():
        if marker in base_url:
            return adapter(client)
    return OpenAIClientBackend(client)


def create_backend(instance: Any) -> LLMBackend:
    """Resolve ``instance`` into an LLMBackend.

    Args:
        instance: An object with an async ``complete(request)`` method, a
            BackendConfig, or an OpenAI / Anthropic / Google GenAI client.

    Returns:
        The instance itself when it already has ``complete``, otherwise an
        adapter wrapping it.

    Raises:
        UnknownBackendError: If no adapter recognizes the object.
    """
    if is_backend(instance):
        return instance
    if isinstance(instance, BackendConfig):
        return LiteLLMBackend(instance)
    if _has_callable(instance, "chat.completions.create"):
        backend: LLMBackend = _openai_adapter(instance)
    elif _has_callable(instance, "messages.create"):
        backend = AnthropicClientBackend(instance)
    elif _has_callable(instance, "models.generate_content"):
        backend = GoogleGenAIBackend(instance)
    else:
        raise UnknownBackendError(instance)

    logger.debug("Resolved %s client to %s backend", type(instance).__name__, backend.name)
    return backend
