"""StructuredAgent: the generate → validate → repair convergence loop.

Drives a generator backend (and optionally a separate reviewer backend)
until the model's reply satisfies the output schema or the review budget
runs out. Output-validation failures are the only condition that feeds
the loop; input-validation and backend execution failures are raised
immediately.

Replies wrapped in a fenced json block are unwrapped before validation,
so such a reply can be accepted on the first attempt.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from structured_agent.errors import (
    InvalidInputSchemaError,
    InvalidOutputSchemaError,
    InvalidSchemaError,
    LLMExecutionError,
    MaxIterationsExceededError,
    StructuredAgentError,
)
from structured_agent.prompts import build_generation_messages, build_review_messages
from structured_agent.providers.base import LLMBackend
from structured_agent.providers.factory import create_backend
from structured_agent.schemas.agent import (
    GENERATION_STEP,
    AgentConfig,
    AgentResult,
    AttemptRecord,
    LLMSpec,
    review_step,
)
from structured_agent.schemas.messages import (
    ChatMessage,
    ModelRequest,
    ModelResponse,
    ResponseMeta,
)
from structured_agent.validator import CompiledValidator, SchemaValidator, render_schema

logger = logging.getLogger(__name__)

# Fenced ```json block, used when a model wraps its JSON in markdown
_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


def parse_payload(text: str) -> Any:
    """Parse model text as JSON, falling back to the raw text.

    A reply that does not parse is carried forward verbatim so output
    validation rejects it and the repair loop sees the original text.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _FENCED_JSON_RE.search(text)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    logger.debug("Reply is not valid JSON, keeping raw text (%d chars)", len(text))
    return text


class StructuredAgent:
    """Returns schema-valid data from a language model, or fails with history.

    Schemas and backends are resolved once at construction and are
    read-only afterwards, so concurrent ``run`` calls on one agent are safe:
    each call owns its own payload and attempt history.
    """

    def __init__(self, config: AgentConfig) -> None:
        self._config = config
        self._validator = SchemaValidator()

        try:
            self._input_validator = self._validator.compile(config.input_schema)
        except InvalidSchemaError as e:
            raise InvalidInputSchemaError(e) from e

        try:
            self._output_validator = self._validator.compile(config.output_schema)
        except InvalidSchemaError as e:
            raise InvalidOutputSchemaError(e) from e

        self._schema_text = render_schema(self._output_validator)
        self._generator = create_backend(config.generator.backend)
        self._reviewer = (
            create_backend(config.reviewer.backend) if config.reviewer else self._generator
        )

    # ── Properties ────────────────────────────────────────────

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def max_iterations(self) -> int:
        return self._config.max_iterations

    @property
    def generator(self) -> LLMBackend:
        return self._generator

    @property
    def reviewer(self) -> LLMBackend:
        """The reviewer backend; the generator when none was configured."""
        return self._reviewer

    @property
    def input_validator(self) -> CompiledValidator:
        return self._input_validator

    @property
    def output_validator(self) -> CompiledValidator:
        return self._output_validator

    # ── Core loop ─────────────────────────────────────────────

    async def run(self, input_payload: Any, ref: Any = None) -> AgentResult:
        """Produce an output that satisfies the output schema.

        Args:
            input_payload: Data that must satisfy the input schema.
            ref: Optional correlation token echoed back in the result.

        Returns:
            AgentResult with the validated output and one attempt record
            per backend call.

        Raises:
            SchemaValidationError: The input does not satisfy the input
                schema. No backend call is made.
            LLMExecutionError: A backend call failed. Never retried here.
            MaxIterationsExceededError: No valid output within the budget.
        """
        self._validator.validate(self._input_validator, input_payload)

        history: list[AttemptRecord] = []

        messages = build_generation_messages(
            self._config.system_prompt, self._schema_text, input_payload
        )
        attempt = await self._attempt(
            GENERATION_STEP, self._generator, self._config.generator, messages
        )
        history.append(attempt)
        if attempt.validation.valid:
            return AgentResult(output=attempt.result, metadata=history, ref=ref)

        review_spec = self._config.reviewer or self._config.generator
        for i in range(1, self.max_iterations + 1):
            messages = build_review_messages(
                attempt.result, attempt.validation.errors, input_payload, self._schema_text
            )
            attempt = await self._attempt(review_step(i), self._reviewer, review_spec, messages)
            history.append(attempt)
            if attempt.validation.valid:
                return AgentResult(output=attempt.result, metadata=history, ref=ref)

        logger.warning(
            "No valid output after %d review iteration(s) (%d attempts)",
            self.max_iterations,
            len(history),
        )
        raise MaxIterationsExceededError(self.max_iterations, history)

    async def _attempt(
        self,
        step: str,
        backend: LLMBackend,
        spec: LLMSpec,
        messages: list[ChatMessage],
    ) -> AttemptRecord:
        """Call the backend once, parse the reply, and validate it."""
        request = ModelRequest(
            messages=messages,
            model=spec.model,
            config=spec.config,
            target_schema=self._output_validator.json_schema,
        )
        response = await self._complete(backend, request)
        payload = parse_payload(response.text)
        outcome = self._validator.check(self._output_validator, payload)

        logger.info(
            "%s via %s/%s: %s",
            step,
            response.meta.backend,
            response.meta.model,
            "valid" if outcome.valid else f"{len(outcome.errors)} error(s)",
        )
        if not outcome.valid:
            logger.debug("%s errors: %s", step, outcome.errors)

        return AttemptRecord(step=step, result=payload, meta=response.meta, validation=outcome)

    @staticmethod
    async def _complete(backend: LLMBackend, request: ModelRequest) -> ModelResponse:
        """Invoke the backend, mapping foreign exceptions to LLMExecutionError.

        Custom backends may return a bare string; it is wrapped with minimal
        provenance (no token counts). An empty reply is an execution failure,
        never an empty success.
        """
        name = getattr(backend, "name", None)
        if not isinstance(name, str) or not name:
            name = type(backend).__name__
        try:
            response = await backend.complete(request)
        except StructuredAgentError:
            raise
        except Exception as e:
            raise LLMExecutionError("Backend call failed", e, backend=name) from e

        if isinstance(response, str):
            response = ModelResponse(
                text=response, meta=ResponseMeta(backend=name, model=request.model)
            )
        elif response is not None and not isinstance(response, ModelResponse):
            raise LLMExecutionError(
                f"Backend returned unsupported type {type(response).__name__}",
                backend=name,
            )

        if response is None or not response.text.strip():
            raise LLMExecutionError("Received empty response from LLM", backend=name)
        return response
