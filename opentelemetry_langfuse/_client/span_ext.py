"""Chainable helpers for enriching OpenTelemetry spans.

The wrappers in this module write Langfuse and GenAI attributes onto any
OpenTelemetry span. Setters covering a concept known to both vocabularies
(model, token usage) write both keys at once, so the span is understood by
Langfuse and by any other GenAI-aware backend.

Example:
    ```python
    with tracer.start_as_current_span("chat") as span:
        (
            EnrichedSpan(span)
            .set_user_id("user-123")
            .set_gen_ai_model("gpt-4")
            .set_gen_ai_prompt(0, "user", "Hello!")
            .set_gen_ai_usage(12, 30)
        )
    ```
"""

import json
from typing import Any, Dict, List, TypeVar

from opentelemetry.trace import Span

from opentelemetry_langfuse._client.attributes import (
    GenAIOtelSpanAttributes,
    LangfuseOtelSpanAttributes,
    _flatten_and_serialize_metadata,
    to_otel_attribute_value,
)
from opentelemetry_langfuse._utils.serializer import EventSerializer

_Self = TypeVar("_Self", bound="_SpanExtension")


class _SpanExtension:
    def __init__(self, span: Span):
        self.span = span

    def _set(self: _Self, key: str, value: Any) -> _Self:
        converted = to_otel_attribute_value(value)
        if converted is not None:
            self.span.set_attribute(key, converted)

        return self


class LangfuseSpanExt(_SpanExtension):
    """Langfuse attribute setters for an OpenTelemetry span."""

    def set_trace_name(self: _Self, name: str) -> _Self:
        return self._set(LangfuseOtelSpanAttributes.TRACE_NAME, name)

    def set_user_id(self: _Self, user_id: str) -> _Self:
        return self._set(LangfuseOtelSpanAttributes.TRACE_USER_ID, user_id)

    def set_session_id(self: _Self, session_id: str) -> _Self:
        return self._set(LangfuseOtelSpanAttributes.TRACE_SESSION_ID, session_id)

    def set_trace_tags(self: _Self, tags: List[str]) -> _Self:
        self.span.set_attribute(LangfuseOtelSpanAttributes.TRACE_TAGS, list(tags))

        return self

    def set_trace_metadata(self: _Self, metadata: Any) -> _Self:
        for key, value in _flatten_and_serialize_metadata(metadata, "trace").items():
            self._set(key, value)

        return self

    def set_observation_model(self: _Self, model: str) -> _Self:
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_MODEL, model)

        return self._set(GenAIOtelSpanAttributes.REQUEST_MODEL, model)

    def set_observation_type(self: _Self, observation_type: str) -> _Self:
        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_TYPE, observation_type)

    def set_input_tokens(self: _Self, tokens: int) -> _Self:
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT, tokens)

        return self._set(GenAIOtelSpanAttributes.USAGE_PROMPT_TOKENS, tokens)

    def set_output_tokens(self: _Self, tokens: int) -> _Self:
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT, tokens)

        return self._set(GenAIOtelSpanAttributes.USAGE_COMPLETION_TOKENS, tokens)

    def set_total_tokens(self: _Self, tokens: int) -> _Self:
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL, tokens)

        return self._set(GenAIOtelSpanAttributes.USAGE_TOTAL_TOKENS, tokens)

    def set_model_parameters(self: _Self, parameters: Dict[str, Any]) -> _Self:
        """Set model parameters as a Langfuse JSON blob and as discrete GenAI attributes.

        Only primitive values (numbers, strings, booleans) are written as
        ``gen_ai.request.*`` attributes; nested values are kept in the blob only.
        """
        self.span.set_attribute(
            LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS,
            json.dumps(parameters, cls=EventSerializer),
        )

        for key, value in parameters.items():
            if isinstance(value, (str, bool, int, float)):
                self.span.set_attribute(
                    f"{GenAIOtelSpanAttributes.REQUEST_PREFIX}{key}", value
                )

        return self

    def add_langfuse_metadata(self: _Self, key: str, value: Any) -> _Self:
        return self._set(
            f"{LangfuseOtelSpanAttributes.OBSERVATION_METADATA}.{key}",
            json.dumps(value, cls=EventSerializer),
        )


class GenAISpanExt(_SpanExtension):
    """GenAI semantic convention setters for an OpenTelemetry span."""

    def set_gen_ai_model(self: _Self, model: str) -> _Self:
        self._set(GenAIOtelSpanAttributes.REQUEST_MODEL, model)

        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_MODEL, model)

    def set_gen_ai_temperature(self: _Self, temperature: float) -> _Self:
        return self._set(GenAIOtelSpanAttributes.REQUEST_TEMPERATURE, temperature)

    def set_gen_ai_max_tokens(self: _Self, max_tokens: int) -> _Self:
        return self._set(GenAIOtelSpanAttributes.REQUEST_MAX_TOKENS, max_tokens)

    def set_gen_ai_top_p(self: _Self, top_p: float) -> _Self:
        return self._set(GenAIOtelSpanAttributes.REQUEST_TOP_P, top_p)

    def set_gen_ai_frequency_penalty(self: _Self, penalty: float) -> _Self:
        return self._set(GenAIOtelSpanAttributes.REQUEST_FREQUENCY_PENALTY, penalty)

    def set_gen_ai_presence_penalty(self: _Self, penalty: float) -> _Self:
        return self._set(GenAIOtelSpanAttributes.REQUEST_PRESENCE_PENALTY, penalty)

    def set_gen_ai_prompt(self: _Self, index: int, role: str, content: str) -> _Self:
        self._set(GenAIOtelSpanAttributes.prompt_role(index), role)

        return self._set(GenAIOtelSpanAttributes.prompt_content(index), content)

    def set_gen_ai_completion(
        self: _Self, index: int, role: str, content: str
    ) -> _Self:
        self._set(GenAIOtelSpanAttributes.completion_role(index), role)

        return self._set(GenAIOtelSpanAttributes.completion_content(index), content)

    def set_gen_ai_usage(
        self: _Self, prompt_tokens: int, completion_tokens: int
    ) -> _Self:
        total_tokens = prompt_tokens + completion_tokens

        self.span.set_attributes(
            {
                GenAIOtelSpanAttributes.USAGE_PROMPT_TOKENS: prompt_tokens,
                GenAIOtelSpanAttributes.USAGE_COMPLETION_TOKENS: completion_tokens,
                GenAIOtelSpanAttributes.USAGE_TOTAL_TOKENS: total_tokens,
                LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT: prompt_tokens,
                LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT: completion_tokens,
                LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL: total_tokens,
            }
        )

        return self


class EnrichedSpan(LangfuseSpanExt, GenAISpanExt):
    """Span wrapper exposing both the Langfuse and the GenAI setters."""
