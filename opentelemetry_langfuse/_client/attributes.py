"""Span attribute vocabularies for Langfuse and the OpenTelemetry GenAI conventions.

This module defines the two fixed sets of attribute keys this package
translates between, helpers that turn arbitrary JSON values into valid
OpenTelemetry attribute values, and fluent builders for trace-level and
observation-level Langfuse attributes.
"""

import json
from typing import Any, Dict, List, Literal, Optional, Union

from opentelemetry.util.types import AttributeValue

from opentelemetry_langfuse._utils.serializer import EventSerializer


class LangfuseOtelSpanAttributes:
    # Langfuse-Trace attributes
    TRACE_NAME = "langfuse.trace.name"
    TRACE_USER_ID = "user.id"
    TRACE_SESSION_ID = "session.id"
    TRACE_TAGS = "langfuse.trace.tags"
    TRACE_PUBLIC = "langfuse.trace.public"
    TRACE_METADATA = "langfuse.trace.metadata"
    TRACE_INPUT = "langfuse.trace.input"
    TRACE_OUTPUT = "langfuse.trace.output"

    # Langfuse-observation attributes
    OBSERVATION_TYPE = "langfuse.observation.type"
    OBSERVATION_METADATA = "langfuse.observation.metadata"
    OBSERVATION_LEVEL = "langfuse.observation.level"
    OBSERVATION_STATUS_MESSAGE = "langfuse.observation.status_message"
    OBSERVATION_INPUT = "langfuse.observation.input"
    OBSERVATION_OUTPUT = "langfuse.observation.output"

    # Langfuse-observation of type Generation attributes
    OBSERVATION_COMPLETION_START_TIME = "langfuse.observation.completion_start_time"
    OBSERVATION_MODEL = "langfuse.observation.model.name"
    OBSERVATION_MODEL_PARAMETERS = "langfuse.observation.model.parameters"
    OBSERVATION_USAGE_INPUT = "langfuse.observation.usage.input"
    OBSERVATION_USAGE_OUTPUT = "langfuse.observation.usage.output"
    OBSERVATION_USAGE_TOTAL = "langfuse.observation.usage.total"

    # General
    ENVIRONMENT = "langfuse.environment"
    RELEASE = "langfuse.release"
    VERSION = "langfuse.version"


class GenAIOtelSpanAttributes:
    SYSTEM = "gen_ai.system"
    OPERATION_NAME = "gen_ai.operation.name"

    # Request attributes
    REQUEST_PREFIX = "gen_ai.request."
    REQUEST_MODEL = "gen_ai.request.model"
    REQUEST_TEMPERATURE = "gen_ai.request.temperature"
    REQUEST_MAX_TOKENS = "gen_ai.request.max_tokens"
    REQUEST_TOP_P = "gen_ai.request.top_p"
    REQUEST_TOP_K = "gen_ai.request.top_k"
    REQUEST_STOP_SEQUENCES = "gen_ai.request.stop_sequences"
    REQUEST_FREQUENCY_PENALTY = "gen_ai.request.frequency_penalty"
    REQUEST_PRESENCE_PENALTY = "gen_ai.request.presence_penalty"

    # Response attributes
    RESPONSE_ID = "gen_ai.response.id"
    RESPONSE_MODEL = "gen_ai.response.model"
    RESPONSE_FINISH_REASONS = "gen_ai.response.finish_reasons"

    # Usage attributes
    USAGE_PROMPT_TOKENS = "gen_ai.usage.prompt_tokens"
    USAGE_COMPLETION_TOKENS = "gen_ai.usage.completion_tokens"
    USAGE_TOTAL_TOKENS = "gen_ai.usage.total_tokens"
    USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
    USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"

    # Prompt and completion attributes
    PROMPT_JSON = "gen_ai.prompt_json"
    COMPLETION_JSON = "gen_ai.completion_json"
    PROMPT_PREFIX = "gen_ai.prompt."
    COMPLETION_PREFIX = "gen_ai.completion."

    @staticmethod
    def prompt_role(index: int) -> str:
        return f"gen_ai.prompt.{index}.role"

    @staticmethod
    def prompt_content(index: int) -> str:
        return f"gen_ai.prompt.{index}.content"

    @staticmethod
    def completion_role(index: int) -> str:
        return f"gen_ai.completion.{index}.role"

    @staticmethod
    def completion_content(index: int) -> str:
        return f"gen_ai.completion.{index}.content"


def _serialize(obj: Any) -> Optional[str]:
    if obj is None or isinstance(obj, str):
        return obj

    return json.dumps(obj, cls=EventSerializer)


def to_otel_attribute_value(value: Any) -> Optional[AttributeValue]:
    """Convert a JSON value into a valid OpenTelemetry attribute value.

    Primitives are kept as they are, lists of a single primitive type become
    attribute sequences and everything else is JSON-encoded.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value

    if isinstance(value, (list, tuple)) and value:
        first_type = type(value[0])
        if first_type in (str, bool, int, float) and all(
            type(item) is first_type for item in value
        ):
            return list(value)

    return _serialize(value)


def _flatten_and_serialize_metadata(
    metadata: Any, type: Literal["observation", "trace"]
) -> dict:
    prefix = (
        LangfuseOtelSpanAttributes.OBSERVATION_METADATA
        if type == "observation"
        else LangfuseOtelSpanAttributes.TRACE_METADATA
    )

    metadata_attributes: Dict[str, Union[str, int, None]] = {}

    if not isinstance(metadata, dict):
        metadata_attributes[prefix] = _serialize(metadata)
    else:
        for key, value in metadata.items():
            metadata_attributes[f"{prefix}.{key}"] = (
                value
                if isinstance(value, str) or isinstance(value, int)
                else _serialize(value)
            )

    return metadata_attributes


class _AttributesBuilder:
    def __init__(self) -> None:
        self._attributes: Dict[str, Any] = {}

    def _set(self, key: str, value: Any) -> "_AttributesBuilder":
        self._attributes[key] = value

        return self

    def build(self) -> Dict[str, AttributeValue]:
        attributes = {
            key: to_otel_attribute_value(value)
            for key, value in self._attributes.items()
        }

        return {k: v for k, v in attributes.items() if v is not None}


class TraceAttributesBuilder(_AttributesBuilder):
    """Fluent builder for trace-level Langfuse attributes.

    Example:
        ```python
        attributes = (
            TraceAttributesBuilder()
            .name("chat-request")
            .user_id("user-123")
            .tags(["production"])
            .build()
        )
        span.set_attributes(attributes)
        ```
    """

    def name(self, name: str) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_NAME, name)

    def user_id(self, user_id: str) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_USER_ID, user_id)

    def session_id(self, session_id: str) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_SESSION_ID, session_id)

    def tags(self, tags: List[str]) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_TAGS, list(tags))

    def public(self, is_public: bool) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_PUBLIC, is_public)

    def metadata(self, key: str, value: Any) -> "TraceAttributesBuilder":
        return self._set(f"{LangfuseOtelSpanAttributes.TRACE_METADATA}.{key}", value)

    def input(self, input: Any) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_INPUT, _serialize(input))

    def output(self, output: Any) -> "TraceAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.TRACE_OUTPUT, _serialize(output))


class ObservationAttributesBuilder(_AttributesBuilder):
    """Fluent builder for observation-level Langfuse attributes."""

    def observation_type(self, observation_type: str) -> "ObservationAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_TYPE, observation_type)

    def model(self, model: str) -> "ObservationAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_MODEL, model)

    def model_parameters(
        self, parameters: Dict[str, Any]
    ) -> "ObservationAttributesBuilder":
        return self._set(
            LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS,
            _serialize(parameters),
        )

    def input(self, input: Any) -> "ObservationAttributesBuilder":
        return self._set(
            LangfuseOtelSpanAttributes.OBSERVATION_INPUT, _serialize(input)
        )

    def output(self, output: Any) -> "ObservationAttributesBuilder":
        return self._set(
            LangfuseOtelSpanAttributes.OBSERVATION_OUTPUT, _serialize(output)
        )

    def usage(
        self, input_tokens: int, output_tokens: int
    ) -> "ObservationAttributesBuilder":
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT, input_tokens)
        self._set(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT, output_tokens)

        return self._set(
            LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL,
            input_tokens + output_tokens,
        )

    def level(self, level: str) -> "ObservationAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_LEVEL, level)

    def status_message(self, message: str) -> "ObservationAttributesBuilder":
        return self._set(LangfuseOtelSpanAttributes.OBSERVATION_STATUS_MESSAGE, message)

    def metadata(self, key: str, value: Any) -> "ObservationAttributesBuilder":
        return self._set(
            f"{LangfuseOtelSpanAttributes.OBSERVATION_METADATA}.{key}", value
        )
