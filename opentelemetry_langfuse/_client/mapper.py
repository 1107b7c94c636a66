"""Attribute mapping between Langfuse and OpenTelemetry GenAI conventions.

The mapper translates span attributes between the two vocabularies using a
fixed rule table:

- Keys with an explicit rule are translated according to that rule
- ``gen_ai.request.*`` parameters without a rule are aggregated into a single
  JSON object under ``langfuse.observation.model.parameters``
- Indexed prompt and completion contents become observation input and output
- All other attributes pass through unchanged

The reverse direction expands the aggregated model parameters back into
discrete ``gen_ai.request.*`` attributes.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from opentelemetry.util.types import AttributeValue
from typing_extensions import TypeAlias

from opentelemetry_langfuse._client.attributes import (
    GenAIOtelSpanAttributes,
    LangfuseOtelSpanAttributes,
    to_otel_attribute_value,
)
from opentelemetry_langfuse.logger import langfuse_logger

AttributeInput: TypeAlias = Union[
    Mapping[str, AttributeValue], Iterable[Tuple[str, AttributeValue]]
]


@dataclass(frozen=True)
class BidirectionalRule:
    langfuse_key: str
    otel_key: str


@dataclass(frozen=True)
class TransformRule:
    source_key: str
    target_key: str
    transformer: Callable[[Any], Any]


@dataclass(frozen=True)
class OneWayRule:
    source_key: str
    target_key: str


@dataclass(frozen=True)
class ComplexRule:
    """Rule producing any number of attributes from a single source attribute."""

    source_key: str
    mapper: Callable[[str, Any], List[Tuple[str, Any]]]


MappingRule: TypeAlias = Union[BidirectionalRule, TransformRule, OneWayRule, ComplexRule]


def _identity(value: Any) -> Any:
    return value


def _rule_source_key(rule: MappingRule) -> str:
    if isinstance(rule, BidirectionalRule):
        return rule.otel_key

    return rule.source_key


DEFAULT_MAPPING_RULES: Tuple[MappingRule, ...] = (
    BidirectionalRule(
        langfuse_key=LangfuseOtelSpanAttributes.OBSERVATION_MODEL,
        otel_key=GenAIOtelSpanAttributes.REQUEST_MODEL,
    ),
    BidirectionalRule(
        langfuse_key=LangfuseOtelSpanAttributes.TRACE_USER_ID,
        otel_key="user.id",
    ),
    BidirectionalRule(
        langfuse_key=LangfuseOtelSpanAttributes.TRACE_SESSION_ID,
        otel_key="session.id",
    ),
    TransformRule(
        source_key=GenAIOtelSpanAttributes.USAGE_PROMPT_TOKENS,
        target_key=LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT,
        transformer=_identity,
    ),
    TransformRule(
        source_key=GenAIOtelSpanAttributes.USAGE_COMPLETION_TOKENS,
        target_key=LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT,
        transformer=_identity,
    ),
    OneWayRule(
        source_key=GenAIOtelSpanAttributes.USAGE_INPUT_TOKENS,
        target_key=LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT,
    ),
    OneWayRule(
        source_key=GenAIOtelSpanAttributes.USAGE_OUTPUT_TOKENS,
        target_key=LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT,
    ),
    OneWayRule(
        source_key=GenAIOtelSpanAttributes.USAGE_TOTAL_TOKENS,
        target_key=LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL,
    ),
)

_REVERSE_USAGE_KEYS = {
    LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT: GenAIOtelSpanAttributes.USAGE_PROMPT_TOKENS,
    LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT: GenAIOtelSpanAttributes.USAGE_COMPLETION_TOKENS,
    LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL: GenAIOtelSpanAttributes.USAGE_TOTAL_TOKENS,
}


def _iter_attributes(attributes: AttributeInput) -> Iterable[Tuple[str, Any]]:
    if isinstance(attributes, Mapping):
        return attributes.items()

    return attributes


def _put(result: Dict[str, AttributeValue], key: str, value: Any) -> None:
    converted = to_otel_attribute_value(value)
    if converted is not None:
        result[key] = converted


def _is_model_parameter(key: str) -> bool:
    return key.startswith(GenAIOtelSpanAttributes.REQUEST_PREFIX) and "model" not in key


def _token_count(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    return None


class AttributeMapper(ABC):
    """Maps span attributes between Langfuse and GenAI conventions."""

    @abstractmethod
    def map_to_langfuse(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        """Map OpenTelemetry GenAI attributes to Langfuse attributes."""

    @abstractmethod
    def map_to_otel(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        """Map Langfuse attributes to OpenTelemetry GenAI attributes."""

    @abstractmethod
    def enrich_attributes(
        self, attributes: AttributeInput
    ) -> Dict[str, AttributeValue]:
        """Return the attributes extended with derived values."""


class GenAIAttributeMapper(AttributeMapper):
    """Attribute mapper for the OpenTelemetry GenAI semantic conventions.

    The rule table is fixed once the mapper is constructed. Additional rules
    can be supplied through ``extra_rules`` and replace default rules with the
    same source key.

    Example:
        ```python
        mapper = GenAIAttributeMapper()
        mapper.map_to_langfuse(
            {"gen_ai.request.model": "gpt-4", "gen_ai.request.temperature": 0.7}
        )
        # {"langfuse.observation.model.name": "gpt-4",
        #  "langfuse.observation.model.parameters": '{"temperature": 0.7}'}
        ```
    """

    def __init__(self, extra_rules: Optional[Iterable[MappingRule]] = None):
        rules = list(DEFAULT_MAPPING_RULES) + list(extra_rules or [])

        self._rules: Dict[str, MappingRule] = {
            _rule_source_key(rule): rule for rule in rules
        }
        self._reverse_rules: Dict[str, BidirectionalRule] = {
            rule.langfuse_key: rule
            for rule in self._rules.values()
            if isinstance(rule, BidirectionalRule)
        }

    @property
    def rules(self) -> Dict[str, MappingRule]:
        return dict(self._rules)

    def map_to_langfuse(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        result: Dict[str, AttributeValue] = {}
        model_parameters: Dict[str, Any] = {}

        for key, value in _iter_attributes(attributes):
            rule = self._rules.get(key)

            if isinstance(rule, BidirectionalRule):
                _put(result, rule.langfuse_key, value)
            elif isinstance(rule, TransformRule):
                _put(result, rule.target_key, rule.transformer(value))
            elif isinstance(rule, OneWayRule):
                _put(result, rule.target_key, value)
            elif isinstance(rule, ComplexRule):
                for mapped_key, mapped_value in rule.mapper(key, value):
                    _put(result, mapped_key, mapped_value)
            elif _is_model_parameter(key):
                parameter = key[len(GenAIOtelSpanAttributes.REQUEST_PREFIX) :]
                model_parameters[parameter] = (
                    list(value) if isinstance(value, tuple) else value
                )
            elif key.startswith(GenAIOtelSpanAttributes.PROMPT_PREFIX):
                if key.endswith(".content"):
                    _put(result, LangfuseOtelSpanAttributes.OBSERVATION_INPUT, value)
            elif key.startswith(GenAIOtelSpanAttributes.COMPLETION_PREFIX):
                if key.endswith(".content"):
                    _put(result, LangfuseOtelSpanAttributes.OBSERVATION_OUTPUT, value)
            else:
                result[key] = value

        if model_parameters:
            result[LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS] = json.dumps(
                model_parameters
            )

        return result

    def map_to_otel(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        result: Dict[str, AttributeValue] = {}

        for key, value in _iter_attributes(attributes):
            reverse_rule = self._reverse_rules.get(key)

            if reverse_rule is not None:
                _put(result, reverse_rule.otel_key, value)
            elif key in _REVERSE_USAGE_KEYS:
                _put(result, _REVERSE_USAGE_KEYS[key], value)
            elif key == LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS:
                for parameter, parameter_value in self._parse_model_parameters(
                    value
                ).items():
                    _put(
                        result,
                        f"{GenAIOtelSpanAttributes.REQUEST_PREFIX}{parameter}",
                        parameter_value,
                    )
            else:
                result[key] = value

        return result

    def enrich_attributes(
        self, attributes: AttributeInput
    ) -> Dict[str, AttributeValue]:
        enriched = dict(_iter_attributes(attributes))

        prompt_tokens = _token_count(
            enriched.get(GenAIOtelSpanAttributes.USAGE_PROMPT_TOKENS)
        )
        if prompt_tokens is None:
            prompt_tokens = _token_count(
                enriched.get(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_INPUT)
            )

        completion_tokens = _token_count(
            enriched.get(GenAIOtelSpanAttributes.USAGE_COMPLETION_TOKENS)
        )
        if completion_tokens is None:
            completion_tokens = _token_count(
                enriched.get(LangfuseOtelSpanAttributes.OBSERVATION_USAGE_OUTPUT)
            )

        if prompt_tokens is not None and completion_tokens is not None:
            total_tokens = prompt_tokens + completion_tokens

            enriched[GenAIOtelSpanAttributes.USAGE_TOTAL_TOKENS] = total_tokens
            enriched[LangfuseOtelSpanAttributes.OBSERVATION_USAGE_TOTAL] = total_tokens

        return enriched

    @staticmethod
    def _parse_model_parameters(value: Any) -> Dict[str, Any]:
        if isinstance(value, Mapping):
            return dict(value)

        try:
            parsed = json.loads(value)
        except (TypeError, ValueError) as e:
            langfuse_logger.warning(
                f"Attribute mapping: skipping malformed '{LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS}' value: {e}"
            )
            return {}

        if not isinstance(parsed, dict):
            langfuse_logger.warning(
                f"Attribute mapping: skipping '{LangfuseOtelSpanAttributes.OBSERVATION_MODEL_PARAMETERS}', expected a JSON object but got {type(parsed).__name__}"
            )
            return {}

        return parsed


class PassThroughMapper(AttributeMapper):
    """Mapper that leaves attributes untouched."""

    def map_to_langfuse(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        return dict(_iter_attributes(attributes))

    def map_to_otel(self, attributes: AttributeInput) -> Dict[str, AttributeValue]:
        return dict(_iter_attributes(attributes))

    def enrich_attributes(
        self, attributes: AttributeInput
    ) -> Dict[str, AttributeValue]:
        return dict(_iter_attributes(attributes))
