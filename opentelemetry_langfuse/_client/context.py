"""Explicit tracing context for Langfuse trace attributes.

A ``TracingContext`` is a thread-safe bag of trace attributes that is passed
explicitly through an application instead of living in global state. Child
contexts start from a snapshot of their parent and evolve independently from
then on.

Example:
    ```python
    request_context = TracingContext().with_session("session-1").with_user("user-1")

    def handle_step(context: TracingContext):
        step_context = context.child().with_name("retrieval")
        ...
    ```
"""

import copy
import threading
from typing import Any, Dict, List, Optional

from opentelemetry.trace import SpanContext
from opentelemetry.util.types import AttributeValue

from opentelemetry_langfuse._client.attributes import (
    GenAIOtelSpanAttributes,
    LangfuseOtelSpanAttributes,
    to_otel_attribute_value,
)


class TracingContext:
    """Thread-safe attribute map with an optional parent span.

    The same instance can be shared between threads and asyncio tasks. Every
    access holds the internal lock only for the duration of a dictionary
    operation.
    """

    def __init__(
        self,
        attributes: Optional[Dict[str, Any]] = None,
        parent_span: Optional[SpanContext] = None,
    ):
        self._lock = threading.Lock()
        self._attributes: Dict[str, Any] = dict(attributes or {})
        self._parent_span = parent_span

    def __repr__(self) -> str:
        return f"TracingContext(attributes={self.get_all_attributes()!r}, parent_span={self._parent_span!r})"

    @property
    def parent_span(self) -> Optional[SpanContext]:
        return self._parent_span

    def with_parent_span(self, span_context: SpanContext) -> "TracingContext":
        self._parent_span = span_context

        return self

    def child(self) -> "TracingContext":
        """Create a child context from a snapshot of this context's attributes.

        Changes made to the child afterwards are not visible on the parent,
        including in-place changes to list or dict values.
        """
        return TracingContext(
            attributes=copy.deepcopy(self.get_all_attributes()),
            parent_span=self._parent_span,
        )

    def set_attribute(self, key: str, value: Any) -> None:
        with self._lock:
            self._attributes[key] = value

    def get_attribute(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._attributes.get(key)

    def get_all_attributes(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._attributes)

    def to_otel_attributes(self) -> Dict[str, AttributeValue]:
        attributes = {
            key: to_otel_attribute_value(value)
            for key, value in self.get_all_attributes().items()
        }

        return {k: v for k, v in attributes.items() if v is not None}

    def merge(self, other: "TracingContext") -> None:
        """Copy all attributes of ``other`` into this context, overriding existing keys."""
        other_attributes = other.get_all_attributes()

        with self._lock:
            self._attributes.update(other_attributes)

    def clear(self) -> None:
        with self._lock:
            self._attributes.clear()

    def with_name(self, name: str) -> "TracingContext":
        self.set_attribute(LangfuseOtelSpanAttributes.TRACE_NAME, name)

        return self

    def with_user(self, user_id: str) -> "TracingContext":
        self.set_attribute(LangfuseOtelSpanAttributes.TRACE_USER_ID, user_id)

        return self

    def with_session(self, session_id: str) -> "TracingContext":
        self.set_attribute(LangfuseOtelSpanAttributes.TRACE_SESSION_ID, session_id)

        return self

    def with_tags(self, tags: List[str]) -> "TracingContext":
        self.set_attribute(LangfuseOtelSpanAttributes.TRACE_TAGS, list(tags))

        return self

    def with_metadata(self, key: str, value: Any) -> "TracingContext":
        self.set_attribute(f"{LangfuseOtelSpanAttributes.TRACE_METADATA}.{key}", value)

        return self

    def with_model(self, model: str) -> "TracingContext":
        self.set_attribute(GenAIOtelSpanAttributes.REQUEST_MODEL, model)

        return self

    def with_temperature(self, temperature: float) -> "TracingContext":
        self.set_attribute(GenAIOtelSpanAttributes.REQUEST_TEMPERATURE, temperature)

        return self

    def with_max_tokens(self, max_tokens: int) -> "TracingContext":
        self.set_attribute(GenAIOtelSpanAttributes.REQUEST_MAX_TOKENS, max_tokens)

        return self


class TracingContextBuilder:
    def __init__(self) -> None:
        self._attributes: Dict[str, Any] = {}

    def session_id(self, session_id: str) -> "TracingContextBuilder":
        self._attributes[LangfuseOtelSpanAttributes.TRACE_SESSION_ID] = session_id

        return self

    def user_id(self, user_id: str) -> "TracingContextBuilder":
        self._attributes[LangfuseOtelSpanAttributes.TRACE_USER_ID] = user_id

        return self

    def model(self, model: str) -> "TracingContextBuilder":
        self._attributes[GenAIOtelSpanAttributes.REQUEST_MODEL] = model

        return self

    def temperature(self, temperature: float) -> "TracingContextBuilder":
        self._attributes[GenAIOtelSpanAttributes.REQUEST_TEMPERATURE] = temperature

        return self

    def build(self) -> TracingContext:
        return TracingContext(attributes=self._attributes)
