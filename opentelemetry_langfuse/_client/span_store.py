"""Handle-based storage for spans that outlive a single call.

Some integrations start a span in one callback and finish it in another,
for example HTTP client interceptors with separate ``before_request`` and
``after_response`` hooks. A ``SpanStore`` keeps such spans between the two
calls. The store is owned by the integration and passed explicitly; spans are
addressed through opaque ``SpanHandle`` values rather than strings.

Example:
    ```python
    store = SpanStore()

    def before_request(request):
        request.metadata["span"] = store.start_span(tracer, "llm-call", SpanKind.CLIENT)

    def after_response(request, response):
        handle = request.metadata["span"]
        store.add_attributes(handle, {"http.status_code": response.status_code})
        store.end_span(handle)
    ```
"""

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from opentelemetry import context as otel_context_api
from opentelemetry import trace as otel_trace_api
from opentelemetry.trace import Span, SpanKind, Status, StatusCode
from opentelemetry.util.types import Attributes

from opentelemetry_langfuse.logger import langfuse_logger


@dataclass(frozen=True)
class SpanHandle:
    """Opaque reference to a span kept in a ``SpanStore``."""

    _id: str = field(default_factory=lambda: uuid.uuid4().hex, repr=False)


class SpanStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._spans: Dict[SpanHandle, Span] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._spans)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._spans

    def start_span(
        self,
        tracer: otel_trace_api.Tracer,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Attributes = None,
        context: Optional[otel_context_api.Context] = None,
    ) -> SpanHandle:
        """Start a span and keep it until ``end_span`` is called.

        Args:
            tracer: Tracer used to create the span
            name: Span name
            kind: Span kind
            attributes: Initial span attributes
            context: Parent context, the current context when omitted

        Returns:
            The handle under which the span is stored.
        """
        span = tracer.start_span(
            name, context=context, kind=kind, attributes=attributes
        )
        handle = SpanHandle()

        with self._lock:
            self._spans[handle] = span

        return handle

    def _get(self, handle: SpanHandle) -> Optional[Span]:
        with self._lock:
            span = self._spans.get(handle)

        if span is None:
            langfuse_logger.debug(f"Span store: no active span for handle {handle!r}")

        return span

    def add_attributes(self, handle: SpanHandle, attributes: Attributes) -> None:
        span = self._get(handle)
        if span is not None and attributes:
            span.set_attributes(attributes)

    def set_error(self, handle: SpanHandle, message: str) -> None:
        span = self._get(handle)
        if span is not None:
            span.set_status(Status(StatusCode.ERROR, message))

    def get_context(self, handle: SpanHandle) -> Optional[otel_context_api.Context]:
        """Return a context carrying the stored span, for starting child spans."""
        span = self._get(handle)
        if span is None:
            return None

        return otel_trace_api.set_span_in_context(span)

    def end_span(self, handle: SpanHandle, final_attributes: Attributes = None) -> None:
        """Set the final attributes, end the span and drop it from the store."""
        with self._lock:
            span = self._spans.pop(handle, None)

        if span is None:
            langfuse_logger.debug(f"Span store: no active span for handle {handle!r}")
            return

        if final_attributes:
            span.set_attributes(final_attributes)

        span.end()
