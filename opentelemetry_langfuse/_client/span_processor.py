"""Span processor and exporter wrapper for the Langfuse integration.

This module defines the LangfuseSpanProcessor class, which extends OpenTelemetry's
BatchSpanProcessor with Langfuse-specific behavior, and the MappingSpanExporter,
which adds Langfuse attribute translations to spans right before export.

Key features:
- Trace attributes from an explicit TracingContext stamped onto every started span
- GenAI attributes translated into Langfuse attributes at export time
- Batching, queueing and export timeouts delegated to the OpenTelemetry SDK
"""

from typing import Optional, Sequence

from opentelemetry import context as context_api
from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.trace import format_span_id

from opentelemetry_langfuse._client.batch_config import BatchConfig
from opentelemetry_langfuse._client.context import TracingContext
from opentelemetry_langfuse._client.mapper import AttributeMapper
from opentelemetry_langfuse.logger import langfuse_logger


class MappingSpanExporter(SpanExporter):
    """Span exporter that adds Langfuse attribute translations before delegating.

    Each exported span keeps its original attributes and additionally carries
    the attributes produced by ``mapper.map_to_langfuse`` followed by
    ``mapper.enrich_attributes``. Original attributes win on key collisions.
    """

    def __init__(self, exporter: SpanExporter, mapper: AttributeMapper):
        self.exporter = exporter
        self.mapper = mapper

    def _map_span(self, span: ReadableSpan) -> ReadableSpan:
        original_attributes = dict(span.attributes or {})
        mapped_attributes = self.mapper.enrich_attributes(
            self.mapper.map_to_langfuse(original_attributes)
        )

        return ReadableSpan(
            name=span.name,
            context=span.context,
            parent=span.parent,
            resource=span.resource,
            attributes={**mapped_attributes, **original_attributes},
            events=span.events,
            links=span.links,
            kind=span.kind,
            status=span.status,
            start_time=span.start_time,
            end_time=span.end_time,
            instrumentation_scope=span.instrumentation_scope,
        )

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        return self.exporter.export([self._map_span(span) for span in spans])

    def shutdown(self) -> None:
        self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self.exporter.force_flush(timeout_millis)


class LangfuseSpanProcessor(BatchSpanProcessor):
    """Batch span processor that stamps tracing context attributes onto spans.

    Attributes from the configured ``TracingContext`` are read when a span
    starts, so changes to the context affect spans started afterwards. Keys
    the span already carries at start are left untouched.
    """

    def __init__(
        self,
        span_exporter: SpanExporter,
        *,
        context: Optional[TracingContext] = None,
        mapper: Optional[AttributeMapper] = None,
        batch_config: Optional[BatchConfig] = None,
    ):
        self.tracing_context = context if context is not None else TracingContext()
        self.mapper = mapper

        if mapper is not None:
            span_exporter = MappingSpanExporter(span_exporter, mapper)

        batch_config = batch_config or BatchConfig()

        super().__init__(
            span_exporter=span_exporter,
            max_queue_size=batch_config.max_queue_size,
            max_export_batch_size=batch_config.max_export_batch_size,
            schedule_delay_millis=batch_config.scheduled_delay * 1_000,
            export_timeout_millis=batch_config.max_export_timeout * 1_000,
        )

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        context_attributes = self.tracing_context.to_otel_attributes()
        existing_attributes = span.attributes or {}

        missing_attributes = {
            key: value
            for key, value in context_attributes.items()
            if key not in existing_attributes
        }

        if missing_attributes:
            span.set_attributes(missing_attributes)

            langfuse_logger.debug(
                f"Applied {len(missing_attributes)} context attributes to span '{format_span_id(span.context.span_id)}': {missing_attributes}"
            )

        return super().on_start(span, parent_context or context_api.get_current())

    def on_end(self, span: ReadableSpan) -> None:
        langfuse_logger.debug(
            f"Trace: Processing span name='{span.name}' | Full details:\n{span.to_json()}"
        )

        super().on_end(span)
