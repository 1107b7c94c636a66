"""Langfuse integration for the OpenTelemetry Python SDK.

Sends OpenTelemetry traces to Langfuse over OTLP/HTTP and translates span
attributes between the Langfuse and OpenTelemetry GenAI conventions.
"""

from ._client.attributes import (
    GenAIOtelSpanAttributes,
    LangfuseOtelSpanAttributes,
    ObservationAttributesBuilder,
    TraceAttributesBuilder,
)
from ._client.auth import (
    build_auth_header,
    build_auth_header_from_env,
    normalize_headers,
    resolve_authorization,
)
from ._client.batch_config import BatchConfig
from ._client.builder import LangfuseTracerBuilder, builder
from ._client.context import TracingContext, TracingContextBuilder
from ._client.endpoint import (
    build_otlp_endpoint,
    build_otlp_endpoint_from_env,
    resolve_traces_endpoint,
)
from ._client.errors import (
    ExporterBuildError,
    ExporterError,
    InvalidConfigurationError,
    LangfuseOtelError,
    MissingConfigurationError,
    MissingEnvironmentVariableError,
)
from ._client.exporter import (
    ExporterBuilder,
    ExporterConfig,
    exporter,
    exporter_from_env,
    exporter_from_otel_env,
)
from ._client.mapper import (
    AttributeMapper,
    BidirectionalRule,
    ComplexRule,
    GenAIAttributeMapper,
    MappingRule,
    OneWayRule,
    PassThroughMapper,
    TransformRule,
)
from ._client.span_ext import EnrichedSpan, GenAISpanExt, LangfuseSpanExt
from ._client.span_processor import LangfuseSpanProcessor, MappingSpanExporter
from ._client.span_store import SpanHandle, SpanStore
from ._client.tracer import (
    TracerBuilder,
    force_flush,
    init_tracer,
    init_tracer_from_env,
)
from .version import __version__

__all__ = [
    "__version__",
    "LangfuseOtelSpanAttributes",
    "GenAIOtelSpanAttributes",
    "TraceAttributesBuilder",
    "ObservationAttributesBuilder",
    "build_auth_header",
    "build_auth_header_from_env",
    "normalize_headers",
    "resolve_authorization",
    "build_otlp_endpoint",
    "build_otlp_endpoint_from_env",
    "resolve_traces_endpoint",
    "LangfuseOtelError",
    "MissingEnvironmentVariableError",
    "MissingConfigurationError",
    "InvalidConfigurationError",
    "ExporterBuildError",
    "ExporterError",
    "ExporterBuilder",
    "ExporterConfig",
    "exporter",
    "exporter_from_env",
    "exporter_from_otel_env",
    "AttributeMapper",
    "GenAIAttributeMapper",
    "PassThroughMapper",
    "MappingRule",
    "BidirectionalRule",
    "TransformRule",
    "OneWayRule",
    "ComplexRule",
    "TracingContext",
    "TracingContextBuilder",
    "LangfuseSpanExt",
    "GenAISpanExt",
    "EnrichedSpan",
    "SpanStore",
    "SpanHandle",
    "BatchConfig",
    "LangfuseSpanProcessor",
    "MappingSpanExporter",
    "TracerBuilder",
    "init_tracer",
    "init_tracer_from_env",
    "force_flush",
    "LangfuseTracerBuilder",
    "builder",
]
