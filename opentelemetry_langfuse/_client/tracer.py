"""Tracer provider setup for sending traces to Langfuse.

``TracerBuilder`` installs an OpenTelemetry ``TracerProvider`` whose spans are
exported to Langfuse, with service resource attributes and optional resource
detection from the standard OTEL variables.
"""

import os
from typing import Any, Dict, Optional, cast

from opentelemetry import trace as otel_trace_api
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

from opentelemetry_langfuse._client.auth import HeaderInput
from opentelemetry_langfuse._client.batch_config import BatchConfig
from opentelemetry_langfuse._client.environment_variables import LANGFUSE_DEBUG
from opentelemetry_langfuse._client.errors import ExporterError
from opentelemetry_langfuse._client.exporter import ExporterBuilder
from opentelemetry_langfuse.logger import enable_debug_logging, langfuse_logger


def _debug_enabled(debug: bool) -> bool:
    return debug or os.getenv(LANGFUSE_DEBUG, "false").lower() == "true"


def _register_global_provider(provider: TracerProvider) -> bool:
    """Register ``provider`` globally unless an SDK provider is registered already."""
    default_provider = otel_trace_api.get_tracer_provider()

    if not isinstance(default_provider, otel_trace_api.ProxyTracerProvider):
        langfuse_logger.warning(
            "Configuration: a global TracerProvider is already registered. "
            "The Langfuse TracerProvider was not set as global provider; use the returned provider or tracer directly."
        )
        return False

    otel_trace_api.set_tracer_provider(provider)

    return True


class TracerBuilder:
    """Fluent builder installing a Langfuse-exporting ``TracerProvider``.

    Example:
        ```python
        provider = (
            TracerBuilder("my-service")
            .with_host("https://cloud.langfuse.com")
            .with_credentials("pk-lf-...", "sk-lf-...")
            .with_resource_attribute("deployment.environment", "production")
            .install()
        )
        tracer = provider.get_tracer(__name__)
        ```
    """

    def __init__(self, service_name: str, *, debug: bool = False):
        self.service_name = service_name
        self.debug = _debug_enabled(debug)
        self._exporter_builder = ExporterBuilder()
        self._resource_attributes: Dict[str, Any] = {}
        self._detect_resources = True
        self._batch_config: Optional[BatchConfig] = None
        self._batching = True

    def with_endpoint(self, endpoint: str) -> "TracerBuilder":
        self._exporter_builder.with_endpoint(endpoint)

        return self

    def with_host(self, host: str) -> "TracerBuilder":
        self._exporter_builder.with_host(host)

        return self

    def with_auth_header(self, auth_header: str) -> "TracerBuilder":
        self._exporter_builder.with_auth_header(auth_header)

        return self

    def with_credentials(self, public_key: str, secret_key: str) -> "TracerBuilder":
        self._exporter_builder.with_credentials(public_key, secret_key)

        return self

    def with_resource_attribute(self, key: str, value: Any) -> "TracerBuilder":
        self._resource_attributes[key] = value

        return self

    def with_resource_attributes(self, attributes: Dict[str, Any]) -> "TracerBuilder":
        self._resource_attributes.update(attributes)

        return self

    def without_resource_detection(self) -> "TracerBuilder":
        self._detect_resources = False

        return self

    def with_timeout(self, timeout: float) -> "TracerBuilder":
        self._exporter_builder.with_timeout(timeout)

        return self

    def with_header(self, name: str, value: str) -> "TracerBuilder":
        self._exporter_builder.with_header(name, value)

        return self

    def with_headers(self, headers: HeaderInput) -> "TracerBuilder":
        self._exporter_builder.with_headers(headers)

        return self

    def with_batch_config(self, batch_config: BatchConfig) -> "TracerBuilder":
        self._batch_config = batch_config
        self._batching = True

        return self

    def without_batching(self) -> "TracerBuilder":
        """Export every span synchronously when it ends."""
        self._batching = False

        return self

    def from_env(self) -> "TracerBuilder":
        """Load exporter settings from the Langfuse and OTEL environment variables.

        Raises:
            MissingEnvironmentVariableError: If no credentials can be resolved.
        """
        self._exporter_builder.from_env()

        return self

    def _build_resource(self) -> Resource:
        attributes = {**self._resource_attributes, SERVICE_NAME: self.service_name}

        if self._detect_resources:
            return Resource.create(attributes)

        return Resource(attributes)

    def _build_span_processor(self) -> SpanProcessor:
        span_exporter = self._exporter_builder.build()

        if not self._batching:
            return SimpleSpanProcessor(span_exporter)

        batch_config = self._batch_config or BatchConfig.from_env()

        return BatchSpanProcessor(
            span_exporter,
            max_queue_size=batch_config.max_queue_size,
            max_export_batch_size=batch_config.max_export_batch_size,
            schedule_delay_millis=batch_config.scheduled_delay * 1_000,
            export_timeout_millis=batch_config.max_export_timeout * 1_000,
        )

    def install(self, *, register_global: bool = True) -> TracerProvider:
        """Build the provider and register it as the global tracer provider.

        Raises:
            MissingConfigurationError: If the endpoint or the authorization is missing.
            InvalidConfigurationError: If a batch setting in the environment is invalid.
            ExporterBuildError: If the OTLP exporter cannot be constructed.
        """
        if self.debug:
            enable_debug_logging()

        span_processor = self._build_span_processor()

        tracer_provider = TracerProvider(resource=self._build_resource())
        tracer_provider.add_span_processor(span_processor)

        if register_global:
            _register_global_provider(tracer_provider)

        langfuse_logger.debug(
            f"Tracer: installed TracerProvider for service '{self.service_name}'"
        )

        return tracer_provider


def init_tracer_from_env(service_name: str) -> TracerProvider:
    """Install a Langfuse tracer provider configured from environment variables."""
    return TracerBuilder(service_name).from_env().install()


def init_tracer(
    service_name: str, host: str, public_key: str, secret_key: str
) -> TracerProvider:
    """Install a Langfuse tracer provider from explicit configuration."""
    return (
        TracerBuilder(service_name)
        .with_host(host)
        .with_credentials(public_key, secret_key)
        .install()
    )


def force_flush(
    tracer_provider: Optional[TracerProvider] = None, timeout_millis: int = 30000
) -> None:
    """Flush all pending spans of ``tracer_provider`` (the global provider by default).

    Raises:
        ExporterError: If the spans could not be flushed within ``timeout_millis``.
    """
    tracer_provider = tracer_provider or cast(
        TracerProvider, otel_trace_api.get_tracer_provider()
    )

    if isinstance(tracer_provider, otel_trace_api.ProxyTracerProvider):
        langfuse_logger.debug("Flush: no SDK TracerProvider registered, nothing to flush")
        return

    if not tracer_provider.force_flush(timeout_millis):
        raise ExporterError(f"spans were not flushed within {timeout_millis} ms")
