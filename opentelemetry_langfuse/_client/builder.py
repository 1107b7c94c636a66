"""Fluent builder for Langfuse-integrated OpenTelemetry tracers.

``LangfuseTracerBuilder`` combines the exporter configuration, an explicit
``TracingContext``, an attribute mapper and batch settings into a
``TracerProvider`` and returns a tracer from it. Nothing is validated until
``build``/``build_provider`` is called.

Example:
    ```python
    tracer = (
        builder()
        .with_host("https://cloud.langfuse.com")
        .with_credentials("pk-lf-...", "sk-lf-...")
        .with_service_name("chat-api")
        .with_session("session-123")
        .build()
    )
    ```
"""

from typing import Any, Dict, Optional

from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.id_generator import RandomIdGenerator
from opentelemetry.sdk.trace.sampling import ALWAYS_ON, Sampler
from opentelemetry.trace import Tracer

from opentelemetry_langfuse._client.auth import resolve_authorization
from opentelemetry_langfuse._client.batch_config import BatchConfig
from opentelemetry_langfuse._client.constants import (
    AUTHORIZATION_HEADER,
    DEFAULT_SERVICE_NAME,
    DEFAULT_TIMEOUT_SECONDS,
)
from opentelemetry_langfuse._client.context import TracingContext
from opentelemetry_langfuse._client.endpoint import (
    build_traces_endpoint,
    resolve_traces_endpoint,
)
from opentelemetry_langfuse._client.exporter import ExporterBuilder
from opentelemetry_langfuse._client.mapper import AttributeMapper, GenAIAttributeMapper
from opentelemetry_langfuse._client.span_processor import LangfuseSpanProcessor
from opentelemetry_langfuse._client.tracer import (
    _debug_enabled,
    _register_global_provider,
)
from opentelemetry_langfuse.logger import enable_debug_logging, langfuse_logger
from opentelemetry_langfuse.version import __version__ as package_version

class LangfuseTracerBuilder:
    """Builder for tracers that export to Langfuse.

    Attributes:
        endpoint: OTLP traces endpoint. When unset it is resolved from the
            environment at build time, the Langfuse cloud endpoint as last resort
        context: Tracing context whose attributes are stamped onto every span
        mapper: Attribute mapper applied to spans before export
        service_name: Value of the ``service.name`` resource attribute
        service_version: Optional value of the ``service.version`` resource attribute
        headers: Additional HTTP headers for the export requests
        timeout: Per-request export timeout in seconds
        sampler: Sampler of the tracer provider
        batch_config: Batch export settings, read from the environment at build time when unset
        set_global: Whether the provider is registered as global tracer provider
    """

    def __init__(self, *, debug: bool = False) -> None:
        self.endpoint: Optional[str] = None
        self.context = TracingContext()
        self.mapper: AttributeMapper = GenAIAttributeMapper()
        self.service_name = DEFAULT_SERVICE_NAME
        self.service_version: Optional[str] = None
        self.headers: Dict[str, str] = {}
        self.timeout: float = DEFAULT_TIMEOUT_SECONDS
        self.sampler: Sampler = ALWAYS_ON
        self.batch_config: Optional[BatchConfig] = None
        self.set_global = True
        self.debug = _debug_enabled(debug)
        self._auth_header: Optional[str] = None
        self._public_key: Optional[str] = None
        self._secret_key: Optional[str] = None

    def with_endpoint(self, endpoint: str) -> "LangfuseTracerBuilder":
        self.endpoint = endpoint

        return self

    def with_host(self, host: str) -> "LangfuseTracerBuilder":
        self.endpoint = build_traces_endpoint(host)

        return self

    def with_credentials(
        self, public_key: str, secret_key: str
    ) -> "LangfuseTracerBuilder":
        self._public_key = public_key
        self._secret_key = secret_key

        return self

    def with_auth_header(self, auth_header: str) -> "LangfuseTracerBuilder":
        self._auth_header = auth_header

        return self

    def with_context(self, context: TracingContext) -> "LangfuseTracerBuilder":
        self.context = context

        return self

    def with_mapper(self, mapper: AttributeMapper) -> "LangfuseTracerBuilder":
        self.mapper = mapper

        return self

    def with_service_name(self, name: str) -> "LangfuseTracerBuilder":
        self.service_name = name

        return self

    def with_service_version(self, version: str) -> "LangfuseTracerBuilder":
        self.service_version = version

        return self

    def with_header(self, name: str, value: str) -> "LangfuseTracerBuilder":
        self.headers[name] = value

        return self

    def with_api_key(self, api_key: str) -> "LangfuseTracerBuilder":
        return self.with_header("x-langfuse-api-key", api_key)

    def with_timeout(self, timeout: float) -> "LangfuseTracerBuilder":
        self.timeout = timeout

        return self

    def with_sampler(self, sampler: Sampler) -> "LangfuseTracerBuilder":
        self.sampler = sampler

        return self

    def with_batch_config(self, batch_config: BatchConfig) -> "LangfuseTracerBuilder":
        self.batch_config = batch_config

        return self

    def with_session(self, session_id: str) -> "LangfuseTracerBuilder":
        self.context.with_session(session_id)

        return self

    def with_user(self, user_id: str) -> "LangfuseTracerBuilder":
        self.context.with_user(user_id)

        return self

    def with_metadata(self, key: str, value: Any) -> "LangfuseTracerBuilder":
        self.context.with_metadata(key, value)

        return self

    def with_global(self, set_global: bool) -> "LangfuseTracerBuilder":
        self.set_global = set_global

        return self

    def _exporter_builder(self, endpoint: str) -> ExporterBuilder:
        exporter_builder = (
            ExporterBuilder()
            .with_endpoint(endpoint)
            .with_timeout(self.timeout)
            .with_headers(self.headers)
        )

        if self._public_key and self._secret_key:
            exporter_builder.with_credentials(self._public_key, self._secret_key)
        elif self._auth_header:
            exporter_builder.with_auth_header(self._auth_header)
        elif AUTHORIZATION_HEADER.lower() not in {k.lower() for k in self.headers}:
            exporter_builder.with_auth_header(resolve_authorization())

        return exporter_builder

    def _build_resource(self) -> Resource:
        attributes = {SERVICE_NAME: self.service_name}
        if self.service_version is not None:
            attributes[SERVICE_VERSION] = self.service_version

        return Resource.create(attributes)

    def build_provider(self) -> TracerProvider:
        """Build the tracer provider.

        Raises:
            MissingEnvironmentVariableError: If no credentials were configured
                and none can be resolved from the environment.
            MissingConfigurationError: If the endpoint or the authorization is missing.
            InvalidConfigurationError: If a batch setting in the environment is invalid.
            ExporterBuildError: If the OTLP exporter cannot be constructed.
        """
        if self.debug:
            enable_debug_logging()

        endpoint = self.endpoint or resolve_traces_endpoint()
        span_exporter = self._exporter_builder(endpoint).build()

        span_processor = LangfuseSpanProcessor(
            span_exporter,
            context=self.context,
            mapper=self.mapper,
            batch_config=self.batch_config or BatchConfig.from_env(),
        )

        tracer_provider = TracerProvider(
            sampler=self.sampler,
            resource=self._build_resource(),
            id_generator=RandomIdGenerator(),
        )
        tracer_provider.add_span_processor(span_processor)

        if self.set_global:
            _register_global_provider(tracer_provider)

        langfuse_logger.debug(
            f"Tracer: built TracerProvider for service '{self.service_name}' exporting to '{endpoint}'"
        )

        return tracer_provider

    def build(self) -> Tracer:
        """Build the tracer provider and return a tracer named after the service."""
        return self.build_provider().get_tracer(
            self.service_name, self.service_version or package_version
        )


def builder() -> LangfuseTracerBuilder:
    return LangfuseTracerBuilder()
