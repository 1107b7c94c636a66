"""Tests for tracer provider setup and the Langfuse tracer builder."""

import base64
import logging

import pytest
from opentelemetry import trace as trace_api
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF

from opentelemetry_langfuse._client import tracer as tracer_module
from opentelemetry_langfuse._client.batch_config import BatchConfig
from opentelemetry_langfuse._client.builder import LangfuseTracerBuilder, builder
from opentelemetry_langfuse._client.context import TracingContext
from opentelemetry_langfuse._client.errors import (
    ExporterError,
    InvalidConfigurationError,
    LangfuseOtelError,
    MissingEnvironmentVariableError,
)
from opentelemetry_langfuse._client.mapper import PassThroughMapper
from opentelemetry_langfuse._client.span_processor import LangfuseSpanProcessor
from opentelemetry_langfuse._client.tracer import (
    TracerBuilder,
    _register_global_provider,
    force_flush,
)
from tests.utils import (
    InMemorySpanExporter,
    clear_config_env,
    record_otlp_exporters,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    clear_config_env(monkeypatch)


def _span_processors(provider: TracerProvider):
    return provider._active_span_processor._span_processors


class TestBatchConfig:
    def test_defaults(self):
        config = BatchConfig()

        assert config.max_queue_size == 2048
        assert config.max_export_batch_size == 512
        assert config.scheduled_delay == 5.0
        assert config.max_export_timeout == 30.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_FLUSH_AT", "64")
        monkeypatch.setenv("LANGFUSE_FLUSH_INTERVAL", "0.5")

        config = BatchConfig.from_env()

        assert config.max_export_batch_size == 64
        assert config.scheduled_delay == 0.5
        assert config.max_queue_size == 2048

    def test_from_env_invalid_interval(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_FLUSH_INTERVAL", "soon")

        with pytest.raises(InvalidConfigurationError) as exc_info:
            BatchConfig.from_env()

        assert exc_info.value.variable == "LANGFUSE_FLUSH_INTERVAL"
        assert str(exc_info.value) == "Invalid configuration: LANGFUSE_FLUSH_INTERVAL='soon'"


class TestTracerBuilder:
    def test_install_with_explicit_configuration(self):
        provider = (
            TracerBuilder("checkout")
            .with_host("http://localhost:3000")
            .with_credentials("pk", "sk")
            .with_resource_attribute("deployment.environment", "test")
            .install(register_global=False)
        )

        try:
            assert provider.resource.attributes["service.name"] == "checkout"
            assert provider.resource.attributes["deployment.environment"] == "test"
            assert isinstance(_span_processors(provider)[0], BatchSpanProcessor)
        finally:
            provider.shutdown()

    def test_without_batching_and_resource_detection(self):
        provider = (
            TracerBuilder("checkout")
            .with_endpoint("http://collector:4318/v1/traces")
            .with_auth_header("Basic abc")
            .without_resource_detection()
            .without_batching()
            .install(register_global=False)
        )

        try:
            assert dict(provider.resource.attributes) == {"service.name": "checkout"}
            assert isinstance(_span_processors(provider)[0], SimpleSpanProcessor)
        finally:
            provider.shutdown()

    def test_invalid_batch_env_is_reported_on_install(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_FLUSH_AT", "lots")

        tracer_builder = (
            TracerBuilder("checkout")
            .with_endpoint("http://collector:4318/v1/traces")
            .with_auth_header("Basic abc")
        )

        with pytest.raises(InvalidConfigurationError):
            tracer_builder.install(register_global=False)

    def test_from_env_requires_credentials(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_HOST", "http://localhost:3000")

        with pytest.raises(MissingEnvironmentVariableError):
            TracerBuilder("checkout").from_env()


class TestLangfuseTracerBuilder:
    def test_build_provider(self):
        context = TracingContext().with_name("chat")
        provider = (
            builder()
            .with_host("http://localhost:3000")
            .with_credentials("pk", "sk")
            .with_service_name("chat-api")
            .with_service_version("1.2.3")
            .with_context(context)
            .with_session("session-1")
            .with_user("user-1")
            .with_metadata("tenant", "acme")
            .with_sampler(ALWAYS_OFF)
            .with_global(False)
            .build_provider()
        )

        try:
            assert provider.resource.attributes["service.name"] == "chat-api"
            assert provider.resource.attributes["service.version"] == "1.2.3"
            assert provider.sampler is ALWAYS_OFF

            processor = _span_processors(provider)[0]
            assert isinstance(processor, LangfuseSpanProcessor)
            assert processor.tracing_context is context
            assert context.get_all_attributes() == {
                "langfuse.trace.name": "chat",
                "session.id": "session-1",
                "user.id": "user-1",
                "langfuse.trace.metadata.tenant": "acme",
            }
        finally:
            provider.shutdown()

    def test_defaults(self):
        langfuse_builder = LangfuseTracerBuilder()

        assert langfuse_builder.endpoint is None
        assert langfuse_builder.batch_config is None
        assert langfuse_builder.service_name == "langfuse-otel"
        assert langfuse_builder.timeout == 10
        assert langfuse_builder.set_global is True

    def test_credentials_and_host_from_env(self, monkeypatch):
        calls = record_otlp_exporters(monkeypatch)
        monkeypatch.setenv("LANGFUSE_HOST", "https://langfuse.internal.example")
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-env")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-env")

        provider = builder().with_global(False).build_provider()
        provider.shutdown()

        assert (
            calls[0]["endpoint"]
            == "https://langfuse.internal.example/api/public/otel/v1/traces"
        )
        assert calls[0]["headers"]["Authorization"] == "Basic " + base64.b64encode(
            b"pk-env:sk-env"
        ).decode("ascii")

    def test_endpoint_from_otel_env(self, monkeypatch):
        calls = record_otlp_exporters(monkeypatch)
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")

        provider = (
            builder().with_auth_header("Basic abc").with_global(False).build_provider()
        )
        provider.shutdown()

        assert calls[0]["endpoint"] == "http://collector:4318/v1/traces"

    def test_explicit_endpoint_wins_over_env(self, monkeypatch):
        calls = record_otlp_exporters(monkeypatch)
        monkeypatch.setenv("LANGFUSE_HOST", "https://langfuse.internal.example")

        provider = (
            builder()
            .with_host("http://localhost:3000")
            .with_auth_header("Basic abc")
            .with_global(False)
            .build_provider()
        )
        provider.shutdown()

        assert calls[0]["endpoint"] == "http://localhost:3000/api/public/otel/v1/traces"

    def test_invalid_batch_env_is_reported_on_build(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_FLUSH_AT", "lots")

        langfuse_builder = builder().with_auth_header("Basic abc").with_global(False)

        with pytest.raises(InvalidConfigurationError) as exc_info:
            langfuse_builder.build_provider()

        assert isinstance(exc_info.value, LangfuseOtelError)
        assert exc_info.value.variable == "LANGFUSE_FLUSH_AT"
        assert exc_info.value.value == "lots"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_explicit_batch_config_skips_env(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_FLUSH_AT", "lots")

        provider = (
            builder()
            .with_auth_header("Basic abc")
            .with_batch_config(BatchConfig(max_export_batch_size=8))
            .with_global(False)
            .build_provider()
        )
        provider.shutdown()

    def test_missing_credentials(self):
        with pytest.raises(MissingEnvironmentVariableError):
            builder().with_global(False).build_provider()

    def test_authorization_header_counts_as_credentials(self):
        provider = (
            builder()
            .with_endpoint("http://collector:4318/v1/traces")
            .with_header("authorization", "Basic abc")
            .with_api_key("key-1")
            .with_mapper(PassThroughMapper())
            .with_global(False)
            .build_provider()
        )

        try:
            assert isinstance(_span_processors(provider)[0].mapper, PassThroughMapper)
        finally:
            provider.shutdown()

    def test_build_returns_tracer(self):
        tracer = (
            builder()
            .with_auth_header("Basic abc")
            .with_batch_config(BatchConfig(max_export_batch_size=1))
            .with_global(False)
            .build()
        )

        assert isinstance(tracer, trace_api.Tracer)


class TestGlobalRegistration:
    def test_registers_when_no_provider_is_set(self, monkeypatch):
        registered = []
        monkeypatch.setattr(
            tracer_module.otel_trace_api,
            "get_tracer_provider",
            lambda: trace_api.ProxyTracerProvider(),
        )
        monkeypatch.setattr(
            tracer_module.otel_trace_api, "set_tracer_provider", registered.append
        )
        provider = TracerProvider()

        assert _register_global_provider(provider) is True
        assert registered == [provider]

    def test_keeps_existing_provider(self, monkeypatch, caplog):
        existing = TracerProvider()
        monkeypatch.setattr(
            tracer_module.otel_trace_api, "get_tracer_provider", lambda: existing
        )

        with caplog.at_level(logging.WARNING, logger="opentelemetry_langfuse"):
            assert _register_global_provider(TracerProvider()) is False

        assert "already registered" in caplog.text


class TestForceFlush:
    def test_flushes_provider(self):
        memory_exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(
            LangfuseSpanProcessor(
                memory_exporter, batch_config=BatchConfig(scheduled_delay=60)
            )
        )

        with provider.get_tracer("t").start_as_current_span("pending"):
            pass

        force_flush(provider)

        assert len(memory_exporter.get_finished_spans()) == 1
        provider.shutdown()

    def test_noop_without_sdk_provider(self):
        force_flush(trace_api.ProxyTracerProvider())

    def test_raises_when_flush_fails(self, monkeypatch):
        provider = TracerProvider()
        monkeypatch.setattr(provider, "force_flush", lambda timeout_millis: False)

        with pytest.raises(ExporterError):
            force_flush(provider, timeout_millis=10)
