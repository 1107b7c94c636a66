"""Tests for Langfuse OTLP exporter configuration."""

import base64

import pytest
import requests
from opentelemetry.exporter.otlp.proto.http import Compression
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

from opentelemetry_langfuse._client.errors import (
    ExporterBuildError,
    MissingConfigurationError,
    MissingEnvironmentVariableError,
)
from opentelemetry_langfuse._client.exporter import (
    ExporterBuilder,
    exporter,
    exporter_from_env,
    exporter_from_otel_env,
)
from opentelemetry_langfuse.version import __version__
from tests.utils import clear_config_env, record_otlp_exporters


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    clear_config_env(monkeypatch)


def _basic(public_key: str, secret_key: str) -> str:
    return "Basic " + base64.b64encode(f"{public_key}:{secret_key}".encode()).decode()


class TestExporterBuilder:
    def test_resolve_with_explicit_configuration(self):
        config = (
            ExporterBuilder()
            .with_host("http://localhost:3000/")
            .with_credentials("pk-lf-1", "sk-lf-1")
            .with_timeout(5)
            .with_compression("gzip")
            .resolve()
        )

        assert config.endpoint == "http://localhost:3000/api/public/otel/v1/traces"
        assert config.authorization == _basic("pk-lf-1", "sk-lf-1")
        assert config.timeout == 5
        assert config.compression == Compression.Gzip
        assert config.headers["X-Langfuse-Sdk-Name"] == "python-otel"
        assert config.headers["X-Langfuse-Sdk-Version"] == __version__
        assert config.headers["X-Langfuse-Public-Key"] == "pk-lf-1"

    def test_missing_endpoint(self):
        with pytest.raises(MissingConfigurationError) as exc_info:
            ExporterBuilder().with_auth_header("Basic abc").resolve()

        assert exc_info.value.field == "endpoint"
        assert str(exc_info.value) == "Missing configuration: endpoint"

    def test_missing_authorization(self):
        with pytest.raises(MissingConfigurationError) as exc_info:
            ExporterBuilder().with_endpoint("http://collector/v1/traces").resolve()

        assert exc_info.value.field == "authorization"

    def test_explicit_auth_overrides_additional_headers(self):
        config = (
            ExporterBuilder()
            .with_endpoint("http://collector/v1/traces")
            .with_header("authorization", "Basic from-header")
            .with_auth_header("Basic explicit")
            .resolve()
        )

        assert config.headers["Authorization"] == "Basic explicit"
        assert [k.lower() for k in config.headers].count("authorization") == 1

    def test_authorization_from_additional_headers(self):
        config = (
            ExporterBuilder()
            .with_endpoint("http://collector/v1/traces")
            .with_headers([("AUTHORIZATION", "Basic xyz"), ("x-team", "core")])
            .resolve()
        )

        assert config.authorization == "Basic xyz"
        assert config.headers["X-Team"] == "core"

    def test_invalid_compression_fails_on_resolve(self):
        exporter_builder = (
            ExporterBuilder()
            .with_endpoint("http://collector/v1/traces")
            .with_auth_header("Basic abc")
            .with_compression("brotli")
        )

        with pytest.raises(ExporterBuildError) as exc_info:
            exporter_builder.resolve()

        assert str(exc_info.value).startswith("OTLP exporter error:")

    def test_invalid_compression_from_env_fails_on_resolve(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-env")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-env")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_COMPRESSION", "brotli")

        exporter_builder = ExporterBuilder().from_env()

        with pytest.raises(ExporterBuildError):
            exporter_builder.build()

    def test_build_returns_otlp_exporter(self):
        span_exporter = (
            ExporterBuilder()
            .with_endpoint("http://collector:4318/v1/traces")
            .with_auth_header("Basic abc")
            .build()
        )

        assert isinstance(span_exporter, OTLPSpanExporter)

    def test_build_passes_resolved_configuration(self, monkeypatch):
        calls = record_otlp_exporters(monkeypatch)

        (
            ExporterBuilder()
            .with_endpoint("http://collector:4318/v1/traces")
            .with_auth_header("Basic abc")
            .with_timeout(3)
            .with_compression(Compression.Deflate)
            .build()
        )

        assert len(calls) == 1
        assert calls[0]["endpoint"] == "http://collector:4318/v1/traces"
        assert calls[0]["headers"]["Authorization"] == "Basic abc"
        assert calls[0]["timeout"] == 3
        assert calls[0]["compression"] == Compression.Deflate

    def test_build_uses_custom_session(self, monkeypatch):
        calls = record_otlp_exporters(monkeypatch)
        session = requests.Session()

        (
            ExporterBuilder()
            .with_endpoint("http://collector:4318/v1/traces")
            .with_auth_header("Basic abc")
            .with_session(session)
            .build()
        )

        assert calls[0]["session"] is session

    def test_build_wraps_construction_errors(self, monkeypatch):
        def failing_init(self, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(
            "opentelemetry_langfuse._client.exporter.OTLPSpanExporter.__init__",
            failing_init,
        )

        with pytest.raises(ExporterBuildError) as exc_info:
            ExporterBuilder().with_endpoint("http://c/v1/traces").with_auth_header(
                "Basic abc"
            ).build()

        assert str(exc_info.value) == "OTLP exporter error: boom"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestFromEnv:
    def test_langfuse_variables(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_HOST", "https://us.cloud.langfuse.com")
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-env")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-env")

        config = ExporterBuilder().from_env().resolve()

        assert (
            config.endpoint
            == "https://us.cloud.langfuse.com/api/public/otel/v1/traces"
        )
        assert config.authorization == _basic("pk-env", "sk-env")
        assert config.headers["X-Langfuse-Public-Key"] == "pk-env"

    def test_only_host_is_missing_public_key(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_HOST", "http://localhost:3000")

        with pytest.raises(MissingEnvironmentVariableError) as exc_info:
            ExporterBuilder().from_env()

        assert exc_info.value.variable == "LANGFUSE_PUBLIC_KEY"

    def test_otel_variables(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")
        monkeypatch.setenv(
            "OTEL_EXPORTER_OTLP_HEADERS", "Authorization=Basic%20otel,x-tenant=a"
        )
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_TIMEOUT", "7")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_COMPRESSION", "gzip")

        config = ExporterBuilder().from_env().resolve()

        assert config.endpoint == "http://collector:4318/v1/traces"
        assert config.authorization == "Basic otel"
        assert config.headers["X-Tenant"] == "a"
        assert config.timeout == 7.0
        assert config.compression == Compression.Gzip

    def test_langfuse_credentials_override_otel_authorization(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-env")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-env")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "authorization=Basic%20otel")

        config = ExporterBuilder().from_env().resolve()

        assert config.authorization == _basic("pk-env", "sk-env")

    def test_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-env")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-env")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_TIMEOUT", "soon")

        with pytest.raises(ExporterBuildError):
            ExporterBuilder().from_env()


def test_exporter(monkeypatch):
    calls = record_otlp_exporters(monkeypatch)

    exporter("http://localhost:3000", "pk", "sk")

    assert calls[0]["endpoint"] == "http://localhost:3000/api/public/otel/v1/traces"
    assert calls[0]["headers"]["Authorization"] == _basic("pk", "sk")


def test_exporter_from_env(monkeypatch):
    calls = record_otlp_exporters(monkeypatch)
    monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk")
    monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk")

    exporter_from_env()

    assert calls[0]["endpoint"] == "https://cloud.langfuse.com/api/public/otel/v1/traces"
    assert calls[0]["headers"]["Authorization"] == _basic("pk", "sk")


def test_exporter_from_otel_env(monkeypatch):
    calls = record_otlp_exporters(monkeypatch)
    monkeypatch.setenv(
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "http://collector:4318/custom/traces"
    )
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_TRACES_HEADERS", "Authorization=Basic%20t")

    exporter_from_otel_env()

    assert calls[0]["endpoint"] == "http://collector:4318/custom/traces"
    assert calls[0]["headers"]["Authorization"] == "Basic t"


def test_exporter_from_otel_env_requires_endpoint(monkeypatch):
    monkeypatch.setenv("LANGFUSE_HOST", "http://localhost:3000")

    with pytest.raises(MissingEnvironmentVariableError) as exc_info:
        exporter_from_otel_env()

    assert exc_info.value.variable == "OTEL_EXPORTER_OTLP_ENDPOINT"


def test_exporter_from_otel_env_requires_authorization(monkeypatch):
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318")

    with pytest.raises(MissingConfigurationError):
        exporter_from_otel_env()
