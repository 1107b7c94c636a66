"""OTLP span exporter configuration for Langfuse.

This module assembles an ``OTLPSpanExporter`` that sends spans to the Langfuse
OTLP endpoint with Basic-Auth credentials. Configuration can be given
explicitly through the ``ExporterBuilder``, read from the Langfuse environment
variables, or read from the standard ``OTEL_EXPORTER_OTLP_*`` variables.

Example:
    ```python
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(exporter_from_env()))
    ```
"""

import os
from typing import Dict, Optional, Union

import requests
from opentelemetry.exporter.otlp.proto.http import Compression
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from pydantic import BaseModel, ConfigDict

from opentelemetry_langfuse._client.auth import (
    HeaderInput,
    build_auth_header,
    normalize_headers,
    parse_otel_headers_from_env,
    resolve_authorization,
)
from opentelemetry_langfuse._client.constants import AUTHORIZATION_HEADER, SDK_NAME
from opentelemetry_langfuse._client.endpoint import (
    build_traces_endpoint,
    resolve_otel_traces_endpoint,
    resolve_traces_endpoint,
)
from opentelemetry_langfuse._client.environment_variables import (
    LANGFUSE_PUBLIC_KEY,
    OTEL_EXPORTER_OTLP_COMPRESSION,
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_EXPORTER_OTLP_TIMEOUT,
)
from opentelemetry_langfuse._client.errors import (
    ExporterBuildError,
    MissingConfigurationError,
    MissingEnvironmentVariableError,
)
from opentelemetry_langfuse.logger import langfuse_logger
from opentelemetry_langfuse.version import __version__ as package_version


class ExporterConfig(BaseModel):
    """Validated, wire-ready exporter configuration."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    headers: Dict[str, str]
    timeout: Optional[float] = None
    compression: Optional[Compression] = None

    @property
    def authorization(self) -> str:
        return self.headers[AUTHORIZATION_HEADER]


def _parse_compression(value: Union[Compression, str]) -> Compression:
    if isinstance(value, Compression):
        return value

    try:
        return Compression(value.strip().lower())
    except ValueError as e:
        raise ExporterBuildError(
            f"unsupported compression '{value}', expected one of "
            + ", ".join(c.value for c in Compression)
        ) from e


def _parse_timeout(value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ExporterBuildError(
            f"invalid {OTEL_EXPORTER_OTLP_TIMEOUT} value '{value}'"
        ) from e


class ExporterBuilder:
    """Fluent builder for a Langfuse ``OTLPSpanExporter``.

    Fields are only validated by ``resolve``/``build``: both an endpoint and an
    authorization header must be configured by then.

    Example:
        ```python
        exporter = (
            ExporterBuilder()
            .with_host("https://cloud.langfuse.com")
            .with_credentials("pk-lf-...", "sk-lf-...")
            .with_timeout(5)
            .build()
        )
        ```
    """

    def __init__(self) -> None:
        self._endpoint: Optional[str] = None
        self._auth_header: Optional[str] = None
        self._public_key: Optional[str] = None
        self._timeout: Optional[float] = None
        self._compression: Optional[Union[Compression, str]] = None
        self._session: Optional[requests.Session] = None
        self._env_headers: Dict[str, str] = {}
        self._additional_headers: Dict[str, str] = {}

    def with_endpoint(self, endpoint: str) -> "ExporterBuilder":
        self._endpoint = endpoint

        return self

    def with_host(self, host: str) -> "ExporterBuilder":
        self._endpoint = build_traces_endpoint(host)

        return self

    def with_auth_header(self, auth_header: str) -> "ExporterBuilder":
        self._auth_header = auth_header

        return self

    def with_credentials(self, public_key: str, secret_key: str) -> "ExporterBuilder":
        self._auth_header = build_auth_header(public_key, secret_key)
        self._public_key = public_key

        return self

    def with_timeout(self, timeout: float) -> "ExporterBuilder":
        """Set the per-request HTTP timeout in seconds."""
        self._timeout = timeout

        return self

    def with_compression(
        self, compression: Union[Compression, str]
    ) -> "ExporterBuilder":
        """Set the request compression, validated when the exporter is resolved."""
        self._compression = compression

        return self

    def with_header(self, name: str, value: str) -> "ExporterBuilder":
        self._additional_headers = normalize_headers(
            self._additional_headers, {name: value}
        )

        return self

    def with_headers(self, headers: HeaderInput) -> "ExporterBuilder":
        self._additional_headers = normalize_headers(self._additional_headers, headers)

        return self

    def with_session(self, session: requests.Session) -> "ExporterBuilder":
        """Use a custom ``requests`` session for the export requests."""
        self._session = session

        return self

    def from_env(self) -> "ExporterBuilder":
        """Load endpoint, authorization and transport options from the environment.

        Langfuse variables take precedence over the standard OTEL variables for
        both the endpoint and the authorization. Remaining OTEL headers are
        kept with the lowest precedence.

        Raises:
            MissingEnvironmentVariableError: If no credentials can be resolved.
            ExporterBuildError: If the timeout variable is invalid.
        """
        self._endpoint = resolve_traces_endpoint()
        self._auth_header = resolve_authorization()
        self._public_key = os.environ.get(LANGFUSE_PUBLIC_KEY) or None

        return self._load_otel_transport_from_env()

    def from_otel_env(self) -> "ExporterBuilder":
        """Load the configuration from the standard ``OTEL_EXPORTER_OTLP_*`` variables only.

        The authorization is taken from the OTEL header variables when ``build``
        runs, unless one was set explicitly on the builder.

        Raises:
            MissingEnvironmentVariableError: If no OTEL endpoint variable is set.
            ExporterBuildError: If the timeout variable is invalid.
        """
        endpoint = resolve_otel_traces_endpoint()
        if endpoint is None:
            raise MissingEnvironmentVariableError(OTEL_EXPORTER_OTLP_ENDPOINT)

        self._endpoint = endpoint

        return self._load_otel_transport_from_env()

    def _load_otel_transport_from_env(self) -> "ExporterBuilder":
        self._env_headers = parse_otel_headers_from_env()

        timeout = os.environ.get(OTEL_EXPORTER_OTLP_TIMEOUT)
        if timeout:
            self._timeout = _parse_timeout(timeout)

        compression = os.environ.get(OTEL_EXPORTER_OTLP_COMPRESSION)
        if compression:
            self._compression = compression

        return self

    def _sdk_headers(self) -> Dict[str, str]:
        headers = {
            "x-langfuse-sdk-name": SDK_NAME,
            "x-langfuse-sdk-version": package_version,
        }

        if self._public_key:
            headers["x-langfuse-public-key"] = self._public_key

        return headers

    def resolve(self) -> ExporterConfig:
        """Validate the collected fields and return the exporter configuration.

        Raises:
            MissingConfigurationError: If the endpoint or the authorization is missing.
            ExporterBuildError: If the compression is not supported.
        """
        if not self._endpoint:
            raise MissingConfigurationError("endpoint")

        headers = normalize_headers(
            self._env_headers, self._sdk_headers(), self._additional_headers
        )

        if self._auth_header:
            headers[AUTHORIZATION_HEADER] = self._auth_header

        if not headers.get(AUTHORIZATION_HEADER):
            raise MissingConfigurationError("authorization")

        return ExporterConfig(
            endpoint=self._endpoint,
            headers=headers,
            timeout=self._timeout,
            compression=(
                _parse_compression(self._compression)
                if self._compression is not None
                else None
            ),
        )

    def build(self) -> OTLPSpanExporter:
        """Build the OTLP span exporter.

        Raises:
            MissingConfigurationError: If the endpoint or the authorization is missing.
            ExporterBuildError: If the compression is not supported or the OTLP
                exporter cannot be constructed.
        """
        config = self.resolve()

        langfuse_logger.debug(
            f"Exporter: building OTLP/HTTP span exporter for '{config.endpoint}' "
            f"(timeout={config.timeout}, compression={config.compression})"
        )

        try:
            return OTLPSpanExporter(
                endpoint=config.endpoint,
                headers=dict(config.headers),
                timeout=config.timeout,
                compression=config.compression,
                session=self._session,
            )
        except Exception as e:
            langfuse_logger.error(f"Exporter: failed to build OTLP span exporter: {e}")
            raise ExporterBuildError(str(e)) from e


def exporter(host: str, public_key: str, secret_key: str) -> OTLPSpanExporter:
    """Create a Langfuse span exporter from explicit configuration.

    Args:
        host: The base Langfuse URL, e.g. ``https://cloud.langfuse.com``
        public_key: Your Langfuse public key
        secret_key: Your Langfuse secret key
    """
    return ExporterBuilder().with_host(host).with_credentials(public_key, secret_key).build()


def exporter_from_env() -> OTLPSpanExporter:
    """Create a Langfuse span exporter from environment variables.

    Reads ``LANGFUSE_HOST``, ``LANGFUSE_PUBLIC_KEY`` and ``LANGFUSE_SECRET_KEY``,
    falling back to the standard ``OTEL_EXPORTER_OTLP_*`` variables.
    """
    return ExporterBuilder().from_env().build()


def exporter_from_otel_env() -> OTLPSpanExporter:
    """Create a span exporter from the standard ``OTEL_EXPORTER_OTLP_*`` variables only.

    The Langfuse credentials must be supplied as an ``Authorization`` entry in
    ``OTEL_EXPORTER_OTLP_HEADERS`` or ``OTEL_EXPORTER_OTLP_TRACES_HEADERS``.

    Raises:
        MissingEnvironmentVariableError: If no OTEL endpoint variable is set.
        MissingConfigurationError: If no ``Authorization`` header is configured.
    """
    return ExporterBuilder().from_otel_env().build()
