"""Constants used by the OpenTelemetry Langfuse exporter."""

DEFAULT_LANGFUSE_HOST = "https://cloud.langfuse.com"

LANGFUSE_OTEL_PATH = "/api/public/otel"

OTLP_TRACES_PATH = "/v1/traces"

DEFAULT_LANGFUSE_ENDPOINT = f"{DEFAULT_LANGFUSE_HOST}{LANGFUSE_OTEL_PATH}"

DEFAULT_SERVICE_NAME = "langfuse-otel"

DEFAULT_TIMEOUT_SECONDS = 10

AUTHORIZATION_HEADER = "Authorization"

SDK_NAME = "python-otel"
