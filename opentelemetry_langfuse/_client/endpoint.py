"""Endpoint URL construction for the Langfuse OTLP API.

Langfuse accepts OTLP/HTTP traces under ``{host}/api/public/otel``. The Python
OTLP exporter posts to an explicitly configured endpoint verbatim, so every
endpoint handed to an exporter carries the ``/v1/traces`` signal path.
"""

import os
from typing import Optional

from opentelemetry_langfuse._client.constants import (
    DEFAULT_LANGFUSE_ENDPOINT,
    DEFAULT_LANGFUSE_HOST,
    LANGFUSE_OTEL_PATH,
    OTLP_TRACES_PATH,
)
from opentelemetry_langfuse._client.environment_variables import (
    LANGFUSE_BASE_URL,
    LANGFUSE_HOST,
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT,
)
from opentelemetry_langfuse.logger import langfuse_logger


def build_otlp_endpoint(base_url: str) -> str:
    """Build the Langfuse OTLP base endpoint for a host.

    Trailing slashes on the host are stripped, so ``https://cloud.langfuse.com``
    and ``https://cloud.langfuse.com/`` yield the same endpoint.

    Example:
        ```python
        build_otlp_endpoint("https://cloud.langfuse.com")
        # "https://cloud.langfuse.com/api/public/otel"
        ```
    """
    return f"{base_url.rstrip('/')}{LANGFUSE_OTEL_PATH}"


def build_traces_endpoint(base_url: str) -> str:
    return f"{build_otlp_endpoint(base_url)}{OTLP_TRACES_PATH}"


def _langfuse_host_from_env() -> Optional[str]:
    return os.environ.get(LANGFUSE_BASE_URL) or os.environ.get(LANGFUSE_HOST) or None


def build_otlp_endpoint_from_env() -> str:
    """Build the Langfuse OTLP base endpoint from ``LANGFUSE_BASE_URL``/``LANGFUSE_HOST``.

    Falls back to the Langfuse cloud host when neither variable is set.
    """
    langfuse_host = _langfuse_host_from_env()
    if not langfuse_host:
        return DEFAULT_LANGFUSE_ENDPOINT

    return build_otlp_endpoint(langfuse_host)


def resolve_traces_endpoint() -> str:
    """Resolve the OTLP traces endpoint from the environment.

    Priority order:
    1. Langfuse host (``LANGFUSE_BASE_URL`` or ``LANGFUSE_HOST``) with the OTLP path appended
    2. ``OTEL_EXPORTER_OTLP_TRACES_ENDPOINT``, used verbatim
    3. ``OTEL_EXPORTER_OTLP_ENDPOINT`` with ``/v1/traces`` appended
    4. The Langfuse cloud host

    Returns:
        The endpoint URL the span exporter should post to.
    """
    langfuse_host = _langfuse_host_from_env()
    if langfuse_host:
        langfuse_logger.debug(f"Endpoint: using Langfuse host '{langfuse_host}'")

        return build_traces_endpoint(langfuse_host)

    traces_endpoint = os.environ.get(OTEL_EXPORTER_OTLP_TRACES_ENDPOINT)
    if traces_endpoint:
        langfuse_logger.debug(
            f"Endpoint: using {OTEL_EXPORTER_OTLP_TRACES_ENDPOINT} '{traces_endpoint}'"
        )

        return traces_endpoint

    base_endpoint = os.environ.get(OTEL_EXPORTER_OTLP_ENDPOINT)
    if base_endpoint:
        langfuse_logger.debug(
            f"Endpoint: using {OTEL_EXPORTER_OTLP_ENDPOINT} '{base_endpoint}'"
        )

        return f"{base_endpoint.rstrip('/')}{OTLP_TRACES_PATH}"

    langfuse_logger.debug(
        f"Endpoint: no host configured, defaulting to {DEFAULT_LANGFUSE_HOST}"
    )

    return build_traces_endpoint(DEFAULT_LANGFUSE_HOST)


def resolve_otel_traces_endpoint() -> Optional[str]:
    """Resolve the traces endpoint from the standard OTEL variables only."""
    traces_endpoint = os.environ.get(OTEL_EXPORTER_OTLP_TRACES_ENDPOINT)
    if traces_endpoint:
        return traces_endpoint

    base_endpoint = os.environ.get(OTEL_EXPORTER_OTLP_ENDPOINT)
    if base_endpoint:
        return f"{base_endpoint.rstrip('/')}{OTLP_TRACES_PATH}"

    return None
