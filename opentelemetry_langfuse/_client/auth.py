"""Authorization header handling for the Langfuse OTLP API.

Langfuse authenticates OTLP requests with HTTP Basic-Auth, using the project's
public key as user name and the secret key as password. This module builds
that header and resolves it across explicit credentials, the Langfuse
environment variables and the standard OTEL header variables.
"""

import base64
import os
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from opentelemetry.util.re import parse_env_headers

from opentelemetry_langfuse._client.constants import AUTHORIZATION_HEADER
from opentelemetry_langfuse._client.environment_variables import (
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    OTEL_EXPORTER_OTLP_HEADERS,
    OTEL_EXPORTER_OTLP_TRACES_HEADERS,
)
from opentelemetry_langfuse._client.errors import (
    MissingConfigurationError,
    MissingEnvironmentVariableError,
)
from opentelemetry_langfuse.logger import langfuse_logger

HeaderInput = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def build_auth_header(public_key: str, secret_key: str) -> str:
    """Build the ``Authorization`` header value for a Langfuse key pair.

    Args:
        public_key: The Langfuse public key (``pk-lf-...``)
        secret_key: The Langfuse secret key (``sk-lf-...``)

    Returns:
        ``"Basic "`` followed by the Base64 encoding of ``public_key:secret_key``.
    """
    return "Basic " + base64.b64encode(
        f"{public_key}:{secret_key}".encode("utf-8")
    ).decode("ascii")


def build_auth_header_from_env() -> str:
    """Build the ``Authorization`` header value from the Langfuse key variables.

    Raises:
        MissingEnvironmentVariableError: If ``LANGFUSE_PUBLIC_KEY`` or
            ``LANGFUSE_SECRET_KEY`` is not set.
    """
    public_key = os.environ.get(LANGFUSE_PUBLIC_KEY)
    if not public_key:
        raise MissingEnvironmentVariableError(LANGFUSE_PUBLIC_KEY)

    secret_key = os.environ.get(LANGFUSE_SECRET_KEY)
    if not secret_key:
        raise MissingEnvironmentVariableError(LANGFUSE_SECRET_KEY)

    return build_auth_header(public_key, secret_key)


def canonical_header_name(name: str) -> str:
    return "-".join(part.capitalize() for part in name.strip().split("-"))


def _iter_headers(headers: HeaderInput) -> Iterable[Tuple[str, str]]:
    if isinstance(headers, Mapping):
        return headers.items()

    return headers


def normalize_headers(*header_maps: Optional[HeaderInput]) -> Dict[str, str]:
    """Merge header maps, matching names case-insensitively.

    Later maps override earlier ones for the same name. The result holds a
    single entry per name, emitted in canonical casing.
    """
    merged: Dict[str, Tuple[str, str]] = {}

    for headers in header_maps:
        if not headers:
            continue

        for name, value in _iter_headers(headers):
            merged[name.strip().lower()] = (canonical_header_name(name), value)

    return dict(merged.values())


def parse_otel_headers_from_env() -> Dict[str, str]:
    """Parse ``OTEL_EXPORTER_OTLP_HEADERS`` and ``OTEL_EXPORTER_OTLP_TRACES_HEADERS``.

    Traces-specific entries override generic ones with the same name.
    """
    return normalize_headers(
        parse_env_headers(os.environ.get(OTEL_EXPORTER_OTLP_HEADERS, ""), liberal=True),
        parse_env_headers(
            os.environ.get(OTEL_EXPORTER_OTLP_TRACES_HEADERS, ""), liberal=True
        ),
    )


def resolve_authorization(
    public_key: Optional[str] = None, secret_key: Optional[str] = None
) -> str:
    """Resolve the ``Authorization`` header value.

    Priority order:
    1. Explicit ``public_key`` and ``secret_key`` arguments
    2. ``LANGFUSE_PUBLIC_KEY`` and ``LANGFUSE_SECRET_KEY``
    3. An ``Authorization`` entry in the OTEL header variables

    Inputs are never merged: the first complete source wins. The explicit
    arguments form one source, so the environment is only consulted when
    neither of them is given.

    Raises:
        MissingConfigurationError: If only one of ``public_key`` and
            ``secret_key`` is given.
        MissingEnvironmentVariableError: If no source provides credentials. The
            error names the first missing Langfuse key variable.
    """
    if public_key is not None or secret_key is not None:
        if not public_key:
            raise MissingConfigurationError("public_key")
        if not secret_key:
            raise MissingConfigurationError("secret_key")

        return build_auth_header(public_key, secret_key)

    public_key = os.environ.get(LANGFUSE_PUBLIC_KEY)
    secret_key = os.environ.get(LANGFUSE_SECRET_KEY)

    if public_key and secret_key:
        langfuse_logger.debug(
            f"Authorization: using Basic-Auth for public key '{public_key}'"
        )

        return build_auth_header(public_key, secret_key)

    otel_authorization = parse_otel_headers_from_env().get(AUTHORIZATION_HEADER)
    if otel_authorization:
        langfuse_logger.debug("Authorization: using header from OTEL header variables")

        return otel_authorization

    raise MissingEnvironmentVariableError(
        LANGFUSE_SECRET_KEY if public_key else LANGFUSE_PUBLIC_KEY
    )
