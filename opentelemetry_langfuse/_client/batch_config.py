"""Batch export settings handed to the OpenTelemetry batch span processor."""

import os
from dataclasses import dataclass, replace
from typing import Callable, Optional, TypeVar

from opentelemetry_langfuse._client.environment_variables import (
    LANGFUSE_FLUSH_AT,
    LANGFUSE_FLUSH_INTERVAL,
)
from opentelemetry_langfuse._client.errors import InvalidConfigurationError

_T = TypeVar("_T")


def _parse_env(variable: str, parse: Callable[[str], _T]) -> Optional[_T]:
    value = os.environ.get(variable, None)
    if value is None:
        return None

    try:
        return parse(value)
    except ValueError as e:
        raise InvalidConfigurationError(variable, value) from e


@dataclass(frozen=True)
class BatchConfig:
    """Queue and flush settings for batch span export.

    Attributes:
        max_queue_size: Maximum number of spans buffered before new spans are dropped
        max_export_batch_size: Maximum number of spans sent in a single export request
        scheduled_delay: Delay in seconds between two consecutive exports
        max_export_timeout: Time in seconds an export may take before it is cancelled
    """

    max_queue_size: int = 2048
    max_export_batch_size: int = 512
    scheduled_delay: float = 5.0
    max_export_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "BatchConfig":
        """Default settings overridden by ``LANGFUSE_FLUSH_AT`` and ``LANGFUSE_FLUSH_INTERVAL``.

        Raises:
            InvalidConfigurationError: If a variable is set but not a number.
        """
        config = cls()

        flush_at = _parse_env(LANGFUSE_FLUSH_AT, int)
        if flush_at is not None:
            config = replace(config, max_export_batch_size=flush_at)

        flush_interval = _parse_env(LANGFUSE_FLUSH_INTERVAL, float)
        if flush_interval is not None:
            config = replace(config, scheduled_delay=flush_interval)

        return config
