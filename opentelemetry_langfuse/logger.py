"""Logger configuration for the OpenTelemetry Langfuse exporter.

This module initializes the logger used across the package. Applications can
attach their own handlers to the ``opentelemetry_langfuse`` logger or enable
verbose output with the ``LANGFUSE_DEBUG`` environment variable.

Log levels used throughout the package:
- DEBUG: Endpoint and authorization resolution decisions, span hand-off details
- WARNING: Configuration that was ignored or could not be applied
- ERROR: Failures that are also raised to the caller
"""

import logging

langfuse_logger = logging.getLogger("opentelemetry_langfuse")
langfuse_logger.setLevel(logging.WARNING)


def enable_debug_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    langfuse_logger.setLevel(logging.DEBUG)
