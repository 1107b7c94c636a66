from typing import List, Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

CONFIG_ENV_VARS = [
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_BASE_URL",
    "LANGFUSE_HOST",
    "LANGFUSE_DEBUG",
    "LANGFUSE_FLUSH_AT",
    "LANGFUSE_FLUSH_INTERVAL",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    "OTEL_EXPORTER_OTLP_HEADERS",
    "OTEL_EXPORTER_OTLP_TRACES_HEADERS",
    "OTEL_EXPORTER_OTLP_TIMEOUT",
    "OTEL_EXPORTER_OTLP_COMPRESSION",
]


def clear_config_env(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class InMemorySpanExporter(SpanExporter):
    """Simple in-memory exporter to collect spans for testing."""

    def __init__(self):
        self._finished_spans = []
        self._stopped = False

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._stopped:
            return SpanExportResult.FAILURE

        self._finished_spans.extend(spans)

        return SpanExportResult.SUCCESS

    def shutdown(self):
        self._stopped = True

    def get_finished_spans(self) -> List[ReadableSpan]:
        return self._finished_spans

    def clear(self):
        self._finished_spans.clear()


def record_otlp_exporters(monkeypatch) -> List[dict]:
    """Replace the OTLP span exporter with an in-memory one recording its kwargs."""
    calls: List[dict] = []

    class RecordingSpanExporter(InMemorySpanExporter):
        def __init__(self, **kwargs):
            super().__init__()
            calls.append(kwargs)

    monkeypatch.setattr(
        "opentelemetry_langfuse._client.exporter.OTLPSpanExporter",
        RecordingSpanExporter,
    )

    return calls
