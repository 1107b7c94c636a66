"""Tests for handle-based span storage across callbacks."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.trace import SpanKind, StatusCode

from opentelemetry_langfuse._client.span_store import SpanHandle, SpanStore
from tests.utils import InMemorySpanExporter


@pytest.fixture
def memory_exporter():
    exporter = InMemorySpanExporter()
    yield exporter
    exporter.shutdown()


@pytest.fixture
def tracer(memory_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(memory_exporter))

    return provider.get_tracer("span-store-test")


def test_span_lifecycle(tracer, memory_exporter):
    store = SpanStore()

    handle = store.start_span(
        tracer, "llm-call", SpanKind.CLIENT, attributes={"gen_ai.system": "openai"}
    )

    assert handle in store
    assert len(store) == 1
    assert memory_exporter.get_finished_spans() == []

    store.add_attributes(handle, {"http.status_code": 200})
    store.end_span(handle, {"gen_ai.usage.total_tokens": 42})

    assert handle not in store
    assert len(store) == 0

    spans = memory_exporter.get_finished_spans()
    assert len(spans) == 1
    assert spans[0].name == "llm-call"
    assert spans[0].kind == SpanKind.CLIENT
    assert dict(spans[0].attributes) == {
        "gen_ai.system": "openai",
        "http.status_code": 200,
        "gen_ai.usage.total_tokens": 42,
    }


def test_set_error(tracer, memory_exporter):
    store = SpanStore()
    handle = store.start_span(tracer, "failing")

    store.set_error(handle, "rate limited")
    store.end_span(handle)

    status = memory_exporter.get_finished_spans()[0].status
    assert status.status_code == StatusCode.ERROR
    assert status.description == "rate limited"


def test_child_span_from_stored_context(tracer, memory_exporter):
    store = SpanStore()
    parent = store.start_span(tracer, "parent")

    child = store.start_span(tracer, "child", context=store.get_context(parent))
    store.end_span(child)
    store.end_span(parent)

    child_span, parent_span = memory_exporter.get_finished_spans()
    assert child_span.parent.span_id == parent_span.context.span_id
    assert child_span.context.trace_id == parent_span.context.trace_id


def test_unknown_handles_are_ignored(tracer, memory_exporter):
    store = SpanStore()
    handle = SpanHandle()

    store.add_attributes(handle, {"a": 1})
    store.set_error(handle, "boom")
    store.end_span(handle)

    assert store.get_context(handle) is None
    assert memory_exporter.get_finished_spans() == []


def test_handle_ends_span_only_once(tracer, memory_exporter):
    store = SpanStore()
    handle = store.start_span(tracer, "once")

    store.end_span(handle)
    store.end_span(handle)

    assert len(memory_exporter.get_finished_spans()) == 1


def test_handles_are_unique():
    assert SpanHandle() != SpanHandle()
