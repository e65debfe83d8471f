"""Pytest fixtures for instrumenter tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from instrumenter.api.enabler import get_instrumentation_gate
from instrumenter.testing import MockMeter, MockTracer, reset_test_state


@pytest.fixture(autouse=True)
def _reset_state():
    """Reset the process-wide gate and mock counters around every test."""
    get_instrumentation_gate().reset()
    yield
    get_instrumentation_gate().reset()
    reset_test_state()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """In-memory exporter collecting finished spans."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    """SDK tracer provider exporting synchronously to memory."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def tracer(tracer_provider: TracerProvider):
    """SDK tracer for building instrumenters."""
    return tracer_provider.get_tracer("instrumenter.tests")


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    """In-memory metric reader."""
    return InMemoryMetricReader()


@pytest.fixture
def meter(metric_reader: InMemoryMetricReader):
    """SDK meter recording into the in-memory reader."""
    return MeterProvider(metric_readers=[metric_reader]).get_meter("instrumenter.tests")


@pytest.fixture
def mock_tracer() -> MockTracer:
    """Mock tracer."""
    return MockTracer("test")


@pytest.fixture
def mock_meter() -> MockMeter:
    """Mock meter."""
    return MockMeter("test")


@pytest.fixture
def read_histogram(metric_reader: InMemoryMetricReader) -> Callable[[str], list[Any]]:
    """Return a reader of the data points of one histogram."""

    def _read(name: str) -> list[Any]:
        data = metric_reader.get_metrics_data()
        if data is None:
            return []
        points: list[Any] = []
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    if metric.name == name:
                        points.extend(metric.data.data_points)
        return points

    return _read
