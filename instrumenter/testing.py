"""Testing utilities for the instrumenter engine.

This module provides mock backend objects and recording plug-ins for
testing instrumentations without an OpenTelemetry SDK.

Example:
    tracer = MockTracer("checkout")
    listener = RecordingListener()
    instrumenter = (
        InstrumenterBuilder()
        .set_span_name_extractor(ConstantSpanNameExtractor("op"))
        .set_span_kind_extractor(AlwaysInternalExtractor())
        .add_operation_listeners(listener)
        .build_instrumenter_with_tracer(tracer)
    )
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from opentelemetry.context import Context
from opentelemetry.trace import (
    Span,
    SpanContext,
    SpanKind,
    Status,
    StatusCode,
    TraceFlags,
    get_current_span,
)

from instrumenter.config import TESTING_INSTRUMENTER_CONFIG, InstrumenterConfig
from instrumenter.types import Attribute, Carrier

__all__ = [
    # Mock backend
    "MockTracer",
    "MockSpan",
    "MockMeter",
    "MockHistogram",
    "FailingMeter",
    # Recording plug-ins
    "ListenerCall",
    "RecordingListener",
    "StaticAttributesExtractor",
    "RaisingExtractor",
    # Mock HTTP exchange
    "MockHTTPRequest",
    "MockHTTPResponse",
    "MockHTTPGetter",
    # Test helpers
    "create_test_config",
    "collect_metrics",
    "reset_test_state",
]


@dataclass
class MockMetricData:
    """One recorded histogram amount."""

    name: str
    value: float
    attributes: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=time.time_ns)


# =============================================================================
# Mock Metrics
# =============================================================================


class MockHistogram:
    """In-memory histogram keeping every recorded amount."""

    def __init__(self, name: str, description: str = "", unit: str = "1") -> None:
        self.name = name
        self.description = description
        self.unit = unit
        self.values: list[MockMetricData] = []

    def record(
        self,
        amount: float,
        attributes: dict[str, Any] | None = None,
        context: Context | None = None,
    ) -> None:
        """Store ``amount`` with a copy of ``attributes``."""
        self.values.append(MockMetricData(
            name=self.name,
            value=amount,
            attributes=dict(attributes or {}),
        ))

    @property
    def count(self) -> int:
        """Number of recordings."""
        return len(self.values)

    @property
    def sum(self) -> float:
        """Total of all recorded amounts."""
        return sum(v.value for v in self.values)


class MockMeter:
    """Mock OpenTelemetry Meter that only creates histograms."""

    def __init__(self, name: str = "mock", version: str | None = None) -> None:
        self.name = name
        self.version = version
        self.histograms: dict[str, MockHistogram] = {}

    def create_histogram(
        self,
        name: str,
        unit: str = "",
        description: str = "",
        **kwargs: Any,
    ) -> MockHistogram:
        """Create a histogram."""
        histogram = MockHistogram(name, description, unit)
        self.histograms[name] = histogram
        return histogram


class FailingMeter(MockMeter):
    """Meter whose instrument creation always fails."""

    def __init__(self, error: Exception | None = None) -> None:
        """Initialize FailingMeter.

        Args:
            error: Exception raised by ``create_histogram``.
        """
        super().__init__("failing")
        self.error = error or RuntimeError("instrument creation failed")

    def create_histogram(self, name: str, unit: str = "", description: str = "", **kwargs: Any) -> MockHistogram:
        raise self.error


# =============================================================================
# Mock Tracing
# =============================================================================


class MockSpan(Span):
    """Mock OpenTelemetry Span.

    Timestamps are epoch nanoseconds, matching the OpenTelemetry API.
    """

    _id_counter = 0

    def __init__(
        self,
        name: str,
        parent: MockSpan | None = None,
        kind: SpanKind = SpanKind.INTERNAL,
        start_time: int | None = None,
    ) -> None:
        MockSpan._id_counter += 1
        self.name = name
        self.kind = kind
        self.parent = parent
        self.span_id = MockSpan._id_counter
        self.trace_id = parent.trace_id if parent else MockSpan._id_counter
        self.attributes: dict[str, Any] = {}
        self.events: list[dict[str, Any]] = []
        self.exceptions: list[BaseException] = []
        self.status_code = StatusCode.UNSET
        self.status_description: str | None = None
        self.start_time = start_time if start_time is not None else time.time_ns()
        self.end_time: int | None = None
        self.end_count = 0
        self.links: list[Any] = []

    def get_span_context(self) -> SpanContext:
        """Return a valid, sampled span context built from the mock ids."""
        return SpanContext(
            trace_id=self.trace_id,
            span_id=self.span_id,
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )

    def update_name(self, name: str) -> None:
        self.name = name

    def add_link(self, context: SpanContext, attributes: dict[str, Any] | None = None) -> None:
        self.links.append((context, dict(attributes or {})))

    def set_attribute(self, key: str, value: Any) -> None:
        """Set an attribute."""
        self.attributes[key] = value

    def set_attributes(self, attributes: dict[str, Any]) -> None:
        """Merge ``attributes`` into the span."""
        self.attributes.update(attributes)

    def add_event(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
        timestamp: int | None = None,
    ) -> None:
        """Add an event."""
        self.events.append({
            "name": name,
            "attributes": attributes or {},
            "timestamp": timestamp or time.time_ns(),
        })

    def record_exception(self, exception: BaseException, **kwargs: Any) -> None:
        """Keep the exception and add an ``exception`` event."""
        self.exceptions.append(exception)
        self.add_event(
            "exception",
            {
                "exception.type": type(exception).__name__,
                "exception.message": str(exception),
            },
        )

    def set_status(self, status: Status | StatusCode, description: str | None = None) -> None:
        """Set span status."""
        if isinstance(status, Status):
            self.status_code = status.status_code
            self.status_description = status.description
        else:
            self.status_code = status
            self.status_description = description

    def end(self, end_time: int | None = None) -> None:
        """End the span."""
        self.end_time = end_time if end_time is not None else time.time_ns()
        self.end_count += 1

    @property
    def is_ended(self) -> bool:
        return self.end_count > 0

    def is_recording(self) -> bool:
        """Spans record until ended."""
        return not self.is_ended


class MockTracer:
    """Mock OpenTelemetry Tracer.

    Spans opened on a carrier whose current span is a :class:`MockSpan`
    become its children.
    """

    def __init__(self, name: str = "mock", version: str | None = None) -> None:
        self.name = name
        self.version = version
        self.spans: list[MockSpan] = []

    def start_span(
        self,
        name: str,
        context: Context | None = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: dict[str, Any] | None = None,
        links: Any = None,
        start_time: int | None = None,
        record_exception: bool = True,
        set_status_on_exception: bool = True,
    ) -> MockSpan:
        """Start a new span."""
        parent = get_current_span(context) if context is not None else None
        span = MockSpan(
            name,
            parent=parent if isinstance(parent, MockSpan) else None,
            kind=kind,
            start_time=start_time,
        )
        if attributes:
            span.set_attributes(attributes)
        self.spans.append(span)
        return span


# =============================================================================
# Recording Plug-ins
# =============================================================================


@dataclass
class ListenerCall:
    """One recorded operation listener call."""

    hook: str
    timestamp: int
    attributes: list[Attribute] | None = None
    carrier: Carrier | None = None


class RecordingListener:
    """Operation listener that records every hook call.

    Example:
        listener = RecordingListener()
        ...
        assert listener.hooks == ["on_before_start", "on_before_end",
                                  "on_after_start", "on_after_end"]
    """

    def __init__(self, name: str = "recording") -> None:
        """Initialize RecordingListener."""
        self.name = name
        self.calls: list[ListenerCall] = []

    @property
    def hooks(self) -> list[str]:
        return [call.hook for call in self.calls]

    def calls_to(self, hook: str) -> list[ListenerCall]:
        return [call for call in self.calls if call.hook == hook]

    def on_before_start(self, carrier: Carrier, start_time: int) -> Carrier:
        self.calls.append(ListenerCall("on_before_start", start_time, carrier=carrier))
        return carrier

    def on_before_end(
        self, carrier: Carrier, start_attributes: list[Attribute], start_time: int
    ) -> Carrier:
        self.calls.append(
            ListenerCall("on_before_end", start_time, list(start_attributes), carrier)
        )
        return carrier

    def on_after_start(self, carrier: Carrier, end_time: int) -> None:
        self.calls.append(ListenerCall("on_after_start", end_time, carrier=carrier))

    def on_after_end(
        self, carrier: Carrier, end_attributes: list[Attribute], end_time: int
    ) -> None:
        self.calls.append(ListenerCall("on_after_end", end_time, list(end_attributes), carrier))

    def reset(self) -> None:
        """Reset all recorded data."""
        self.calls.clear()


class StaticAttributesExtractor:
    """Attributes extractor appending fixed attributes at start and end."""

    def __init__(
        self,
        start: dict[str, Any] | None = None,
        end: dict[str, Any] | None = None,
    ) -> None:
        """Initialize StaticAttributesExtractor.

        Args:
            start: Attributes appended by ``on_start``.
            end: Attributes appended by ``on_end``.
        """
        self.start = dict(start or {})
        self.end = dict(end or {})

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: Any
    ) -> tuple[list[Attribute], Carrier]:
        attributes.extend(Attribute(key, value) for key, value in self.start.items())
        return attributes, carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: Any,
        response: Any,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        attributes.extend(Attribute(key, value) for key, value in self.end.items())
        return attributes, carrier


class RaisingExtractor:
    """Plug-in that appends a partial attribute, then raises.

    Implements the attributes extractor, listener, customizer, span name and
    span kind contracts so it can stand in for any of them.
    """

    PARTIAL_KEY = "raising.partial"

    def __init__(self, error: Exception | None = None) -> None:
        """Initialize RaisingExtractor."""
        self.error = error or RuntimeError("extractor failure")
        self.call_count = 0

    def _fail(self, attributes: list[Attribute] | None = None) -> Any:
        self.call_count += 1
        if attributes is not None:
            attributes.append(Attribute(self.PARTIAL_KEY, True))
        raise self.error

    def on_start(self, carrier: Carrier, attributes: list[Attribute], request: Any) -> Any:
        return self._fail(attributes)

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: Any,
        response: Any,
        error: BaseException | None,
    ) -> Any:
        return self._fail(attributes)

    def extract(self, *args: Any) -> Any:
        return self._fail()

    def on_before_start(self, carrier: Carrier, start_time: int) -> Carrier:
        return self._fail()

    def on_before_end(
        self, carrier: Carrier, start_attributes: list[Attribute], start_time: int
    ) -> Carrier:
        return self._fail()

    def on_after_start(self, carrier: Carrier, end_time: int) -> None:
        self._fail()

    def on_after_end(
        self, carrier: Carrier, end_attributes: list[Attribute], end_time: int
    ) -> None:
        self._fail()

    def enable(self) -> bool:
        return self._fail()


# =============================================================================
# Mock HTTP Exchange
# =============================================================================


@dataclass
class MockHTTPRequest:
    """Minimal HTTP request understood by :class:`MockHTTPGetter`."""

    method: str = "GET"
    scheme: str = "http"
    host: str = "example.com"
    port: int = 80
    path: str = "/"
    query: str = ""
    route: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    client_address: str = ""
    client_port: int = 0
    body_size: int | None = None


@dataclass
class MockHTTPResponse:
    """Minimal HTTP response understood by :class:`MockHTTPGetter`."""

    status_code: int = 200
    headers: dict[str, list[str]] = field(default_factory=dict)
    body_size: int | None = None
    protocol_version: str = "1.1"


class MockHTTPGetter:
    """Getter for :class:`MockHTTPRequest` and :class:`MockHTTPResponse`.

    Implements every HTTP, body size, network, address and URL getter
    contract, so one instance can feed any semantic-convention plug-in.
    """

    # HTTP

    def get_request_method(self, request: MockHTTPRequest) -> str:
        return request.method

    def get_http_request_header(self, request: MockHTTPRequest, name: str) -> list[str]:
        return list(request.headers.get(name, []))

    def get_http_response_status_code(
        self,
        request: MockHTTPRequest,
        response: MockHTTPResponse | None,
        error: BaseException | None,
    ) -> int:
        return response.status_code if response is not None else 0

    def get_http_response_header(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None, name: str
    ) -> list[str]:
        if response is None:
            return []
        return list(response.headers.get(name, []))

    def get_error_type(
        self,
        request: MockHTTPRequest,
        response: MockHTTPResponse | None,
        error: BaseException | None,
    ) -> str:
        return type(error).__name__ if error is not None else ""

    def get_http_route(self, request: MockHTTPRequest) -> str:
        return request.route

    def get_http_request_body_size(self, request: MockHTTPRequest) -> int | None:
        return request.body_size

    def get_http_response_body_size(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> int | None:
        return response.body_size if response is not None else None

    # Network

    def get_network_type(self, request: MockHTTPRequest, response: MockHTTPResponse | None) -> str:
        return "IPv4"

    def get_network_transport(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> str:
        return "TCP"

    def get_network_protocol_name(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> str:
        return "HTTP"

    def get_network_protocol_version(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> str:
        return response.protocol_version if response is not None else ""

    def get_network_local_inet_address(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> str:
        return ""

    def get_network_local_port(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> int:
        return 0

    def get_network_peer_inet_address(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> str:
        return request.client_address

    def get_network_peer_port(
        self, request: MockHTTPRequest, response: MockHTTPResponse | None
    ) -> int:
        return request.client_port

    # Addresses and URL

    def get_client_address(self, request: MockHTTPRequest) -> str:
        return request.client_address

    def get_client_port(self, request: MockHTTPRequest) -> int:
        return request.client_port

    def get_server_address(self, request: MockHTTPRequest) -> str:
        return request.host

    def get_server_port(self, request: MockHTTPRequest) -> int:
        return request.port

    def get_url_scheme(self, request: MockHTTPRequest) -> str:
        return request.scheme

    def get_url_path(self, request: MockHTTPRequest) -> str:
        return request.path

    def get_url_query(self, request: MockHTTPRequest) -> str:
        return request.query


# =============================================================================
# Test Helpers
# =============================================================================


def create_test_config() -> InstrumenterConfig:
    """Create a configuration for testing."""
    return TESTING_INSTRUMENTER_CONFIG


def collect_metrics(meter: MockMeter) -> dict[str, list[MockMetricData]]:
    """Collect all recorded histogram values from a mock meter.

    Args:
        meter: MockMeter.

    Returns:
        Recorded amounts keyed by histogram name.
    """
    return {name: histogram.values for name, histogram in meter.histograms.items()}


def reset_test_state() -> None:
    """Reset global test state.

    Restarts mock span ids at 1.
    """
    MockSpan._id_counter = 0
