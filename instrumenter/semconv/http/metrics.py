"""HTTP metrics: request duration and body size histograms.

Metric handles are operation listeners. Add one to an instrumenter builder
and it records, for every finished operation:

- ``http.{client,server}.request.duration`` in seconds
- ``http.{client,server}.request.body.size`` and ``...response.body.size``
  in bytes, when the body size attributes were extracted

Only the low-cardinality attributes in ``HTTP_METRICS_KEYS`` become metric
dimensions; the attribute list is shadowed before recording.

Example:
    >>> registry = create_http_metrics_registry(meter)
    >>> metric = registry.new_http_client_metric("nethttp.client")
    >>> builder.add_operation_listeners(metric)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from opentelemetry.metrics import Histogram, Meter

from instrumenter.api.carrier import create_carrier_key, get_value, with_value
from instrumenter.config import InstrumenterConfig
from instrumenter.semconv.attributes import HTTP_METRICS_KEYS, HTTPAttributes, HTTPMetrics
from instrumenter.semconv.histogram import new_float64_histogram
from instrumenter.semconv.shadower import shadow
from instrumenter.types import Attribute, Carrier, OperationRole, attributes_to_dict

__all__ = [
    # Registries
    "MetricsRegistry",
    "HTTPMetricsRegistry",
    "NoopHTTPMetricsRegistry",
    "create_http_metrics_registry",
    # Metric handles
    "HTTPServerMetric",
    "HTTPClientMetric",
]

logger = logging.getLogger(__name__)

_NANOS_PER_SECOND = 1_000_000_000


# =============================================================================
# Metric Handles
# =============================================================================


@dataclass(frozen=True, slots=True)
class _MetricStart:
    start_time: int


class _HTTPMetric:
    """Operation listener recording HTTP duration and size histograms."""

    role: OperationRole

    def __init__(
        self,
        key: str,
        request_duration: Histogram | None = None,
        request_body_size: Histogram | None = None,
        response_body_size: Histogram | None = None,
    ) -> None:
        """Initialize the metric handle.

        Args:
            key: Name of the handle; also names its carrier slot.
            request_duration: Duration histogram. None makes recording a no-op.
            request_body_size: Request body size histogram.
            response_body_size: Response body size histogram.
        """
        self._name = key
        self._key = create_carrier_key(key)
        self._request_duration = request_duration
        self._request_body_size = request_body_size
        self._response_body_size = response_body_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_noop(self) -> bool:
        return self._request_duration is None

    def on_before_start(self, carrier: Carrier, start_time: int) -> Carrier:
        return carrier

    def on_before_end(
        self,
        carrier: Carrier,
        start_attributes: list[Attribute],
        start_time: int,
    ) -> Carrier:
        return with_value(carrier, self._key, _MetricStart(start_time))

    def on_after_start(self, carrier: Carrier, end_time: int) -> None:
        return None

    def on_after_end(
        self,
        carrier: Carrier,
        end_attributes: list[Attribute],
        end_time: int,
    ) -> None:
        started = get_value(carrier, self._key)
        if not isinstance(started, _MetricStart):
            return
        if self._request_duration is None:
            logger.debug("%s histograms are not initialized, skipping recording", self._name)
            return

        n, attributes = shadow(end_attributes, HTTP_METRICS_KEYS)
        dimensions = attributes_to_dict(attributes[:n])
        duration = max(end_time - started.start_time, 0) / _NANOS_PER_SECOND
        self._request_duration.record(duration, attributes=dimensions)

        sizes = attributes_to_dict(
            attribute
            for attribute in attributes[n:]
            if attribute.key in (HTTPAttributes.REQUEST_BODY_SIZE, HTTPAttributes.RESPONSE_BODY_SIZE)
        )
        request_size = sizes.get(HTTPAttributes.REQUEST_BODY_SIZE)
        if request_size is not None and self._request_body_size is not None:
            self._request_body_size.record(request_size, attributes=dimensions)
        response_size = sizes.get(HTTPAttributes.RESPONSE_BODY_SIZE)
        if response_size is not None and self._response_body_size is not None:
            self._response_body_size.record(response_size, attributes=dimensions)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, noop={self.is_noop})"


class HTTPServerMetric(_HTTPMetric):
    """Server-side HTTP metric handle."""

    role = OperationRole.SERVER


class HTTPClientMetric(_HTTPMetric):
    """Client-side HTTP metric handle."""

    role = OperationRole.CLIENT


# =============================================================================
# Registries
# =============================================================================


@runtime_checkable
class MetricsRegistry(Protocol):
    """Factory of HTTP metric handles."""

    def new_http_server_metric(self, key: str) -> HTTPServerMetric: ...

    def new_http_client_metric(self, key: str) -> HTTPClientMetric: ...


class HTTPMetricsRegistry:
    """Registry creating live HTTP metric handles on a meter.

    Creation fails with :class:`~instrumenter.exceptions.MetricsRegistryError`
    when the meter is missing or rejects an instrument; the registry never
    substitutes a default meter.
    """

    def __init__(self, meter: Meter | None) -> None:
        """Initialize HTTPMetricsRegistry.

        Args:
            meter: Meter the histograms are created on.
        """
        self._meter = meter
        self._lock = threading.Lock()

    @property
    def meter(self) -> Meter | None:
        return self._meter

    def new_http_server_metric(self, key: str) -> HTTPServerMetric:
        """Create a server metric handle.

        Raises:
            MetricsRegistryError: If the histograms cannot be created.
        """
        with self._lock:
            return HTTPServerMetric(
                key,
                new_float64_histogram(
                    HTTPMetrics.SERVER_REQUEST_DURATION,
                    "s",
                    "Duration of HTTP server requests.",
                    self._meter,
                ),
                new_float64_histogram(
                    HTTPMetrics.SERVER_REQUEST_BODY_SIZE,
                    "By",
                    "Size of HTTP server request bodies.",
                    self._meter,
                ),
                new_float64_histogram(
                    HTTPMetrics.SERVER_RESPONSE_BODY_SIZE,
                    "By",
                    "Size of HTTP server response bodies.",
                    self._meter,
                ),
            )

    def new_http_client_metric(self, key: str) -> HTTPClientMetric:
        """Create a client metric handle.

        Raises:
            MetricsRegistryError: If the histograms cannot be created.
        """
        with self._lock:
            return HTTPClientMetric(
                key,
                new_float64_histogram(
                    HTTPMetrics.CLIENT_REQUEST_DURATION,
                    "s",
                    "Duration of HTTP client requests.",
                    self._meter,
                ),
                new_float64_histogram(
                    HTTPMetrics.CLIENT_REQUEST_BODY_SIZE,
                    "By",
                    "Size of HTTP client request bodies.",
                    self._meter,
                ),
                new_float64_histogram(
                    HTTPMetrics.CLIENT_RESPONSE_BODY_SIZE,
                    "By",
                    "Size of HTTP client response bodies.",
                    self._meter,
                ),
            )

    def new_http_metric(self, role: OperationRole, key: str) -> HTTPServerMetric | HTTPClientMetric:
        """Create a metric handle for ``role``."""
        if role is OperationRole.SERVER:
            return self.new_http_server_metric(key)
        return self.new_http_client_metric(key)


class NoopHTTPMetricsRegistry:
    """Registry whose handles never record. Creation always succeeds."""

    def new_http_server_metric(self, key: str) -> HTTPServerMetric:
        return HTTPServerMetric(key)

    def new_http_client_metric(self, key: str) -> HTTPClientMetric:
        return HTTPClientMetric(key)

    def new_http_metric(self, role: OperationRole, key: str) -> HTTPServerMetric | HTTPClientMetric:
        if role is OperationRole.SERVER:
            return self.new_http_server_metric(key)
        return self.new_http_client_metric(key)


def create_http_metrics_registry(
    meter: Meter | None,
    config: InstrumenterConfig | None = None,
    instrumentation_name: str | None = None,
) -> HTTPMetricsRegistry | NoopHTTPMetricsRegistry:
    """Select the registry for the current configuration.

    Args:
        meter: Meter for live handles.
        config: Configuration. Defaults to the process environment.
        instrumentation_name: Short instrumentation name checked against the
            configuration.

    Returns:
        A no-op registry when metrics or the instrumentation are disabled,
        otherwise a live registry on ``meter``.
    """
    config = config if config is not None else InstrumenterConfig.from_env()
    if not config.metrics_enabled or not config.enabled:
        return NoopHTTPMetricsRegistry()
    if instrumentation_name and not config.is_instrumentation_enabled(instrumentation_name):
        return NoopHTTPMetricsRegistry()
    return HTTPMetricsRegistry(meter)
