"""HTTP semantic-convention plug-ins."""

from instrumenter.semconv.http.extractors import (
    AttributesFilter,
    HTTPClientAttrsExtractor,
    HTTPCommonAttrsExtractor,
    HTTPServerAttrsExtractor,
)
from instrumenter.semconv.http.getters import (
    HTTPBodySizeGetter,
    HTTPClientAttrsGetter,
    HTTPCommonAttrsGetter,
    HTTPServerAttrsGetter,
)
from instrumenter.semconv.http.metrics import (
    HTTPClientMetric,
    HTTPMetricsRegistry,
    HTTPServerMetric,
    MetricsRegistry,
    NoopHTTPMetricsRegistry,
    create_http_metrics_registry,
)
from instrumenter.semconv.http.span_name import (
    DEFAULT_HTTP_SPAN_NAME,
    HTTPClientSpanNameExtractor,
    HTTPServerSpanNameExtractor,
)
from instrumenter.semconv.http.status import (
    INVALID_HTTP_STATUS_CODE,
    HTTPClientSpanStatusExtractor,
    HTTPServerSpanStatusExtractor,
)

__all__ = [
    # Getters
    "HTTPBodySizeGetter",
    "HTTPClientAttrsGetter",
    "HTTPCommonAttrsGetter",
    "HTTPServerAttrsGetter",
    # Extractors
    "AttributesFilter",
    "HTTPClientAttrsExtractor",
    "HTTPCommonAttrsExtractor",
    "HTTPServerAttrsExtractor",
    "DEFAULT_HTTP_SPAN_NAME",
    "HTTPClientSpanNameExtractor",
    "HTTPServerSpanNameExtractor",
    "INVALID_HTTP_STATUS_CODE",
    "HTTPClientSpanStatusExtractor",
    "HTTPServerSpanStatusExtractor",
    # Metrics
    "HTTPClientMetric",
    "HTTPMetricsRegistry",
    "HTTPServerMetric",
    "MetricsRegistry",
    "NoopHTTPMetricsRegistry",
    "create_http_metrics_registry",
]
