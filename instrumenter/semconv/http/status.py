"""HTTP span status extractors.

Client spans fail on status codes >= 400, server spans on >= 500. On both
sides a status code below 100 (including "no response") is a failure, and
2xx is a success. Other codes leave the status unset.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from opentelemetry.trace import Span, Status, StatusCode

from instrumenter.semconv.attributes import ErrorAttributes
from instrumenter.semconv.http.getters import HTTPCommonAttrsGetter

__all__ = [
    "INVALID_HTTP_STATUS_CODE",
    "HTTPClientSpanStatusExtractor",
    "HTTPServerSpanStatusExtractor",
]

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

INVALID_HTTP_STATUS_CODE = "INVALID_HTTP_STATUS_CODE"


class _HTTPSpanStatusExtractor(Generic[REQUEST, RESPONSE]):
    error_threshold: int = 500

    def __init__(self, getter: HTTPCommonAttrsGetter[REQUEST, RESPONSE]) -> None:
        self._getter = getter

    def extract(
        self,
        span: Span,
        request: REQUEST,
        response: Any,
        error: BaseException | None,
    ) -> None:
        status_code = self._getter.get_http_response_status_code(request, response, error)
        if status_code >= self.error_threshold or status_code < 100:
            if error is not None:
                span.record_exception(error)
                span.set_status(Status(StatusCode.ERROR, str(error)))
            else:
                span.set_status(Status(StatusCode.ERROR, INVALID_HTTP_STATUS_CODE))
            span.set_attribute(ErrorAttributes.TYPE, str(status_code))
        elif 200 <= status_code < 300:
            span.set_status(Status(StatusCode.OK))


class HTTPClientSpanStatusExtractor(_HTTPSpanStatusExtractor[REQUEST, RESPONSE]):
    """Status extractor for HTTP client spans (errors from 400)."""

    error_threshold = 400


class HTTPServerSpanStatusExtractor(_HTTPSpanStatusExtractor[REQUEST, RESPONSE]):
    """Status extractor for HTTP server spans (errors from 500)."""

    error_threshold = 500
