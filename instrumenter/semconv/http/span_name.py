"""HTTP span name extractors.

HTTP span names are ``{method} {route}`` when a low-cardinality route is
known, otherwise ``{method}``. A request without a method is named ``HTTP``.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from instrumenter.semconv.http.getters import HTTPClientAttrsGetter, HTTPServerAttrsGetter

__all__ = [
    "DEFAULT_HTTP_SPAN_NAME",
    "HTTPClientSpanNameExtractor",
    "HTTPServerSpanNameExtractor",
]

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

DEFAULT_HTTP_SPAN_NAME = "HTTP"


class HTTPClientSpanNameExtractor(Generic[REQUEST, RESPONSE]):
    """Names client spans after the request method."""

    def __init__(self, getter: HTTPClientAttrsGetter[REQUEST, RESPONSE]) -> None:
        self._getter = getter

    def extract(self, request: REQUEST) -> str:
        return self._getter.get_request_method(request) or DEFAULT_HTTP_SPAN_NAME


class HTTPServerSpanNameExtractor(Generic[REQUEST, RESPONSE]):
    """Names server spans after the request method and matched route."""

    def __init__(self, getter: HTTPServerAttrsGetter[REQUEST, RESPONSE]) -> None:
        self._getter = getter

    def extract(self, request: REQUEST) -> str:
        method = self._getter.get_request_method(request)
        if not method:
            return DEFAULT_HTTP_SPAN_NAME
        route = self._getter.get_http_route(request)
        if not route:
            return method
        return f"{method} {route}"
