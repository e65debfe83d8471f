"""Getter contracts for HTTP attributes.

Protocol bindings implement these for their request/response types. Header
getters return every value of a header, in order; an absent header is an
empty list.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

__all__ = [
    "HTTPCommonAttrsGetter",
    "HTTPClientAttrsGetter",
    "HTTPServerAttrsGetter",
    "HTTPBodySizeGetter",
]

REQUEST = TypeVar("REQUEST", contravariant=True)
RESPONSE = TypeVar("RESPONSE", contravariant=True)


@runtime_checkable
class HTTPCommonAttrsGetter(Protocol[REQUEST, RESPONSE]):
    """Attributes shared by HTTP clients and servers."""

    def get_request_method(self, request: REQUEST) -> str:
        """Return the request method, e.g. ``GET``."""
        ...

    def get_http_request_header(self, request: REQUEST, name: str) -> list[str]:
        ...

    def get_http_response_status_code(
        self,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> int:
        """Return the response status code, or 0 when there is no response."""
        ...

    def get_http_response_header(
        self, request: REQUEST, response: RESPONSE | None, name: str
    ) -> list[str]:
        ...

    def get_error_type(
        self,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> str:
        """Return a low-cardinality error class, or ``""`` when the call succeeded."""
        ...


@runtime_checkable
class HTTPClientAttrsGetter(HTTPCommonAttrsGetter[REQUEST, RESPONSE], Protocol[REQUEST, RESPONSE]):
    """Attributes of the client side of an HTTP call."""


@runtime_checkable
class HTTPServerAttrsGetter(HTTPCommonAttrsGetter[REQUEST, RESPONSE], Protocol[REQUEST, RESPONSE]):
    """Attributes of the server side of an HTTP call."""

    def get_http_route(self, request: REQUEST) -> str:
        """Return the matched route template, or ``""`` when unknown."""
        ...


@runtime_checkable
class HTTPBodySizeGetter(Protocol[REQUEST, RESPONSE]):
    """Optional body sizes; getters implementing it feed the size histograms."""

    def get_http_request_body_size(self, request: REQUEST) -> int | None:
        ...

    def get_http_response_body_size(
        self, request: REQUEST, response: RESPONSE | None
    ) -> int | None:
        ...
