"""HTTP attribute extractors.

Each extractor takes an optional ``attributes_filter`` that is applied to the
whole attribute list after the extractor appended its own attributes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from instrumenter.api.carrier import ResendCounter, get_value, with_value
from instrumenter.semconv.attributes import ErrorAttributes, HTTPAttributes, UserAgentAttributes
from instrumenter.semconv.http.getters import (
    HTTPBodySizeGetter,
    HTTPClientAttrsGetter,
    HTTPCommonAttrsGetter,
    HTTPServerAttrsGetter,
)
from instrumenter.semconv.span_key import CLIENT_RESEND_KEY, HTTP_CLIENT_KEY, HTTP_SERVER_KEY
from instrumenter.types import Attribute, Carrier

__all__ = [
    "AttributesFilter",
    "HTTPCommonAttrsExtractor",
    "HTTPClientAttrsExtractor",
    "HTTPServerAttrsExtractor",
]

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

AttributesFilter = Callable[[list[Attribute]], list[Attribute]]


class HTTPCommonAttrsExtractor(Generic[REQUEST, RESPONSE]):
    """Extracts the attributes shared by HTTP clients and servers.

    Start: ``http.request.method``.
    End: ``http.response.status_code`` (when a response exists), ``error.type``
    (when the getter reports one) and body sizes when the getter implements
    :class:`HTTPBodySizeGetter`.
    """

    def __init__(
        self,
        getter: HTTPCommonAttrsGetter[REQUEST, RESPONSE],
        attributes_filter: AttributesFilter | None = None,
    ) -> None:
        """Initialize HTTPCommonAttrsExtractor.

        Args:
            getter: HTTP attribute getter.
            attributes_filter: Optional post-processing of the attribute list.
        """
        self._getter = getter
        self._attributes_filter = attributes_filter

    @property
    def getter(self) -> HTTPCommonAttrsGetter[REQUEST, RESPONSE]:
        return self._getter

    def _filter(self, attributes: list[Attribute]) -> list[Attribute]:
        if self._attributes_filter is None:
            return attributes
        return self._attributes_filter(attributes)


    def _append_start_attributes(self, attributes: list[Attribute], request: REQUEST) -> None:
        attributes.append(
            Attribute(HTTPAttributes.REQUEST_METHOD, self._getter.get_request_method(request))
        )

    def _append_end_attributes(
        self,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        status_code = self._getter.get_http_response_status_code(request, response, error)
        if status_code:
            attributes.append(Attribute(HTTPAttributes.RESPONSE_STATUS_CODE, status_code))
        error_type = self._getter.get_error_type(request, response, error)
        if error_type:
            attributes.append(Attribute(ErrorAttributes.TYPE, error_type))
        if isinstance(self._getter, HTTPBodySizeGetter):
            request_size = self._getter.get_http_request_body_size(request)
            if request_size is not None:
                attributes.append(Attribute(HTTPAttributes.REQUEST_BODY_SIZE, request_size))
            response_size = self._getter.get_http_response_body_size(request, response)
            if response_size is not None:
                attributes.append(Attribute(HTTPAttributes.RESPONSE_BODY_SIZE, response_size))

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        self._append_start_attributes(attributes, request)
        return self._filter(attributes), carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        self._append_end_attributes(attributes, request, response, error)
        return self._filter(attributes), carrier


class HTTPClientAttrsExtractor(HTTPCommonAttrsExtractor[REQUEST, RESPONSE]):
    """HTTP client extractor with resend tracking.

    The first attempt of a logical request stores a
    :class:`~instrumenter.api.carrier.ResendCounter` in the returned carrier.
    Every later attempt started from that carrier lineage increments the same
    counter and records ``http.request.resend_count``.
    """

    def __init__(
        self,
        getter: HTTPClientAttrsGetter[REQUEST, RESPONSE],
        attributes_filter: AttributesFilter | None = None,
    ) -> None:
        super().__init__(getter, attributes_filter)

    def get_span_key(self) -> str:
        return HTTP_CLIENT_KEY

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        self._append_start_attributes(attributes, request)
        counter = get_value(carrier, CLIENT_RESEND_KEY)
        if isinstance(counter, ResendCounter):
            resend_count = counter.increment()
            if resend_count > 0:
                attributes.append(Attribute(HTTPAttributes.REQUEST_RESEND_COUNT, resend_count))
        else:
            carrier = with_value(carrier, CLIENT_RESEND_KEY, ResendCounter())
        return self._filter(attributes), carrier


class HTTPServerAttrsExtractor(HTTPCommonAttrsExtractor[REQUEST, RESPONSE]):
    """HTTP server extractor adding ``user_agent.original`` and ``http.route``."""

    def __init__(
        self,
        getter: HTTPServerAttrsGetter[REQUEST, RESPONSE],
        attributes_filter: AttributesFilter | None = None,
    ) -> None:
        super().__init__(getter, attributes_filter)

    def get_span_key(self) -> str:
        return HTTP_SERVER_KEY

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        self._append_start_attributes(attributes, request)
        user_agent = self._getter.get_http_request_header(request, "User-Agent")
        attributes.append(Attribute(UserAgentAttributes.ORIGINAL, user_agent[0] if user_agent else ""))
        return self._filter(attributes), carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        self._append_end_attributes(attributes, request, response, error)
        attributes.append(Attribute(HTTPAttributes.ROUTE, self._getter.get_http_route(request)))
        return self._filter(attributes), carrier
