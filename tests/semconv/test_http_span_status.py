"""Tests for HTTP span names and span status."""

import pytest
from opentelemetry.trace import StatusCode

from instrumenter.semconv.attributes import ErrorAttributes
from instrumenter.semconv.http import (
    INVALID_HTTP_STATUS_CODE,
    HTTPClientSpanNameExtractor,
    HTTPClientSpanStatusExtractor,
    HTTPServerSpanNameExtractor,
    HTTPServerSpanStatusExtractor,
)
from instrumenter.testing import MockHTTPGetter, MockHTTPRequest, MockHTTPResponse, MockSpan


class TestHTTPSpanNames:
    """Tests for the HTTP span name extractors."""

    def test_client_name(self):
        """Test that client spans are named after the method."""
        extractor = HTTPClientSpanNameExtractor(MockHTTPGetter())

        assert extractor.extract(MockHTTPRequest(method="PUT")) == "PUT"

    def test_client_name_without_method(self):
        """Test the fallback name for a request without a method."""
        extractor = HTTPClientSpanNameExtractor(MockHTTPGetter())

        assert extractor.extract(MockHTTPRequest(method="")) == "HTTP"

    def test_server_name_with_route(self):
        """Test that server spans include the route when known."""
        extractor = HTTPServerSpanNameExtractor(MockHTTPGetter())

        assert extractor.extract(MockHTTPRequest(route="/users/{id}")) == "GET /users/{id}"

    def test_server_name_without_route(self):
        """Test that server spans fall back to the method."""
        extractor = HTTPServerSpanNameExtractor(MockHTTPGetter())

        assert extractor.extract(MockHTTPRequest()) == "GET"
        assert extractor.extract(MockHTTPRequest(method="", route="/x")) == "HTTP"


def run_status(extractor, status_code=None, error=None):
    span = MockSpan("test")
    response = MockHTTPResponse(status_code=status_code) if status_code is not None else None
    extractor.extract(span, MockHTTPRequest(), response, error)
    return span


class TestHTTPClientSpanStatusExtractor:
    """Tests for HTTPClientSpanStatusExtractor."""

    @pytest.mark.parametrize("status_code", [200, 201, 204, 299])
    def test_success(self, status_code):
        """Test that 2xx marks the span OK without description."""
        span = run_status(HTTPClientSpanStatusExtractor(MockHTTPGetter()), status_code)

        assert span.status_code == StatusCode.OK
        assert span.status_description is None
        assert ErrorAttributes.TYPE not in span.attributes

    @pytest.mark.parametrize("status_code", [100, 301, 304, 399])
    def test_unset(self, status_code):
        """Test that informational and redirect codes leave the status unset."""
        span = run_status(HTTPClientSpanStatusExtractor(MockHTTPGetter()), status_code)

        assert span.status_code == StatusCode.UNSET

    @pytest.mark.parametrize("status_code", [400, 404, 499, 500, 503])
    def test_client_errors(self, status_code):
        """Test that codes from 400 mark client spans failed."""
        span = run_status(HTTPClientSpanStatusExtractor(MockHTTPGetter()), status_code)

        assert span.status_code == StatusCode.ERROR
        assert span.status_description == INVALID_HTTP_STATUS_CODE
        assert span.attributes[ErrorAttributes.TYPE] == str(status_code)

    def test_error_without_response(self):
        """Test that a transport error is recorded with its message."""
        error = ConnectionRefusedError("connection refused")

        span = run_status(HTTPClientSpanStatusExtractor(MockHTTPGetter()), error=error)

        assert span.status_code == StatusCode.ERROR
        assert span.status_description == "connection refused"
        assert span.exceptions == [error]
        assert span.attributes[ErrorAttributes.TYPE] == "0"

    def test_missing_response_without_error(self):
        """Test that a missing response without an error is still a failure."""
        span = run_status(HTTPClientSpanStatusExtractor(MockHTTPGetter()))

        assert span.status_code == StatusCode.ERROR
        assert span.status_description == INVALID_HTTP_STATUS_CODE
        assert span.exceptions == []


class TestHTTPServerSpanStatusExtractor:
    """Tests for HTTPServerSpanStatusExtractor."""

    @pytest.mark.parametrize("status_code", [400, 404, 499])
    def test_client_errors_not_server_failures(self, status_code):
        """Test that 4xx leaves server spans unset."""
        span = run_status(HTTPServerSpanStatusExtractor(MockHTTPGetter()), status_code)

        assert span.status_code == StatusCode.UNSET
        assert ErrorAttributes.TYPE not in span.attributes

    @pytest.mark.parametrize("status_code", [500, 502, 599])
    def test_server_errors(self, status_code):
        """Test that codes from 500 mark server spans failed."""
        span = run_status(HTTPServerSpanStatusExtractor(MockHTTPGetter()), status_code)

        assert span.status_code == StatusCode.ERROR
        assert span.attributes[ErrorAttributes.TYPE] == str(status_code)

    def test_server_error_with_exception(self):
        """Test that the exception message wins over the generic description."""
        error = RuntimeError("handler crashed")

        span = run_status(HTTPServerSpanStatusExtractor(MockHTTPGetter()), 500, error)

        assert span.status_description == "handler crashed"
        assert span.exceptions == [error]

    def test_success(self):
        """Test that 200 marks server spans OK."""
        span = run_status(HTTPServerSpanStatusExtractor(MockHTTPGetter()), 200)

        assert span.status_code == StatusCode.OK
