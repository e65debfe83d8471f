"""Attribute and metric names used by the semantic-convention plug-ins.

Names come from ``opentelemetry-semantic-conventions`` where the convention
is stable. Body-size names are still experimental upstream and are defined
here so the plug-ins do not depend on incubating modules.

Example:
    attributes.append(Attribute(HTTPAttributes.REQUEST_METHOD, "GET"))
"""

from __future__ import annotations

from opentelemetry.semconv.attributes import (
    client_attributes,
    error_attributes,
    http_attributes,
    network_attributes,
    server_attributes,
    url_attributes,
    user_agent_attributes,
)
from opentelemetry.semconv.metrics import http_metrics

__all__ = [
    # Attribute namespace classes
    "HTTPAttributes",
    "NetworkAttributes",
    "ServerAttributes",
    "ClientAttributes",
    "URLAttributes",
    "ErrorAttributes",
    "UserAgentAttributes",
    # Metric names
    "HTTPMetrics",
    # Metric dimensions
    "HTTP_METRICS_KEYS",
]


class HTTPAttributes:
    """HTTP attribute names."""

    REQUEST_METHOD = http_attributes.HTTP_REQUEST_METHOD
    """HTTP request method, e.g. ``GET``."""

    REQUEST_RESEND_COUNT = http_attributes.HTTP_REQUEST_RESEND_COUNT
    """Ordinal number of a resent request; absent on the first attempt."""

    RESPONSE_STATUS_CODE = http_attributes.HTTP_RESPONSE_STATUS_CODE
    """HTTP response status code."""

    ROUTE = http_attributes.HTTP_ROUTE
    """Matched route template, e.g. ``/users/{id}``."""

    REQUEST_BODY_SIZE = "http.request.body.size"
    """Size of the request payload body in bytes."""

    RESPONSE_BODY_SIZE = "http.response.body.size"
    """Size of the response payload body in bytes."""


class NetworkAttributes:
    """Network attribute names."""

    TRANSPORT = network_attributes.NETWORK_TRANSPORT
    TYPE = network_attributes.NETWORK_TYPE
    PROTOCOL_NAME = network_attributes.NETWORK_PROTOCOL_NAME
    PROTOCOL_VERSION = network_attributes.NETWORK_PROTOCOL_VERSION
    LOCAL_ADDRESS = network_attributes.NETWORK_LOCAL_ADDRESS
    LOCAL_PORT = network_attributes.NETWORK_LOCAL_PORT
    PEER_ADDRESS = network_attributes.NETWORK_PEER_ADDRESS
    PEER_PORT = network_attributes.NETWORK_PEER_PORT


class ServerAttributes:
    """Server attribute names."""

    ADDRESS = server_attributes.SERVER_ADDRESS
    PORT = server_attributes.SERVER_PORT


class ClientAttributes:
    """Client attribute names."""

    ADDRESS = client_attributes.CLIENT_ADDRESS
    PORT = client_attributes.CLIENT_PORT


class URLAttributes:
    """URL attribute names."""

    SCHEME = url_attributes.URL_SCHEME
    PATH = url_attributes.URL_PATH
    QUERY = url_attributes.URL_QUERY


class ErrorAttributes:
    """Error attribute names."""

    TYPE = error_attributes.ERROR_TYPE
    """Class of error the operation ended with."""


class UserAgentAttributes:
    """User agent attribute names."""

    ORIGINAL = user_agent_attributes.USER_AGENT_ORIGINAL


class HTTPMetrics:
    """HTTP metric names."""

    SERVER_REQUEST_DURATION = http_metrics.HTTP_SERVER_REQUEST_DURATION
    CLIENT_REQUEST_DURATION = http_metrics.HTTP_CLIENT_REQUEST_DURATION
    SERVER_REQUEST_BODY_SIZE = "http.server.request.body.size"
    SERVER_RESPONSE_BODY_SIZE = "http.server.response.body.size"
    CLIENT_REQUEST_BODY_SIZE = "http.client.request.body.size"
    CLIENT_RESPONSE_BODY_SIZE = "http.client.response.body.size"


# Low-cardinality keys allowed on HTTP metrics.
HTTP_METRICS_KEYS: frozenset[str] = frozenset({
    HTTPAttributes.REQUEST_METHOD,
    URLAttributes.SCHEME,
    ErrorAttributes.TYPE,
    HTTPAttributes.RESPONSE_STATUS_CODE,
    HTTPAttributes.ROUTE,
    NetworkAttributes.PROTOCOL_NAME,
    NetworkAttributes.PROTOCOL_VERSION,
    ServerAttributes.ADDRESS,
    ServerAttributes.PORT,
})
