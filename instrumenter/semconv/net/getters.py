"""Getter contracts for network-level attributes.

Protocol bindings implement these to expose the addressing information of
their request/response types. Getters return ``""`` or ``0`` for unknown
values; extractors skip such values.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

__all__ = [
    "NetworkAttrsGetter",
    "ClientAttributesGetter",
    "ServerAttributesGetter",
    "URLAttrsGetter",
]

REQUEST = TypeVar("REQUEST", contravariant=True)
RESPONSE = TypeVar("RESPONSE", contravariant=True)


@runtime_checkable
class NetworkAttrsGetter(Protocol[REQUEST, RESPONSE]):
    """Transport, protocol and socket details of a call."""

    def get_network_type(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_transport(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_protocol_name(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_protocol_version(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_local_inet_address(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_local_port(self, request: REQUEST, response: RESPONSE | None) -> int: ...

    def get_network_peer_inet_address(self, request: REQUEST, response: RESPONSE | None) -> str: ...

    def get_network_peer_port(self, request: REQUEST, response: RESPONSE | None) -> int: ...


@runtime_checkable
class ClientAttributesGetter(Protocol[REQUEST]):
    """Address of the client side of a call."""

    def get_client_address(self, request: REQUEST) -> str: ...

    def get_client_port(self, request: REQUEST) -> int: ...


@runtime_checkable
class ServerAttributesGetter(Protocol[REQUEST]):
    """Address of the server side of a call."""

    def get_server_address(self, request: REQUEST) -> str: ...

    def get_server_port(self, request: REQUEST) -> int: ...


@runtime_checkable
class URLAttrsGetter(Protocol[REQUEST]):
    """URL components of a request."""

    def get_url_scheme(self, request: REQUEST) -> str: ...

    def get_url_path(self, request: REQUEST) -> str: ...

    def get_url_query(self, request: REQUEST) -> str: ...
