"""Attribute extractors for network, address and URL attributes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from instrumenter.semconv.attributes import (
    ClientAttributes,
    NetworkAttributes,
    ServerAttributes,
    URLAttributes,
)
from instrumenter.semconv.net.getters import (
    ClientAttributesGetter,
    NetworkAttrsGetter,
    ServerAttributesGetter,
    URLAttrsGetter,
)
from instrumenter.types import Attribute, Carrier

__all__ = [
    # Address resolution
    "AddressAndPort",
    "AddressAndPortExtractor",
    "NoopAddressAndPortExtractor",
    "ClientAddressAndPortExtractor",
    "ServerAddressAndPortExtractor",
    # Attribute extractors
    "ClientAttributesExtractor",
    "ServerAttributesExtractor",
    "NetworkAttrsExtractor",
    "URLAttrsExtractor",
]

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


# =============================================================================
# Address Resolution
# =============================================================================


@dataclass(frozen=True)
class AddressAndPort:
    """A network address and port. Empty address and port 0 mean unknown."""

    address: str = ""
    port: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.address and not self.port


class AddressAndPortExtractor(Protocol[REQUEST]):
    """Resolves the address and port of one side of a call."""

    def extract(self, request: REQUEST) -> AddressAndPort: ...


class NoopAddressAndPortExtractor:
    """Resolver that never knows the address."""

    def extract(self, request: Any) -> AddressAndPort:
        return AddressAndPort()


class ClientAddressAndPortExtractor(Generic[REQUEST]):
    """Resolves the client address from a getter, with a fallback resolver."""

    def __init__(
        self,
        getter: ClientAttributesGetter[REQUEST],
        fallback: AddressAndPortExtractor[REQUEST] | None = None,
    ) -> None:
        self._getter = getter
        self._fallback = fallback

    def extract(self, request: REQUEST) -> AddressAndPort:
        resolved = AddressAndPort(
            self._getter.get_client_address(request) or "",
            self._getter.get_client_port(request) or 0,
        )
        if resolved.is_empty and self._fallback is not None:
            return self._fallback.extract(request)
        return resolved


class ServerAddressAndPortExtractor(Generic[REQUEST]):
    """Resolves the server address from a getter, with a fallback resolver."""

    def __init__(
        self,
        getter: ServerAttributesGetter[REQUEST],
        fallback: AddressAndPortExtractor[REQUEST] | None = None,
    ) -> None:
        self._getter = getter
        self._fallback = fallback

    def extract(self, request: REQUEST) -> AddressAndPort:
        resolved = AddressAndPort(
            self._getter.get_server_address(request) or "",
            self._getter.get_server_port(request) or 0,
        )
        if resolved.is_empty and self._fallback is not None:
            return self._fallback.extract(request)
        return resolved


# =============================================================================
# Attribute Extractors
# =============================================================================


class ClientAttributesExtractor(Generic[REQUEST, RESPONSE]):
    """Appends ``client.address`` and ``client.port`` at start.

    The port is only recorded together with a known address.
    """

    def __init__(
        self,
        getter: ClientAttributesGetter[REQUEST],
        *,
        capture_port: bool = True,
        fallback: AddressAndPortExtractor[REQUEST] | None = None,
    ) -> None:
        """Initialize ClientAttributesExtractor.

        Args:
            getter: Client address getter.
            capture_port: Whether to record ``client.port``.
            fallback: Resolver used when the getter knows nothing.
        """
        self._resolver = ClientAddressAndPortExtractor(
            getter, fallback if fallback is not None else NoopAddressAndPortExtractor()
        )
        self._capture_port = capture_port

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        resolved = self._resolver.extract(request)
        if resolved.address:
            attributes.append(Attribute(ClientAttributes.ADDRESS, resolved.address))
            if self._capture_port and resolved.port:
                attributes.append(Attribute(ClientAttributes.PORT, resolved.port))
        return attributes, carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        return attributes, carrier


class ServerAttributesExtractor(Generic[REQUEST, RESPONSE]):
    """Appends ``server.address`` and ``server.port`` at start."""

    def __init__(
        self,
        getter: ServerAttributesGetter[REQUEST],
        *,
        fallback: AddressAndPortExtractor[REQUEST] | None = None,
    ) -> None:
        self._resolver = ServerAddressAndPortExtractor(
            getter, fallback if fallback is not None else NoopAddressAndPortExtractor()
        )

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        resolved = self._resolver.extract(request)
        if resolved.address:
            attributes.append(Attribute(ServerAttributes.ADDRESS, resolved.address))
            if resolved.port:
                attributes.append(Attribute(ServerAttributes.PORT, resolved.port))
        return attributes, carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        return attributes, carrier


class NetworkAttrsExtractor(Generic[REQUEST, RESPONSE]):
    """Appends transport, protocol and socket attributes at end.

    Protocol values are lower-cased. Peer address and port are always
    recorded when known.
    """

    def __init__(
        self,
        getter: NetworkAttrsGetter[REQUEST, RESPONSE],
        *,
        capture_protocol_attributes: bool = True,
        capture_local_socket_attributes: bool = True,
    ) -> None:
        """Initialize NetworkAttrsExtractor.

        Args:
            getter: Network attribute getter.
            capture_protocol_attributes: Record transport, type and protocol.
            capture_local_socket_attributes: Record local address and port.
        """
        self._getter = getter
        self._capture_protocol_attributes = capture_protocol_attributes
        self._capture_local_socket_attributes = capture_local_socket_attributes

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        return attributes, carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        getter = self._getter
        if self._capture_protocol_attributes:
            attributes.extend([
                Attribute(
                    NetworkAttributes.TRANSPORT,
                    (getter.get_network_transport(request, response) or "").lower(),
                ),
                Attribute(
                    NetworkAttributes.TYPE,
                    (getter.get_network_type(request, response) or "").lower(),
                ),
                Attribute(
                    NetworkAttributes.PROTOCOL_NAME,
                    (getter.get_network_protocol_name(request, response) or "").lower(),
                ),
                Attribute(
                    NetworkAttributes.PROTOCOL_VERSION,
                    (getter.get_network_protocol_version(request, response) or "").lower(),
                ),
            ])
        if self._capture_local_socket_attributes:
            local_address = getter.get_network_local_inet_address(request, response)
            if local_address:
                attributes.append(Attribute(NetworkAttributes.LOCAL_ADDRESS, local_address))
            local_port = getter.get_network_local_port(request, response)
            if local_port:
                attributes.append(Attribute(NetworkAttributes.LOCAL_PORT, local_port))
        peer_address = getter.get_network_peer_inet_address(request, response)
        if peer_address:
            attributes.append(Attribute(NetworkAttributes.PEER_ADDRESS, peer_address))
        peer_port = getter.get_network_peer_port(request, response)
        if peer_port:
            attributes.append(Attribute(NetworkAttributes.PEER_PORT, peer_port))
        return attributes, carrier


class URLAttrsExtractor(Generic[REQUEST, RESPONSE]):
    """Appends ``url.scheme``, ``url.path`` and ``url.query`` at start."""

    def __init__(self, getter: URLAttrsGetter[REQUEST]) -> None:
        self._getter = getter

    def on_start(
        self, carrier: Carrier, attributes: list[Attribute], request: REQUEST
    ) -> tuple[list[Attribute], Carrier]:
        attributes.extend([
            Attribute(URLAttributes.SCHEME, self._getter.get_url_scheme(request)),
            Attribute(URLAttributes.PATH, self._getter.get_url_path(request)),
            Attribute(URLAttributes.QUERY, self._getter.get_url_query(request)),
        ])
        return attributes, carrier

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        return attributes, carrier
