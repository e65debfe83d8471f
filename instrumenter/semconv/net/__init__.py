"""Network, address and URL attribute plug-ins."""

from instrumenter.semconv.net.extractors import (
    AddressAndPort,
    AddressAndPortExtractor,
    ClientAddressAndPortExtractor,
    ClientAttributesExtractor,
    NetworkAttrsExtractor,
    NoopAddressAndPortExtractor,
    ServerAddressAndPortExtractor,
    ServerAttributesExtractor,
    URLAttrsExtractor,
)
from instrumenter.semconv.net.getters import (
    ClientAttributesGetter,
    NetworkAttrsGetter,
    ServerAttributesGetter,
    URLAttrsGetter,
)

__all__ = [
    # Getters
    "ClientAttributesGetter",
    "NetworkAttrsGetter",
    "ServerAttributesGetter",
    "URLAttrsGetter",
    # Extractors
    "AddressAndPort",
    "AddressAndPortExtractor",
    "ClientAddressAndPortExtractor",
    "ClientAttributesExtractor",
    "NetworkAttrsExtractor",
    "NoopAddressAndPortExtractor",
    "ServerAddressAndPortExtractor",
    "ServerAttributesExtractor",
    "URLAttrsExtractor",
]
