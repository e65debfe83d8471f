"""Type definitions for the instrumenter engine.

This module defines the attribute value object, the carrier alias and the
small enums used throughout the engine and its semantic-convention plug-ins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from opentelemetry.context import Context

__all__ = [
    # Enums
    "OperationRole",
    # Value objects
    "Attribute",
    # Type aliases
    "AttributeValue",
    "Attributes",
    "Carrier",
    "TextMapCarrier",
    # Helpers
    "attributes_to_dict",
]


class OperationRole(Enum):
    """Role of the instrumented side of a call.

    Used to key metric handles in a metrics registry.
    """

    CLIENT = "client"
    """Outbound side of a call."""

    SERVER = "server"
    """Inbound side of a call."""


# Type aliases for attribute values
AttributeValue = str | int | float | bool | Sequence[str] | Sequence[int] | Sequence[float] | Sequence[bool]
"""Valid attribute value types per OpenTelemetry specification."""

Carrier = Context
"""Request-scoped, copy-on-write propagation value threaded through start/end."""

TextMapCarrier = dict[str, Any]
"""Carrier for cross-process propagation (typically headers or metadata)."""


@dataclass(frozen=True, slots=True)
class Attribute:
    """A single key-value attribute.

    Attributes accumulate in ordered lists; duplicate keys are allowed and
    preserved until they are handed to the backend.

    Attributes:
        key: Namespaced attribute key, e.g. ``http.request.method``.
        value: Attribute value.
    """

    key: str
    value: AttributeValue

    def as_tuple(self) -> tuple[str, AttributeValue]:
        """Return the attribute as a ``(key, value)`` pair."""
        return (self.key, self.value)


Attributes = list[Attribute]
"""Ordered, append-only attribute list."""


def attributes_to_dict(attributes: Iterable[Attribute]) -> dict[str, Any]:
    """Convert an attribute list to the mapping form the backend accepts.

    Later duplicates overwrite earlier ones.

    Args:
        attributes: Attributes to convert.

    Returns:
        Dictionary of attribute keys to values.
    """
    return {attribute.key: attribute.value for attribute in attributes}
