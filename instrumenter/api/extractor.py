"""Extractor contracts consumed by the instrumenter engine.

Protocol bindings (HTTP, RPC, messaging) implement these protocols to feed
the engine with span names, span kinds, statuses and attributes. All of them
receive the opaque request/response values unchanged.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from instrumenter.types import Attribute, Carrier

__all__ = [
    # Protocols
    "AttributesExtractor",
    "SpanNameExtractor",
    "SpanKindExtractor",
    "SpanStatusExtractor",
    "SpanKeyProvider",
    # Stock implementations
    "AlwaysInternalExtractor",
    "AlwaysClientExtractor",
    "AlwaysServerExtractor",
    "AlwaysProducerExtractor",
    "AlwaysConsumerExtractor",
    "ConstantSpanNameExtractor",
    "DefaultSpanStatusExtractor",
]

REQUEST = TypeVar("REQUEST", contravariant=True)
RESPONSE = TypeVar("RESPONSE", contravariant=True)


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class AttributesExtractor(Protocol[REQUEST, RESPONSE]):
    """Appends attributes at the start and at the end of an operation.

    Both hooks receive the attribute list accumulated so far and return it,
    possibly extended, together with a carrier. Extractors may derive a new
    carrier (e.g. to stash a resend counter) but must never mutate the one
    they were given.
    """

    def on_start(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
    ) -> tuple[list[Attribute], Carrier]:
        """Append request-derived attributes."""
        ...

    def on_end(
        self,
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> tuple[list[Attribute], Carrier]:
        """Append response- or error-derived attributes."""
        ...


@runtime_checkable
class SpanNameExtractor(Protocol[REQUEST]):
    """Derives a display name for the span."""

    def extract(self, request: REQUEST) -> str:
        ...


@runtime_checkable
class SpanKindExtractor(Protocol[REQUEST]):
    """Classifies the call direction of the operation."""

    def extract(self, request: REQUEST) -> SpanKind:
        ...


@runtime_checkable
class SpanStatusExtractor(Protocol[REQUEST, RESPONSE]):
    """Sets the final status of a span, optionally recording the error."""

    def extract(
        self,
        span: Span,
        request: REQUEST,
        response: RESPONSE | None,
        error: BaseException | None,
    ) -> None:
        ...


@runtime_checkable
class SpanKeyProvider(Protocol):
    """Identifies the kind of span an extractor produces (e.g. HTTP client)."""

    def get_span_key(self) -> str:
        ...


# =============================================================================
# Span Kind Extractors
# =============================================================================


class AlwaysInternalExtractor:
    """Span kind extractor that always returns INTERNAL."""

    def extract(self, request: Any) -> SpanKind:
        return SpanKind.INTERNAL


class AlwaysClientExtractor:
    """Span kind extractor that always returns CLIENT."""

    def extract(self, request: Any) -> SpanKind:
        return SpanKind.CLIENT


class AlwaysServerExtractor:
    """Span kind extractor that always returns SERVER."""

    def extract(self, request: Any) -> SpanKind:
        return SpanKind.SERVER


class AlwaysProducerExtractor:
    """Span kind extractor that always returns PRODUCER."""

    def extract(self, request: Any) -> SpanKind:
        return SpanKind.PRODUCER


class AlwaysConsumerExtractor:
    """Span kind extractor that always returns CONSUMER."""

    def extract(self, request: Any) -> SpanKind:
        return SpanKind.CONSUMER


# =============================================================================
# Name and Status Extractors
# =============================================================================


class ConstantSpanNameExtractor:
    """Span name extractor returning a fixed name for every request."""

    def __init__(self, name: str) -> None:
        """Initialize ConstantSpanNameExtractor.

        Args:
            name: Span name to return.
        """
        self._name = name

    def extract(self, request: Any) -> str:
        return self._name


class DefaultSpanStatusExtractor:
    """Marks the span as failed when the operation raised.

    When ``error`` is set the exception is recorded on the span and the status
    becomes ERROR with the error message as description. Otherwise the status
    is left unchanged.
    """

    def extract(
        self,
        span: Span,
        request: Any,
        response: Any,
        error: BaseException | None,
    ) -> None:
        if error is None:
            return
        span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))
