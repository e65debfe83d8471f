"""Cross-process trace-context propagation helpers.

The propagating instrumenters move trace context between a carrier and a
textual header mapping (HTTP headers, RPC metadata). This module builds the
propagators they use and wraps the inject/extract calls with the error type
of this package.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from opentelemetry.propagate import get_global_textmap
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator

from instrumenter.exceptions import PropagationError
from instrumenter.types import Carrier, TextMapCarrier

__all__ = [
    "create_propagator",
    "resolve_propagator",
    "inject_context",
    "extract_context",
]

logger = logging.getLogger(__name__)


def _get_propagator(name: str) -> TextMapPropagator | None:
    """Get a propagator by name.

    Args:
        name: Propagator name (tracecontext, baggage, b3, b3multi, jaeger).

    Returns:
        Propagator instance or None if not available.
    """
    if name == "tracecontext":
        from opentelemetry.trace.propagation.tracecontext import (
            TraceContextTextMapPropagator,
        )
        return TraceContextTextMapPropagator()
    if name == "baggage":
        from opentelemetry.baggage.propagation import W3CBaggagePropagator
        return W3CBaggagePropagator()
    if name in ("b3", "b3multi"):
        try:
            from opentelemetry.propagators.b3 import B3MultiFormat, B3SingleFormat
        except ImportError:
            logger.debug("B3 propagator not installed")
            return None
        return B3SingleFormat() if name == "b3" else B3MultiFormat()
    if name == "jaeger":
        try:
            from opentelemetry.propagators.jaeger import JaegerPropagator
        except ImportError:
            logger.debug("Jaeger propagator not installed")
            return None
        return JaegerPropagator()
    logger.warning("Unknown propagator: %s", name)
    return None


def create_propagator(names: Iterable[str] = ("tracecontext", "baggage")) -> CompositePropagator:
    """Create a composite propagator from propagator names.

    Unknown names and optional propagators whose package is missing are
    skipped.

    Args:
        names: Propagator names in the order they should run.

    Returns:
        Composite propagator wrapping every available propagator.
    """
    propagators = []
    for name in names:
        propagator = _get_propagator(name.strip().lower())
        if propagator is not None:
            propagators.append(propagator)
    return CompositePropagator(propagators)


def resolve_propagator(propagator: TextMapPropagator | None) -> TextMapPropagator:
    """Return ``propagator``, or the globally configured one when None."""
    return propagator if propagator is not None else get_global_textmap()


def inject_context(
    propagator: TextMapPropagator,
    headers: TextMapCarrier,
    carrier: Carrier,
) -> None:
    """Inject the trace context of ``carrier`` into a header mapping.

    Args:
        propagator: Propagator writing the headers.
        headers: Mutable header mapping to write into.
        carrier: Carrier whose active span and baggage are propagated.

    Raises:
        PropagationError: If the propagator fails.
    """
    try:
        propagator.inject(headers, context=carrier)
    except Exception as e:
        raise PropagationError(
            "Failed to inject context into carrier",
            operation="inject",
            propagator=type(propagator).__name__,
            cause=e,
        ) from e


def extract_context(
    propagator: TextMapPropagator,
    headers: Any,
    carrier: Carrier,
) -> Carrier:
    """Extract an inbound trace context from a header mapping onto ``carrier``.

    A header mapping without valid trace headers yields ``carrier`` as it
    was; on a fresh carrier the next span becomes a root span.

    Args:
        propagator: Propagator reading the headers.
        headers: Header mapping to read from.
        carrier: Carrier to derive the result from.

    Returns:
        A new carrier carrying the remote span context, if any.

    Raises:
        PropagationError: If the propagator fails.
    """
    try:
        return propagator.extract(headers, context=carrier)
    except Exception as e:
        raise PropagationError(
            "Failed to extract context from carrier",
            operation="extract",
            propagator=type(propagator).__name__,
            cause=e,
        ) from e
