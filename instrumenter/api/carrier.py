"""Carrier helpers for the instrumenter engine.

A carrier is an OpenTelemetry ``Context``: an immutable mapping where every
write returns a new value. The engine threads it explicitly through ``start``
and ``end`` instead of relying on the implicit current context, so concurrent
operations never observe each other's state.

The :class:`ResendCounter` is the single mutable object a carrier may hold.
It is stored by reference, so every carrier derived from the one that
received it observes the same count.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span

from instrumenter.types import Attribute, Carrier

__all__ = [
    "ResendCounter",
    "OperationState",
    "new_carrier",
    "create_carrier_key",
    "with_value",
    "get_value",
    "with_span",
    "span_from_carrier",
]


def new_carrier() -> Carrier:
    """Create an empty carrier with no parent span."""
    return Context()


def create_carrier_key(name: str) -> str:
    """Create a process-unique key for storing values in a carrier.

    Args:
        name: Human-readable key prefix.

    Returns:
        A key that cannot collide with keys created elsewhere.
    """
    return otel_context.create_key(name)


def with_value(carrier: Carrier | None, key: str, value: Any) -> Carrier:
    """Return a new carrier holding ``value`` under ``key``.

    Args:
        carrier: Carrier to derive from. ``None`` starts from an empty carrier.
        key: Key created with :func:`create_carrier_key`.
        value: Value to store.

    Returns:
        A new carrier; the input carrier is unchanged.
    """
    return otel_context.set_value(key, value, carrier if carrier is not None else Context())


def get_value(carrier: Carrier | None, key: str) -> Any:
    """Read a value from a carrier, returning None when absent."""
    if carrier is None:
        return None
    return otel_context.get_value(key, carrier)


def with_span(carrier: Carrier | None, span: Span) -> Carrier:
    """Return a new carrier whose active span is ``span``."""
    return trace.set_span_in_context(span, carrier if carrier is not None else Context())


def span_from_carrier(carrier: Carrier | None) -> Span:
    """Return the active span of a carrier, or the invalid span when none is set."""
    if carrier is None:
        return trace.INVALID_SPAN
    return trace.get_current_span(carrier)


class ResendCounter:
    """Thread-safe counter shared by all physical attempts of one logical call.

    Example:
        counter = ResendCounter()
        counter.increment()  # 1
    """

    def __init__(self, initial: int = 0) -> None:
        """Initialize ResendCounter.

        Args:
            initial: Starting value.
        """
        self._value = initial
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        """Current value."""
        with self._lock:
            return self._value

    def increment(self) -> int:
        """Atomically add one and return the new value."""
        with self._lock:
            self._value += 1
            return self._value

    def __repr__(self) -> str:
        return f"ResendCounter(value={self.value})"


@dataclass(frozen=True, slots=True)
class OperationState:
    """Per-operation state an instrumenter stores in the carrier at start.

    Attributes:
        span: Span opened by ``start``.
        start_time: Start timestamp in epoch nanoseconds.
        start_attributes: Attributes collected by the start extractors.
    """

    span: Span
    start_time: int
    start_attributes: tuple[Attribute, ...]
    _ended: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def claim_end(self) -> bool:
        """Return True exactly once: for the first ``end`` of this operation."""
        return self._ended.acquire(blocking=False)

    @property
    def is_ended(self) -> bool:
        return self._ended.locked()
