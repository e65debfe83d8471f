"""Operation listener, context customizer and shadower contracts.

Operation listeners observe an operation independently of its span and are
the place where metrics are recorded. Their four hooks bracket the real work:

    on_before_start -> on_before_end -> (work) -> on_after_start -> on_after_end

Anything a listener needs to correlate between the two halves (start time,
start attributes) must ride inside the carrier returned by
``on_before_end``. Listeners are shared across concurrent operations and must
not keep per-operation state on ``self``.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol, TypeVar, runtime_checkable

from instrumenter.semconv.shadower import shadow
from instrumenter.types import Attribute, Carrier

__all__ = [
    "OperationListener",
    "ContextCustomizer",
    "AttrsShadower",
    "NoopAttrsShadower",
    "KeySetAttrsShadower",
]

REQUEST = TypeVar("REQUEST", contravariant=True)


@runtime_checkable
class OperationListener(Protocol):
    """Four-phase observer of an instrumented operation.

    Timestamps are epoch nanoseconds captured by the engine, not by the
    listener, so that durations reflect the start/end of the operation.
    """

    def on_before_start(self, carrier: Carrier, start_time: int) -> Carrier:
        """Called at start before the start attributes are handed over."""
        ...

    def on_before_end(
        self,
        carrier: Carrier,
        start_attributes: list[Attribute],
        start_time: int,
    ) -> Carrier:
        """Called at start with the start attributes; stash state in the returned carrier."""
        ...

    def on_after_start(self, carrier: Carrier, end_time: int) -> None:
        """Called at end before the merged attributes are handed over."""
        ...

    def on_after_end(
        self,
        carrier: Carrier,
        end_attributes: list[Attribute],
        end_time: int,
    ) -> None:
        """Called at end with start attributes followed by end attributes."""
        ...


@runtime_checkable
class ContextCustomizer(Protocol[REQUEST]):
    """Enriches the carrier before the span is opened (e.g. with baggage)."""

    def on_start(
        self,
        carrier: Carrier,
        request: REQUEST,
        start_attributes: list[Attribute],
    ) -> Carrier | None:
        ...


@runtime_checkable
class AttrsShadower(Protocol):
    """Partitions attributes into a metrics-safe prefix and a trace-only rest."""

    def shadow(self, attributes: list[Attribute]) -> tuple[int, list[Attribute]]:
        ...


class NoopAttrsShadower:
    """Shadower that treats every attribute as metrics-safe."""

    def shadow(self, attributes: list[Attribute]) -> tuple[int, list[Attribute]]:
        return len(attributes), attributes


class KeySetAttrsShadower:
    """Shadower backed by a fixed set of low-cardinality keys."""

    def __init__(self, keys: Collection[str]) -> None:
        """Initialize KeySetAttrsShadower.

        Args:
            keys: Attribute keys permitted to appear in metrics.
        """
        self._keys = frozenset(keys)

    @property
    def keys(self) -> frozenset[str]:
        """Keys permitted to appear in metrics."""
        return self._keys

    def shadow(self, attributes: list[Attribute]) -> tuple[int, list[Attribute]]:
        return shadow(attributes, self._keys)
