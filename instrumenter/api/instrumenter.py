"""Instrumenter core: the start/end lifecycle around an instrumented operation.

An instrumenter is built once (see :mod:`instrumenter.api.builder`) and then
shared by every operation of one instrumentation. It never stores
per-operation state on itself; everything an operation needs between
``start`` and ``end`` travels in the carrier returned by ``start``.

Lifecycle:
    start(carrier, request):
        context customizers -> span name/kind -> open span ->
        attribute extractors (on_start) -> listeners (on_before_start, on_before_end)
    end(carrier, invocation):
        attribute extractors (on_end) -> span status -> close span ->
        listeners (on_after_start, on_after_end)

A failing customizer, extractor or listener is logged and skipped. It never
reaches the caller.

Example:
    >>> instrumenter = (
    ...     InstrumenterBuilder()
    ...     .set_span_name_extractor(ConstantSpanNameExtractor("job"))
    ...     .set_span_kind_extractor(AlwaysInternalExtractor())
    ...     .build_instrumenter()
    ... )
    >>> carrier = instrumenter.start(new_carrier(), request)
    >>> try:
    ...     response = run(request)
    ... except Exception as e:
    ...     instrumenter.end(carrier, Invocation(request, error=e))
    ...     raise
    >>> instrumenter.end(carrier, Invocation(request, response))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace import SpanKind, Tracer

from instrumenter.api.carrier import (
    OperationState,
    create_carrier_key,
    get_value,
    new_carrier,
    with_span,
    with_value,
)
from instrumenter.api.enabler import InstrumentEnabler
from instrumenter.api.extractor import (
    AttributesExtractor,
    SpanKindExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
)
from instrumenter.api.listener import ContextCustomizer, OperationListener
from instrumenter.api.propagation import extract_context, inject_context, resolve_propagator
from instrumenter.config import DEFAULT_SPAN_NAME
from instrumenter.types import Attribute, Carrier, TextMapCarrier, attributes_to_dict

__all__ = [
    "Invocation",
    "Instrumenter",
    "InternalInstrumenter",
    "PropagatingToDownstreamInstrumenter",
    "PropagatingFromUpstreamInstrumenter",
]

logger = logging.getLogger(__name__)

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")

CarrierGetter = Callable[[Any], TextMapCarrier]


@dataclass(frozen=True)
class Invocation(Generic[REQUEST, RESPONSE]):
    """What happened during one instrumented operation.

    Attributes:
        request: The request that was instrumented.
        response: The response, if the operation produced one.
        error: The exception raised by the operation, if any.
        start_time: Start timestamp in epoch nanoseconds, used by
            ``start_and_end``. None means "now".
        end_time: End timestamp in epoch nanoseconds. None means "now".
    """

    request: REQUEST
    response: RESPONSE | None = None
    error: BaseException | None = None
    start_time: int | None = None
    end_time: int | None = None


@runtime_checkable
class Instrumenter(Protocol[REQUEST, RESPONSE]):
    """Public surface shared by every instrumenter variant."""

    def should_start(self, carrier: Carrier | None, request: REQUEST) -> bool:
        """Decide whether the operation is instrumented at all."""
        ...

    def start(
        self,
        carrier: Carrier | None,
        request: REQUEST,
        *,
        start_time: int | None = None,
    ) -> Carrier:
        """Begin an operation; pass the returned carrier to :meth:`end`."""
        ...

    def end(self, carrier: Carrier, invocation: Invocation[REQUEST, RESPONSE]) -> None:
        """Finish an operation started with :meth:`start`."""
        ...

    def start_and_end(
        self,
        carrier: Carrier | None,
        invocation: Invocation[REQUEST, RESPONSE],
    ) -> None:
        """Instrument an operation that has already completed."""
        ...


# =============================================================================
# Core
# =============================================================================


class InternalInstrumenter(Generic[REQUEST, RESPONSE]):
    """Instrumenter that composes extractors and listeners around a span.

    Instances are immutable after construction and safe to share across
    threads. Use :class:`~instrumenter.api.builder.InstrumenterBuilder` to
    create them.
    """

    def __init__(
        self,
        *,
        tracer: Tracer,
        enabler: InstrumentEnabler,
        span_name_extractor: SpanNameExtractor[REQUEST],
        span_kind_extractor: SpanKindExtractor[REQUEST],
        span_status_extractor: SpanStatusExtractor[REQUEST, RESPONSE],
        attributes_extractors: Sequence[AttributesExtractor[REQUEST, RESPONSE]] = (),
        operation_listeners: Sequence[OperationListener] = (),
        context_customizers: Sequence[ContextCustomizer[REQUEST]] = (),
        default_span_name: str = DEFAULT_SPAN_NAME,
        scope_name: str = "",
    ) -> None:
        """Initialize InternalInstrumenter.

        Args:
            tracer: Tracer spans are opened with.
            enabler: Gate consulted once per ``start``.
            span_name_extractor: Derives the span name.
            span_kind_extractor: Derives the span kind.
            span_status_extractor: Sets the final span status.
            attributes_extractors: Extractors, run in order.
            operation_listeners: Listeners, run in order.
            context_customizers: Customizers, run in order.
            default_span_name: Name used when the name extractor fails.
            scope_name: Instrumentation scope name, used in log messages.
        """
        self._tracer = tracer
        self._enabler = enabler
        self._span_name_extractor = span_name_extractor
        self._span_kind_extractor = span_kind_extractor
        self._span_status_extractor = span_status_extractor
        self._attributes_extractors = tuple(attributes_extractors)
        self._operation_listeners = tuple(operation_listeners)
        self._context_customizers = tuple(context_customizers)
        self._default_span_name = default_span_name
        self._scope_name = scope_name
        self._state_key = create_carrier_key(f"instrumenter-operation-{scope_name or 'default'}")

    @property
    def tracer(self) -> Tracer:
        return self._tracer

    @property
    def scope_name(self) -> str:
        return self._scope_name

    @property
    def default_span_name(self) -> str:
        return self._default_span_name

    @property
    def attributes_extractors(self) -> tuple[AttributesExtractor[REQUEST, RESPONSE], ...]:
        return self._attributes_extractors

    @property
    def operation_listeners(self) -> tuple[OperationListener, ...]:
        return self._operation_listeners

    @property
    def context_customizers(self) -> tuple[ContextCustomizer[REQUEST], ...]:
        return self._context_customizers

    def operation_state(self, carrier: Carrier | None) -> OperationState | None:
        """Return the state ``start`` stored in ``carrier``, or None."""
        return get_value(carrier, self._state_key)

    def should_start(self, carrier: Carrier | None, request: REQUEST) -> bool:
        try:
            return bool(self._enabler.enable())
        except Exception:
            logger.warning(
                "Instrument enabler %s failed, skipping instrumentation (scope=%s)",
                type(self._enabler).__name__,
                self._scope_name,
                exc_info=True,
            )
            return False

    def start(
        self,
        carrier: Carrier | None,
        request: REQUEST,
        *,
        start_time: int | None = None,
    ) -> Carrier:
        """Begin an instrumented operation.

        Args:
            carrier: Parent carrier. None starts from an empty carrier.
            request: The request being instrumented.
            start_time: Start timestamp in epoch nanoseconds. Defaults to now.

        Returns:
            The carrier to pass to :meth:`end`. When instrumentation is
            disabled this is the input carrier without any state of this
            instrumenter, so the matching ``end`` does nothing.
        """
        if carrier is None:
            carrier = new_carrier()
        if not self.should_start(carrier, request):
            return self.detach(carrier)
        return self.start_operation(carrier, request, start_time=start_time)

    def detach(self, carrier: Carrier) -> Carrier:
        """Return ``carrier`` without the operation state of this instrumenter.

        A carrier holding no such state is returned as is.
        """
        if self.operation_state(carrier) is None:
            return carrier
        return with_value(carrier, self._state_key, None)

    def start_operation(
        self,
        carrier: Carrier,
        request: REQUEST,
        *,
        start_time: int | None = None,
    ) -> Carrier:
        """Open the span and run the start pipeline without consulting the gate.

        For wrappers that have already called :meth:`should_start` and
        prepared the carrier themselves.
        """
        if start_time is None:
            start_time = time.time_ns()

        for customizer in self._context_customizers:
            carrier = self._customize(customizer, carrier, request)

        span = self._tracer.start_span(
            self._extract_span_name(request),
            context=carrier,
            kind=self._extract_span_kind(request),
            start_time=start_time,
        )
        carrier = with_span(carrier, span)

        attributes: list[Attribute] = []
        for extractor in self._attributes_extractors:
            attributes, carrier = self._extract_on_start(extractor, carrier, attributes, request)
        if attributes:
            span.set_attributes(attributes_to_dict(attributes))

        for listener in self._operation_listeners:
            carrier = self._notify(listener, "on_before_start", carrier, carrier, start_time)
        for listener in self._operation_listeners:
            carrier = self._notify(
                listener, "on_before_end", carrier, carrier, list(attributes), start_time
            )

        return with_value(
            carrier,
            self._state_key,
            OperationState(span=span, start_time=start_time, start_attributes=tuple(attributes)),
        )

    def end(self, carrier: Carrier, invocation: Invocation[REQUEST, RESPONSE]) -> None:
        """Finish an instrumented operation.

        A carrier that was not returned by :meth:`start` of this instrumenter,
        or was returned while instrumentation was disabled, makes this a no-op.

        Args:
            carrier: Carrier returned by :meth:`start`.
            invocation: Outcome of the operation.
        """
        state = self.operation_state(carrier)
        if state is None:
            logger.debug("No started operation in carrier, skipping end (scope=%s)", self._scope_name)
            return
        if not state.claim_end():
            logger.debug("Operation already ended, skipping end (scope=%s)", self._scope_name)
            return
        end_time = invocation.end_time if invocation.end_time is not None else time.time_ns()
        span = state.span

        attributes: list[Attribute] = []
        current = carrier
        for extractor in self._attributes_extractors:
            attributes, current = self._extract_on_end(extractor, current, attributes, invocation)

        try:
            self._span_status_extractor.extract(
                span, invocation.request, invocation.response, invocation.error
            )
        except Exception:
            logger.warning(
                "Span status extractor %s failed (scope=%s)",
                type(self._span_status_extractor).__name__,
                self._scope_name,
                exc_info=True,
            )

        if attributes:
            span.set_attributes(attributes_to_dict(attributes))
        span.end(end_time=end_time)

        for listener in self._operation_listeners:
            self._notify(listener, "on_after_start", None, carrier, end_time)
        merged = [*state.start_attributes, *attributes]
        for listener in self._operation_listeners:
            self._notify(listener, "on_after_end", None, current, list(merged), end_time)

    def start_and_end(
        self,
        carrier: Carrier | None,
        invocation: Invocation[REQUEST, RESPONSE],
    ) -> None:
        """Instrument an already completed operation using its recorded timestamps."""
        started = self.start(carrier, invocation.request, start_time=invocation.start_time)
        self.end(started, invocation)

    # -------------------------------------------------------------------------
    # Contained plug-in calls
    # -------------------------------------------------------------------------

    def _extract_span_name(self, request: REQUEST) -> str:
        try:
            name = self._span_name_extractor.extract(request)
        except Exception:
            logger.warning(
                "Span name extractor %s failed, using %r (scope=%s)",
                type(self._span_name_extractor).__name__,
                self._default_span_name,
                self._scope_name,
                exc_info=True,
            )
            return self._default_span_name
        return name or self._default_span_name

    def _extract_span_kind(self, request: REQUEST) -> SpanKind:
        try:
            kind = self._span_kind_extractor.extract(request)
        except Exception:
            logger.warning(
                "Span kind extractor %s failed, using INTERNAL (scope=%s)",
                type(self._span_kind_extractor).__name__,
                self._scope_name,
                exc_info=True,
            )
            return SpanKind.INTERNAL
        return kind if isinstance(kind, SpanKind) else SpanKind.INTERNAL

    def _customize(
        self,
        customizer: ContextCustomizer[REQUEST],
        carrier: Carrier,
        request: REQUEST,
    ) -> Carrier:
        try:
            customized = customizer.on_start(carrier, request, [])
        except Exception:
            logger.warning(
                "Context customizer %s failed (scope=%s)",
                type(customizer).__name__,
                self._scope_name,
                exc_info=True,
            )
            return carrier
        return customized if isinstance(customized, Carrier) else carrier

    def _extract_on_start(
        self,
        extractor: AttributesExtractor[REQUEST, RESPONSE],
        carrier: Carrier,
        attributes: list[Attribute],
        request: REQUEST,
    ) -> tuple[list[Attribute], Carrier]:
        return self._run_extractor(
            extractor, "on_start", carrier, attributes, carrier, attributes, request
        )

    def _extract_on_end(
        self,
        extractor: AttributesExtractor[REQUEST, RESPONSE],
        carrier: Carrier,
        attributes: list[Attribute],
        invocation: Invocation[REQUEST, RESPONSE],
    ) -> tuple[list[Attribute], Carrier]:
        return self._run_extractor(
            extractor,
            "on_end",
            carrier,
            attributes,
            carrier,
            attributes,
            invocation.request,
            invocation.response,
            invocation.error,
        )

    def _run_extractor(
        self,
        extractor: AttributesExtractor[REQUEST, RESPONSE],
        hook: str,
        carrier: Carrier,
        attributes: list[Attribute],
        *args: Any,
    ) -> tuple[list[Attribute], Carrier]:
        mark = len(attributes)
        try:
            extended, derived = getattr(extractor, hook)(*args)
            if not isinstance(extended, list):
                raise TypeError(
                    f"{hook} returned {type(extended).__name__} instead of an attribute list"
                )
        except Exception:
            logger.warning(
                "Attributes extractor %s failed in %s (scope=%s)",
                type(extractor).__name__,
                hook,
                self._scope_name,
                exc_info=True,
            )
            del attributes[mark:]
            return attributes, carrier
        return extended, derived if isinstance(derived, Carrier) else carrier

    def _notify(
        self,
        listener: OperationListener,
        hook: str,
        fallback: Carrier | None,
        *args: Any,
    ) -> Any:
        try:
            result = getattr(listener, hook)(*args)
        except Exception:
            logger.warning(
                "Operation listener %s failed in %s (scope=%s)",
                type(listener).__name__,
                hook,
                self._scope_name,
                exc_info=True,
            )
            return fallback
        return result if isinstance(result, Carrier) else fallback


# =============================================================================
# Propagating Variants
# =============================================================================


class PropagatingToDownstreamInstrumenter(Generic[REQUEST, RESPONSE]):
    """Instrumenter that injects the new span's context into outgoing headers.

    Used on the calling side of a call: HTTP clients, RPC clients, message
    producers.
    """

    def __init__(
        self,
        base: InternalInstrumenter[REQUEST, RESPONSE],
        carrier_getter: CarrierGetter | None,
        propagator: TextMapPropagator | None = None,
    ) -> None:
        """Initialize PropagatingToDownstreamInstrumenter.

        Args:
            base: Instrumenter doing the actual work.
            carrier_getter: Returns the mutable outgoing header mapping of a
                request. None disables injection.
            propagator: Propagator to inject with. None uses the global one.
        """
        self._base = base
        self._carrier_getter = carrier_getter
        self._propagator = propagator

    @property
    def base(self) -> InternalInstrumenter[REQUEST, RESPONSE]:
        return self._base

    def should_start(self, carrier: Carrier | None, request: REQUEST) -> bool:
        return self._base.should_start(carrier, request)

    def start(
        self,
        carrier: Carrier | None,
        request: REQUEST,
        *,
        start_time: int | None = None,
    ) -> Carrier:
        started = self._base.start(carrier, request, start_time=start_time)
        if self._carrier_getter is not None:
            try:
                inject_context(
                    resolve_propagator(self._propagator), self._carrier_getter(request), started
                )
            except Exception:
                logger.warning(
                    "Failed to inject trace context (scope=%s)",
                    self._base.scope_name,
                    exc_info=True,
                )
        return started

    def end(self, carrier: Carrier, invocation: Invocation[REQUEST, RESPONSE]) -> None:
        self._base.end(carrier, invocation)

    def start_and_end(
        self,
        carrier: Carrier | None,
        invocation: Invocation[REQUEST, RESPONSE],
    ) -> None:
        started = self.start(carrier, invocation.request, start_time=invocation.start_time)
        self._base.end(started, invocation)


class PropagatingFromUpstreamInstrumenter(Generic[REQUEST, RESPONSE]):
    """Instrumenter that parents the new span on context from incoming headers.

    Used on the receiving side of a call: HTTP servers, RPC servers, message
    consumers. Missing or malformed headers leave the carrier as it was, so
    the span is parented on whatever the carrier already holds, or becomes a
    root span.
    """

    def __init__(
        self,
        base: InternalInstrumenter[REQUEST, RESPONSE],
        carrier_getter: CarrierGetter | None,
        propagator: TextMapPropagator | None = None,
    ) -> None:
        """Initialize PropagatingFromUpstreamInstrumenter.

        Args:
            base: Instrumenter doing the actual work.
            carrier_getter: Returns the incoming header mapping of a request.
                None disables extraction.
            propagator: Propagator to extract with. None uses the global one.
        """
        self._base = base
        self._carrier_getter = carrier_getter
        self._propagator = propagator

    @property
    def base(self) -> InternalInstrumenter[REQUEST, RESPONSE]:
        return self._base

    def should_start(self, carrier: Carrier | None, request: REQUEST) -> bool:
        return self._base.should_start(carrier, request)

    def start(
        self,
        carrier: Carrier | None,
        request: REQUEST,
        *,
        start_time: int | None = None,
    ) -> Carrier:
        if carrier is None:
            carrier = new_carrier()
        if not self._base.should_start(carrier, request):
            return self._base.detach(carrier)
        if self._carrier_getter is not None:
            try:
                carrier = extract_context(
                    resolve_propagator(self._propagator), self._carrier_getter(request), carrier
                )
            except Exception:
                logger.warning(
                    "Failed to extract trace context (scope=%s)",
                    self._base.scope_name,
                    exc_info=True,
                )
        return self._base.start_operation(carrier, request, start_time=start_time)

    def end(self, carrier: Carrier, invocation: Invocation[REQUEST, RESPONSE]) -> None:
        self._base.end(carrier, invocation)

    def start_and_end(
        self,
        carrier: Carrier | None,
        invocation: Invocation[REQUEST, RESPONSE],
    ) -> None:
        started = self.start(carrier, invocation.request, start_time=invocation.start_time)
        self._base.end(started, invocation)
