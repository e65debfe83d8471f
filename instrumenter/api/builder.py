"""Builder for instrumenters.

The builder is a configuration-time object: it collects the extractors,
listeners and customizers of one instrumentation and snapshots them into an
immutable instrumenter. Mutating the builder after a build never reaches
instrumenters built earlier.

Example:
    >>> instrumenter = (
    ...     InstrumenterBuilder()
    ...     .set_instrumentation_scope(InstrumentationScope("my.http.client", "1.0.0"))
    ...     .set_span_name_extractor(HTTPClientSpanNameExtractor(getter))
    ...     .set_span_kind_extractor(AlwaysClientExtractor())
    ...     .set_span_status_extractor(HTTPClientSpanStatusExtractor(getter))
    ...     .add_attributes_extractors(HTTPClientAttrsExtractor(getter, net_getter))
    ...     .add_operation_listeners(metric)
    ...     .build_propagating_to_downstream_instrumenter(lambda req: req.headers)
    ... )
"""

from __future__ import annotations

import logging
from typing import Generic, Self, TypeVar

from opentelemetry import trace
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace import Tracer

from instrumenter.api.enabler import (
    DefaultInstrumentEnabler,
    GateInstrumentEnabler,
    InstrumentationGate,
    InstrumentEnabler,
)
from instrumenter.api.extractor import (
    AttributesExtractor,
    DefaultSpanStatusExtractor,
    SpanKindExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
)
from instrumenter.api.instrumenter import (
    CarrierGetter,
    InternalInstrumenter,
    PropagatingFromUpstreamInstrumenter,
    PropagatingToDownstreamInstrumenter,
)
from instrumenter.api.listener import ContextCustomizer, OperationListener
from instrumenter.api.propagation import create_propagator
from instrumenter.config import DEFAULT_SPAN_NAME, InstrumentationScope, InstrumenterConfig
from instrumenter.exceptions import InstrumenterConfigurationError

__all__ = ["InstrumenterBuilder"]

logger = logging.getLogger(__name__)

REQUEST = TypeVar("REQUEST")
RESPONSE = TypeVar("RESPONSE")


class InstrumenterBuilder(Generic[REQUEST, RESPONSE]):
    """Chained configuration of an instrumenter.

    A fresh builder is always on, uses :class:`DefaultSpanStatusExtractor`
    and has no attribute extractors, listeners or customizers. A span name
    extractor and a span kind extractor must be set before building.
    """

    def __init__(self) -> None:
        """Initialize InstrumenterBuilder."""
        self.init()

    def init(self) -> Self:
        """Reset the builder to its initial state."""
        self._scope = InstrumentationScope()
        self._enabler: InstrumentEnabler = DefaultInstrumentEnabler()
        self._span_name_extractor: SpanNameExtractor[REQUEST] | None = None
        self._span_kind_extractor: SpanKindExtractor[REQUEST] | None = None
        self._span_status_extractor: SpanStatusExtractor[REQUEST, RESPONSE] = (
            DefaultSpanStatusExtractor()
        )
        self._attributes_extractors: list[AttributesExtractor[REQUEST, RESPONSE]] = []
        self._operation_listeners: list[OperationListener] = []
        self._context_customizers: list[ContextCustomizer[REQUEST]] = []
        self._default_span_name = DEFAULT_SPAN_NAME
        self._propagator: TextMapPropagator | None = None
        return self

    @property
    def scope(self) -> InstrumentationScope:
        return self._scope

    @property
    def propagator(self) -> TextMapPropagator | None:
        """Propagator used by the propagating builds when none is passed to them."""
        return self._propagator

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def set_instrumentation_scope(self, scope: InstrumentationScope) -> Self:
        self._scope = scope
        return self

    def set_instrument_enabler(self, enabler: InstrumentEnabler) -> Self:
        self._enabler = enabler
        return self

    def set_span_name_extractor(self, extractor: SpanNameExtractor[REQUEST]) -> Self:
        self._span_name_extractor = extractor
        return self

    def set_span_kind_extractor(self, extractor: SpanKindExtractor[REQUEST]) -> Self:
        self._span_kind_extractor = extractor
        return self

    def set_span_status_extractor(
        self, extractor: SpanStatusExtractor[REQUEST, RESPONSE]
    ) -> Self:
        self._span_status_extractor = extractor
        return self

    def set_default_span_name(self, name: str) -> Self:
        """Set the span name used when the name extractor fails or returns nothing."""
        if not name:
            raise InstrumenterConfigurationError(
                "Default span name must not be empty",
                config_key="default_span_name",
            )
        self._default_span_name = name
        return self

    def set_propagator(self, propagator: TextMapPropagator | None) -> Self:
        """Set the default propagator of the propagating builds. None means the global one."""
        self._propagator = propagator
        return self

    def add_attributes_extractors(
        self, *extractors: AttributesExtractor[REQUEST, RESPONSE]
    ) -> Self:
        self._attributes_extractors.extend(extractors)
        return self

    def add_operation_listeners(self, *listeners: OperationListener) -> Self:
        self._operation_listeners.extend(listeners)
        return self

    def add_context_customizers(self, *customizers: ContextCustomizer[REQUEST]) -> Self:
        self._context_customizers.extend(customizers)
        return self

    def build_from_config(
        self,
        config: InstrumenterConfig,
        instrumentation_name: str | None = None,
        gate: InstrumentationGate | None = None,
    ) -> Self:
        """Apply an :class:`InstrumenterConfig` to this builder.

        Sets the instrumentation scope, the default span name and a
        propagator built from ``config.propagators``. When an
        instrumentation name is given, the enabler becomes a
        :class:`GateInstrumentEnabler` for that name.

        Args:
            config: Configuration to apply.
            instrumentation_name: Short name used to look the instrumentation
                up in the gate, e.g. ``"nethttp"``.
            gate: Gate to consult. Defaults to a gate seeded from ``config``.

        Returns:
            This builder.
        """
        self.set_instrumentation_scope(config.scope)
        self.set_default_span_name(config.default_span_name)
        self.set_propagator(create_propagator(config.propagators))
        if instrumentation_name:
            self.set_instrument_enabler(
                GateInstrumentEnabler(
                    instrumentation_name,
                    gate if gate is not None else InstrumentationGate(config),
                )
            )
        return self

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def _resolve_tracer(self) -> Tracer:
        return trace.get_tracer(
            self._scope.name,
            self._scope.version,
            schema_url=self._scope.schema_url,
        )

    def _validate(self) -> None:
        if self._span_name_extractor is None:
            raise InstrumenterConfigurationError(
                "A span name extractor is required to build an instrumenter",
                config_key="span_name_extractor",
            )
        if self._span_kind_extractor is None:
            raise InstrumenterConfigurationError(
                "A span kind extractor is required to build an instrumenter",
                config_key="span_kind_extractor",
            )

    def build_instrumenter_with_tracer(
        self, tracer: Tracer
    ) -> InternalInstrumenter[REQUEST, RESPONSE]:
        """Build an instrumenter that opens spans with ``tracer``.

        Raises:
            InstrumenterConfigurationError: If the name or kind extractor is missing.
        """
        self._validate()
        instrumenter = InternalInstrumenter(
            tracer=tracer,
            enabler=self._enabler,
            span_name_extractor=self._span_name_extractor,
            span_kind_extractor=self._span_kind_extractor,
            span_status_extractor=self._span_status_extractor,
            attributes_extractors=tuple(self._attributes_extractors),
            operation_listeners=tuple(self._operation_listeners),
            context_customizers=tuple(self._context_customizers),
            default_span_name=self._default_span_name,
            scope_name=self._scope.name,
        )
        logger.debug(
            "Built instrumenter: scope=%s, extractors=%d, listeners=%d, customizers=%d",
            self._scope.name,
            len(self._attributes_extractors),
            len(self._operation_listeners),
            len(self._context_customizers),
        )
        return instrumenter

    def build_instrumenter(self) -> InternalInstrumenter[REQUEST, RESPONSE]:
        """Build an instrumenter using a tracer from the global tracer provider.

        Raises:
            InstrumenterConfigurationError: If the name or kind extractor is missing.
        """
        return self.build_instrumenter_with_tracer(self._resolve_tracer())

    def build_propagating_to_downstream_instrumenter(
        self,
        carrier_getter: CarrierGetter | None,
        propagator: TextMapPropagator | None = None,
    ) -> PropagatingToDownstreamInstrumenter[REQUEST, RESPONSE]:
        """Build an instrumenter that injects trace context into outgoing headers.

        Args:
            carrier_getter: Returns the mutable outgoing header mapping of a request.
            propagator: Propagator to use. None falls back to the builder's
                propagator, then to the global one.

        Raises:
            InstrumenterConfigurationError: If the name or kind extractor is missing.
        """
        return PropagatingToDownstreamInstrumenter(
            self.build_instrumenter(),
            carrier_getter,
            propagator if propagator is not None else self._propagator,
        )

    def build_propagating_from_upstream_instrumenter(
        self,
        carrier_getter: CarrierGetter | None,
        propagator: TextMapPropagator | None = None,
    ) -> PropagatingFromUpstreamInstrumenter[REQUEST, RESPONSE]:
        """Build an instrumenter that parents spans on context from incoming headers.

        Args:
            carrier_getter: Returns the incoming header mapping of a request.
            propagator: Propagator to use. None falls back to the builder's
                propagator, then to the global one.

        Raises:
            InstrumenterConfigurationError: If the name or kind extractor is missing.
        """
        return PropagatingFromUpstreamInstrumenter(
            self.build_instrumenter(),
            carrier_getter,
            propagator if propagator is not None else self._propagator,
        )
