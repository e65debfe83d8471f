"""Instrumenter engine API.

Contracts consumed by protocol bindings (extractors, listeners, customizers)
and the engine that composes them (instrumenters and their builder).
"""

from instrumenter.api.builder import InstrumenterBuilder
from instrumenter.api.carrier import (
    OperationState,
    ResendCounter,
    create_carrier_key,
    get_value,
    new_carrier,
    span_from_carrier,
    with_span,
    with_value,
)
from instrumenter.api.enabler import (
    DefaultInstrumentEnabler,
    GateInstrumentEnabler,
    InstrumentationGate,
    InstrumentEnabler,
    get_instrumentation_gate,
)
from instrumenter.api.extractor import (
    AlwaysClientExtractor,
    AlwaysConsumerExtractor,
    AlwaysInternalExtractor,
    AlwaysProducerExtractor,
    AlwaysServerExtractor,
    AttributesExtractor,
    ConstantSpanNameExtractor,
    DefaultSpanStatusExtractor,
    SpanKeyProvider,
    SpanKindExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
)
from instrumenter.api.instrumenter import (
    Instrumenter,
    InternalInstrumenter,
    Invocation,
    PropagatingFromUpstreamInstrumenter,
    PropagatingToDownstreamInstrumenter,
)
from instrumenter.api.listener import (
    AttrsShadower,
    ContextCustomizer,
    KeySetAttrsShadower,
    NoopAttrsShadower,
    OperationListener,
)
from instrumenter.api.propagation import (
    create_propagator,
    extract_context,
    inject_context,
    resolve_propagator,
)

__all__ = [
    # Builder and instrumenters
    "InstrumenterBuilder",
    "Instrumenter",
    "InternalInstrumenter",
    "Invocation",
    "PropagatingFromUpstreamInstrumenter",
    "PropagatingToDownstreamInstrumenter",
    # Carrier
    "OperationState",
    "ResendCounter",
    "create_carrier_key",
    "get_value",
    "new_carrier",
    "span_from_carrier",
    "with_span",
    "with_value",
    # Enablers
    "DefaultInstrumentEnabler",
    "GateInstrumentEnabler",
    "InstrumentationGate",
    "InstrumentEnabler",
    "get_instrumentation_gate",
    # Extractors
    "AlwaysClientExtractor",
    "AlwaysConsumerExtractor",
    "AlwaysInternalExtractor",
    "AlwaysProducerExtractor",
    "AlwaysServerExtractor",
    "AttributesExtractor",
    "ConstantSpanNameExtractor",
    "DefaultSpanStatusExtractor",
    "SpanKeyProvider",
    "SpanKindExtractor",
    "SpanNameExtractor",
    "SpanStatusExtractor",
    # Listeners and customizers
    "AttrsShadower",
    "ContextCustomizer",
    "KeySetAttrsShadower",
    "NoopAttrsShadower",
    "OperationListener",
    # Propagation
    "create_propagator",
    "extract_context",
    "inject_context",
    "resolve_propagator",
]
