"""Protocol-agnostic instrumentation pipeline engine.

Wraps a unit of work (an inbound or outbound call, a message) with a uniform
lifecycle of attribute extraction, span creation, status classification and
metrics recording, on top of the OpenTelemetry API.

Quick Start:
    >>> from instrumenter import (
    ...     InstrumenterBuilder, Invocation, ConstantSpanNameExtractor,
    ...     AlwaysInternalExtractor, new_carrier,
    ... )
    >>> instrumenter = (
    ...     InstrumenterBuilder()
    ...     .set_span_name_extractor(ConstantSpanNameExtractor("job"))
    ...     .set_span_kind_extractor(AlwaysInternalExtractor())
    ...     .build_instrumenter()
    ... )
    >>> carrier = instrumenter.start(new_carrier(), request)
    >>> instrumenter.end(carrier, Invocation(request, response))

Protocol plug-ins live in :mod:`instrumenter.semconv.http` and
:mod:`instrumenter.semconv.net`.
"""

from instrumenter.api import (
    AlwaysClientExtractor,
    AlwaysConsumerExtractor,
    AlwaysInternalExtractor,
    AlwaysProducerExtractor,
    AlwaysServerExtractor,
    AttributesExtractor,
    AttrsShadower,
    ConstantSpanNameExtractor,
    ContextCustomizer,
    DefaultInstrumentEnabler,
    DefaultSpanStatusExtractor,
    GateInstrumentEnabler,
    InstrumentationGate,
    InstrumentEnabler,
    Instrumenter,
    InstrumenterBuilder,
    InternalInstrumenter,
    Invocation,
    KeySetAttrsShadower,
    NoopAttrsShadower,
    OperationListener,
    PropagatingFromUpstreamInstrumenter,
    PropagatingToDownstreamInstrumenter,
    ResendCounter,
    SpanKeyProvider,
    SpanKindExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
    create_propagator,
    get_instrumentation_gate,
    new_carrier,
    span_from_carrier,
)
from instrumenter.config import (
    DEFAULT_INSTRUMENTER_CONFIG,
    DISABLED_INSTRUMENTER_CONFIG,
    TESTING_INSTRUMENTER_CONFIG,
    InstrumentationScope,
    InstrumenterConfig,
)
from instrumenter.exceptions import (
    InstrumenterConfigurationError,
    InstrumenterError,
    InvalidConfigValueError,
    MetricsRegistryError,
    PropagationError,
)
from instrumenter.semconv.shadower import shadow
from instrumenter.types import Attribute, Carrier, OperationRole, attributes_to_dict

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine
    "InstrumenterBuilder",
    "Instrumenter",
    "InternalInstrumenter",
    "Invocation",
    "PropagatingFromUpstreamInstrumenter",
    "PropagatingToDownstreamInstrumenter",
    # Contracts
    "AttributesExtractor",
    "AttrsShadower",
    "ContextCustomizer",
    "OperationListener",
    "SpanKeyProvider",
    "SpanKindExtractor",
    "SpanNameExtractor",
    "SpanStatusExtractor",
    # Stock strategies
    "AlwaysClientExtractor",
    "AlwaysConsumerExtractor",
    "AlwaysInternalExtractor",
    "AlwaysProducerExtractor",
    "AlwaysServerExtractor",
    "ConstantSpanNameExtractor",
    "DefaultSpanStatusExtractor",
    "KeySetAttrsShadower",
    "NoopAttrsShadower",
    "shadow",
    # Enablers
    "DefaultInstrumentEnabler",
    "GateInstrumentEnabler",
    "InstrumentationGate",
    "InstrumentEnabler",
    "get_instrumentation_gate",
    # Carrier and types
    "Attribute",
    "Carrier",
    "OperationRole",
    "ResendCounter",
    "attributes_to_dict",
    "new_carrier",
    "span_from_carrier",
    "create_propagator",
    # Configuration
    "InstrumentationScope",
    "InstrumenterConfig",
    "DEFAULT_INSTRUMENTER_CONFIG",
    "DISABLED_INSTRUMENTER_CONFIG",
    "TESTING_INSTRUMENTER_CONFIG",
    # Exceptions
    "InstrumenterError",
    "InstrumenterConfigurationError",
    "InvalidConfigValueError",
    "MetricsRegistryError",
    "PropagationError",
]
