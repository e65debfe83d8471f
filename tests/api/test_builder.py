"""Tests for InstrumenterBuilder."""

import pytest
from opentelemetry import baggage
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.composite import CompositePropagator

from instrumenter.api import (
    AlwaysInternalExtractor,
    ConstantSpanNameExtractor,
    DefaultInstrumentEnabler,
    DefaultSpanStatusExtractor,
    GateInstrumentEnabler,
    InstrumentationGate,
    InstrumenterBuilder,
    InternalInstrumenter,
    Invocation,
    PropagatingFromUpstreamInstrumenter,
    PropagatingToDownstreamInstrumenter,
    new_carrier,
)
from instrumenter.config import InstrumentationScope, InstrumenterConfig
from instrumenter.exceptions import InstrumenterConfigurationError
from instrumenter.testing import RecordingListener, StaticAttributesExtractor


def configured_builder():
    return (
        InstrumenterBuilder()
        .set_span_name_extractor(ConstantSpanNameExtractor("op"))
        .set_span_kind_extractor(AlwaysInternalExtractor())
    )


class TestInstrumenterBuilderDefaults:
    """Tests for a fresh builder."""

    def test_defaults(self, mock_tracer):
        """Test the defaults a built instrumenter inherits."""
        instrumenter = configured_builder().build_instrumenter_with_tracer(mock_tracer)

        assert isinstance(instrumenter, InternalInstrumenter)
        assert instrumenter.default_span_name == "unknown"
        assert instrumenter.scope_name == "instrumenter"
        assert instrumenter.attributes_extractors == ()
        assert instrumenter.operation_listeners == ()
        assert instrumenter.context_customizers == ()
        assert isinstance(instrumenter._enabler, DefaultInstrumentEnabler)
        assert isinstance(instrumenter._span_status_extractor, DefaultSpanStatusExtractor)

    def test_missing_span_name_extractor(self, mock_tracer):
        """Test that building without a name extractor fails."""
        builder = InstrumenterBuilder().set_span_kind_extractor(AlwaysInternalExtractor())

        with pytest.raises(InstrumenterConfigurationError) as exc_info:
            builder.build_instrumenter_with_tracer(mock_tracer)

        assert exc_info.value.config_key == "span_name_extractor"

    def test_missing_span_kind_extractor(self, mock_tracer):
        """Test that building without a kind extractor fails."""
        builder = InstrumenterBuilder().set_span_name_extractor(ConstantSpanNameExtractor("op"))

        with pytest.raises(InstrumenterConfigurationError) as exc_info:
            builder.build_instrumenter_with_tracer(mock_tracer)

        assert exc_info.value.config_key == "span_kind_extractor"

    def test_empty_default_span_name_rejected(self):
        """Test that an empty default span name is a configuration error."""
        with pytest.raises(InstrumenterConfigurationError):
            InstrumenterBuilder().set_default_span_name("")


class TestInstrumenterBuilderChaining:
    """Tests for builder setters."""

    def test_setters_return_builder(self):
        """Test that every setter returns the builder itself."""
        builder = InstrumenterBuilder()

        assert builder.set_span_name_extractor(ConstantSpanNameExtractor("op")) is builder
        assert builder.set_span_kind_extractor(AlwaysInternalExtractor()) is builder
        assert builder.set_span_status_extractor(DefaultSpanStatusExtractor()) is builder
        assert builder.set_instrument_enabler(DefaultInstrumentEnabler()) is builder
        assert builder.set_instrumentation_scope(InstrumentationScope("x")) is builder
        assert builder.set_default_span_name("op") is builder
        assert builder.add_attributes_extractors() is builder
        assert builder.add_operation_listeners() is builder
        assert builder.add_context_customizers() is builder

    def test_registration_order(self, mock_tracer):
        """Test that plug-ins keep their registration order."""
        first = StaticAttributesExtractor(start={"a": 1})
        second = StaticAttributesExtractor(start={"b": 2})
        third = StaticAttributesExtractor(start={"c": 3})

        instrumenter = (
            configured_builder()
            .add_attributes_extractors(first, second)
            .add_attributes_extractors(third)
            .build_instrumenter_with_tracer(mock_tracer)
        )

        assert instrumenter.attributes_extractors == (first, second, third)

    def test_build_snapshots_builder(self, mock_tracer):
        """Test that later builder changes do not reach built instrumenters."""
        builder = configured_builder().add_operation_listeners(RecordingListener("a"))
        instrumenter = builder.build_instrumenter_with_tracer(mock_tracer)

        builder.add_operation_listeners(RecordingListener("b"))
        builder.set_span_name_extractor(ConstantSpanNameExtractor("changed"))

        assert len(instrumenter.operation_listeners) == 1
        instrumenter.end(instrumenter.start(new_carrier(), "request"), Invocation("request"))
        assert mock_tracer.spans[0].name == "op"

    def test_init_resets(self, mock_tracer):
        """Test that init drops everything that was configured."""
        builder = configured_builder().add_operation_listeners(RecordingListener())

        builder.init()

        with pytest.raises(InstrumenterConfigurationError):
            builder.build_instrumenter_with_tracer(mock_tracer)
        assert builder.scope == InstrumentationScope()


class TestInstrumenterBuilderFromConfig:
    """Tests for build_from_config."""

    def test_applies_scope_and_default_name(self, mock_tracer):
        """Test that the config scope and default span name are applied."""
        config = (
            InstrumenterConfig()
            .with_scope_name("my.http.client")
            .with_default_span_name("HTTP")
        )

        instrumenter = (
            configured_builder().build_from_config(config).build_instrumenter_with_tracer(mock_tracer)
        )

        assert instrumenter.scope_name == "my.http.client"
        assert instrumenter.default_span_name == "HTTP"

    def test_named_instrumentation_uses_gate(self, mock_tracer):
        """Test that a disabled instrumentation name disables the instrumenter."""
        config = InstrumenterConfig().with_disabled("nethttp")

        instrumenter = (
            configured_builder()
            .build_from_config(config, instrumentation_name="nethttp")
            .build_instrumenter_with_tracer(mock_tracer)
        )

        assert isinstance(instrumenter._enabler, GateInstrumentEnabler)
        assert instrumenter.should_start(new_carrier(), "request") is False

    def test_explicit_gate(self, mock_tracer):
        """Test that an explicit gate is consulted at start time."""
        gate = InstrumentationGate()
        instrumenter = (
            configured_builder()
            .build_from_config(InstrumenterConfig(), instrumentation_name="grpc", gate=gate)
            .build_instrumenter_with_tracer(mock_tracer)
        )

        assert instrumenter.should_start(new_carrier(), "request") is True
        gate.set_enabled("grpc", False)
        assert instrumenter.should_start(new_carrier(), "request") is False

    def test_applies_propagators(self):
        """Test that the configured propagators replace the global one."""
        config = InstrumenterConfig().with_propagators("tracecontext")
        builder = configured_builder().build_from_config(config)
        instrumenter = builder.build_propagating_to_downstream_instrumenter(
            lambda request: request
        )
        headers = {}
        carrier = baggage.set_baggage("tenant", "acme", context=new_carrier())

        instrumenter.start(carrier, headers)

        assert isinstance(builder.propagator, CompositePropagator)
        assert "baggage" not in headers

    def test_explicit_propagator_wins(self):
        """Test that a propagator passed to the build overrides the configured one."""
        config = InstrumenterConfig().with_propagators("tracecontext")
        instrumenter = (
            configured_builder()
            .build_from_config(config)
            .build_propagating_to_downstream_instrumenter(
                lambda request: request, W3CBaggagePropagator()
            )
        )
        headers = {}
        carrier = baggage.set_baggage("tenant", "acme", context=new_carrier())

        instrumenter.start(carrier, headers)

        assert headers["baggage"] == "tenant=acme"


class TestInstrumenterBuilderVariants:
    """Tests for the three build variants."""

    def test_build_instrumenter_uses_global_provider(self):
        """Test that build_instrumenter resolves a tracer without failing."""
        instrumenter = configured_builder().build_instrumenter()

        assert isinstance(instrumenter, InternalInstrumenter)

    def test_build_propagating_to_downstream(self):
        """Test building the downstream-propagating variant."""
        instrumenter = configured_builder().build_propagating_to_downstream_instrumenter(
            lambda request: request
        )

        assert isinstance(instrumenter, PropagatingToDownstreamInstrumenter)
        assert isinstance(instrumenter.base, InternalInstrumenter)

    def test_build_propagating_from_upstream(self):
        """Test building the upstream-propagating variant."""
        instrumenter = configured_builder().build_propagating_from_upstream_instrumenter(
            lambda request: request
        )

        assert isinstance(instrumenter, PropagatingFromUpstreamInstrumenter)

    def test_variants_validate(self):
        """Test that the propagating variants validate like the core."""
        with pytest.raises(InstrumenterConfigurationError):
            InstrumenterBuilder().build_propagating_to_downstream_instrumenter(None)
        with pytest.raises(InstrumenterConfigurationError):
            InstrumenterBuilder().build_propagating_from_upstream_instrumenter(None)
