"""Tests for the stock extractor strategies and shadowers."""

import pytest
from opentelemetry.trace import SpanKind, StatusCode

from instrumenter.api import (
    AlwaysClientExtractor,
    AlwaysConsumerExtractor,
    AlwaysInternalExtractor,
    AlwaysProducerExtractor,
    AlwaysServerExtractor,
    AttributesExtractor,
    AttrsShadower,
    ConstantSpanNameExtractor,
    DefaultSpanStatusExtractor,
    KeySetAttrsShadower,
    NoopAttrsShadower,
    OperationListener,
    SpanKindExtractor,
    SpanNameExtractor,
    SpanStatusExtractor,
)
from instrumenter.testing import MockSpan, RecordingListener, StaticAttributesExtractor
from instrumenter.types import Attribute


class TestSpanKindExtractors:
    """Tests for the constant span kind extractors."""

    @pytest.mark.parametrize(
        ("extractor", "kind"),
        [
            (AlwaysInternalExtractor(), SpanKind.INTERNAL),
            (AlwaysClientExtractor(), SpanKind.CLIENT),
            (AlwaysServerExtractor(), SpanKind.SERVER),
            (AlwaysProducerExtractor(), SpanKind.PRODUCER),
            (AlwaysConsumerExtractor(), SpanKind.CONSUMER),
        ],
    )
    def test_constant_kind(self, extractor, kind):
        """Test that each extractor returns its kind for any request."""
        assert extractor.extract(object()) == kind
        assert extractor.extract(None) == kind
        assert isinstance(extractor, SpanKindExtractor)


class TestConstantSpanNameExtractor:
    """Tests for ConstantSpanNameExtractor."""

    def test_constant_name(self):
        """Test that the configured name is returned."""
        extractor = ConstantSpanNameExtractor("job")

        assert extractor.extract("anything") == "job"
        assert isinstance(extractor, SpanNameExtractor)


class TestDefaultSpanStatusExtractor:
    """Tests for DefaultSpanStatusExtractor."""

    def test_error(self):
        """Test that an error is recorded and marks the span failed."""
        span = MockSpan("test")
        error = ValueError("bad input")

        DefaultSpanStatusExtractor().extract(span, "request", None, error)

        assert span.status_code == StatusCode.ERROR
        assert span.status_description == "bad input"
        assert span.exceptions == [error]

    def test_success_leaves_status(self):
        """Test that a successful operation leaves the status unset."""
        span = MockSpan("test")

        DefaultSpanStatusExtractor().extract(span, "request", "response", None)

        assert span.status_code == StatusCode.UNSET
        assert span.exceptions == []
        assert isinstance(DefaultSpanStatusExtractor(), SpanStatusExtractor)


class TestShadowers:
    """Tests for the shadower strategies."""

    def test_noop(self):
        """Test that the no-op shadower keeps every attribute."""
        attributes = [Attribute("a", 1), Attribute("b", 2)]

        n, result = NoopAttrsShadower().shadow(attributes)

        assert n == 2
        assert result is attributes
        assert isinstance(NoopAttrsShadower(), AttrsShadower)

    def test_key_set(self):
        """Test that the key-set shadower moves its keys to the front."""
        shadower = KeySetAttrsShadower(["b"])
        attributes = [Attribute("a", 1), Attribute("b", 2)]

        n, result = shadower.shadow(attributes)

        assert n == 1
        assert result == [Attribute("b", 2), Attribute("a", 1)]
        assert shadower.keys == frozenset({"b"})


class TestProtocolConformance:
    """Tests that the recording helpers satisfy the engine contracts."""

    def test_static_extractor_is_attributes_extractor(self):
        """Test StaticAttributesExtractor against AttributesExtractor."""
        assert isinstance(StaticAttributesExtractor(), AttributesExtractor)

    def test_recording_listener_is_operation_listener(self):
        """Test RecordingListener against OperationListener."""
        assert isinstance(RecordingListener(), OperationListener)
