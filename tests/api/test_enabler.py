"""Tests for instrument enablers and the instrumentation gate."""

import threading

from instrumenter.api import (
    DefaultInstrumentEnabler,
    GateInstrumentEnabler,
    InstrumentationGate,
    InstrumentEnabler,
    get_instrumentation_gate,
)
from instrumenter.config import InstrumenterConfig


class TestDefaultInstrumentEnabler:
    """Tests for DefaultInstrumentEnabler."""

    def test_always_enabled(self):
        """Test that the default enabler is always on."""
        enabler = DefaultInstrumentEnabler()

        assert enabler.enable() is True
        assert isinstance(enabler, InstrumentEnabler)


class TestInstrumentationGate:
    """Tests for InstrumentationGate."""

    def test_default_enabled(self):
        """Test that unknown names are enabled by default."""
        assert InstrumentationGate().is_enabled("nethttp") is True

    def test_seeded_from_config(self):
        """Test that disabled names from the config are honored."""
        gate = InstrumentationGate(InstrumenterConfig().with_disabled("grpc"))

        assert gate.is_enabled("grpc") is False
        assert gate.is_enabled("GRPC") is False
        assert gate.is_enabled("nethttp") is True

    def test_master_switch(self):
        """Test that the master switch overrides explicit flags."""
        gate = InstrumentationGate(InstrumenterConfig(enabled=False))
        gate.set_enabled("nethttp", True)

        assert gate.is_enabled("nethttp") is False

    def test_explicit_flag(self):
        """Test that explicit flags override the config."""
        gate = InstrumentationGate(InstrumenterConfig().with_disabled("grpc"))

        gate.set_enabled("grpc", True)
        gate.set_enabled("NetHTTP", False)

        assert gate.is_enabled("grpc") is True
        assert gate.is_enabled("nethttp") is False

    def test_configure_drops_flags(self):
        """Test that reconfiguring drops explicit flags."""
        gate = InstrumentationGate()
        gate.set_enabled("nethttp", False)

        gate.configure(InstrumenterConfig().with_disabled("grpc"))

        assert gate.is_enabled("nethttp") is True
        assert gate.is_enabled("grpc") is False
        assert gate.config.disabled_instrumentations == frozenset({"grpc"})

    def test_reset(self):
        """Test that reset returns to the default configuration."""
        gate = InstrumentationGate(InstrumenterConfig(enabled=False))
        gate.set_enabled("nethttp", False)

        gate.reset()

        assert gate.is_enabled("nethttp") is True
        assert gate.config == InstrumenterConfig()

    def test_concurrent_toggles(self):
        """Test that concurrent writers and readers do not fail."""
        gate = InstrumentationGate()
        errors = []

        def toggle(name):
            try:
                for i in range(500):
                    gate.set_enabled(name, i % 2 == 0)
                    gate.is_enabled(name)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=toggle, args=(f"inst-{i}",)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert all(gate.is_enabled(f"inst-{i}") is False for i in range(8))


class TestGateInstrumentEnabler:
    """Tests for GateInstrumentEnabler."""

    def test_explicit_gate(self):
        """Test that the enabler follows its gate."""
        gate = InstrumentationGate()
        enabler = GateInstrumentEnabler("nethttp", gate)

        assert enabler.enable() is True
        gate.set_enabled("nethttp", False)
        assert enabler.enable() is False
        assert enabler.name == "nethttp"

    def test_global_gate(self):
        """Test that the enabler falls back to the process-wide gate."""
        enabler = GateInstrumentEnabler("nethttp")

        get_instrumentation_gate().set_enabled("nethttp", False)

        assert enabler.enable() is False

    def test_repr(self):
        """Test the debug representation."""
        assert repr(GateInstrumentEnabler("grpc")) == "GateInstrumentEnabler(name='grpc')"


class TestGlobalGate:
    """Tests for get_instrumentation_gate."""

    def test_singleton(self):
        """Test that the process-wide gate is created once."""
        assert get_instrumentation_gate() is get_instrumentation_gate()
