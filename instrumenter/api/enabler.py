"""Enable/disable gate for instrumentations.

Each built instrumenter holds an :class:`InstrumentEnabler`. It is asked once
per ``start``; when it answers False the whole extractor/listener pipeline is
skipped and the carrier is returned untouched, which also makes the matching
``end`` a no-op.

Example:
    >>> gate = get_instrumentation_gate()
    >>> gate.set_enabled("nethttp", False)
    >>> GateInstrumentEnabler("nethttp").enable()
    False
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from instrumenter.config import InstrumenterConfig

__all__ = [
    "InstrumentEnabler",
    "DefaultInstrumentEnabler",
    "InstrumentationGate",
    "GateInstrumentEnabler",
    "get_instrumentation_gate",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class InstrumentEnabler(Protocol):
    """Predicate deciding whether an instrumentation is active."""

    def enable(self) -> bool:
        ...


class DefaultInstrumentEnabler:
    """Enabler that is always on."""

    def enable(self) -> bool:
        return True


class InstrumentationGate:
    """Thread-safe registry of enable flags keyed by instrumentation name.

    Names are case-insensitive. A name without an explicit flag follows the
    master switch of the configuration the gate was seeded from.
    """

    def __init__(self, config: InstrumenterConfig | None = None) -> None:
        """Initialize InstrumentationGate.

        Args:
            config: Configuration to seed the gate from. Defaults to an
                enabled configuration with nothing disabled.
        """
        self._lock = threading.Lock()
        self._config = config or InstrumenterConfig()
        self._overrides: dict[str, bool] = {}

    @property
    def config(self) -> InstrumenterConfig:
        """Configuration the gate is seeded from."""
        return self._config

    def configure(self, config: InstrumenterConfig) -> None:
        """Reseed the gate from a configuration, dropping explicit flags."""
        with self._lock:
            self._config = config
            self._overrides.clear()
        logger.debug(
            "Instrumentation gate configured: enabled=%s, disabled=%s",
            config.enabled,
            sorted(config.disabled_instrumentations),
        )

    def set_enabled(self, name: str, enabled: bool) -> None:
        """Explicitly switch one instrumentation on or off."""
        with self._lock:
            self._overrides[name.lower()] = enabled

    def is_enabled(self, name: str) -> bool:
        """Check whether an instrumentation is enabled."""
        key = name.lower()
        with self._lock:
            if not self._config.enabled:
                return False
            if key in self._overrides:
                return self._overrides[key]
            return self._config.is_instrumentation_enabled(key)

    def reset(self) -> None:
        """Drop explicit flags and return to the default configuration."""
        with self._lock:
            self._config = InstrumenterConfig()
            self._overrides.clear()


class GateInstrumentEnabler:
    """Enabler backed by a named entry of an :class:`InstrumentationGate`."""

    def __init__(self, name: str, gate: InstrumentationGate | None = None) -> None:
        """Initialize GateInstrumentEnabler.

        Args:
            name: Short instrumentation name, e.g. ``"nethttp"``.
            gate: Gate to consult. Defaults to the process-wide gate.
        """
        self._name = name
        self._gate = gate

    @property
    def name(self) -> str:
        return self._name

    def enable(self) -> bool:
        gate = self._gate if self._gate is not None else get_instrumentation_gate()
        return gate.is_enabled(self._name)

    def __repr__(self) -> str:
        return f"GateInstrumentEnabler(name={self._name!r})"


_global_gate: InstrumentationGate | None = None
_global_gate_lock = threading.Lock()


def get_instrumentation_gate() -> InstrumentationGate:
    """Return the process-wide gate, creating it from the environment on first use."""
    global _global_gate
    if _global_gate is None:
        with _global_gate_lock:
            if _global_gate is None:
                _global_gate = InstrumentationGate(InstrumenterConfig.from_env())
    return _global_gate
