"""Instrumenter settings.

Settings are frozen dataclasses. Derive variants with the ``with_*`` methods
instead of mutating. Values come from, in order of precedence:

    1. Explicit arguments
    2. ``INSTRUMENTER_*`` environment variables
    3. A JSON or YAML file
    4. Field defaults

Example:
    >>> from instrumenter.config import InstrumenterConfig
    >>> config = InstrumenterConfig.from_env()
    >>> config.is_instrumentation_enabled("nethttp")
    True
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Self

from instrumenter.exceptions import InstrumenterConfigurationError, InvalidConfigValueError

__all__ = [
    # Environment
    "EnvReader",
    "DEFAULT_ENV_PREFIX",
    # Configuration classes
    "InstrumentationScope",
    "InstrumenterConfig",
    # Preset configurations
    "DEFAULT_INSTRUMENTER_CONFIG",
    "DISABLED_INSTRUMENTER_CONFIG",
    "TESTING_INSTRUMENTER_CONFIG",
    # Loading and validation
    "load_config_file",
    "validate_config",
    "require_valid_config",
]


DEFAULT_ENV_PREFIX = "INSTRUMENTER"
DEFAULT_SCOPE_NAME = "instrumenter"
DEFAULT_SPAN_NAME = "unknown"
DEFAULT_PROPAGATORS = ("tracecontext", "baggage")
KNOWN_PROPAGATORS = frozenset({"tracecontext", "baggage", "b3", "b3multi", "jaeger"})

_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


# =============================================================================
# Environment
# =============================================================================


class EnvReader:
    """Reads ``{PREFIX}_{NAME}`` environment variables.

    An empty prefix reads names as given.

    Example:
        >>> EnvReader().get_bool("ENABLED", default=True)
        True
    """

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        self.prefix = prefix

    def key(self, name: str) -> str:
        """Full variable name for ``name``."""
        return f"{self.prefix}_{name}" if self.prefix else name

    def get(self, name: str, default: str | None = None) -> str | None:
        return os.environ.get(self.key(name), default)

    def get_bool(self, name: str, default: bool | None = None) -> bool | None:
        """Read a flag.

        Accepts 1/0, true/false, yes/no and on/off in any case.

        Raises:
            InvalidConfigValueError: For any other value.
        """
        raw = self.get(name)
        if raw is None:
            return default
        try:
            return _BOOL_WORDS[raw.strip().lower()]
        except KeyError:
            raise InvalidConfigValueError(
                f"{self.key(name)} is not a boolean",
                config_key=self.key(name),
                value=raw,
                expected="one of " + "/".join(_BOOL_WORDS),
            ) from None

    def get_list(
        self,
        name: str,
        separator: str = ",",
        default: list[str] | None = None,
    ) -> list[str] | None:
        """Read a separated list, trimming items and skipping blanks."""
        raw = self.get(name)
        if raw is None:
            return default
        return [part.strip() for part in raw.split(separator) if part.strip()]


# =============================================================================
# Files
# =============================================================================


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    try:
        import yaml
    except ImportError as e:
        raise InstrumenterConfigurationError(
            "YAML configuration needs PyYAML: pip install instrumenter-engine[yaml]",
            cause=e,
        ) from e
    return yaml.safe_load(text)


_PARSERS = {
    ".json": _parse_json,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
}


def load_config_file(path: Path | str) -> dict[str, Any]:
    """Read a JSON or YAML settings file.

    A document whose top level is not a mapping yields an empty dict.

    Raises:
        InstrumenterConfigurationError: If the file is missing, has an
            unknown suffix or does not parse.
    """
    path = Path(path)
    if not path.is_file():
        raise InstrumenterConfigurationError(
            f"No configuration file at {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    parser = _PARSERS.get(suffix)
    if parser is None:
        raise InstrumenterConfigurationError(
            f"Cannot read {suffix or 'extensionless'} configuration files",
            details={"path": str(path), "suffix": suffix},
        )

    try:
        data = parser(path.read_text())
    except InstrumenterConfigurationError:
        raise
    except Exception as e:
        raise InstrumenterConfigurationError(
            f"Could not parse {path}",
            details={"path": str(path)},
            cause=e,
        ) from e
    return data if isinstance(data, dict) else {}


def _lowered(names: Iterable[str]) -> frozenset[str]:
    return frozenset(name.lower() for name in names)


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class InstrumentationScope:
    """Identity of the instrumentation library that produces telemetry.

    Passed to the tracer provider when an instrumenter is built.
    """

    name: str = DEFAULT_SCOPE_NAME
    version: str | None = None
    schema_url: str | None = None

    def with_name(self, name: str) -> InstrumentationScope:
        return replace(self, name=name)

    def with_version(self, version: str | None) -> InstrumentationScope:
        return replace(self, version=version)

    def with_schema_url(self, schema_url: str | None) -> InstrumentationScope:
        return replace(self, schema_url=schema_url)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version, "schema_url": self.schema_url}


@dataclass(frozen=True)
class InstrumenterConfig:
    """Settings shared by every instrumenter in a process.

    Example:
        config = InstrumenterConfig().with_disabled("grpc").with_default_span_name("op")
    """

    enabled: bool = True
    """Master switch. When False every instrumentation is disabled."""

    disabled_instrumentations: frozenset[str] = field(default_factory=frozenset)
    """Lower-cased instrumentation names switched off individually."""

    scope: InstrumentationScope = field(default_factory=InstrumentationScope)

    default_span_name: str = DEFAULT_SPAN_NAME
    """Span name used when the name extractor fails or returns nothing."""

    propagators: tuple[str, ...] = DEFAULT_PROPAGATORS

    metrics_enabled: bool = True
    """Whether metrics registries hand out live metric handles."""

    def is_instrumentation_enabled(self, name: str) -> bool:
        """True if the master switch is on and ``name`` is not disabled."""
        return self.enabled and name.lower() not in self.disabled_instrumentations

    def with_enabled(self, enabled: bool) -> InstrumenterConfig:
        return replace(self, enabled=enabled)

    def with_disabled(self, *names: str) -> InstrumenterConfig:
        """Add ``names`` to the disabled instrumentations."""
        return replace(
            self, disabled_instrumentations=self.disabled_instrumentations | _lowered(names)
        )

    def with_scope(self, scope: InstrumentationScope) -> InstrumenterConfig:
        return replace(self, scope=scope)

    def with_scope_name(self, name: str) -> InstrumenterConfig:
        return replace(self, scope=self.scope.with_name(name))

    def with_default_span_name(self, name: str) -> InstrumenterConfig:
        return replace(self, default_span_name=name)

    def with_propagators(self, *propagators: str) -> InstrumenterConfig:
        return replace(self, propagators=tuple(propagators))

    def with_metrics_enabled(self, enabled: bool) -> InstrumenterConfig:
        return replace(self, metrics_enabled=enabled)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "disabled_instrumentations": sorted(self.disabled_instrumentations),
            "scope": self.scope.to_dict(),
            "default_span_name": self.default_span_name,
            "propagators": list(self.propagators),
            "metrics_enabled": self.metrics_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from the mapping produced by :meth:`to_dict`.

        Missing keys take their defaults.
        """
        scope = data.get("scope") or {}
        return cls(
            enabled=data.get("enabled", True),
            disabled_instrumentations=_lowered(data.get("disabled_instrumentations", ())),
            scope=InstrumentationScope(
                name=scope.get("name", DEFAULT_SCOPE_NAME),
                version=scope.get("version"),
                schema_url=scope.get("schema_url"),
            ),
            default_span_name=data.get("default_span_name", DEFAULT_SPAN_NAME),
            propagators=tuple(data.get("propagators", DEFAULT_PROPAGATORS)),
            metrics_enabled=data.get("metrics_enabled", True),
        )

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> Self:
        """Build from environment variables alone.

        Environment Variables:
            {PREFIX}_ENABLED: Master switch (bool)
            {PREFIX}_DISABLED_INSTRUMENTATIONS: Comma-separated names
            {PREFIX}_SCOPE_NAME: Instrumentation scope name
            {PREFIX}_SCOPE_VERSION: Instrumentation scope version
            {PREFIX}_DEFAULT_SPAN_NAME: Fallback span name
            {PREFIX}_PROPAGATORS: Comma-separated propagator names
            {PREFIX}_METRICS_ENABLED: Metrics switch (bool)
        """
        return cls.load(env_prefix=prefix)

    @classmethod
    def from_file(cls, path: Path | str) -> Self:
        return cls.from_dict(load_config_file(path))

    @classmethod
    def load(
        cls,
        config_file: Path | str | None = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
    ) -> Self:
        """Read ``config_file`` if given, then apply any set environment variables.

        Disabled instrumentations from the environment are added to those
        from the file; every other variable replaces the file value.
        """
        base = cls.from_file(config_file) if config_file else cls()
        env = EnvReader(env_prefix)

        scope = base.scope
        if scope_name := env.get("SCOPE_NAME"):
            scope = scope.with_name(scope_name)
        if scope_version := env.get("SCOPE_VERSION"):
            scope = scope.with_version(scope_version)
        propagators = env.get_list("PROPAGATORS")

        return cls(
            enabled=env.get_bool("ENABLED", default=base.enabled),
            disabled_instrumentations=base.disabled_instrumentations
            | _lowered(env.get_list("DISABLED_INSTRUMENTATIONS", default=[])),
            scope=scope,
            default_span_name=env.get("DEFAULT_SPAN_NAME") or base.default_span_name,
            propagators=base.propagators if propagators is None else tuple(propagators),
            metrics_enabled=env.get_bool("METRICS_ENABLED", default=base.metrics_enabled),
        )


# =============================================================================
# Validation
# =============================================================================


def validate_config(config: InstrumenterConfig) -> list[str]:
    """Return a message per problem found in ``config``; empty when valid."""
    issues: list[str] = []
    if not config.scope.name:
        issues.append("scope.name must not be empty")
    if not config.default_span_name:
        issues.append("default_span_name must not be empty")
    unknown = [name for name in config.propagators if name not in KNOWN_PROPAGATORS]
    if unknown:
        issues.append(
            f"unknown propagators {', '.join(unknown)} "
            f"(known: {', '.join(sorted(KNOWN_PROPAGATORS))})"
        )
    return issues


def require_valid_config(config: InstrumenterConfig) -> None:
    """Raise :class:`InstrumenterConfigurationError` listing every problem in ``config``."""
    if issues := validate_config(config):
        raise InstrumenterConfigurationError(
            f"Invalid configuration: {len(issues)} issue(s)",
            details={"issues": issues},
        )


# =============================================================================
# Preset Configurations
# =============================================================================

DEFAULT_INSTRUMENTER_CONFIG = InstrumenterConfig()

DISABLED_INSTRUMENTER_CONFIG = InstrumenterConfig(enabled=False, metrics_enabled=False)

TESTING_INSTRUMENTER_CONFIG = InstrumenterConfig(
    scope=InstrumentationScope(name="instrumenter.testing", version="0.0.1"),
    default_span_name="test-operation",
)
