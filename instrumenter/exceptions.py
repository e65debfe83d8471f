"""Errors raised by the instrumenter engine.

Only wiring mistakes surface as exceptions: a builder missing a required
extractor, a metrics registry without a meter, an unreadable config file.
Failures of extractors and listeners during a live operation are logged by
the engine and never reach the host application.

Exception Hierarchy:
    InstrumenterError (base)
    ├── InstrumenterConfigurationError
    │   ├── InvalidConfigValueError
    │   └── MetricsRegistryError
    └── PropagationError

Example:
    >>> try:
    ...     metric = registry.new_http_server_metric("http.server")
    ... except MetricsRegistryError as e:
    ...     logger.warning("Metrics disabled: %s", e)
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "InstrumenterError",
    "InstrumenterConfigurationError",
    "InvalidConfigValueError",
    "MetricsRegistryError",
    "PropagationError",
    "wrap_exception",
]


def _compact(**values: Any) -> dict[str, Any]:
    """Drop falsy entries so details only carry what was supplied."""
    return {key: value for key, value in values.items() if value}


class InstrumenterError(Exception):
    """Root of every error raised by this package.

    Attributes:
        message: What went wrong.
        details: Structured context for logs and assertions.
        cause: The lower-level exception, when there is one.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details) if details else {}
        self.cause = cause

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"{name}(message={self.message!r}, details={self.details!r}, cause={self.cause!r})"

    def with_context(self, **context: Any) -> InstrumenterError:
        """Return a copy whose details also include ``context``.

        Example:
            >>> e = InstrumenterError("Error", details={"key": "value"})
            >>> e.with_context(scope="http").details
            {'key': 'value', 'scope': 'http'}
        """
        return InstrumenterError(
            self.message,
            details={**self.details, **context},
            cause=self.cause,
        )


# =============================================================================
# Configuration Errors
# =============================================================================


class InstrumenterConfigurationError(InstrumenterError):
    """An instrumenter or one of its collaborators was wired incorrectly.

    Attributes:
        config_key: Setting responsible for the failure, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        merged = {**(details or {}), **_compact(config_key=config_key)}
        super().__init__(message, details=merged, cause=cause)
        self.config_key = config_key


class InvalidConfigValueError(InstrumenterConfigurationError):
    """A setting holds a value that cannot be parsed or is out of range."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        value: Any = None,
        expected: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            config_key=config_key,
            details={"value": value, **_compact(expected=expected)},
            cause=cause,
        )
        self.value = value
        self.expected = expected


class MetricsRegistryError(InstrumenterConfigurationError):
    """A metric handle could not be created.

    The registry never substitutes a default meter when this is raised;
    callers decide whether to fall back to a no-op registry.
    """

    def __init__(
        self,
        message: str,
        *,
        metric_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            details={**(details or {}), **_compact(metric_name=metric_name)},
            cause=cause,
        )
        self.metric_name = metric_name


# =============================================================================
# Propagation Errors
# =============================================================================


class PropagationError(InstrumenterError):
    """A propagator failed to inject or extract trace context.

    The propagating instrumenters log and swallow these; only direct users of
    :mod:`instrumenter.api.propagation` see them.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        propagator: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_compact(operation=operation, propagator=propagator),
            cause=cause,
        )
        self.operation = operation
        self.propagator = propagator


def wrap_exception(
    exception: Exception,
    wrapper_class: type[InstrumenterError] = InstrumenterError,
    message: str | None = None,
    **kwargs: Any,
) -> InstrumenterError:
    """Convert a foreign exception into an :class:`InstrumenterError`.

    The original becomes the ``cause``. Without ``message`` the original's
    text is reused. Extra keyword arguments go to ``wrapper_class``.

    Example:
        >>> try:
        ...     meter.create_histogram("duration")
        ... except ValueError as e:
        ...     raise wrap_exception(e, MetricsRegistryError, metric_name="duration")
    """
    text = str(exception) if message is None else message
    return wrapper_class(text, cause=exception, **kwargs)
