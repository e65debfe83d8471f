"""Histogram creation shared by metrics registries."""

from __future__ import annotations

import logging
import threading

from opentelemetry.metrics import Histogram, Meter

from instrumenter.exceptions import MetricsRegistryError, wrap_exception

__all__ = ["new_float64_histogram"]

logger = logging.getLogger(__name__)

# Meter implementations are not required to create instruments concurrently.
_histogram_lock = threading.Lock()


def new_float64_histogram(
    name: str,
    unit: str,
    description: str,
    meter: Meter | None,
) -> Histogram:
    """Create a histogram on ``meter``.

    Args:
        name: Metric name.
        unit: Metric unit, e.g. ``"s"`` or ``"By"``.
        description: Metric description.
        meter: Meter to create the histogram on.

    Returns:
        The created histogram.

    Raises:
        MetricsRegistryError: If ``meter`` is None or the meter fails.
    """
    with _histogram_lock:
        if meter is None:
            raise MetricsRegistryError("Meter is not initialized", metric_name=name)
        try:
            histogram = meter.create_histogram(name, unit=unit, description=description)
        except Exception as e:
            raise wrap_exception(
                e,
                MetricsRegistryError,
                f"Failed to create {name} histogram: {e}",
                metric_name=name,
            ) from e
    logger.debug("Created histogram %s (unit=%s)", name, unit)
    return histogram
