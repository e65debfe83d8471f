"""Semantic-convention plug-ins for the instrumenter engine.

Protocol bindings live in subpackages (:mod:`instrumenter.semconv.http`,
:mod:`instrumenter.semconv.net`) and are imported from there.
"""

from instrumenter.semconv.histogram import new_float64_histogram
from instrumenter.semconv.shadower import shadow

__all__ = [
    "new_float64_histogram",
    "shadow",
]
