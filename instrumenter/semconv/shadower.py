"""Attribute shadowing: split attributes into metric dimensions and trace-only data.

Traces may carry unbounded-cardinality attributes (full URLs, request ids)
while metrics must only carry a small, declared set of dimensions. Shadowing
moves the metric-safe attributes to the front of the list so a listener can
record ``attributes[:n]``.
"""

from __future__ import annotations

from collections.abc import Container

from instrumenter.types import Attribute

__all__ = ["shadow"]


def shadow(attributes: list[Attribute], keys: Container[str]) -> tuple[int, list[Attribute]]:
    """Partition ``attributes`` in place by key membership.

    Entries whose key is in ``keys`` move to the front. Both partitions keep
    their original relative order and duplicate keys are evaluated
    independently.

    A single left-to-right scan writes each matching entry at a write index.
    Non-matching entries are held in one side buffer and written back after
    the last match, which keeps the tail in order where a plain swap would
    not.

    Args:
        attributes: Attribute list to partition. Modified in place.
        keys: Keys permitted to appear in metrics.

    Returns:
        The number of leading metric-safe entries and the same list object.

    Example:
        >>> attrs = [Attribute("url.full", "..."), Attribute("http.request.method", "GET")]
        >>> n, attrs = shadow(attrs, {"http.request.method"})
        >>> n, attrs[0].key
        (1, 'http.request.method')
    """
    write = 0
    rest: list[Attribute] = []
    for attribute in attributes:
        if attribute.key in keys:
            attributes[write] = attribute
            write += 1
        else:
            rest.append(attribute)
    attributes[write:] = rest
    return write, attributes
