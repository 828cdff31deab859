"""Numeric and confidence helpers shared by the checks and reconstruction steps.

Sums are plain left-to-right float additions starting from 0.0. Compensated
summation (math.fsum, or sum() on Python 3.12+) can round differently, and the
derived totals must match what the extractor's own arithmetic produces.
"""

from typing import Iterable, Optional, Sequence

from core.models.canonical import TaxLine


def array_probability(lines: Iterable[TaxLine]) -> float:
    """Product of line confidences; undefined confidences are neutral.

    An empty sequence yields 1.0.
    """
    probability = 1.0
    for line in lines:
        if line.confidence is not None:
            probability *= line.confidence
    return probability


def sum_tax_values(taxes: Sequence[TaxLine], skip_zero: bool = False) -> float:
    """Sum tax line values, absent values contributing nothing.

    Args:
        taxes: Tax lines in document order
        skip_zero: Also skip zero-valued lines (truthiness test)
    """
    total = 0.0
    for tax in taxes:
        if tax.value is None:
            continue
        if skip_zero and not tax.value:
            continue
        total += tax.value
    return total


def within(value: float, low: float, high: float) -> bool:
    """Inclusive band test."""
    return low <= value <= high


def is_positive(value: Optional[float]) -> bool:
    return value is not None and value > 0
