"""Reconstruction of missing totals from related fields.

Steps run in the order of RECONSTRUCTION_STEPS and each one sees what the
previous ones filled in. A derived field's confidence is the product of the
confidences it was computed from, and it is flagged as reconstructed.

Only reconstruct_total_tax recomputes a field that already holds a value;
every other step leaves present values alone.
"""

from typing import Callable, List, Tuple

from core.models.canonical import InvoiceTotals, MonetaryField
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_reconstruction
from reconciliation.numeric import array_probability, is_positive, sum_tax_values


logger = get_logger(__name__)

TOTAL_FIELDS = ("total_incl", "total_excl", "total_tax")


def _derived(value: float, confidence: float) -> MonetaryField:
    return MonetaryField(value=value, confidence=confidence, reconstructed=True)


def reconstruct_total_tax(totals: InvoiceTotals) -> InvoiceTotals:
    """total_tax = sum of tax line values, when that sum is positive."""
    if not totals.taxes:
        return totals

    value = sum_tax_values(totals.taxes)
    if value > 0:
        totals.total_tax = _derived(value, array_probability(totals.taxes))
    return totals


def reconstruct_total_excl(totals: InvoiceTotals) -> InvoiceTotals:
    """total_excl = total_incl - sum of tax line values."""
    if (
        not totals.taxes
        or totals.total_incl.value is None
        or totals.total_excl.value is not None
    ):
        return totals

    totals.total_excl = _derived(
        totals.total_incl.value - sum_tax_values(totals.taxes),
        array_probability(totals.taxes) * totals.total_incl.confidence,
    )
    return totals


def reconstruct_total_incl(totals: InvoiceTotals) -> InvoiceTotals:
    """total_incl = total_excl + sum of non-zero tax line values."""
    if (
        not totals.taxes
        or totals.total_excl.value is None
        or totals.total_incl.value is not None
    ):
        return totals

    totals.total_incl = _derived(
        totals.total_excl.value + sum_tax_values(totals.taxes, skip_zero=True),
        array_probability(totals.taxes) * totals.total_excl.confidence,
    )
    return totals


def reconstruct_total_tax_from_totals(totals: InvoiceTotals) -> InvoiceTotals:
    """Fallback: total_tax = total_incl - total_excl."""
    incl = totals.total_incl
    excl = totals.total_excl
    if (
        totals.total_tax.value is not None
        or not is_positive(incl.value)
        or not is_positive(excl.value)
        or excl.value > incl.value
    ):
        return totals

    value = incl.value - excl.value
    if value > 0:
        totals.total_tax = _derived(value, incl.confidence * excl.confidence)
    return totals


Step = Callable[[InvoiceTotals], InvoiceTotals]

RECONSTRUCTION_STEPS: Tuple[Step, ...] = (
    reconstruct_total_tax,
    reconstruct_total_excl,
    reconstruct_total_incl,
    reconstruct_total_tax_from_totals,
)


def run_reconstruction(totals: InvoiceTotals) -> Tuple[InvoiceTotals, List[str]]:
    """Apply every reconstruction step in order.

    Returns:
        The record and the names of the fields each step replaced, in order
    """
    reconstructed: List[str] = []

    with with_correlation(stage="reconstruction"):
        for step in RECONSTRUCTION_STEPS:
            before = {name: getattr(totals, name) for name in TOTAL_FIELDS}
            totals = step(totals)
            for name in TOTAL_FIELDS:
                field = getattr(totals, name)
                if field is before[name]:
                    continue
                reconstructed.append(name)
                record_reconstruction(name)
                logger.info(
                    f"Reconstructed {name} = {field.value}",
                    extra_fields={
                        "field": name,
                        "step": step.__name__,
                        "value": field.value,
                        "confidence": field.confidence,
                    },
                )

    return totals, reconstructed
