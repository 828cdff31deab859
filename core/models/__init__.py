"""Core data models - invoice totals, tax lines and reconciliation reports."""

from core.models.canonical import (
    # Base
    CanonicalBase,
    AmountValue,
    ConfidenceValue,
    NOT_AVAILABLE,

    # Fields
    MonetaryField,
    TaxLine,

    # Invoice
    InvoiceTotals,
    Checklist,
)

from core.models.report import (
    ReconciliationReport,
    ReconciliationStatus,
)

__all__ = [
    # Base
    "CanonicalBase",
    "AmountValue",
    "ConfidenceValue",
    "NOT_AVAILABLE",

    # Fields
    "MonetaryField",
    "TaxLine",

    # Invoice
    "InvoiceTotals",
    "Checklist",

    # Reports
    "ReconciliationReport",
    "ReconciliationStatus",
]
