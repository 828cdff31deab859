"""
Reconciliation Package

Cross-checks invoice totals against tax lines and fills in missing totals.

Usage:
    from core.models import InvoiceTotals
    from reconciliation import reconcile

    totals = InvoiceTotals.model_validate(prediction)
    report = reconcile(totals, document_id="INV-001")
    report.checklist.taxes_match_total_incl
"""

from .numeric import array_probability, sum_tax_values

from .checks import (
    # Check ids
    TAXES_MATCH_TOTAL_INCL,
    TAXES_MATCH_TOTAL_EXCL,
    TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL,

    # Results
    CheckResult,
    Severity,

    # Checks
    check_taxes_match_total_incl,
    check_taxes_match_total_excl,
    check_taxes_plus_total_excl_match_total_incl,
    certify,
    run_checklist,
)

from .reconstruct import (
    RECONSTRUCTION_STEPS,
    reconstruct_total_tax,
    reconstruct_total_excl,
    reconstruct_total_incl,
    reconstruct_total_tax_from_totals,
    run_reconstruction,
)

from .engine import reconcile

__all__ = [
    # Engine
    "reconcile",

    # Checks
    "TAXES_MATCH_TOTAL_INCL",
    "TAXES_MATCH_TOTAL_EXCL",
    "TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL",
    "CheckResult",
    "Severity",
    "check_taxes_match_total_incl",
    "check_taxes_match_total_excl",
    "check_taxes_plus_total_excl_match_total_incl",
    "certify",
    "run_checklist",

    # Reconstruction
    "RECONSTRUCTION_STEPS",
    "reconstruct_total_tax",
    "reconstruct_total_excl",
    "reconstruct_total_incl",
    "reconstruct_total_tax_from_totals",
    "run_reconstruction",

    # Helpers
    "array_probability",
    "sum_tax_values",
]
