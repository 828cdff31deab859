"""Reconciliation engine for invoice totals and tax lines.

Exposes high-level function:
- reconcile(totals) -> ReconciliationReport

The record is checked first (which may raise confidences), then gaps are
filled by reconstruction. Both stages modify the record in place.
"""

import time
from typing import Optional

from core.config import ReconciliationSettings, get_settings
from core.models.canonical import InvoiceTotals
from core.models.report import ReconciliationReport, ReconciliationStatus
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_reconciliation
from reconciliation.checks import run_checklist
from reconciliation.reconstruct import run_reconstruction


logger = get_logger(__name__)


def reconcile(
    totals: InvoiceTotals,
    document_id: Optional[str] = None,
    page_number: Optional[int] = None,
    settings: Optional[ReconciliationSettings] = None,
) -> ReconciliationReport:
    """Run all consistency checks, then reconstruct missing fields.

    Args:
        totals: Extracted totals; modified in place
        document_id: Identifier used for log correlation
        page_number: Page the totals were read from, for log correlation
        settings: Tolerances; defaults to the environment settings

    Returns:
        ReconciliationReport with checklist, check details and reconstructed fields
    """
    settings = settings or get_settings()
    started = time.perf_counter()

    with with_correlation(document_id=document_id, page_number=page_number):
        # =====================================================================
        # Consistency checks
        # =====================================================================
        checklist, checks = run_checklist(totals, settings)

        # =====================================================================
        # Reconstruction
        # =====================================================================
        totals, reconstructed_fields = run_reconstruction(totals)

        duration_ms = (time.perf_counter() - started) * 1000
        record_reconciliation(duration_ms)

        status = ReconciliationStatus.PASS if checklist.all_passed() else ReconciliationStatus.WARN
        passed_checks = sum(1 for c in checks if c.passed)
        logger.info(
            f"Reconciled: {passed_checks}/{len(checks)} checks passed, "
            f"{len(reconstructed_fields)} fields reconstructed",
            extra_fields={"status": status.value, "duration_ms": duration_ms},
        )

    return ReconciliationReport(
        document_id=document_id,
        status=status,
        checklist=checklist,
        checks=[c.to_dict() for c in checks],
        reconstructed_fields=reconstructed_fields,
        summary={
            "total_checks": len(checks),
            "passed_checks": passed_checks,
            "failed_checks": len(checks) - passed_checks,
            "reconstructed": len(reconstructed_fields),
            "total_incl": totals.total_incl.value,
            "total_excl": totals.total_excl.value,
            "total_tax": totals.total_tax.value,
        },
    )
