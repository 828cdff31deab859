"""Consistency checks between invoice totals and tax lines.

Three independent identities are tested:
- TAXES_MATCH_TOTAL_INCL: per-line bases rebuilt from rates, plus taxes, give total_incl
- TAXES_MATCH_TOTAL_EXCL: per-line bases rebuilt from rates give total_excl
- TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL: total_excl + sum(taxes) = total_incl

A passing check corroborates the fields it read, so their confidences are
raised to 1.0. Checks only read values, never confidences, so their order
does not change any outcome.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from core.config import ReconciliationSettings, get_settings
from core.models.canonical import Checklist, InvoiceTotals
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_check
from reconciliation.numeric import sum_tax_values, within


logger = get_logger(__name__)


# =============================================================================
# Configuration & Data Structures
# =============================================================================

TAXES_MATCH_TOTAL_INCL = "TAXES_MATCH_TOTAL_INCL"
TAXES_MATCH_TOTAL_EXCL = "TAXES_MATCH_TOTAL_EXCL"
TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL = "TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL"


class Severity(str, Enum):
    WARN = "WARN"
    INFO = "INFO"


class CheckResult:
    """Result of a single consistency check."""

    def __init__(
        self,
        check_id: str,
        severity: Severity,
        passed: bool,
        message: str,
        evidence: Optional[Dict] = None,
    ):
        self.check_id = check_id
        self.severity = severity
        self.passed = passed
        self.message = message
        self.evidence = evidence or {}

    def to_dict(self) -> Dict:
        return {
            "check_id": self.check_id,
            "severity": self.severity.value,
            "passed": self.passed,
            "message": self.message,
            "evidence": self.evidence,
        }

    def __repr__(self) -> str:
        return f"CheckResult({self.check_id}, passed={self.passed})"


def _failed(check_id: str, message: str, evidence: Optional[Dict] = None) -> CheckResult:
    return CheckResult(
        check_id=check_id,
        severity=Severity.WARN,
        passed=False,
        message=message,
        evidence=evidence,
    )


# =============================================================================
# Confidence Upgrade
# =============================================================================

def certify(totals: InvoiceTotals, total_name: str) -> InvoiceTotals:
    """Raise tax lines, total_tax and the named total to certainty.

    Tax lines are replaced by upgraded copies; the line objects themselves are
    never modified, so references held elsewhere keep their old confidence.
    """
    totals.taxes = [tax.model_copy(update={"confidence": 1.0}) for tax in totals.taxes]
    totals.total_tax.confidence = 1.0
    getattr(totals, total_name).confidence = 1.0
    return totals


# =============================================================================
# Individual Check Functions
# =============================================================================

def _rebuild_from_rates(totals: InvoiceTotals, include_tax: bool) -> Tuple[float, float, int]:
    """Rebuild a total line by line from each line's own rate.

    Lines without a value or with a zero/absent rate are skipped.

    Returns:
        (total_vat, reconstructed_total, skipped_lines)
    """
    total_vat = 0.0
    reconstructed = 0.0
    skipped = 0
    for tax in totals.taxes:
        if tax.value is None or not tax.rate:
            skipped += 1
            continue
        total_vat += tax.value
        base = 100 * tax.value / tax.rate
        if include_tax:
            reconstructed += tax.value + base
        else:
            reconstructed += base
    return total_vat, reconstructed, skipped


def _check_rate_total(
    totals: InvoiceTotals,
    check_id: str,
    total_name: str,
    include_tax: bool,
    slack: float,
) -> CheckResult:
    total = getattr(totals, total_name)
    if not totals.taxes or total.value is None:
        return _failed(
            check_id,
            f"Cannot check {total_name}: taxes or {total_name} missing",
            {"tax_lines": len(totals.taxes), total_name: total.value},
        )

    total_vat, reconstructed, skipped = _rebuild_from_rates(totals, include_tax)

    # Sanity check
    if total_vat <= 0:
        return _failed(
            check_id,
            f"No usable tax line to rebuild {total_name}",
            {"total_vat": total_vat, "skipped_lines": skipped},
        )

    # Larger tax amounts get a tighter relative band
    eps = 1 / (100 * total_vat)
    low = total.value * (1 - eps) - slack
    high = total.value * (1 + eps) + slack

    evidence = {
        total_name: total.value,
        "reconstructed_total": reconstructed,
        "total_vat": total_vat,
        "epsilon": eps,
        "band": [low, high],
        "skipped_lines": skipped,
    }
    logger.debug(f"{check_id}: rebuilt {reconstructed} against {total.value}", extra_fields=evidence)

    if not within(reconstructed, low, high):
        return _failed(
            check_id,
            f"Taxes rebuild {total_name} as {reconstructed:.2f}, extracted {total.value:.2f}",
            evidence,
        )

    certify(totals, total_name)
    return CheckResult(
        check_id=check_id,
        severity=Severity.INFO,
        passed=True,
        message=f"Taxes match {total_name}",
        evidence=evidence,
    )


def check_taxes_match_total_incl(
    totals: InvoiceTotals,
    settings: Optional[ReconciliationSettings] = None,
) -> CheckResult:
    """Sum of (tax + base implied by the line's rate) matches total_incl."""
    settings = settings or get_settings()
    return _check_rate_total(
        totals, TAXES_MATCH_TOTAL_INCL, "total_incl", include_tax=True, slack=settings.rate_slack
    )


def check_taxes_match_total_excl(
    totals: InvoiceTotals,
    settings: Optional[ReconciliationSettings] = None,
) -> CheckResult:
    """Sum of bases implied by each line's rate matches total_excl."""
    settings = settings or get_settings()
    return _check_rate_total(
        totals, TAXES_MATCH_TOTAL_EXCL, "total_excl", include_tax=False, slack=settings.rate_slack
    )


def check_taxes_plus_total_excl_match_total_incl(
    totals: InvoiceTotals,
    settings: Optional[ReconciliationSettings] = None,
) -> CheckResult:
    """total_excl + sum of tax values matches total_incl within a fixed tolerance."""
    settings = settings or get_settings()
    check_id = TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL
    incl = totals.total_incl.value
    excl = totals.total_excl.value

    if excl is None or incl is None or not totals.taxes:
        return _failed(
            check_id,
            "Cannot check totals: total_excl, total_incl or taxes missing",
            {"total_incl": incl, "total_excl": excl, "tax_lines": len(totals.taxes)},
        )

    # Lines without a value count as zero here
    total_vat = sum_tax_values(totals.taxes)
    if total_vat <= 0:
        return _failed(check_id, "Tax lines sum to zero", {"total_vat": total_vat})

    reconstructed = total_vat + excl
    tolerance = settings.sum_tolerance
    evidence = {
        "total_incl": incl,
        "total_excl": excl,
        "total_vat": total_vat,
        "reconstructed_total": reconstructed,
        "tolerance": tolerance,
    }
    logger.debug(f"{check_id}: {excl} + {total_vat} against {incl}", extra_fields=evidence)

    if not within(reconstructed, incl - tolerance, incl + tolerance):
        return _failed(
            check_id,
            f"total_excl + taxes = {reconstructed:.2f}, total_incl {incl:.2f}",
            evidence,
        )

    certify(totals, "total_incl")
    return CheckResult(
        check_id=check_id,
        severity=Severity.INFO,
        passed=True,
        message="total_excl + taxes match total_incl",
        evidence=evidence,
    )


# =============================================================================
# Checklist
# =============================================================================

CHECKS = (
    (TAXES_MATCH_TOTAL_INCL, check_taxes_match_total_incl),
    (TAXES_MATCH_TOTAL_EXCL, check_taxes_match_total_excl),
    (TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL, check_taxes_plus_total_excl_match_total_incl),
)


def run_checklist(
    totals: InvoiceTotals,
    settings: Optional[ReconciliationSettings] = None,
) -> Tuple[Checklist, List[CheckResult]]:
    """Run every consistency check on the record.

    Returns:
        The immutable Checklist and the detailed results, in check order
    """
    settings = settings or get_settings()
    results: List[CheckResult] = []

    with with_correlation(stage="checklist"):
        for check_id, check in CHECKS:
            with with_correlation(check_id=check_id):
                result = check(totals, settings)
            record_check(check_id, result.passed)
            if result.passed:
                logger.info(f"Check passed: {check_id}", extra_fields={"check_id": check_id})
            results.append(result)

    by_id = {r.check_id: r.passed for r in results}
    checklist = Checklist(
        taxes_match_total_incl=by_id[TAXES_MATCH_TOTAL_INCL],
        taxes_match_total_excl=by_id[TAXES_MATCH_TOTAL_EXCL],
        taxes_plus_total_excl_match_total_incl=by_id[TAXES_PLUS_TOTAL_EXCL_MATCH_TOTAL_INCL],
    )
    return checklist, results
