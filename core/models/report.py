"""Report models for reconciliation results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from core.models.canonical import Checklist


class ReconciliationStatus(str, Enum):
    """Overall outcome of a reconciliation pass."""
    PASS = "PASS"
    WARN = "WARN"


class ReconciliationReport(BaseModel):
    """Reconciliation results for one invoice.

    Attributes:
        document_id: Caller-supplied identifier used for log correlation
        status: PASS when every consistency check passed, WARN otherwise
        checklist: Pass/fail of the three arithmetic identities
        checks: Detailed check results with evidence
        reconstructed_fields: Names of the fields filled in by reconstruction, in order
        summary: Counts for quick display
        reconciled_at: Timestamp of the pass
    """
    document_id: Optional[str] = Field(None, description="Document identifier")
    status: ReconciliationStatus = Field(..., description="Overall status: PASS or WARN")
    checklist: Checklist = Field(..., description="Consistency checklist")
    checks: list[dict] = Field(default_factory=list, description="Individual check results")
    reconstructed_fields: list[str] = Field(default_factory=list, description="Fields derived from other fields")
    summary: dict = Field(default_factory=dict, description="Summary information")
    reconciled_at: datetime = Field(default_factory=datetime.utcnow, description="Reconciliation timestamp")
