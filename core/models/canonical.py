"""Core canonical data models - invoice totals under uncertainty.

Every monetary field and tax line carries the confidence the extractor gave
it. Values the extractor could not read arrive as the "N/A" sentinel and are
normalized to None here, once, so the reconciliation arithmetic only ever sees
Optional[float].
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


NOT_AVAILABLE = "N/A"


# =============================================================================
# Value Parsers (handle extractor output formats)
# =============================================================================

def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        s = value.strip()
        return s == "" or s.upper() == NOT_AVAILABLE
    return False


def _parse_amount(value):
    """Parse a float amount, mapping the N/A sentinel to None.

    Accepts ints, floats and strings with $ or thousands separators.
    Parenthesized strings are read as negatives.
    """
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse amount: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip().replace("$", "").replace(",", "")
        if s.startswith("(") and s.endswith(")"):
            s = "-" + s[1:-1]
        try:
            return float(s)
        except ValueError:
            raise ValueError(f"Cannot parse amount: {value!r}") from None
    return value


def _parse_confidence(value):
    """Parse a confidence and clamp it into [0, 1]; None when not given."""
    parsed = _parse_amount(value)
    if not isinstance(parsed, float):
        return parsed
    return min(1.0, max(0.0, parsed))


def _parse_field_confidence(value):
    """Field confidences default to 0.0 when the extractor gave none."""
    parsed = _parse_confidence(value)
    return 0.0 if parsed is None else parsed


def _parse_code(value):
    if _is_missing(value):
        return None
    return str(value).strip()


# Annotated types for automatic parsing. The validator wraps the Optional so
# the sentinel is mapped to None before type validation runs.
AmountValue = Annotated[Optional[float], BeforeValidator(_parse_amount)]
ConfidenceValue = Annotated[float, BeforeValidator(_parse_field_confidence)]
OptionalConfidenceValue = Annotated[Optional[float], BeforeValidator(_parse_confidence)]
CodeValue = Annotated[Optional[str], BeforeValidator(_parse_code)]


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Fields
# =============================================================================

class MonetaryField(CanonicalBase):
    """An amount with the confidence it was extracted (or derived) with."""
    value: AmountValue = None
    confidence: ConfidenceValue = Field(default=0.0, alias="probability")
    reconstructed: bool = False

    @property
    def is_present(self) -> bool:
        return self.value is not None


class TaxLine(CanonicalBase):
    """One tax entry: amount, rate in percent and optional tax code.

    A confidence of None means the extractor gave none; it counts as neutral
    when line confidences are multiplied together.
    """
    value: AmountValue = None
    rate: AmountValue = None
    code: CodeValue = None
    confidence: OptionalConfidenceValue = Field(default=None, alias="probability")


# =============================================================================
# Invoice Totals
# =============================================================================

class InvoiceTotals(CanonicalBase):
    """The reconcilable part of an invoice.

    Accepts the extractor's key names directly, e.g.
    {"total_incl": {"value": 120.0, "probability": 0.9}, "taxes": [...]};
    unrelated keys are ignored. total_tax is never supplied by the extractor
    and starts absent.
    """
    total_incl: MonetaryField = Field(default_factory=MonetaryField)
    total_excl: MonetaryField = Field(default_factory=MonetaryField)
    total_tax: MonetaryField = Field(default_factory=MonetaryField)
    taxes: List[TaxLine] = Field(default_factory=list)

    @classmethod
    def from_values(
        cls,
        total_incl=None,
        total_excl=None,
        total_tax=None,
        taxes: Optional[Iterable[Tuple[object, object]]] = None,
    ) -> "InvoiceTotals":
        """Build a record from bare values, e.g. when keying in an invoice by hand.

        Args:
            total_incl: Total including taxes (number, string or "N/A")
            total_excl: Total excluding taxes
            total_tax: Tax total
            taxes: Sequence of (value, rate) pairs
        """
        return cls(
            total_incl=MonetaryField(value=total_incl),
            total_excl=MonetaryField(value=total_excl),
            total_tax=MonetaryField(value=total_tax),
            taxes=[TaxLine(value=value, rate=rate) for value, rate in (taxes or [])],
        )


class Checklist(CanonicalBase):
    """Which arithmetic identities held for one invoice. Immutable once built."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    taxes_match_total_incl: bool = False
    taxes_match_total_excl: bool = False
    taxes_plus_total_excl_match_total_incl: bool = False

    def all_passed(self) -> bool:
        return (
            self.taxes_match_total_incl
            and self.taxes_match_total_excl
            and self.taxes_plus_total_excl_match_total_incl
        )
