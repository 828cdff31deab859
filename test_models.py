"""Canonical model tests: N/A normalization, confidence clamping and construction helpers."""

import pytest
from pydantic import ValidationError

from core.models import Checklist, InvoiceTotals, MonetaryField, TaxLine


class TestMonetaryField:

    def test_na_is_absent(self):
        field = MonetaryField.model_validate({"value": "N/A", "probability": 0.0})
        assert field.value is None
        assert not field.is_present

    @pytest.mark.parametrize("raw, expected", [
        (120, 120.0),
        (99.5, 99.5),
        ("1,234.50", 1234.5),
        ("$12.30", 12.3),
        ("(5.00)", -5.0),
    ])
    def test_amount_formats(self, raw, expected):
        assert MonetaryField(value=raw).value == expected

    def test_empty_string_is_absent(self):
        assert MonetaryField(value="  ").value is None

    def test_unparseable_amount_rejected(self):
        with pytest.raises(ValidationError):
            MonetaryField(value="twelve")

    def test_boolean_amount_rejected(self):
        with pytest.raises(ValidationError):
            MonetaryField(value=True)

    def test_probability_alias(self):
        field = MonetaryField.model_validate({"value": 10, "probability": 0.7})
        assert field.confidence == 0.7
        assert MonetaryField(value=10, confidence=0.7).confidence == 0.7

    def test_confidence_clamped(self):
        assert MonetaryField(value=1, probability=1.4).confidence == 1.0
        assert MonetaryField(value=1, probability=-0.2).confidence == 0.0

    def test_confidence_defaults_to_zero(self):
        assert MonetaryField.model_validate({"value": 10}).confidence == 0.0
        assert MonetaryField.model_validate({"value": 10, "probability": "N/A"}).confidence == 0.0

    def test_not_reconstructed_by_default(self):
        assert not MonetaryField(value=3).reconstructed


class TestTaxLine:

    def test_prediction_shape(self):
        line = TaxLine.model_validate({"value": 9.5, "rate": 20, "code": "TVA", "probability": 0.9})
        assert line.value == 9.5
        assert line.rate == 20.0
        assert line.code == "TVA"
        assert line.confidence == 0.9

    def test_na_fields(self):
        line = TaxLine.model_validate({"value": "N/A", "rate": "N/A", "code": "N/A"})
        assert line.value is None
        assert line.rate is None
        assert line.code is None

    def test_confidence_undefined_when_missing(self):
        assert TaxLine(value=1.0).confidence is None


class TestInvoiceTotals:

    def test_total_tax_starts_absent(self):
        totals = InvoiceTotals.model_validate({
            "total_incl": {"value": 120, "probability": 0.9},
            "total_excl": {"value": 100, "probability": 0.9},
            "taxes": [],
        })
        assert totals.total_tax.value is None
        assert totals.total_tax.confidence == 0.0

    def test_unrelated_keys_ignored(self):
        totals = InvoiceTotals.model_validate({
            "locale": {"value": "fr"},
            "supplier": {"value": "ACME"},
            "total_incl": {"value": 120, "probability": 0.9},
        })
        assert totals.total_incl.value == 120.0
        assert not hasattr(totals, "supplier")

    def test_taxes_keep_order(self):
        totals = InvoiceTotals.model_validate({
            "taxes": [{"value": 1, "rate": 5}, {"value": 2, "rate": 10}, {"value": 3, "rate": 20}],
        })
        assert [tax.value for tax in totals.taxes] == [1.0, 2.0, 3.0]

    def test_from_values(self):
        totals = InvoiceTotals.from_values(
            total_incl=120,
            total_excl="N/A",
            taxes=[(20, 20), ("N/A", 10)],
        )
        assert totals.total_incl.value == 120.0
        assert totals.total_excl.value is None
        assert totals.total_tax.value is None
        assert [(tax.value, tax.rate) for tax in totals.taxes] == [(20.0, 20.0), (None, 10.0)]
        assert all(tax.confidence is None for tax in totals.taxes)

    def test_from_values_without_taxes(self):
        assert InvoiceTotals.from_values(total_incl=10).taxes == []


class TestChecklist:

    def test_defaults_false(self):
        checklist = Checklist()
        assert not checklist.all_passed()

    def test_immutable(self):
        checklist = Checklist(taxes_match_total_incl=True)
        with pytest.raises(ValidationError):
            checklist.taxes_match_total_incl = False
