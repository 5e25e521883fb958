"""
Completeness evaluator — reason codes derived from current comp values.
"""

from datetime import date

from app.models import db
from app.services.completeness import REASON_LABELS, completeness_summary, derive_incomplete_reasons


def _complete_comp(**overrides):
    comp = {
        "tenant_name_raw": "Acme Logistics",
        "building_id": "b-1",
        "lease_sf": 42000,
        "lease_start_date": date(2024, 1, 1),
        "lease_term_months": 60,
        "lease_end_date": None,
        "rent_psf_cents": 95,
        "reimbursement_method": "net",
        "reimbursement_other_notes": None,
    }
    comp.update(overrides)
    return comp


class TestDeriveIncompleteReasons:
    def test_complete_comp_has_no_reasons(self):
        assert derive_incomplete_reasons(_complete_comp()) == []

    def test_missing_tenant_sf_and_short_other_notes(self):
        comp = _complete_comp(
            tenant_name_raw=None,
            lease_sf=None,
            reimbursement_method="other",
            reimbursement_other_notes="ok",
        )
        assert derive_incomplete_reasons(comp) == [
            "missing_tenant",
            "missing_lease_sf",
            "missing_reimbursement_notes",
        ]

    def test_nine_character_notes_are_too_short(self):
        comp = _complete_comp(reimbursement_method="other", reimbursement_other_notes="  123456789  ")
        assert derive_incomplete_reasons(comp) == ["missing_reimbursement_notes"]

    def test_ten_character_notes_pass(self):
        comp = _complete_comp(reimbursement_method="other", reimbursement_other_notes="1234567890")
        assert derive_incomplete_reasons(comp) == []

    def test_notes_threshold_is_configurable(self):
        comp = _complete_comp(reimbursement_method="other", reimbursement_other_notes="12345")
        assert derive_incomplete_reasons(comp, min_notes_length=5) == []

    def test_blank_tenant_counts_as_missing(self):
        assert derive_incomplete_reasons(_complete_comp(tenant_name_raw="   ")) == ["missing_tenant"]

    def test_end_date_satisfies_term(self):
        comp = _complete_comp(lease_term_months=None, lease_end_date=date(2029, 12, 31))
        assert derive_incomplete_reasons(comp) == []

    def test_missing_term_needs_both_absent(self):
        comp = _complete_comp(lease_term_months=None, lease_end_date=None)
        assert derive_incomplete_reasons(comp) == ["missing_term"]

    def test_zero_values_are_present(self):
        comp = _complete_comp(lease_sf=0, rent_psf_cents=0, lease_term_months=0)
        assert derive_incomplete_reasons(comp) == []

    def test_empty_comp_reports_in_declared_order(self):
        assert derive_incomplete_reasons({}) == [
            "missing_tenant",
            "missing_building",
            "missing_lease_sf",
            "missing_start_date",
            "missing_term",
            "missing_pricing",
            "missing_reimbursement",
        ]

    def test_repeated_calls_are_identical(self):
        comp = _complete_comp(lease_sf=None, reimbursement_method=None)
        assert derive_incomplete_reasons(comp) == derive_incomplete_reasons(comp)


class TestCompletenessSummary:
    def test_summary_carries_labels(self):
        summary = completeness_summary(_complete_comp(rent_psf_cents=None))
        assert summary == {
            "is_complete": False,
            "reasons": ["missing_pricing"],
            "labels": [REASON_LABELS["missing_pricing"]],
        }

    def test_orm_row_is_evaluated(self, comp):
        comp.lease_sf = 1000
        db.session.commit()
        reasons = derive_incomplete_reasons(comp)
        assert "missing_tenant" not in reasons
        assert "missing_building" not in reasons
        assert "missing_lease_sf" not in reasons
        assert "missing_start_date" in reasons
