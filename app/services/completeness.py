"""
Completeness evaluator for lease comps.

A comp is complete when every required-field predicate passes. The result
is derived from the comp's current field values on every read; nothing is
stored on the row.

Usage:
    reasons = derive_incomplete_reasons(comp)          # [] when complete
    summary = completeness_summary(comp)               # for API payloads
"""

DEFAULT_REIMBURSEMENT_NOTES_MIN_LENGTH = 10

REASON_LABELS = {
    "missing_tenant": "Missing tenant name",
    "missing_building": "Missing building/address",
    "missing_lease_sf": "Missing lease SF",
    "missing_start_date": "Missing lease start date",
    "missing_term": "Missing lease term",
    "missing_pricing": "Missing rent pricing",
    "missing_reimbursement": "Missing reimbursement method",
    "missing_reimbursement_notes": "Missing reimbursement notes (required when 'other')",
}


def _field(comp, key):
    if isinstance(comp, dict):
        return comp.get(key)
    return getattr(comp, key, None)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def derive_incomplete_reasons(comp, min_notes_length: int = DEFAULT_REIMBURSEMENT_NOTES_MIN_LENGTH) -> list[str]:
    """Reason codes for every failing predicate, in declared order."""
    method = _field(comp, "reimbursement_method")
    notes = _field(comp, "reimbursement_other_notes") or ""

    checks = (
        ("missing_tenant", _blank(_field(comp, "tenant_name_raw"))),
        ("missing_building", not _field(comp, "building_id")),
        ("missing_lease_sf", _field(comp, "lease_sf") is None),
        ("missing_start_date", not _field(comp, "lease_start_date")),
        (
            "missing_term",
            _field(comp, "lease_term_months") is None and not _field(comp, "lease_end_date"),
        ),
        ("missing_pricing", _field(comp, "rent_psf_cents") is None),
        ("missing_reimbursement", not method),
        (
            "missing_reimbursement_notes",
            method == "other" and len(notes.strip()) < min_notes_length,
        ),
    )
    return [code for code, failed in checks if failed]


def completeness_summary(comp, min_notes_length: int = DEFAULT_REIMBURSEMENT_NOTES_MIN_LENGTH) -> dict:
    reasons = derive_incomplete_reasons(comp, min_notes_length)
    return {
        "is_complete": not reasons,
        "reasons": reasons,
        "labels": [REASON_LABELS[r] for r in reasons],
    }
