"""
Entity schemas for the lease comp family.

One ``EntitySchema`` per entity kind lists its editable fields in display
order, each with the label used in history diffs and the parser that
normalizes raw input. The diff computer and event classifier only ever see
``schema.field_labels`` and two snapshots.

    schema = SCHEMAS["renewal_option"]
    values = schema.normalize(payload)                # full insert
    values = schema.normalize(payload, partial=True)  # only keys present
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from app.core.exceptions import ValidationError
from app.models.lease_comp import (
    CONFIDENCE_LEVELS,
    COMP_STATUSES,
    CPI_FREQUENCIES,
    ESCALATION_UNITS,
    EXERCISE_WINDOW_TYPES,
    EXPANSION_OPTION_TYPES,
    EXPANSION_RATE_BASES,
    EXPANSION_TIMINGS,
    EXPORT_DETAIL_LEVELS,
    FLOOR_CAP_TYPES,
    FREE_RENT_UNITS,
    INTERNAL_ACCESS_LEVELS,
    LEASE_SF_TYPES,
    LEASE_STATUSES,
    LEASE_TYPES,
    NOTICE_METHODS,
    OFFICE_SF_LEASE_TYPES,
    PURCHASE_PRICE_BASES,
    PURCHASE_STRUCTURES,
    RATE_UNITS,
    REIMBURSEMENT_METHODS,
    RENEWAL_RATE_BASES,
    ROLLING_TRIGGER_TYPES,
    TASK_PRIORITIES,
    TERMINATION_OPTION_TYPES,
    TI_UNITS,
    ExpansionOption,
    LeaseComp,
    LeaseCompFile,
    LeaseCompReminder,
    LeaseCompTask,
    PurchaseOption,
    RenewalOption,
    TerminationOption,
)
from app.services.normalizers import (
    INT64_MAX,
    enum_of,
    iso_date,
    iso_datetime,
    month_end_date,
    non_negative_float,
    non_negative_int,
    required_text,
    text,
)

MAX_LEASE_TERM_MONTHS = 1200
MAX_OFFICE_PCT = 100


@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    parse: Callable[[Any], Any]
    required: bool = False


@dataclass(frozen=True)
class EntitySchema:
    """Field schema for one entity kind."""
    kind: str
    model: type
    fields: tuple[FieldSpec, ...]
    # Extra labelled fields captured in removal snapshots but not editable
    snapshot_extra: dict = field(default_factory=dict)

    @property
    def field_labels(self) -> dict:
        return {f.key: f.label for f in self.fields}

    @property
    def snapshot_labels(self) -> dict:
        return {**self.snapshot_extra, **self.field_labels}

    def normalize(self, raw: dict | None, partial: bool = False) -> dict:
        """Parse *raw* into column values.

        With ``partial`` only keys present in *raw* are parsed and required
        fields may be absent. Unknown keys are ignored. All field errors are
        reported together in one ValidationError.
        """
        if raw is not None and not isinstance(raw, dict):
            raise ValidationError(f"Invalid {self.kind} payload: expected an object")
        raw = raw or {}
        values, errors = {}, {}
        for spec in self.fields:
            if partial and spec.key not in raw:
                continue
            try:
                value = spec.parse(raw.get(spec.key))
            except ValueError as exc:
                errors[spec.key] = f"{spec.label} {exc}"
                continue
            if value is None and spec.required:
                errors[spec.key] = f"{spec.label} is required"
                continue
            values[spec.key] = value
        if errors:
            raise ValidationError(f"Invalid {self.kind.replace('_', ' ')} input", details=errors)
        return values


def _f(key, label, parse, required=False):
    return FieldSpec(key, label, parse, required)


# ── Lease comp ───────────────────────────────────────────────────────────────

_confidence = enum_of(CONFIDENCE_LEVELS)
_money = non_negative_int()
_count = non_negative_int()
_big_money = non_negative_int(limit=INT64_MAX)

LEASE_DETAILS = EntitySchema(
    kind="lease_details",
    model=LeaseComp,
    fields=(
        _f("tenant_name_raw", "Tenant Name", text(300)),
        _f("lease_type", "Lease Type", enum_of(LEASE_TYPES)),
        _f("lease_status", "Lease Status", enum_of(LEASE_STATUSES)),
        _f("lease_sf", "Lease SF", _count),
        _f("lease_sf_type", "Lease SF Type", enum_of(LEASE_SF_TYPES)),
        _f("lease_sf_confidence", "Lease SF Confidence", _confidence),
        _f("office_sf_lease", "Office SF (Lease)", _count),
        _f("office_pct_lease", "Office %", non_negative_float(MAX_OFFICE_PCT)),
        _f("office_sf_lease_type", "Office SF Type", enum_of(OFFICE_SF_LEASE_TYPES)),
        _f("office_sf_lease_confidence", "Office SF Confidence", _confidence),
        _f("signed_date", "Lease Sign Date", iso_date()),
        _f("signed_date_confidence", "Sign Date Confidence", _confidence),
        _f("lease_start_date", "Lease Start Date", iso_date()),
        _f("lease_start_date_confidence", "Start Date Confidence", _confidence),
        _f("lease_term_months", "Term (Months)", non_negative_int(MAX_LEASE_TERM_MONTHS)),
        _f("lease_term_months_confidence", "Term Confidence", _confidence),
        _f("lease_end_date", "Lease End Date", month_end_date()),
        _f("lease_end_date_confidence", "End Date Confidence", _confidence),
        _f("rent_psf_cents", "Starting Rate", _money),
        _f("starting_rate_units", "Starting Rate Units", enum_of(RATE_UNITS)),
        _f("starting_rate_confidence", "Starting Rate Confidence", _confidence),
        _f("reimbursement_method", "Reimbursement Method", enum_of(REIMBURSEMENT_METHODS)),
        _f("reimbursement_other_notes", "Reimbursement Notes (Other)", text()),
        _f("opex_cents", "Est. Yr 1 OpEx", _money),
        _f("opex_units", "OpEx Units", enum_of(RATE_UNITS)),
        _f("opex_confidence", "OpEx Confidence", _confidence),
        _f("escalation_value", "Escalations", non_negative_float()),
        _f("escalation_units", "Escalation Units", enum_of(ESCALATION_UNITS)),
        _f("escalation_frequency_months", "Escalation Frequency (Months)", _count),
        _f("escalation_confidence", "Escalation Confidence", _confidence),
        _f("free_rent_months", "Free Rent (Months)", _count),
        _f("free_rent_amount_cents", "Free Rent (Amount)", _money),
        _f("free_rent_units", "Free Rent Units", enum_of(FREE_RENT_UNITS)),
        _f("free_rent_confidence", "Free Rent Confidence", _confidence),
        _f("ti_allowance_cents", "TI", _money),
        _f("ti_units", "TI Units", enum_of(TI_UNITS)),
        _f("ti_confidence", "TI Confidence", _confidence),
        _f("presentation_comments_external", "Presentation Comments (External)", text()),
        _f("presentation_comments_internal", "Presentation Comments (Internal)", text()),
        _f("misc_commentary", "Misc Commentary", text()),
    ),
)

CONFIDENTIALITY = EntitySchema(
    kind="confidentiality",
    model=LeaseComp,
    fields=(
        _f("internal_access_level", "Internal Access Level", enum_of(INTERNAL_ACCESS_LEVELS), required=True),
        _f("export_detail_level", "Export Detail Level", enum_of(EXPORT_DETAIL_LEVELS), required=True),
    ),
)

COMP_STATUS = EntitySchema(
    kind="comp_status",
    model=LeaseComp,
    fields=(
        _f("status", "Comp Status", enum_of(COMP_STATUSES), required=True),
    ),
)

COMP_CREATION = EntitySchema(
    kind="comp_creation",
    model=LeaseComp,
    fields=(
        _f("tenant_name_raw", "Tenant Name", text(300)),
        _f("address", "Building/Address", required_text(500), required=True),
        _f("city", "City", text(100)),
        _f("state", "State", text(50)),
    ),
)


# ── Options ──────────────────────────────────────────────────────────────────

_EXERCISE_WINDOW = (
    _f("exercise_window_type", "Exercise Window Type", enum_of(EXERCISE_WINDOW_TYPES)),
    _f("exercise_deadline", "Exercise Deadline", iso_date()),
    _f("window_start_date", "Window Start Date", iso_date()),
    _f("window_end_date", "Window End Date", iso_date()),
    _f("rolling_trigger_type", "Rolling Trigger Type", enum_of(ROLLING_TRIGGER_TYPES)),
    _f("rolling_trigger_months", "Rolling Trigger Months", _count),
    _f("rolling_trigger_date", "Rolling Trigger Date", iso_date()),
    _f("notice_method", "Notice Method", enum_of(NOTICE_METHODS)),
    _f("notice_days_prior", "Notice Days Prior", _count),
    _f("notice_fixed_date", "Notice Fixed Date", iso_date()),
)

_COMMENTARY = _f("commentary", "Commentary", text())
_OPTION_NUMBER = {"option_number": "Option Number"}

RENEWAL_OPTION = EntitySchema(
    kind="renewal_option",
    model=RenewalOption,
    fields=_EXERCISE_WINDOW + (
        _f("renewal_term_months", "Renewal Term (months)", non_negative_int(MAX_LEASE_TERM_MONTHS)),
        _f("rate_basis", "Rate Basis", enum_of(RENEWAL_RATE_BASES)),
        _f("pct_of_fmv", "% of FMV", non_negative_float()),
        _f("floor_type", "Floor Type", enum_of(FLOOR_CAP_TYPES)),
        _f("floor_value", "Floor Value", non_negative_float()),
        _f("floor_override_text", "Floor Override Text", text()),
        _f("cap_type", "Cap Type", enum_of(FLOOR_CAP_TYPES)),
        _f("cap_value", "Cap Value", non_negative_float()),
        _f("cap_override_text", "Cap Override Text", text()),
        _f("cpi_index", "CPI Index", text(100)),
        _f("cpi_frequency", "CPI Frequency", enum_of(CPI_FREQUENCIES)),
        _f("cpi_min", "CPI Min", text(50)),
        _f("cpi_max", "CPI Max", text(50)),
        _COMMENTARY,
    ),
    snapshot_extra=_OPTION_NUMBER,
)

TERMINATION_OPTION = EntitySchema(
    kind="termination_option",
    model=TerminationOption,
    fields=(_f("type", "Type", enum_of(TERMINATION_OPTION_TYPES)),) + _EXERCISE_WINDOW + (
        _f("termination_fee_cents", "Termination Fee", _money),
        _COMMENTARY,
    ),
    snapshot_extra=_OPTION_NUMBER,
)

EXPANSION_OPTION = EntitySchema(
    kind="expansion_option",
    model=ExpansionOption,
    fields=(
        _f("type", "Type", enum_of(EXPANSION_OPTION_TYPES)),
        _f("subject_suite", "Subject Suite", text(100)),
        _f("decision_window_days", "Decision Window (days)", _count),
        _f("timing", "Timing", enum_of(EXPANSION_TIMINGS)),
        _f("timing_date", "Timing Date", iso_date()),
        _f("rate_basis", "Rate Basis", enum_of(EXPANSION_RATE_BASES)),
        _COMMENTARY,
    ),
    snapshot_extra=_OPTION_NUMBER,
)

PURCHASE_OPTION = EntitySchema(
    kind="purchase_option",
    model=PurchaseOption,
    fields=(_f("structure", "Structure", enum_of(PURCHASE_STRUCTURES)),) + _EXERCISE_WINDOW + (
        _f("price_basis", "Price Basis", enum_of(PURCHASE_PRICE_BASES)),
        _f("purchase_price_cents", "Purchase Price", _big_money),
        _f("pricing_formula", "Pricing Formula", text()),
        _COMMENTARY,
    ),
    snapshot_extra=_OPTION_NUMBER,
)


# ── Tasks, reminders, files ──────────────────────────────────────────────────

TASK = EntitySchema(
    kind="task",
    model=LeaseCompTask,
    fields=(
        _f("title", "Title", required_text(300), required=True),
        _f("priority", "Priority", enum_of(TASK_PRIORITIES)),
        _f("assigned_to", "Assigned To", non_negative_int()),
        _f("notes", "Notes", text()),
    ),
)

REMINDER = EntitySchema(
    kind="reminder",
    model=LeaseCompReminder,
    fields=(
        _f("title", "Title", required_text(300), required=True),
        _f("remind_at", "Remind At", iso_datetime(required=True), required=True),
        _f("assigned_to", "Assigned To", non_negative_int()),
        _f("notes", "Notes", text()),
    ),
)

FILE = EntitySchema(
    kind="file",
    model=LeaseCompFile,
    fields=(
        _f("original_filename", "Original Filename", required_text(500), required=True),
        _f("mime_type", "MIME Type", text(200)),
        _f("size_bytes", "Size", non_negative_int(limit=INT64_MAX)),
        _f("storage_path", "Storage Path", required_text(1000), required=True),
    ),
)


SCHEMAS = {
    s.kind: s
    for s in (
        LEASE_DETAILS, CONFIDENTIALITY, COMP_STATUS, COMP_CREATION,
        RENEWAL_OPTION, TERMINATION_OPTION, EXPANSION_OPTION, PURCHASE_OPTION,
        TASK, REMINDER, FILE,
    )
}

# option kind (URL segment) -> schema
OPTION_SCHEMAS = {
    "renewal": RENEWAL_OPTION,
    "termination": TERMINATION_OPTION,
    "expansion": EXPANSION_OPTION,
    "purchase": PURCHASE_OPTION,
}


def get_option_schema(kind: str) -> EntitySchema:
    schema = OPTION_SCHEMAS.get(kind)
    if schema is None:
        raise ValidationError(
            f"Unknown option kind: {kind}",
            details={"kind": f"must be one of: {', '.join(OPTION_SCHEMAS)}"},
        )
    return schema
