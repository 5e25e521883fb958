"""
Lease Comp domain models.

Models:
    - Building: physical address a comp is linked to (shared across teams).
    - LeaseComp: the lease comparable record under audit.
    - RenewalOption / TerminationOption / ExpansionOption / PurchaseOption.
    - LeaseCompTask, LeaseCompReminder, LeaseCompFile.

Enum-valued columns are plain strings; the allowed values live in the
constant sets below and are enforced by the input normalizers.
"""

import uuid
from datetime import date, datetime, timezone

from app.models import db
from app.models.base import TeamModel


__all__ = [
    "Building",
    "LeaseComp",
    "RenewalOption",
    "TerminationOption",
    "ExpansionOption",
    "PurchaseOption",
    "LeaseCompTask",
    "LeaseCompReminder",
    "LeaseCompFile",
]


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _row_to_dict(row) -> dict:
    out = {}
    for c in row.__table__.columns:
        value = getattr(row, c.name)
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        out[c.name] = value
    return out


# ── Enum values ──────────────────────────────────────────────────────────────

COMP_STATUSES = {"draft", "active"}

LEASE_TYPES = {"new", "renewal", "expansion", "sublease"}
LEASE_STATUSES = {"signed", "pending", "proposal"}
LEASE_SF_TYPES = {"single_story", "rba_incl_2nd_fl"}
OFFICE_SF_LEASE_TYPES = {"single_story", "multi_story"}
CONFIDENCE_LEVELS = {"confirmed", "estimated"}
RATE_UNITS = {"sf_yr", "sf_mo", "mo", "yr", "ac_mo", "lsf_yr", "lsf_mo"}
REIMBURSEMENT_METHODS = {"net", "gross", "modified_gross", "base_year", "other"}
ESCALATION_UNITS = {"pct", "sf", "mo"}
FREE_RENT_UNITS = {"mos", "amount"}
TI_UNITS = {"sf", "amount"}

INTERNAL_ACCESS_LEVELS = {"all_team", "owner_admin_me", "owner_me", "just_me"}
EXPORT_DETAIL_LEVELS = {"all_visible", "hide_major_terms", "hide_all", "excluded"}

EXERCISE_WINDOW_TYPES = {"by_deadline", "between_dates", "rolling"}
ROLLING_TRIGGER_TYPES = {"lease_start", "lease_end", "fixed_date"}
NOTICE_METHODS = {"days_prior", "fixed_date"}

RENEWAL_RATE_BASES = {"fmv", "pct_fmv", "fixed_rate", "cpi_adjustment"}
FLOOR_CAP_TYPES = {"pct_prior_rent", "fixed_sf", "other"}
CPI_FREQUENCIES = {"annual", "semi_annual", "quarterly", "monthly", "other"}

TERMINATION_OPTION_TYPES = {"one_time", "ongoing"}

EXPANSION_OPTION_TYPES = {"rofo", "rofr", "fixed_expansion", "must_take"}
EXPANSION_TIMINGS = {"ongoing", "date_specific"}
EXPANSION_RATE_BASES = {"fmv", "same_terms", "fixed_rate", "pre_agreed"}

PURCHASE_STRUCTURES = {"fixed_date", "rofr"}
PURCHASE_PRICE_BASES = {"fixed_price", "fmv", "formula_based"}

TASK_PRIORITIES = {"high", "medium", "low"}


# ═════════════════════════════════════════════════════════════════════════════
# Building
# ═════════════════════════════════════════════════════════════════════════════

class Building(db.Model):
    """Physical building, found-or-created by normalised address."""

    __tablename__ = "buildings"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    full_address_raw = db.Column(db.String(500), nullable=False, unique=True)
    name = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return _row_to_dict(self)


# ═════════════════════════════════════════════════════════════════════════════
# LeaseComp — the record under audit
# ═════════════════════════════════════════════════════════════════════════════

class LeaseComp(TeamModel):
    """
    Lease comparable. Money columns are integer cents; enum columns hold
    the tags listed in the module constants.
    """

    __tablename__ = "lease_comps"
    __table_args__ = (
        db.Index("idx_lc_team_created", "team_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    building_id = db.Column(
        db.String(36), db.ForeignKey("buildings.id", ondelete="RESTRICT"),
        nullable=True, index=True,
    )
    status = db.Column(db.String(10), nullable=False, default="draft", comment="draft | active")
    tenant_name_raw = db.Column(db.String(300), nullable=True)

    # Lease details
    lease_type = db.Column(db.String(20), nullable=True)
    lease_status = db.Column(db.String(20), nullable=True)
    lease_sf = db.Column(db.Integer, nullable=True)
    lease_sf_type = db.Column(db.String(30), nullable=True)
    lease_sf_confidence = db.Column(db.String(20), nullable=True)
    office_sf_lease = db.Column(db.Integer, nullable=True)
    office_pct_lease = db.Column(db.Float, nullable=True)
    office_sf_lease_type = db.Column(db.String(30), nullable=True)
    office_sf_lease_confidence = db.Column(db.String(20), nullable=True)
    signed_date = db.Column(db.Date, nullable=True)
    signed_date_confidence = db.Column(db.String(20), nullable=True)
    lease_start_date = db.Column(db.Date, nullable=True)
    lease_start_date_confidence = db.Column(db.String(20), nullable=True)
    lease_term_months = db.Column(db.Integer, nullable=True)
    lease_term_months_confidence = db.Column(db.String(20), nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True, comment="Always the last day of a month")
    lease_end_date_confidence = db.Column(db.String(20), nullable=True)
    rent_psf_cents = db.Column(db.Integer, nullable=True)
    starting_rate_units = db.Column(db.String(10), nullable=True)
    starting_rate_confidence = db.Column(db.String(20), nullable=True)
    reimbursement_method = db.Column(db.String(20), nullable=True)
    reimbursement_other_notes = db.Column(db.Text, nullable=True)
    opex_cents = db.Column(db.Integer, nullable=True)
    opex_units = db.Column(db.String(10), nullable=True)
    opex_confidence = db.Column(db.String(20), nullable=True)
    escalation_value = db.Column(db.Float, nullable=True)
    escalation_units = db.Column(db.String(10), nullable=True)
    escalation_frequency_months = db.Column(db.Integer, nullable=True)
    escalation_confidence = db.Column(db.String(20), nullable=True)
    free_rent_months = db.Column(db.Integer, nullable=True)
    free_rent_amount_cents = db.Column(db.Integer, nullable=True)
    free_rent_units = db.Column(db.String(10), nullable=True)
    free_rent_confidence = db.Column(db.String(20), nullable=True)
    ti_allowance_cents = db.Column(db.Integer, nullable=True)
    ti_units = db.Column(db.String(10), nullable=True)
    ti_confidence = db.Column(db.String(20), nullable=True)
    presentation_comments_external = db.Column(db.Text, nullable=True)
    presentation_comments_internal = db.Column(db.Text, nullable=True)
    misc_commentary = db.Column(db.Text, nullable=True)

    # Confidentiality
    internal_access_level = db.Column(db.String(20), nullable=False, default="all_team")
    export_detail_level = db.Column(db.String(20), nullable=False, default="all_visible")

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    building = db.relationship("Building", lazy="joined")

    def to_dict(self, include_building: bool = True) -> dict:
        d = _row_to_dict(self)
        if include_building:
            b = self.building
            d["building_name"] = b.name if b else None
            d["building_address"] = b.full_address_raw if b else None
            d["building_city"] = b.city if b else None
            d["building_state"] = b.state if b else None
        return d

    def __repr__(self):
        return f"<LeaseComp {self.id} [{self.status}]>"


# ═════════════════════════════════════════════════════════════════════════════
# Options
# ═════════════════════════════════════════════════════════════════════════════

class _OptionColumns:
    """Columns every option table shares."""

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    option_number = db.Column(db.Integer, nullable=False)
    commentary = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    updated_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    def to_dict(self) -> dict:
        return _row_to_dict(self)


class _ExerciseWindowColumns:
    """Exercise window + notice columns shared by renewal, termination and purchase."""

    exercise_window_type = db.Column(db.String(20), nullable=True)
    exercise_deadline = db.Column(db.Date, nullable=True)
    window_start_date = db.Column(db.Date, nullable=True)
    window_end_date = db.Column(db.Date, nullable=True)
    rolling_trigger_type = db.Column(db.String(20), nullable=True)
    rolling_trigger_months = db.Column(db.Integer, nullable=True)
    rolling_trigger_date = db.Column(db.Date, nullable=True)
    notice_method = db.Column(db.String(20), nullable=True)
    notice_days_prior = db.Column(db.Integer, nullable=True)
    notice_fixed_date = db.Column(db.Date, nullable=True)


class RenewalOption(_OptionColumns, _ExerciseWindowColumns, TeamModel):
    __tablename__ = "lease_comp_renewal_options"

    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    renewal_term_months = db.Column(db.Integer, nullable=True)
    rate_basis = db.Column(db.String(20), nullable=True)
    pct_of_fmv = db.Column(db.Float, nullable=True)
    floor_type = db.Column(db.String(20), nullable=True)
    floor_value = db.Column(db.Float, nullable=True)
    floor_override_text = db.Column(db.Text, nullable=True)
    cap_type = db.Column(db.String(20), nullable=True)
    cap_value = db.Column(db.Float, nullable=True)
    cap_override_text = db.Column(db.Text, nullable=True)
    cpi_index = db.Column(db.String(100), nullable=True)
    cpi_frequency = db.Column(db.String(20), nullable=True)
    cpi_min = db.Column(db.String(50), nullable=True)
    cpi_max = db.Column(db.String(50), nullable=True)


class TerminationOption(_OptionColumns, _ExerciseWindowColumns, TeamModel):
    __tablename__ = "lease_comp_termination_options"

    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(20), nullable=True)
    termination_fee_cents = db.Column(db.Integer, nullable=True)


class ExpansionOption(_OptionColumns, TeamModel):
    __tablename__ = "lease_comp_expansion_options"

    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(20), nullable=True)
    subject_suite = db.Column(db.String(100), nullable=True)
    decision_window_days = db.Column(db.Integer, nullable=True)
    timing = db.Column(db.String(20), nullable=True)
    timing_date = db.Column(db.Date, nullable=True)
    rate_basis = db.Column(db.String(20), nullable=True)


class PurchaseOption(_OptionColumns, _ExerciseWindowColumns, TeamModel):
    __tablename__ = "lease_comp_purchase_options"

    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    structure = db.Column(db.String(20), nullable=True)
    price_basis = db.Column(db.String(20), nullable=True)
    purchase_price_cents = db.Column(db.BigInteger, nullable=True)
    pricing_formula = db.Column(db.Text, nullable=True)


# ═════════════════════════════════════════════════════════════════════════════
# Tasks, reminders, files
# ═════════════════════════════════════════════════════════════════════════════

class LeaseCompTask(TeamModel):
    __tablename__ = "lease_comp_tasks"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    priority = db.Column(db.String(10), nullable=False, default="medium")
    status = db.Column(db.String(10), nullable=False, default="open")
    notes = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    updated_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    def to_dict(self) -> dict:
        return _row_to_dict(self)


class LeaseCompReminder(TeamModel):
    __tablename__ = "lease_comp_reminders"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    remind_at = db.Column(db.DateTime(timezone=True), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notification_sent = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer, nullable=True)
    updated_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    def to_dict(self) -> dict:
        return _row_to_dict(self)


class LeaseCompFile(TeamModel):
    """File metadata. The bytes live in external object storage at storage_path."""

    __tablename__ = "lease_comp_files"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    lease_comp_id = db.Column(
        db.String(36), db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    storage_path = db.Column(db.String(1000), nullable=False)
    original_filename = db.Column(db.String(500), nullable=False)
    mime_type = db.Column(db.String(200), nullable=True)
    size_bytes = db.Column(db.BigInteger, nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return _row_to_dict(self)
