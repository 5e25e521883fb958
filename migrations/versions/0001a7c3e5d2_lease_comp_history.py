"""lease_comp_history

Create teams, users, buildings, lease comps with their options, tasks,
reminders and files, and the append-only history tables.

Revision ID: 0001a7c3e5d2
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001a7c3e5d2"
down_revision = None
branch_labels = None
depends_on = None


def _team_fk():
    return sa.Column(
        "team_id", sa.Integer(),
        sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True,
    )


def _comp_fk():
    return sa.Column(
        "lease_comp_id", sa.String(length=36),
        sa.ForeignKey("lease_comps.id", ondelete="CASCADE"), nullable=False, index=True,
    )


def _audit_columns():
    return [
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _option_columns():
    return [
        sa.Column("id", sa.String(length=36), primary_key=True),
        _team_fk(),
        _comp_fk(),
        sa.Column("option_number", sa.Integer(), nullable=False),
        sa.Column("commentary", sa.Text(), nullable=True),
    ]


def _exercise_window_columns():
    return [
        sa.Column("exercise_window_type", sa.String(length=20), nullable=True),
        sa.Column("exercise_deadline", sa.Date(), nullable=True),
        sa.Column("window_start_date", sa.Date(), nullable=True),
        sa.Column("window_end_date", sa.Date(), nullable=True),
        sa.Column("rolling_trigger_type", sa.String(length=20), nullable=True),
        sa.Column("rolling_trigger_months", sa.Integer(), nullable=True),
        sa.Column("rolling_trigger_date", sa.Date(), nullable=True),
        sa.Column("notice_method", sa.String(length=20), nullable=True),
        sa.Column("notice_days_prior", sa.Integer(), nullable=True),
        sa.Column("notice_fixed_date", sa.Date(), nullable=True),
    ]


def upgrade():
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("team_id", "email", name="uq_user_team_email"),
    )
    op.create_index("ix_users_team_id", "users", ["team_id"])

    op.create_table(
        "buildings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("full_address_raw", sa.String(length=500), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "lease_comps",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _team_fk(),
        sa.Column(
            "building_id", sa.String(length=36),
            sa.ForeignKey("buildings.id", ondelete="RESTRICT"), nullable=True, index=True,
        ),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("tenant_name_raw", sa.String(length=300), nullable=True),
        sa.Column("lease_type", sa.String(length=20), nullable=True),
        sa.Column("lease_status", sa.String(length=20), nullable=True),
        sa.Column("lease_sf", sa.Integer(), nullable=True),
        sa.Column("lease_sf_type", sa.String(length=30), nullable=True),
        sa.Column("lease_sf_confidence", sa.String(length=20), nullable=True),
        sa.Column("office_sf_lease", sa.Integer(), nullable=True),
        sa.Column("office_pct_lease", sa.Float(), nullable=True),
        sa.Column("office_sf_lease_type", sa.String(length=30), nullable=True),
        sa.Column("office_sf_lease_confidence", sa.String(length=20), nullable=True),
        sa.Column("signed_date", sa.Date(), nullable=True),
        sa.Column("signed_date_confidence", sa.String(length=20), nullable=True),
        sa.Column("lease_start_date", sa.Date(), nullable=True),
        sa.Column("lease_start_date_confidence", sa.String(length=20), nullable=True),
        sa.Column("lease_term_months", sa.Integer(), nullable=True),
        sa.Column("lease_term_months_confidence", sa.String(length=20), nullable=True),
        sa.Column("lease_end_date", sa.Date(), nullable=True),
        sa.Column("lease_end_date_confidence", sa.String(length=20), nullable=True),
        sa.Column("rent_psf_cents", sa.Integer(), nullable=True),
        sa.Column("starting_rate_units", sa.String(length=10), nullable=True),
        sa.Column("starting_rate_confidence", sa.String(length=20), nullable=True),
        sa.Column("reimbursement_method", sa.String(length=20), nullable=True),
        sa.Column("reimbursement_other_notes", sa.Text(), nullable=True),
        sa.Column("opex_cents", sa.Integer(), nullable=True),
        sa.Column("opex_units", sa.String(length=10), nullable=True),
        sa.Column("opex_confidence", sa.String(length=20), nullable=True),
        sa.Column("escalation_value", sa.Float(), nullable=True),
        sa.Column("escalation_units", sa.String(length=10), nullable=True),
        sa.Column("escalation_frequency_months", sa.Integer(), nullable=True),
        sa.Column("escalation_confidence", sa.String(length=20), nullable=True),
        sa.Column("free_rent_months", sa.Integer(), nullable=True),
        sa.Column("free_rent_amount_cents", sa.Integer(), nullable=True),
        sa.Column("free_rent_units", sa.String(length=10), nullable=True),
        sa.Column("free_rent_confidence", sa.String(length=20), nullable=True),
        sa.Column("ti_allowance_cents", sa.Integer(), nullable=True),
        sa.Column("ti_units", sa.String(length=10), nullable=True),
        sa.Column("ti_confidence", sa.String(length=20), nullable=True),
        sa.Column("presentation_comments_external", sa.Text(), nullable=True),
        sa.Column("presentation_comments_internal", sa.Text(), nullable=True),
        sa.Column("misc_commentary", sa.Text(), nullable=True),
        sa.Column("internal_access_level", sa.String(length=20), nullable=False),
        sa.Column("export_detail_level", sa.String(length=20), nullable=False),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_lc_team_created", "lease_comps", ["team_id", "created_at"])

    op.create_table(
        "lease_comp_renewal_options",
        *_option_columns(),
        *_exercise_window_columns(),
        sa.Column("renewal_term_months", sa.Integer(), nullable=True),
        sa.Column("rate_basis", sa.String(length=20), nullable=True),
        sa.Column("pct_of_fmv", sa.Float(), nullable=True),
        sa.Column("floor_type", sa.String(length=20), nullable=True),
        sa.Column("floor_value", sa.Float(), nullable=True),
        sa.Column("floor_override_text", sa.Text(), nullable=True),
        sa.Column("cap_type", sa.String(length=20), nullable=True),
        sa.Column("cap_value", sa.Float(), nullable=True),
        sa.Column("cap_override_text", sa.Text(), nullable=True),
        sa.Column("cpi_index", sa.String(length=100), nullable=True),
        sa.Column("cpi_frequency", sa.String(length=20), nullable=True),
        sa.Column("cpi_min", sa.String(length=50), nullable=True),
        sa.Column("cpi_max", sa.String(length=50), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_termination_options",
        *_option_columns(),
        *_exercise_window_columns(),
        sa.Column("type", sa.String(length=20), nullable=True),
        sa.Column("termination_fee_cents", sa.Integer(), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_expansion_options",
        *_option_columns(),
        sa.Column("type", sa.String(length=20), nullable=True),
        sa.Column("subject_suite", sa.String(length=100), nullable=True),
        sa.Column("decision_window_days", sa.Integer(), nullable=True),
        sa.Column("timing", sa.String(length=20), nullable=True),
        sa.Column("timing_date", sa.Date(), nullable=True),
        sa.Column("rate_basis", sa.String(length=20), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_purchase_options",
        *_option_columns(),
        *_exercise_window_columns(),
        sa.Column("structure", sa.String(length=20), nullable=True),
        sa.Column("price_basis", sa.String(length=20), nullable=True),
        sa.Column("purchase_price_cents", sa.BigInteger(), nullable=True),
        sa.Column("pricing_formula", sa.Text(), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_tasks",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _team_fk(),
        _comp_fk(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("priority", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_reminders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _team_fk(),
        _comp_fk(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("remind_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notification_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
    )

    op.create_table(
        "lease_comp_files",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _team_fk(),
        _comp_fk(),
        sa.Column("storage_path", sa.String(length=1000), nullable=False),
        sa.Column("original_filename", sa.String(length=500), nullable=False),
        sa.Column("mime_type", sa.String(length=200), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "lease_comp_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "lease_comp_id", sa.String(length=36),
            sa.ForeignKey("lease_comps.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(length=30), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column(
            "actor_user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_lce_comp_created", "lease_comp_events", ["lease_comp_id", "created_at"])
    op.create_index("idx_lce_team", "lease_comp_events", ["team_id"])

    op.create_table(
        "lease_comp_event_diffs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "event_id", sa.Integer(),
            sa.ForeignKey("lease_comp_events.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
        sa.Column("field_label", sa.String(length=200), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
    )


def downgrade():
    for table in (
        "lease_comp_event_diffs",
        "lease_comp_events",
        "lease_comp_files",
        "lease_comp_reminders",
        "lease_comp_tasks",
        "lease_comp_purchase_options",
        "lease_comp_expansion_options",
        "lease_comp_termination_options",
        "lease_comp_renewal_options",
        "lease_comps",
        "buildings",
        "users",
        "teams",
    ):
        op.drop_table(table)
