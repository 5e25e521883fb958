"""
Lease comp service — creation, lease details, confidentiality, status.

Each write goes through ``run_mutation``: input is normalized first, the comp
row is written and committed, then the history events for the diff are
appended. Creation logs ``comp_created`` best-effort; every edit treats a
history failure as an error (the edit itself stays applied).
"""

import logging

from flask import current_app
from sqlalchemy import func, select

from app.core.exceptions import PermissionDenied, ValidationError
from app.models import db
from app.models.lease_comp import Building, LeaseComp
from app.services.completeness import DEFAULT_REIMBURSEMENT_NOTES_MIN_LENGTH, completeness_summary
from app.services.diff_service import snapshot
from app.services.helpers.scoped_queries import get_scoped
from app.services.history_service import arrow, classify_comp_field_diffs, classify_confidentiality_diffs
from app.services.lease_comp_schemas import COMP_CREATION, COMP_STATUS, CONFIDENTIALITY, LEASE_DETAILS
from app.services.mutation import PersistOutcome, run_mutation, single_event
from app.services.permission import can_create_comp, check_comp_write
from app.utils.helpers import commit_or_raise, derive_lease_end_date

logger = logging.getLogger(__name__)


def _notes_min_length() -> int:
    return current_app.config.get(
        "REIMBURSEMENT_NOTES_MIN_LENGTH", DEFAULT_REIMBURSEMENT_NOTES_MIN_LENGTH
    )


def serialize_comp(comp: LeaseComp) -> dict:
    """Comp + building + completeness, evaluated fresh on every call."""
    d = comp.to_dict()
    d["completeness"] = completeness_summary(comp, _notes_min_length())
    return d


# ── Buildings ────────────────────────────────────────────────────────────────

def find_or_create_building(address: str, city: str | None = None, state: str | None = None) -> Building:
    """Match on the trimmed address, case-insensitively. Flushes, does not commit."""
    address = address.strip()
    building = db.session.execute(
        select(Building).where(func.lower(Building.full_address_raw) == address.lower())
    ).scalar_one_or_none()
    if building is None:
        building = Building(full_address_raw=address, city=city, state=state)
        db.session.add(building)
        db.session.flush()
        logger.info("Building created: %s", building.id)
    return building


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════

def list_lease_comps(team_id: int) -> list[dict]:
    comps = db.session.execute(
        select(LeaseComp)
        .where(LeaseComp.team_id == team_id)
        .order_by(LeaseComp.created_at.desc())
    ).scalars().all()
    return [serialize_comp(c) for c in comps]


def get_lease_comp_detail(comp_id: str, *, team_id: int) -> dict:
    comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
    return serialize_comp(comp)


# ═════════════════════════════════════════════════════════════════════════════
# Writes
# ═════════════════════════════════════════════════════════════════════════════

def create_lease_comp(data: dict, *, team_id: int, user_id: int):
    """Create a draft comp linked to the building at ``address``.

    The ``comp_created`` event is best-effort: a history failure is logged
    and reported in the result but the new comp is returned normally.
    """

    def persist(values):
        if not can_create_comp(user_id, team_id):
            raise PermissionDenied("You do not have permission to create lease comps")
        building = find_or_create_building(values["address"], values.get("city"), values.get("state"))
        comp = LeaseComp(
            team_id=team_id,
            building_id=building.id,
            status="draft",
            tenant_name_raw=values.get("tenant_name_raw"),
            created_by=user_id,
            updated_by=user_id,
        )
        db.session.add(comp)
        commit_or_raise("create lease comp")

        tenant = values.get("tenant_name_raw")
        address = values["address"]
        summary = f'Comp created for "{tenant}" at {address}' if tenant else f"Comp created at {address}"
        after = {"tenant_name_raw": tenant, "address": address, "city": values.get("city"),
                 "state": values.get("state")}
        return PersistOutcome(
            record=comp, lease_comp_id=comp.id, team_id=team_id,
            before={}, after=after, field_labels=COMP_CREATION.field_labels,
            plan=single_event("comp_created", summary),
        )

    return run_mutation(
        "create_lease_comp",
        actor_user_id=user_id,
        validate=lambda: COMP_CREATION.normalize(data),
        persist=persist,
        blocking_audit=False,
        serialize=serialize_comp,
    )


def _update_comp(name, schema, plan, comp_id, data, *, team_id, user_id, derive=None):
    def persist(values):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        if derive is not None:
            derive(comp, values)
        before = dict(snapshot(comp, schema.field_labels))
        changed = {k: v for k, v in values.items() if before.get(k) != v}
        for key, value in changed.items():
            setattr(comp, key, value)
        if changed:
            comp.updated_by = user_id
            commit_or_raise(name.replace("_", " "))
        after = {**before, **values}
        return PersistOutcome(
            record=comp, lease_comp_id=comp.id, team_id=comp.team_id,
            before=before, after=after, field_labels=schema.field_labels,
            plan=plan,
        )

    return run_mutation(
        name,
        actor_user_id=user_id,
        validate=lambda: schema.normalize(data, partial=True),
        persist=persist,
        serialize=serialize_comp,
    )


def _derive_end_date(comp, values):
    start = values.get("lease_start_date", comp.lease_start_date)
    term = values.get("lease_term_months", comp.lease_term_months)
    if start is None or not term:
        raise ValidationError(
            "Lease start date and a term above zero are needed to compute the end date",
            details={"lease_end_date": "Cannot compute without start date and term"},
        )
    values["lease_end_date"] = derive_lease_end_date(start, term)


def update_lease_details(comp_id: str, data: dict, *, team_id: int, user_id: int):
    """Partial update of lease detail fields.

    A Lease Status change is logged as its own ``status_changed`` event;
    every other changed field goes into one ``fields_edited`` event.

    With ``"compute_end_date": true`` the Lease End Date is set to start +
    term months, snapped to month end. Start and term come from the payload
    where given, else from the stored comp; an end date in the payload is
    overridden.
    """
    compute_end = isinstance(data, dict) and data.get("compute_end_date") is True
    return _update_comp(
        "update_lease_details", LEASE_DETAILS, classify_comp_field_diffs,
        comp_id, data, team_id=team_id, user_id=user_id,
        derive=_derive_end_date if compute_end else None,
    )


def update_confidentiality(comp_id: str, data: dict, *, team_id: int, user_id: int):
    return _update_comp(
        "update_confidentiality", CONFIDENTIALITY, classify_confidentiality_diffs,
        comp_id, data, team_id=team_id, user_id=user_id,
    )


def _status_plan(diffs):
    if not diffs:
        return []
    d = diffs[0]
    return single_event("status_changed", f"Comp Status: {arrow(d)}")(diffs)


def set_comp_status(comp_id: str, data: dict, *, team_id: int, user_id: int):
    """Move a comp between ``draft`` and ``active``."""
    return _update_comp(
        "set_comp_status", COMP_STATUS, _status_plan,
        comp_id, data, team_id=team_id, user_id=user_id,
    )
