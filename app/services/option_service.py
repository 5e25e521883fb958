"""
Lease comp options — renewal, termination, expansion, purchase.

    add_option(comp_id, "renewal", data, team_id=..., user_id=...)
    edit_option(comp_id, "renewal", option_id, data, ...)
    remove_option(comp_id, "renewal", option_id, ...)

Option numbers are assigned per comp and kind (max + 1). History summaries
read "Renewal option #2 edited" and so on.
"""

import logging

from sqlalchemy import func, select

from app.models import db
from app.models.lease_comp import LeaseComp
from app.services.diff_service import snapshot
from app.services.helpers.scoped_queries import get_scoped
from app.services.lease_comp_schemas import get_option_schema
from app.services.mutation import PersistOutcome, delete_with_snapshot, run_mutation, single_event
from app.services.permission import check_comp_write
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


def _kind_label(kind: str) -> str:
    return kind.capitalize()


def _next_option_number(model, comp_id) -> int:
    current = db.session.execute(
        select(func.max(model.option_number)).where(model.lease_comp_id == comp_id)
    ).scalar()
    return (current or 0) + 1


def _writable_comp(comp_id, team_id, user_id) -> LeaseComp:
    comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
    check_comp_write(comp, user_id)
    return comp


def list_options(comp_id: str, kind: str, *, team_id: int) -> list[dict]:
    schema = get_option_schema(kind)
    get_scoped(LeaseComp, comp_id, team_id=team_id)
    model = schema.model
    rows = db.session.execute(
        select(model)
        .where(model.lease_comp_id == comp_id, model.team_id == team_id)
        .order_by(model.option_number.asc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


def add_option(comp_id: str, kind: str, data: dict, *, team_id: int, user_id: int):
    schema = get_option_schema(kind)

    def persist(values):
        comp = _writable_comp(comp_id, team_id, user_id)
        number = _next_option_number(schema.model, comp.id)
        option = schema.model(
            lease_comp_id=comp.id,
            team_id=comp.team_id,
            option_number=number,
            created_by=user_id,
            updated_by=user_id,
            **values,
        )
        db.session.add(option)
        commit_or_raise(f"add {kind} option")
        return PersistOutcome(
            record=option, lease_comp_id=comp.id, team_id=comp.team_id,
            before={}, after=values, field_labels=schema.field_labels,
            plan=single_event("option_added", f"{_kind_label(kind)} option #{number} added"),
        )

    return run_mutation(
        f"add_{kind}_option",
        actor_user_id=user_id,
        validate=lambda: schema.normalize(data),
        persist=persist,
    )


def edit_option(comp_id: str, kind: str, option_id: str, data: dict, *, team_id: int, user_id: int):
    schema = get_option_schema(kind)

    def persist(values):
        comp = _writable_comp(comp_id, team_id, user_id)
        option = get_scoped(schema.model, option_id, team_id=team_id, lease_comp_id=comp.id)
        before = dict(snapshot(option, schema.field_labels))
        changed = {k: v for k, v in values.items() if before.get(k) != v}
        for key, value in changed.items():
            setattr(option, key, value)
        if changed:
            option.updated_by = user_id
            commit_or_raise(f"edit {kind} option")
        return PersistOutcome(
            record=option, lease_comp_id=comp.id, team_id=comp.team_id,
            before=before, after={**before, **values}, field_labels=schema.field_labels,
            plan=single_event(
                "option_edited", f"{_kind_label(kind)} option #{option.option_number} edited"
            ),
        )

    return run_mutation(
        f"edit_{kind}_option",
        actor_user_id=user_id,
        validate=lambda: schema.normalize(data, partial=True),
        persist=persist,
    )


def remove_option(comp_id: str, kind: str, option_id: str, *, team_id: int, user_id: int):
    """Delete an option; the removal event lists every non-null field going to null."""
    schema = get_option_schema(kind)

    def persist(_):
        comp = _writable_comp(comp_id, team_id, user_id)
        option = get_scoped(schema.model, option_id, team_id=team_id, lease_comp_id=comp.id)
        number = option.option_number
        before = delete_with_snapshot(option, schema.snapshot_labels, f"remove {kind} option")
        return PersistOutcome(
            record=None, lease_comp_id=comp.id, team_id=team_id,
            before=before, after={}, field_labels=schema.snapshot_labels,
            plan=single_event("option_removed", f"{_kind_label(kind)} option #{number} removed"),
        )

    return run_mutation(
        f"remove_{kind}_option",
        actor_user_id=user_id,
        validate=lambda: None,
        persist=persist,
    )
