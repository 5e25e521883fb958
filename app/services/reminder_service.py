"""
Lease comp reminders — create and complete.

A reminder is pending until ``completed_at`` is set. History:
    reminder_created    Title, Remind At
    reminder_completed  Status pending → completed
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.models import db
from app.models.lease_comp import LeaseComp, LeaseCompReminder
from app.services.helpers.scoped_queries import get_scoped
from app.services.lease_comp_schemas import REMINDER
from app.services.mutation import PersistOutcome, run_mutation, single_event
from app.services.permission import check_assignee, check_comp_write
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

CREATED_LABELS = {"title": "Title", "remind_at": "Remind At"}
STATUS_LABELS = {"status": "Status"}


def list_reminders(comp_id: str, *, team_id: int) -> list[dict]:
    get_scoped(LeaseComp, comp_id, team_id=team_id)
    rows = db.session.execute(
        select(LeaseCompReminder)
        .where(LeaseCompReminder.lease_comp_id == comp_id, LeaseCompReminder.team_id == team_id)
        .order_by(LeaseCompReminder.remind_at.asc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


def create_reminder(comp_id: str, data: dict, *, team_id: int, user_id: int):
    def persist(values):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        check_assignee(values.get("assigned_to"), comp.team_id)
        reminder = LeaseCompReminder(
            lease_comp_id=comp.id,
            team_id=comp.team_id,
            created_by=user_id,
            updated_by=user_id,
            **values,
        )
        db.session.add(reminder)
        commit_or_raise("create reminder")
        summary = f'Reminder created: "{values["title"]}" for {values["remind_at"].date().isoformat()}'
        return PersistOutcome(
            record=reminder, lease_comp_id=comp.id, team_id=comp.team_id,
            before={}, after=values, field_labels=CREATED_LABELS,
            plan=single_event("reminder_created", summary),
        )

    return run_mutation(
        "create_reminder",
        actor_user_id=user_id,
        validate=lambda: REMINDER.normalize(data),
        persist=persist,
    )


def complete_reminder(comp_id: str, reminder_id: str, *, team_id: int, user_id: int):
    def persist(_):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        reminder = get_scoped(LeaseCompReminder, reminder_id, team_id=team_id, lease_comp_id=comp.id)
        if reminder.completed_at is not None:
            raise ValidationError("Reminder is already completed", details={"status": "completed"})
        title = reminder.title
        reminder.completed_at = datetime.now(timezone.utc)
        reminder.updated_by = user_id
        commit_or_raise("complete reminder")
        return PersistOutcome(
            record=reminder, lease_comp_id=comp.id, team_id=comp.team_id,
            before={"status": "pending"}, after={"status": "completed"}, field_labels=STATUS_LABELS,
            plan=single_event("reminder_completed", f'Reminder completed: "{title}"'),
        )

    return run_mutation("complete_reminder", actor_user_id=user_id, validate=lambda: None, persist=persist)
