"""
Lease comp tasks — create and complete.

History:
    task_created    Title, Priority
    task_completed  Status open → completed
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.models import db
from app.models.lease_comp import LeaseComp, LeaseCompTask
from app.services.helpers.scoped_queries import get_scoped
from app.services.lease_comp_schemas import TASK
from app.services.mutation import PersistOutcome, run_mutation, single_event
from app.services.permission import check_assignee, check_comp_write
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

CREATED_LABELS = {"title": "Title", "priority": "Priority"}
STATUS_LABELS = {"status": "Status"}


def list_tasks(comp_id: str, *, team_id: int) -> list[dict]:
    get_scoped(LeaseComp, comp_id, team_id=team_id)
    rows = db.session.execute(
        select(LeaseCompTask)
        .where(LeaseCompTask.lease_comp_id == comp_id, LeaseCompTask.team_id == team_id)
        .order_by(LeaseCompTask.created_at.desc())
    ).scalars().all()
    return [t.to_dict() for t in rows]


def create_task(comp_id: str, data: dict, *, team_id: int, user_id: int):
    def validate():
        values = TASK.normalize(data)
        values["priority"] = values.get("priority") or "medium"
        return values

    def persist(values):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        check_assignee(values.get("assigned_to"), comp.team_id)
        task = LeaseCompTask(
            lease_comp_id=comp.id,
            team_id=comp.team_id,
            status="open",
            created_by=user_id,
            updated_by=user_id,
            **values,
        )
        db.session.add(task)
        commit_or_raise("create task")
        return PersistOutcome(
            record=task, lease_comp_id=comp.id, team_id=comp.team_id,
            before={}, after=values, field_labels=CREATED_LABELS,
            plan=single_event("task_created", f'Task created: "{values["title"]}"'),
        )

    return run_mutation("create_task", actor_user_id=user_id, validate=validate, persist=persist)


def complete_task(comp_id: str, task_id: str, *, team_id: int, user_id: int):
    def persist(_):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        task = get_scoped(LeaseCompTask, task_id, team_id=team_id, lease_comp_id=comp.id)
        if task.status == "completed":
            raise ValidationError("Task is already completed", details={"status": "completed"})
        before = {"status": task.status}
        title = task.title
        task.status = "completed"
        task.completed_at = datetime.now(timezone.utc)
        task.updated_by = user_id
        commit_or_raise("complete task")
        return PersistOutcome(
            record=task, lease_comp_id=comp.id, team_id=comp.team_id,
            before=before, after={"status": "completed"}, field_labels=STATUS_LABELS,
            plan=single_event("task_completed", f'Task completed: "{title}"'),
        )

    return run_mutation("complete_task", actor_user_id=user_id, validate=lambda: None, persist=persist)
