"""
Tasks, reminders and file metadata on a lease comp.
"""

import pytest
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.history import LeaseCompEvent
from app.models.lease_comp import LeaseCompFile, LeaseCompReminder, LeaseCompTask
from app.services import file_service, reminder_service, task_service


def _event_count():
    return db.session.execute(select(func.count()).select_from(LeaseCompEvent)).scalar()


def _diff_tuples(event):
    return [(d["field_label"], d["old_value"], d["new_value"]) for d in event["diffs"]]


# ═════════════════════════════════════════════════════════════════════════════
# Tasks
# ═════════════════════════════════════════════════════════════════════════════

class TestTasks:
    def _create(self, comp, user, **data):
        data.setdefault("title", "Call landlord")
        return task_service.create_task(comp.id, data, team_id=comp.team_id, user_id=user.id)

    def test_create_defaults_priority(self, comp, actor):
        result = self._create(comp, actor)
        assert result.record["priority"] == "medium"
        assert result.record["status"] == "open"
        ev = result.events[0]
        assert ev["event_type"] == "task_created"
        assert ev["summary"] == 'Task created: "Call landlord"'
        assert _diff_tuples(ev) == [
            ("Title", None, "Call landlord"),
            ("Priority", None, "medium"),
        ]

    def test_title_required(self, comp, actor):
        with pytest.raises(ValidationError):
            self._create(comp, actor, title="  ")
        assert _event_count() == 0

    def test_bad_priority_rejected(self, comp, actor):
        with pytest.raises(ValidationError):
            self._create(comp, actor, priority="urgent")

    def test_assign_to_teammate(self, comp, actor, owner):
        result = self._create(comp, actor, assigned_to=owner.id)
        assert result.record["assigned_to"] == owner.id

    def test_assignee_from_other_team_rejected(self, comp, actor, outsider):
        with pytest.raises(ValidationError) as exc_info:
            self._create(comp, actor, assigned_to=outsider.id)
        assert "assigned_to" in exc_info.value.details
        assert db.session.execute(select(func.count()).select_from(LeaseCompTask)).scalar() == 0
        assert _event_count() == 0

    def test_unknown_assignee_rejected(self, comp, actor):
        with pytest.raises(ValidationError):
            self._create(comp, actor, assigned_to=987654)

    def test_complete(self, comp, actor):
        task = self._create(comp, actor, priority="high").record
        result = task_service.complete_task(comp.id, task["id"], team_id=comp.team_id, user_id=actor.id)
        assert result.record["status"] == "completed"
        assert result.record["completed_at"] is not None
        ev = result.events[0]
        assert ev["event_type"] == "task_completed"
        assert _diff_tuples(ev) == [("Status", "open", "completed")]

    def test_complete_twice_rejected(self, comp, actor):
        task = self._create(comp, actor).record
        task_service.complete_task(comp.id, task["id"], team_id=comp.team_id, user_id=actor.id)
        before = _event_count()
        with pytest.raises(ValidationError):
            task_service.complete_task(comp.id, task["id"], team_id=comp.team_id, user_id=actor.id)
        assert _event_count() == before

    def test_list(self, comp, actor):
        self._create(comp, actor, title="One")
        self._create(comp, actor, title="Two")
        titles = {t["title"] for t in task_service.list_tasks(comp.id, team_id=comp.team_id)}
        assert titles == {"One", "Two"}


# ═════════════════════════════════════════════════════════════════════════════
# Reminders
# ═════════════════════════════════════════════════════════════════════════════

class TestReminders:
    def _create(self, comp, user, **data):
        data.setdefault("title", "Follow up")
        data.setdefault("remind_at", "2025-02-01T09:00:00Z")
        return reminder_service.create_reminder(comp.id, data, team_id=comp.team_id, user_id=user.id)

    def test_create(self, comp, actor):
        result = self._create(comp, actor)
        ev = result.events[0]
        assert ev["event_type"] == "reminder_created"
        assert ev["summary"] == 'Reminder created: "Follow up" for 2025-02-01'
        assert _diff_tuples(ev) == [
            ("Title", None, "Follow up"),
            ("Remind At", None, "2025-02-01T09:00:00+00:00"),
        ]

    def test_remind_at_required(self, comp, actor):
        with pytest.raises(ValidationError) as exc_info:
            self._create(comp, actor, remind_at=None)
        assert "remind_at" in exc_info.value.details

    def test_bad_datetime_rejected(self, comp, actor):
        with pytest.raises(ValidationError):
            self._create(comp, actor, remind_at="next tuesday")

    def test_assignee_from_other_team_rejected(self, comp, actor, outsider):
        with pytest.raises(ValidationError) as exc_info:
            self._create(comp, actor, assigned_to=outsider.id)
        assert "assigned_to" in exc_info.value.details
        assert db.session.execute(select(func.count()).select_from(LeaseCompReminder)).scalar() == 0

    def test_complete(self, comp, actor):
        reminder = self._create(comp, actor).record
        result = reminder_service.complete_reminder(
            comp.id, reminder["id"], team_id=comp.team_id, user_id=actor.id,
        )
        ev = result.events[0]
        assert ev["event_type"] == "reminder_completed"
        assert ev["summary"] == 'Reminder completed: "Follow up"'
        assert _diff_tuples(ev) == [("Status", "pending", "completed")]
        with pytest.raises(ValidationError):
            reminder_service.complete_reminder(
                comp.id, reminder["id"], team_id=comp.team_id, user_id=actor.id,
            )

    def test_list_soonest_first(self, comp, actor):
        self._create(comp, actor, title="Later", remind_at="2025-06-01T09:00:00")
        self._create(comp, actor, title="Sooner", remind_at="2025-03-01T09:00:00")
        titles = [r["title"] for r in reminder_service.list_reminders(comp.id, team_id=comp.team_id)]
        assert titles == ["Sooner", "Later"]


# ═════════════════════════════════════════════════════════════════════════════
# Files
# ═════════════════════════════════════════════════════════════════════════════

class TestFiles:
    def _add(self, comp, user, **data):
        payload = {
            "original_filename": "lease-abstract.pdf",
            "mime_type": "application/pdf",
            "size_bytes": 1024,
            "storage_path": f"teams/{comp.team_id}/comps/{comp.id}/lease-abstract.pdf",
        }
        payload.update(data)
        return file_service.add_file(comp.id, payload, team_id=comp.team_id, user_id=user.id)

    def test_add(self, comp, actor):
        result = self._add(comp, actor)
        ev = result.events[0]
        assert ev["event_type"] == "file_added"
        assert ev["summary"] == 'File added: "lease-abstract.pdf"'
        assert [d["field_label"] for d in ev["diffs"]] == [
            "Original Filename", "MIME Type", "Size", "Storage Path",
        ]
        assert ev["diffs"][2]["new_value"] == "1024"

    def test_storage_path_required(self, comp, actor):
        with pytest.raises(ValidationError):
            self._add(comp, actor, storage_path="")

    def test_remove(self, comp, actor):
        row = self._add(comp, actor, mime_type=None).record
        result = file_service.remove_file(comp.id, row["id"], team_id=comp.team_id, user_id=actor.id)
        ev = result.events[0]
        assert ev["event_type"] == "file_removed"
        assert [d["field_label"] for d in ev["diffs"]] == ["Original Filename", "Size", "Storage Path"]
        assert all(d["new_value"] is None for d in ev["diffs"])
        assert db.session.get(LeaseCompFile, row["id"]) is None

    def test_remove_from_other_team_not_found(self, comp, actor, act_as, outsider):
        row = self._add(comp, actor).record
        act_as(outsider)
        with pytest.raises(NotFoundError):
            file_service.remove_file(comp.id, row["id"], team_id=outsider.team_id, user_id=outsider.id)
        assert len(file_service.list_files(comp.id, team_id=comp.team_id)) == 1
