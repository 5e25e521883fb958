"""
Event logger — validation, atomicity, immutability, classification, reads.

Covers:
  - log_lease_comp_event validation (type, summary, actor, comp scope, diff shape)
  - all-or-nothing writes (no event and no diff rows after a failure)
  - append-only listeners on events and diffs
  - classify_comp_field_diffs / classify_confidentiality_diffs
  - list_lease_comp_events / get_lease_comp_event
"""

import pytest
from flask import g
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import AuditLogError, IdentityMismatchError, NotFoundError
from app.models import db
from app.models.history import ImmutableHistoryError, LeaseCompEvent, LeaseCompEventDiff
from app.services.history_service import (
    classify_comp_field_diffs,
    classify_confidentiality_diffs,
    get_lease_comp_event,
    list_lease_comp_events,
    log_lease_comp_event,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def _count(model):
    return db.session.execute(select(func.count()).select_from(model)).scalar()


def _log(comp, user, **kw):
    params = {
        "lease_comp_id": comp.id,
        "team_id": comp.team_id,
        "event_type": "fields_edited",
        "summary": "Lease details updated",
        "actor_user_id": user.id,
        "diffs": [{"field_label": "Lease SF", "old_value": None, "new_value": "42000"}],
    }
    params.update(kw)
    return log_lease_comp_event(**params)


def _assert_nothing_written():
    assert _count(LeaseCompEvent) == 0
    assert _count(LeaseCompEventDiff) == 0


# ═════════════════════════════════════════════════════════════════════════════
# Write path
# ═════════════════════════════════════════════════════════════════════════════

class TestLogEvent:
    def test_event_and_all_diffs_written(self, comp, actor):
        diffs = [
            {"field_label": "Lease SF", "old_value": None, "new_value": "42000"},
            {"field_label": "Lease Type", "old_value": "new", "new_value": "renewal"},
            {"field_label": "Misc Commentary", "old_value": "x", "new_value": None},
        ]
        ev = _log(comp, actor, diffs=diffs)
        assert ev.id is not None
        assert ev.actor_user_id == actor.id
        stored = db.session.execute(
            select(LeaseCompEventDiff).where(LeaseCompEventDiff.event_id == ev.id)
        ).scalars().all()
        assert len(stored) == len(diffs)
        assert [d.field_label for d in stored] == ["Lease SF", "Lease Type", "Misc Commentary"]

    def test_event_without_diffs(self, comp, actor):
        ev = _log(comp, actor, diffs=None)
        assert _count(LeaseCompEventDiff) == 0
        assert ev.event_type == "fields_edited"

    def test_unknown_event_type_rejected(self, comp, actor):
        with pytest.raises(AuditLogError):
            _log(comp, actor, event_type="comp_deleted")
        _assert_nothing_written()

    def test_blank_summary_rejected(self, comp, actor):
        with pytest.raises(AuditLogError):
            _log(comp, actor, summary="   ")
        _assert_nothing_written()

    def test_actor_must_match_caller(self, comp, actor, owner):
        with pytest.raises(IdentityMismatchError):
            _log(comp, owner)
        _assert_nothing_written()

    def test_no_authenticated_caller(self, comp, user):
        assert getattr(g, "jwt_user_id", None) is None
        with pytest.raises(IdentityMismatchError):
            _log(comp, user)
        _assert_nothing_written()

    def test_comp_from_other_team_rejected(self, comp, actor, other_team):
        with pytest.raises(AuditLogError):
            _log(comp, actor, team_id=other_team.id)
        _assert_nothing_written()

    def test_missing_comp_rejected(self, comp, actor):
        with pytest.raises(AuditLogError):
            _log(comp, actor, lease_comp_id="00000000-0000-0000-0000-000000000000")
        _assert_nothing_written()

    @pytest.mark.parametrize("bad", [
        [{"field_label": "", "old_value": None, "new_value": "1"}],
        [{"old_value": None, "new_value": "1"}],
        [{"field_label": "Lease SF", "old_value": None, "new_value": 42000}],
        ["Lease SF"],
        "Lease SF",
    ])
    def test_malformed_diffs_rejected(self, comp, actor, bad):
        with pytest.raises(AuditLogError):
            _log(comp, actor, diffs=bad)
        _assert_nothing_written()

    def test_storage_failure_leaves_no_rows(self, comp, actor, monkeypatch):
        def _fail():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db.session, "commit", _fail)
        with pytest.raises(AuditLogError):
            _log(comp, actor)
        monkeypatch.undo()

        _assert_nothing_written()
        assert list_lease_comp_events(comp.id, team_id=comp.team_id) == []


class TestImmutability:
    def test_event_update_rejected(self, comp, actor):
        ev = _log(comp, actor)
        ev.summary = "rewritten"
        with pytest.raises(ImmutableHistoryError):
            db.session.commit()
        db.session.rollback()
        assert db.session.get(LeaseCompEvent, ev.id).summary == "Lease details updated"

    def test_event_delete_rejected(self, comp, actor):
        ev = _log(comp, actor)
        db.session.delete(ev)
        with pytest.raises(ImmutableHistoryError):
            db.session.commit()
        db.session.rollback()
        assert _count(LeaseCompEvent) == 1

    def test_diff_update_rejected(self, comp, actor):
        ev = _log(comp, actor)
        diff = ev.diffs[0]
        diff.new_value = "1"
        with pytest.raises(ImmutableHistoryError):
            db.session.commit()
        db.session.rollback()

    def test_guards_are_registered_once(self, app):
        guards = app.extensions["lease_comp_history"]
        assert guards.initialized is True
        guards.ensure_initialized()
        assert guards.initialized is True


# ═════════════════════════════════════════════════════════════════════════════
# Classification
# ═════════════════════════════════════════════════════════════════════════════

class TestClassification:
    def test_lease_status_split_from_other_fields(self):
        diffs = [
            {"field_label": "Lease Status", "old_value": "pending", "new_value": "signed"},
            {"field_label": "Starting Rate", "old_value": None, "new_value": "1500"},
        ]
        planned = classify_comp_field_diffs(diffs)
        assert [p.event_type for p in planned] == ["status_changed", "fields_edited"]
        assert planned[0].summary == "Lease Status: pending → signed"
        assert planned[0].diffs == [diffs[0]]
        assert planned[1].diffs == [diffs[1]]

    def test_empty_status_shown_as_dash(self):
        planned = classify_comp_field_diffs(
            [{"field_label": "Lease Status", "old_value": None, "new_value": "proposal"}]
        )
        assert len(planned) == 1
        assert planned[0].summary == "Lease Status: — → proposal"

    def test_no_diffs_plans_nothing(self):
        assert classify_comp_field_diffs([]) == []
        assert classify_confidentiality_diffs([]) == []

    def test_confidentiality_one_event_per_field(self):
        diffs = [
            {"field_label": "Internal Access Level", "old_value": "all_team", "new_value": "just_me"},
            {"field_label": "Export Detail Level", "old_value": "all_visible", "new_value": "hide_all"},
        ]
        planned = classify_confidentiality_diffs(diffs)
        assert [p.event_type for p in planned] == ["confidentiality_changed", "export_level_changed"]
        assert planned[1].summary == "Export Detail Level: all_visible → hide_all"


# ═════════════════════════════════════════════════════════════════════════════
# Read API
# ═════════════════════════════════════════════════════════════════════════════

class TestReadApi:
    def test_most_recent_first_with_grouped_diffs(self, comp, actor):
        first = _log(comp, actor, summary="first")
        second = _log(comp, actor, summary="second", diffs=[
            {"field_label": "A", "old_value": "1", "new_value": "2"},
            {"field_label": "B", "old_value": None, "new_value": "x"},
        ])
        items = list_lease_comp_events(comp.id, team_id=comp.team_id)
        assert [e["id"] for e in items] == [second.id, first.id]
        assert [d["field_label"] for d in items[0]["diffs"]] == ["A", "B"]
        assert len(items[1]["diffs"]) == 1

    def test_without_diffs(self, comp, actor):
        _log(comp, actor)
        items = list_lease_comp_events(comp.id, team_id=comp.team_id, include_diffs=False)
        assert "diffs" not in items[0]

    def test_other_team_cannot_read(self, comp, actor, other_team):
        _log(comp, actor)
        with pytest.raises(NotFoundError):
            list_lease_comp_events(comp.id, team_id=other_team.id)

    def test_single_event(self, comp, actor, other_team):
        ev = _log(comp, actor)
        d = get_lease_comp_event(ev.id, team_id=comp.team_id)
        assert d["summary"] == "Lease details updated"
        assert d["diffs"][0]["new_value"] == "42000"
        with pytest.raises(NotFoundError):
            get_lease_comp_event(ev.id, team_id=other_team.id)
