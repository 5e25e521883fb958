"""
Lease comp + history HTTP API.

Covers:
  - Bearer token identity (401 without or with a bad token)
  - create / detail / details / confidentiality / status
  - options, tasks, reminders, files through the API
  - 404 for other teams' comps, 403 read_only for permission failures
  - 400 validation payloads, 500 ERR_AUDIT_LOG when history cannot be written
  - history list / single event endpoints
  - health endpoints
"""

from app.core.exceptions import AuditLogError
from app.models import db
from app.models.lease_comp import LeaseComp
from app.services import mutation

BASE = "/api/v1/lease-comps"


# ── Auth ─────────────────────────────────────────────────────────────────────

class TestAuth:
    def test_missing_token(self, client):
        res = client.get(BASE)
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_invalid_token(self, client):
        res = client.get(BASE, headers={"Authorization": "Bearer not-a-token"})
        assert res.status_code == 401

    def test_history_requires_token(self, client, comp):
        assert client.get(f"{BASE}/{comp.id}/events").status_code == 401


# ── Comps ────────────────────────────────────────────────────────────────────

class TestCompEndpoints:
    def test_create_and_read(self, client, user, auth_headers):
        res = client.post(BASE, json={"address": "77 Rail Spur Rd", "tenant_name_raw": "Acme"},
                          headers=auth_headers(user))
        assert res.status_code == 201
        body = res.get_json()
        assert body["stage"] == "done"
        assert body["audit_error"] is None
        comp_id = body["record"]["id"]
        assert body["events"][0]["event_type"] == "comp_created"

        res = client.get(f"{BASE}/{comp_id}", headers=auth_headers(user))
        assert res.status_code == 200
        detail = res.get_json()
        assert detail["building_address"] == "77 Rail Spur Rd"
        assert "missing_lease_sf" in detail["completeness"]["reasons"]

        res = client.get(BASE, headers=auth_headers(user))
        assert res.get_json()["total"] == 1

    def test_create_requires_address(self, client, user, auth_headers):
        res = client.post(BASE, json={"tenant_name_raw": "Acme"}, headers=auth_headers(user))
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert "address" in body["details"]

    def test_update_details_split(self, client, team, user, auth_headers, make_comp):
        comp = make_comp(team, user, lease_status="pending")
        res = client.put(f"{BASE}/{comp.id}/details",
                         json={"lease_status": "signed", "rent_psf_cents": 1500},
                         headers=auth_headers(user))
        assert res.status_code == 200
        events = res.get_json()["events"]
        assert [e["event_type"] for e in events] == ["status_changed", "fields_edited"]

    def test_negative_sf_is_400(self, client, comp, user, auth_headers):
        res = client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": -100}, headers=auth_headers(user))
        assert res.status_code == 400
        assert "lease_sf" in res.get_json()["details"]

    def test_out_of_range_sf_is_400(self, client, comp, user, auth_headers):
        res = client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": "1e30"}, headers=auth_headers(user))
        assert res.status_code == 400
        assert "lease_sf" in res.get_json()["details"]
        assert db.session.get(LeaseComp, comp.id).lease_sf is None

    def test_compute_end_date(self, client, comp, user, auth_headers):
        res = client.put(f"{BASE}/{comp.id}/details",
                         json={"lease_start_date": "2024-01-15", "lease_term_months": 60,
                               "compute_end_date": True},
                         headers=auth_headers(user))
        assert res.status_code == 200
        assert res.get_json()["record"]["lease_end_date"] == "2029-01-31"

    def test_other_team_gets_404(self, client, comp, outsider, auth_headers):
        res = client.get(f"{BASE}/{comp.id}", headers=auth_headers(outsider))
        assert res.status_code == 404
        res = client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": 1}, headers=auth_headers(outsider))
        assert res.status_code == 404

    def test_billing_contact_is_read_only(self, client, comp, billing_user, auth_headers):
        res = client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": 1}, headers=auth_headers(billing_user))
        assert res.status_code == 403
        body = res.get_json()
        assert body["read_only"] is True
        assert body["code"] == "ERR_FORBIDDEN"
        assert client.get(f"{BASE}/{comp.id}", headers=auth_headers(billing_user)).status_code == 200

    def test_confidentiality_and_status(self, client, comp, user, auth_headers):
        res = client.put(f"{BASE}/{comp.id}/confidentiality",
                         json={"internal_access_level": "all_team", "export_detail_level": "hide_all"},
                         headers=auth_headers(user))
        assert [e["event_type"] for e in res.get_json()["events"]] == ["export_level_changed"]

        res = client.put(f"{BASE}/{comp.id}/status", json={"status": "active"}, headers=auth_headers(user))
        assert res.get_json()["record"]["status"] == "active"

    def test_history_failure_reports_saved_change(self, client, comp, user, auth_headers, monkeypatch):
        def _fail(**kwargs):
            raise AuditLogError("history store unavailable")

        monkeypatch.setattr(mutation, "log_lease_comp_event", _fail)
        res = client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": 900}, headers=auth_headers(user))
        assert res.status_code == 500
        body = res.get_json()
        assert body["code"] == "ERR_AUDIT_LOG"
        assert body["mutation_committed"] is True
        assert "saved" in body["error"]
        assert db.session.get(LeaseComp, comp.id).lease_sf == 900


# ── Sub-entities ─────────────────────────────────────────────────────────────

class TestSubEntityEndpoints:
    def test_option_lifecycle(self, client, comp, user, auth_headers):
        h = auth_headers(user)
        res = client.post(f"{BASE}/{comp.id}/options/renewal", json={"commentary": "test"}, headers=h)
        assert res.status_code == 201
        option_id = res.get_json()["record"]["id"]

        res = client.put(f"{BASE}/{comp.id}/options/renewal/{option_id}",
                         json={"renewal_term_months": 60}, headers=h)
        assert res.get_json()["events"][0]["summary"] == "Renewal option #1 edited"

        res = client.get(f"{BASE}/{comp.id}/options/renewal", headers=h)
        assert res.get_json()["total"] == 1

        res = client.delete(f"{BASE}/{comp.id}/options/renewal/{option_id}", headers=h)
        assert res.status_code == 200
        assert res.get_json()["events"][0]["event_type"] == "option_removed"
        assert client.get(f"{BASE}/{comp.id}/options/renewal", headers=h).get_json()["total"] == 0

    def test_unknown_option_kind(self, client, comp, user, auth_headers):
        res = client.post(f"{BASE}/{comp.id}/options/lease", json={}, headers=auth_headers(user))
        assert res.status_code == 400

    def test_task_and_reminder(self, client, comp, user, auth_headers):
        h = auth_headers(user)
        res = client.post(f"{BASE}/{comp.id}/tasks", json={"title": "Verify rent"}, headers=h)
        task_id = res.get_json()["record"]["id"]
        res = client.post(f"{BASE}/{comp.id}/tasks/{task_id}/complete", headers=h)
        assert res.status_code == 200
        res = client.post(f"{BASE}/{comp.id}/tasks/{task_id}/complete", headers=h)
        assert res.status_code == 400

        res = client.post(f"{BASE}/{comp.id}/reminders",
                          json={"title": "Renewal notice", "remind_at": "2027-01-15T08:00:00Z"}, headers=h)
        assert res.status_code == 201
        reminder_id = res.get_json()["record"]["id"]
        res = client.post(f"{BASE}/{comp.id}/reminders/{reminder_id}/complete", headers=h)
        assert res.get_json()["events"][0]["event_type"] == "reminder_completed"
        assert client.get(f"{BASE}/{comp.id}/reminders", headers=h).get_json()["total"] == 1
        assert client.get(f"{BASE}/{comp.id}/tasks", headers=h).get_json()["total"] == 1

    def test_team_members_are_team_scoped(self, client, user, owner, outsider, auth_headers):
        res = client.get(f"{BASE}/team-members", headers=auth_headers(user))
        assert res.status_code == 200
        emails = {m["email"] for m in res.get_json()["items"]}
        assert emails == {"agent@westside.test", "owner@westside.test"}

    def test_task_assignee_must_be_on_team(self, client, comp, user, owner, outsider, auth_headers):
        h = auth_headers(user)
        res = client.post(f"{BASE}/{comp.id}/tasks", json={"title": "x", "assigned_to": outsider.id}, headers=h)
        assert res.status_code == 400
        assert "assigned_to" in res.get_json()["details"]

        res = client.post(f"{BASE}/{comp.id}/tasks", json={"title": "x", "assigned_to": owner.id}, headers=h)
        assert res.status_code == 201
        assert res.get_json()["record"]["assigned_to"] == owner.id

    def test_files(self, client, comp, user, auth_headers):
        h = auth_headers(user)
        res = client.post(f"{BASE}/{comp.id}/files", json={
            "original_filename": "floorplan.png",
            "storage_path": f"comps/{comp.id}/floorplan.png",
            "mime_type": "image/png",
            "size_bytes": 2048,
        }, headers=h)
        assert res.status_code == 201
        file_id = res.get_json()["record"]["id"]
        assert client.get(f"{BASE}/{comp.id}/files", headers=h).get_json()["total"] == 1
        res = client.delete(f"{BASE}/{comp.id}/files/{file_id}", headers=h)
        assert res.get_json()["events"][0]["event_type"] == "file_removed"
        assert client.delete(f"{BASE}/{comp.id}/files/{file_id}", headers=h).status_code == 404


# ── History ──────────────────────────────────────────────────────────────────

class TestHistoryEndpoints:
    def test_list_and_get(self, client, comp, user, auth_headers):
        h = auth_headers(user)
        client.put(f"{BASE}/{comp.id}/details", json={"lease_sf": 1000}, headers=h)
        client.put(f"{BASE}/{comp.id}/status", json={"status": "active"}, headers=h)

        res = client.get(f"{BASE}/{comp.id}/events", headers=h)
        assert res.status_code == 200
        items = res.get_json()["items"]
        assert [e["event_type"] for e in items] == ["status_changed", "fields_edited"]
        assert items[1]["diffs"][0]["field_label"] == "Lease SF"

        res = client.get(f"{BASE}/{comp.id}/events?include_diffs=false", headers=h)
        assert "diffs" not in res.get_json()["items"][0]

        event_id = items[1]["id"]
        res = client.get(f"{BASE}/{comp.id}/events/{event_id}", headers=h)
        assert res.get_json()["diffs"][0]["new_value"] == "1000"

    def test_other_team_history_404(self, client, comp, outsider, auth_headers):
        res = client.get(f"{BASE}/{comp.id}/events", headers=auth_headers(outsider))
        assert res.status_code == 404

    def test_unknown_event_404(self, client, comp, user, auth_headers):
        res = client.get(f"{BASE}/{comp.id}/events/999", headers=auth_headers(user))
        assert res.status_code == 404


# ── Health ───────────────────────────────────────────────────────────────────

class TestHealth:
    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}

    def test_live(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        checks = res.get_json()["checks"]
        assert checks["database"]["status"] == "ok"
        assert checks["history_guards"]["status"] == "ok"

    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "req-abc123"})
        assert res.headers["X-Request-ID"] == "req-abc123"
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_request_id_generated(self, client):
        res = client.get("/api/v1/health/ready")
        assert len(res.headers["X-Request-ID"]) == 12
