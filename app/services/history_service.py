"""
Lease comp history — event logger, classification, read API.

``log_lease_comp_event`` is the only code path that writes
``lease_comp_events`` / ``lease_comp_event_diffs``. It runs after the caller
has committed its domain write and stores one event plus its diffs in a
single transaction: either all rows are committed or none are.

    event = log_lease_comp_event(
        lease_comp_id=comp.id, team_id=comp.team_id,
        event_type="option_edited", summary="Renewal option #1 edited",
        actor_user_id=user_id, diffs=diffs,
    )

Classification helpers turn one batch of diffs into the planned events for a
save (status changes and confidentiality changes get their own event types).
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import AuditLogError, IdentityMismatchError, NotFoundError
from app.models import db
from app.models.history import COMP_EVENT_TYPES, LeaseCompEvent, LeaseCompEventDiff
from app.models.lease_comp import LeaseComp
from app.services.identity import resolve_caller_user_id

logger = logging.getLogger(__name__)

EMPTY_VALUE = "—"

LEASE_STATUS_LABEL = "Lease Status"
INTERNAL_ACCESS_LABEL = "Internal Access Level"
EXPORT_DETAIL_LABEL = "Export Detail Level"


@dataclass
class PlannedEvent:
    """An event a mutation intends to log, before it reaches the logger."""
    event_type: str
    summary: str
    diffs: list[dict] = field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════════════
# Validation
# ═════════════════════════════════════════════════════════════════════════════

def _validate_diffs(diffs) -> list[dict]:
    if diffs is None:
        return []
    if not isinstance(diffs, (list, tuple)):
        raise AuditLogError("Diffs must be a list")
    clean = []
    for i, diff in enumerate(diffs):
        if not isinstance(diff, dict):
            raise AuditLogError(f"Diff #{i} must be an object")
        label = diff.get("field_label")
        if not isinstance(label, str) or not label.strip():
            raise AuditLogError(f"Diff #{i} has an empty field_label")
        for key in ("old_value", "new_value"):
            value = diff.get(key)
            if value is not None and not isinstance(value, str):
                raise AuditLogError(f"Diff #{i} {key} must be a string or null")
        clean.append({
            "field_label": label,
            "old_value": diff.get("old_value"),
            "new_value": diff.get("new_value"),
        })
    return clean


def _validate_actor(actor_user_id) -> None:
    caller = resolve_caller_user_id()
    if caller is None:
        raise IdentityMismatchError("No authenticated caller; cannot attribute history event")
    if actor_user_id is None or str(actor_user_id) != str(caller):
        raise IdentityMismatchError(
            f"Actor {actor_user_id} does not match authenticated caller {caller}"
        )


# ═════════════════════════════════════════════════════════════════════════════
# Write path
# ═════════════════════════════════════════════════════════════════════════════

def log_lease_comp_event(
    *,
    lease_comp_id: str,
    team_id: int,
    event_type: str,
    summary: str,
    actor_user_id: int,
    diffs: list[dict] | None = None,
) -> LeaseCompEvent:
    """
    Append one history event and its diffs atomically.

    Every input is validated before the first write. On any failure the
    session is rolled back and AuditLogError is raised; no event row and no
    diff row exist for the call afterwards.

    Returns the committed LeaseCompEvent.
    """
    if event_type not in COMP_EVENT_TYPES:
        raise AuditLogError(f"Unknown event type: {event_type!r}")
    if not isinstance(summary, str) or not summary.strip():
        raise AuditLogError("Event summary is required")
    _validate_actor(actor_user_id)
    clean_diffs = _validate_diffs(diffs)

    try:
        comp_exists = db.session.execute(
            select(LeaseComp.id).where(LeaseComp.id == lease_comp_id, LeaseComp.team_id == team_id)
        ).first()
        if comp_exists is None:
            raise AuditLogError(f"Lease comp {lease_comp_id} not found for team {team_id}")

        ev = LeaseCompEvent(
            lease_comp_id=lease_comp_id,
            team_id=team_id,
            event_type=event_type,
            summary=summary.strip(),
            actor_user_id=int(actor_user_id),
        )
        db.session.add(ev)
        db.session.flush()
        for diff in clean_diffs:
            db.session.add(LeaseCompEventDiff(event_id=ev.id, **diff))
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error(
            "History event write failed: %s on %s", event_type, lease_comp_id,
            exc_info=True,
            extra={"lease_comp_id": lease_comp_id, "team_id": team_id, "event_type": event_type},
        )
        raise AuditLogError("Failed to write history event") from exc

    logger.info(
        "History event %s logged (%d diffs)", event_type, len(clean_diffs),
        extra={"lease_comp_id": lease_comp_id, "team_id": team_id, "event_type": event_type},
    )
    return ev


# ═════════════════════════════════════════════════════════════════════════════
# Classification
# ═════════════════════════════════════════════════════════════════════════════

def arrow(diff: dict) -> str:
    """``old → new`` with empty sides shown as an em dash."""
    return f"{diff['old_value'] or EMPTY_VALUE} → {diff['new_value'] or EMPTY_VALUE}"


def classify_comp_field_diffs(diffs: list[dict]) -> list[PlannedEvent]:
    """Split lease detail diffs into status_changed + fields_edited events."""
    status = [d for d in diffs if d["field_label"] == LEASE_STATUS_LABEL]
    others = [d for d in diffs if d["field_label"] != LEASE_STATUS_LABEL]
    planned = []
    for d in status:
        planned.append(PlannedEvent("status_changed", f"{LEASE_STATUS_LABEL}: {arrow(d)}", [d]))
    if others:
        planned.append(PlannedEvent("fields_edited", "Lease details updated", others))
    return planned


def classify_confidentiality_diffs(diffs: list[dict]) -> list[PlannedEvent]:
    """One event per confidentiality field that changed."""
    by_label = {
        INTERNAL_ACCESS_LABEL: "confidentiality_changed",
        EXPORT_DETAIL_LABEL: "export_level_changed",
    }
    planned = []
    for d in diffs:
        event_type = by_label.get(d["field_label"])
        if event_type is None:
            continue
        planned.append(PlannedEvent(event_type, f"{d['field_label']}: {arrow(d)}", [d]))
    return planned


# ═════════════════════════════════════════════════════════════════════════════
# Read API
# ═════════════════════════════════════════════════════════════════════════════

def _ensure_comp(lease_comp_id, team_id):
    exists = db.session.execute(
        select(LeaseComp.id).where(LeaseComp.id == lease_comp_id, LeaseComp.team_id == team_id)
    ).first()
    if exists is None:
        raise NotFoundError(resource="LeaseComp", resource_id=lease_comp_id, team_id=team_id)


def list_lease_comp_events(lease_comp_id: str, *, team_id: int, include_diffs: bool = True) -> list[dict]:
    """History of a comp, most recent first.

    Diffs for all events are loaded in one query and grouped per event in
    insertion order.
    """
    _ensure_comp(lease_comp_id, team_id)

    events = db.session.execute(
        select(LeaseCompEvent)
        .where(LeaseCompEvent.lease_comp_id == lease_comp_id, LeaseCompEvent.team_id == team_id)
        .order_by(LeaseCompEvent.created_at.desc(), LeaseCompEvent.id.desc())
    ).scalars().all()

    if not include_diffs:
        return [e.to_dict() for e in events]

    diffs_by_event = {e.id: [] for e in events}
    if events:
        rows = db.session.execute(
            select(LeaseCompEventDiff)
            .where(LeaseCompEventDiff.event_id.in_(list(diffs_by_event)))
            .order_by(LeaseCompEventDiff.id)
        ).scalars().all()
        for row in rows:
            diffs_by_event[row.event_id].append(row)

    return [e.to_dict(diffs=diffs_by_event[e.id]) for e in events]


def get_lease_comp_event(event_id: int, *, team_id: int, lease_comp_id: str | None = None) -> dict:
    stmt = select(LeaseCompEvent).where(
        LeaseCompEvent.id == event_id, LeaseCompEvent.team_id == team_id,
    )
    if lease_comp_id is not None:
        stmt = stmt.where(LeaseCompEvent.lease_comp_id == lease_comp_id)
    ev = db.session.execute(stmt).scalar_one_or_none()
    if ev is None:
        raise NotFoundError(resource="LeaseCompEvent", resource_id=event_id, team_id=team_id)
    return ev.to_dict(diffs=ev.diffs)
