"""
Lease comp history — append-only event log.

Models:
    - LeaseCompEvent: one mutation of a lease comp or one of its sub-entities.
    - LeaseCompEventDiff: one field-level before/after change of an event.

Rows are written only through ``history_service.log_lease_comp_event`` and are
never updated or deleted afterwards; ``HistoryGuards`` installs the ORM
listeners that enforce this.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.engine import Engine

from app.models import db

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


# ── Constants ────────────────────────────────────────────────────────────────

COMP_EVENT_TYPES = (
    "comp_created",
    "comp_duplicated",
    "status_changed",
    "confidentiality_changed",
    "export_level_changed",
    "option_added",
    "option_edited",
    "option_removed",
    "file_added",
    "file_removed",
    "task_created",
    "task_completed",
    "reminder_created",
    "reminder_completed",
    "fields_edited",
)


class ImmutableHistoryError(Exception):
    """Raised when a flush tries to update or delete an event or diff row."""

    def __init__(self, model: str, row_id, operation: str) -> None:
        self.model = model
        self.row_id = row_id
        self.operation = operation
        super().__init__(f"{model} id={row_id} is append-only; {operation} rejected")


# ═════════════════════════════════════════════════════════════════════════════
# Models
# ═════════════════════════════════════════════════════════════════════════════

class LeaseCompEvent(db.Model):
    """
    Immutable audit entry for a single lease comp mutation.

    ``team_id`` duplicates the comp's own team scope so history reads can
    filter on it directly.
    """

    __tablename__ = "lease_comp_events"
    __table_args__ = (
        db.Index("idx_lce_comp_created", "lease_comp_id", "created_at"),
        db.Index("idx_lce_team", "team_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    lease_comp_id = db.Column(
        db.String(36),
        db.ForeignKey("lease_comps.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_id = db.Column(
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type = db.Column(
        db.String(30), nullable=False,
        comment="comp_created | status_changed | option_added | fields_edited | …",
    )
    summary = db.Column(db.Text, nullable=False)
    actor_user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    diffs = db.relationship(
        "LeaseCompEventDiff",
        back_populates="event",
        order_by="LeaseCompEventDiff.id",
        lazy="select",
        passive_deletes=True,
    )

    def to_dict(self, diffs=None) -> dict:
        d = {
            "id": self.id,
            "lease_comp_id": self.lease_comp_id,
            "team_id": self.team_id,
            "event_type": self.event_type,
            "summary": self.summary,
            "actor_user_id": self.actor_user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if diffs is not None:
            d["diffs"] = [x.to_dict() for x in diffs]
        return d

    def __repr__(self):
        return f"<LeaseCompEvent {self.id}: {self.event_type} on {self.lease_comp_id}>"


class LeaseCompEventDiff(db.Model):
    __tablename__ = "lease_comp_event_diffs"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer,
        db.ForeignKey("lease_comp_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_label = db.Column(db.String(200), nullable=False)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)

    event = db.relationship("LeaseCompEvent", back_populates="diffs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "field_label": self.field_label,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }


# ═════════════════════════════════════════════════════════════════════════════
# Process-wide guards
# ═════════════════════════════════════════════════════════════════════════════

def _reject_update(mapper, connection, target):
    raise ImmutableHistoryError(type(target).__name__, target.id, "UPDATE")


def _reject_delete(mapper, connection, target):
    raise ImmutableHistoryError(type(target).__name__, target.id, "DELETE")


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign-key enforcement for SQLite connections."""
    import sqlite3
    if isinstance(dbapi_conn, sqlite3.Connection):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class HistoryGuards:
    """
    One-time registration of the history listeners.

    Created once by ``create_app`` and kept in
    ``app.extensions["lease_comp_history"]``. ``ensure_initialized`` may be
    called any number of times; listeners are installed on the first call.
    """

    _LISTENERS = (
        (LeaseCompEvent, "before_update", _reject_update),
        (LeaseCompEvent, "before_delete", _reject_delete),
        (LeaseCompEventDiff, "before_update", _reject_update),
        (LeaseCompEventDiff, "before_delete", _reject_delete),
        (Engine, "connect", _set_sqlite_pragma),
    )

    def __init__(self) -> None:
        self.initialized = False

    def ensure_initialized(self) -> None:
        if self.initialized:
            return
        for target, identifier, fn in self._LISTENERS:
            if not event.contains(target, identifier, fn):
                event.listen(target, identifier, fn)
        self.initialized = True
        logger.debug("Lease comp history guards registered")
