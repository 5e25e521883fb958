"""
Mutation engine shared by the lease comp orchestrators.

Every write to a lease comp or one of its sub-entities runs through
``run_mutation``, which drives it through

    idle → validating → persisting → logging → done
                 └──────────┴───────────┴──→ failed

    validating   normalize input; ValidationError stops here, storage untouched
    persisting   capture the before snapshot, write, commit
    logging      diff before/after, classify, append history events
    done         the caller gets a MutationResult

The domain commit always happens before the history write. When the
history write fails the domain change stays committed; ``blocking_audit``
decides whether that surfaces as AuditLogError or only as a warning.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from app.core.exceptions import AuditLogError, NotFoundError, PersistenceError, ValidationError
from app.models import db
from app.services.diff_service import compute_diffs, snapshot
from app.services.history_service import PlannedEvent, log_lease_comp_event
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


class MutationStage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    LOGGING = "logging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PersistOutcome:
    """What the persisting step hands to the logging step."""
    record: Any
    lease_comp_id: str
    team_id: int
    before: dict
    after: dict
    field_labels: dict
    plan: Callable[[list[dict]], list[PlannedEvent]]


@dataclass
class MutationResult:
    record: dict | None
    stage: MutationStage
    events: list[dict] = field(default_factory=list)
    audit_error: str | None = None

    def to_dict(self) -> dict:
        return {
            "record": self.record,
            "stage": self.stage.value,
            "events": self.events,
            "audit_error": self.audit_error,
        }


def single_event(event_type: str, summary: str) -> Callable[[list[dict]], list[PlannedEvent]]:
    """Plan one event carrying every diff."""
    def plan(diffs):
        return [PlannedEvent(event_type, summary, diffs)]
    return plan


def delete_with_snapshot(record, field_labels: dict, action: str = "delete record") -> dict:
    """Capture *record*'s snapshot, then delete it and commit.

    The snapshot is taken before the DELETE is issued; a missing record is
    NotFoundError rather than a delete without history.
    """
    if record is None:
        raise NotFoundError(resource="Record")
    before = dict(snapshot(record, field_labels))
    db.session.delete(record)
    commit_or_raise(action)
    return before


class _Tracker:
    def __init__(self, name: str):
        self.name = name
        self.stage = MutationStage.IDLE
        self.lease_comp_id = None

    def to(self, stage: MutationStage) -> None:
        logger.debug(
            "%s: %s → %s", self.name, self.stage.value, stage.value,
            extra={"stage": stage.value, "lease_comp_id": self.lease_comp_id},
        )
        self.stage = stage


def run_mutation(
    name: str,
    *,
    actor_user_id: int,
    validate: Callable[[], Any],
    persist: Callable[[Any], PersistOutcome],
    blocking_audit: bool = True,
    serialize: Callable[[Any], dict] | None = None,
) -> MutationResult:
    """
    Drive one mutation through the stage machine.

    Args:
        name: Short operation name for logs (e.g. "update_lease_details").
        actor_user_id: The authenticated caller; recorded on every event.
        validate: Returns normalized input or raises ValidationError.
        persist: Receives the normalized input, writes and commits, and
                 returns a PersistOutcome. Raises PersistenceError,
                 PermissionDenied or NotFoundError on failure.
        blocking_audit: Raise AuditLogError when history logging fails.
                        When false the failure is logged and reported in
                        ``MutationResult.audit_error``.
        serialize: Turns the persisted record into a dict; defaults to
                   ``record.to_dict()``.
    """
    tracker = _Tracker(name)

    tracker.to(MutationStage.VALIDATING)
    try:
        normalized = validate()
    except ValidationError:
        tracker.to(MutationStage.FAILED)
        raise

    tracker.to(MutationStage.PERSISTING)
    try:
        outcome = persist(normalized)
    except (PersistenceError, NotFoundError, ValidationError):
        db.session.rollback()
        tracker.to(MutationStage.FAILED)
        raise
    except Exception:
        db.session.rollback()
        tracker.to(MutationStage.FAILED)
        logger.exception("%s: unexpected error while persisting", name)
        raise
    tracker.lease_comp_id = outcome.lease_comp_id

    if serialize is not None:
        record = serialize(outcome.record)
    elif outcome.record is not None:
        record = outcome.record.to_dict()
    else:
        record = None

    tracker.to(MutationStage.LOGGING)
    diffs = compute_diffs(outcome.before, outcome.after, outcome.field_labels)
    planned = [p for p in outcome.plan(diffs) if p.diffs]
    logged = []
    try:
        for p in planned:
            ev = log_lease_comp_event(
                lease_comp_id=outcome.lease_comp_id,
                team_id=outcome.team_id,
                event_type=p.event_type,
                summary=p.summary,
                actor_user_id=actor_user_id,
                diffs=p.diffs,
            )
            logged.append(ev.to_dict(diffs=ev.diffs))
    except AuditLogError as exc:
        if blocking_audit:
            tracker.to(MutationStage.FAILED)
            raise
        logger.warning(
            "%s: history logging failed, change kept: %s", name, exc,
            exc_info=True,
            extra={"lease_comp_id": outcome.lease_comp_id, "team_id": outcome.team_id},
        )
        tracker.to(MutationStage.DONE)
        return MutationResult(record=record, stage=tracker.stage, events=logged, audit_error=str(exc))

    tracker.to(MutationStage.DONE)
    return MutationResult(record=record, stage=tracker.stage, events=logged)
