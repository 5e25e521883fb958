"""
Lease comp file metadata.

The file bytes live in external object storage; this service records and
removes the metadata row that points at ``storage_path``.

History:
    file_added    Original Filename, MIME Type, Size, Storage Path
    file_removed  same fields, each going to null
"""

import logging

from sqlalchemy import select

from app.models import db
from app.models.lease_comp import LeaseComp, LeaseCompFile
from app.services.helpers.scoped_queries import get_scoped
from app.services.lease_comp_schemas import FILE
from app.services.mutation import PersistOutcome, delete_with_snapshot, run_mutation, single_event
from app.services.permission import check_comp_write
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


def list_files(comp_id: str, *, team_id: int) -> list[dict]:
    get_scoped(LeaseComp, comp_id, team_id=team_id)
    rows = db.session.execute(
        select(LeaseCompFile)
        .where(LeaseCompFile.lease_comp_id == comp_id, LeaseCompFile.team_id == team_id)
        .order_by(LeaseCompFile.created_at.desc())
    ).scalars().all()
    return [f.to_dict() for f in rows]


def add_file(comp_id: str, data: dict, *, team_id: int, user_id: int):
    def persist(values):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        row = LeaseCompFile(lease_comp_id=comp.id, team_id=comp.team_id, created_by=user_id, **values)
        db.session.add(row)
        commit_or_raise("add file")
        return PersistOutcome(
            record=row, lease_comp_id=comp.id, team_id=comp.team_id,
            before={}, after=values, field_labels=FILE.field_labels,
            plan=single_event("file_added", f'File added: "{values["original_filename"]}"'),
        )

    return run_mutation("add_file", actor_user_id=user_id, validate=lambda: FILE.normalize(data), persist=persist)


def remove_file(comp_id: str, file_id: str, *, team_id: int, user_id: int):
    def persist(_):
        comp = get_scoped(LeaseComp, comp_id, team_id=team_id)
        check_comp_write(comp, user_id)
        row = get_scoped(LeaseCompFile, file_id, team_id=team_id, lease_comp_id=comp.id)
        filename = row.original_filename
        before = delete_with_snapshot(row, FILE.field_labels, "remove file")
        logger.info("File metadata removed; storage object left at %s", before.get("storage_path"),
                    extra={"lease_comp_id": comp_id, "team_id": team_id})
        return PersistOutcome(
            record=None, lease_comp_id=comp_id, team_id=team_id,
            before=before, after={}, field_labels=FILE.field_labels,
            plan=single_event("file_removed", f'File removed: "{filename}"'),
        )

    return run_mutation("remove_file", actor_user_id=user_id, validate=lambda: None, persist=persist)
