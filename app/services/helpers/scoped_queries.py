"""
Team-scoped query helpers.

Every get-by-id on the lease comp family goes through these helpers instead
of ``db.session.get(Model, pk)``. A bare ``get`` bypasses team isolation.

Usage:
    comp = get_scoped(LeaseComp, comp_id, team_id=team_id)

    # Sub-entities are scoped by both their team and their parent comp
    task = get_scoped(LeaseCompTask, task_id, team_id=team_id, lease_comp_id=comp_id)

Each keyword maps to a column of the same name. A scope kwarg naming a
column the model lacks raises ``ValueError``; it is never silently dropped.
"""

import logging

from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.models import db

logger = logging.getLogger(__name__)


def get_scoped(
    model,
    pk,
    *,
    team_id: int | None = None,
    lease_comp_id: str | None = None,
):
    """Fetch a single entity by PK with a mandatory scope filter.

    Cross-team access is indistinguishable from a missing record: both raise
    NotFoundError → HTTP 404.

    Args:
        model: SQLAlchemy model class with an ``id`` PK column.
        pk: Primary key value to look up.
        team_id: Scope by team_id column. Required.
        lease_comp_id: Additionally scope by the parent comp.

    Raises:
        ValueError: If team_id is missing or a scope column does not exist.
        NotFoundError: If the entity does not exist within the given scope.
    """
    if team_id is None:
        raise ValueError(
            f"{model.__name__} id={pk} requires a team_id scope. "
            "Unscoped lookups are forbidden."
        )

    scopes = {"team_id": team_id}
    if lease_comp_id is not None:
        scopes["lease_comp_id"] = lease_comp_id

    missing = [field for field in scopes if not hasattr(model, field)]
    if missing:
        raise ValueError(
            f"{model.__name__} has no scope column(s) {missing}; "
            "refusing to perform a partially scoped lookup."
        )

    stmt = select(model).where(model.id == pk)
    for field, value in scopes.items():
        stmt = stmt.where(getattr(model, field) == value)

    result = db.session.execute(stmt).scalar_one_or_none()

    if result is None:
        logger.debug(
            "get_scoped: %s id=%s not found in scope %s",
            model.__name__,
            pk,
            scopes,
        )
        raise NotFoundError(resource=model.__name__, resource_id=pk, team_id=team_id)

    return result

