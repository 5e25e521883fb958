"""
Lease comp write permissions.

A caller may write a comp (and its sub-entities) when they:
  - belong to the comp's team,
  - are not a billing contact,
  - pass the comp's internal access level.

Internal access levels:
    all_team        every team member
    owner_admin_me  team owner, team admin, or the comp's creator
    owner_me        team owner or the comp's creator
    just_me         only the comp's creator

Usage:
    from app.services.permission import check_comp_write

    # Raises PermissionDenied if not allowed
    check_comp_write(comp, user_id)

    # Tasks and reminders may only be assigned within the comp's team
    check_assignee(values.get("assigned_to"), comp.team_id)

    if can_write_comp(comp, user_id):
        ...
"""

from sqlalchemy import select

from app.core.exceptions import PermissionDenied, ValidationError
from app.models import db
from app.models.auth import User

ACCESS_LEVEL_ROLES = {
    "all_team": {"team_owner", "team_admin", "team_member"},
    "owner_admin_me": {"team_owner", "team_admin"},
    "owner_me": {"team_owner"},
    "just_me": set(),
}


def get_team_user(user_id, team_id) -> User | None:
    """The user if they belong to *team_id*, else None."""
    if user_id is None:
        return None
    user = db.session.get(User, int(user_id))
    if user is None or user.team_id != team_id:
        return None
    return user


def can_write_comp(comp, user_id) -> bool:
    user = get_team_user(user_id, comp.team_id)
    if user is None or user.is_read_only:
        return False
    if comp.created_by is not None and comp.created_by == user.id:
        return True
    allowed = ACCESS_LEVEL_ROLES.get(comp.internal_access_level or "all_team", set())
    return user.role in allowed


def can_create_comp(user_id, team_id) -> bool:
    user = get_team_user(user_id, team_id)
    return user is not None and not user.is_read_only


def check_comp_write(comp, user_id) -> None:
    """Raise PermissionDenied if *user_id* may not write *comp*."""
    if not can_write_comp(comp, user_id):
        raise PermissionDenied()


def list_team_members(team_id) -> list[dict]:
    """Members of *team_id* that tasks and reminders may be assigned to."""
    users = db.session.execute(
        select(User).where(User.team_id == team_id).order_by(User.email)
    ).scalars().all()
    return [
        {"user_id": u.id, "email": u.email, "full_name": u.full_name, "role": u.role}
        for u in users
    ]


def check_assignee(assigned_to, team_id) -> None:
    """Raise ValidationError unless *assigned_to* is empty or a member of *team_id*."""
    if assigned_to is None:
        return
    if get_team_user(assigned_to, team_id) is None:
        raise ValidationError(
            "Assignee must be a member of this team",
            details={"assigned_to": f"User {assigned_to} is not a member of this team"},
        )
