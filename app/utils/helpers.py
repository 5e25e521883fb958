"""Shared utility functions.

parse_date_input:    ISO or DD.MM.YYYY, raises ValueError on bad input
parse_datetime_input ISO 8601 datetimes, raises ValueError on bad input
end_of_month / add_months_to_date / derive_lease_end_date:
                     lease date arithmetic
commit_or_raise:     commit the session or raise PersistenceError / PermissionDenied
"""
import calendar
import logging
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import PermissionDenied, PersistenceError
from app.models import db

logger = logging.getLogger(__name__)


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Accepts YYYY-MM-DD, an ISO datetime (date part) or DD.MM.YYYY. Used by
    the input normalizers, which turn the ValueError into a field-level
    validation error.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d.%m.%Y").date()
    except ValueError as exc:
        raise ValueError(
            "Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY."
        ) from exc


def parse_datetime_input(value):
    """Parse an ISO 8601 datetime; a trailing ``Z`` is accepted as UTC."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError("Invalid datetime format. Use ISO 8601.") from exc


# ── Lease date arithmetic ────────────────────────────────────────────────────

def end_of_month(value) -> date:
    """Snap a date (or ISO date string) to the last day of its month."""
    d = parse_date_input(value)
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=last_day)


def add_months_to_date(value, months: int) -> date:
    """Add *months* to a date, clamping the day to the target month's length.

    Jan 31 + 1 month → Feb 28 (or 29). Does not snap to end of month.
    """
    d = parse_date_input(value)
    index = d.year * 12 + (d.month - 1) + int(months)
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def derive_lease_end_date(start, term_months: int) -> date:
    """Lease end date: start + term months, snapped to the end of that month."""
    return end_of_month(add_months_to_date(start, term_months))


# ── Database commit helper ───────────────────────────────────────────────────

_PERMISSION_SIGNATURES = (
    "permission denied",
    "insufficient_privilege",
    "row-level security",
    "42501",
)


def is_permission_error(exc: BaseException) -> bool:
    """True when a storage error carries a permission-denied signature."""
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    if pgcode == "42501":
        return True
    text = f"{exc} {orig or ''}".lower()
    return any(sig in text for sig in _PERMISSION_SIGNATURES)


def commit_or_raise(action: str = "save changes"):
    """Commit the current SQLAlchemy session or raise.

    On failure the session is rolled back and the error is re-raised as
    PermissionDenied (permission-denied signatures) or PersistenceError.

    Usage::

        db.session.add(comp)
        commit_or_raise("update lease details")
    """
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        if is_permission_error(exc):
            logger.warning("Permission denied on commit (%s): %s", action, exc)
            raise PermissionDenied() from exc
        logger.exception("Database error on commit (%s)", action)
        raise PersistenceError(f"Failed to {action}") from exc
