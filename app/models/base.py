"""
TeamModel — Abstract base class for team-scoped models.

Every lease comp family table carries its own ``team_id`` even when the
parent comp already has one; queries filter on it directly. The
mixin adds the indexed ``team_id`` foreign key.
"""

from sqlalchemy.orm import declared_attr

from app.models import db


class TeamModel(db.Model):
    """Abstract base for team-scoped tables."""
    __abstract__ = True

    @declared_attr
    def team_id(cls):
        return db.Column(
            db.Integer,
            db.ForeignKey("teams.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )