"""
Teams and users.

Login, refresh and SSO live in the external auth provider. These tables hold
only what lease comp permissions need: a user's team and their team role.
"""

from datetime import datetime, timezone

from app.models import db

TEAM_ROLES = ("team_owner", "team_admin", "team_member", "billing_contact")
READ_ONLY_ROLES = frozenset({"billing_contact"})


def _utcnow():
    return datetime.now(timezone.utc)


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)

    members = db.relationship("User", back_populates="team", order_by="User.id")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class User(db.Model):
    __tablename__ = "users"
    # The same email may belong to users in different teams
    __table_args__ = (
        db.UniqueConstraint("team_id", "email", name="uq_user_team_email"),
        db.Index("ix_users_team_id", "team_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    email = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(200))
    role = db.Column(
        db.String(30), nullable=False, default="team_member",
        comment="team_owner | team_admin | team_member | billing_contact",
    )
    created_at = db.Column(db.DateTime, default=_utcnow)

    team = db.relationship("Team", back_populates="members")

    @property
    def is_read_only(self) -> bool:
        return self.role in READ_ONLY_ROLES

    def to_dict(self):
        return {
            "id": self.id,
            "team_id": self.team_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} {self.email} [{self.role}]>"
