"""
Auth Models — users of the reporting dashboard.

A user is either a contributor (team lead who submits runs) or a
coordinator (manager who reads them). Contributor-only columns are
enforced by a CHECK constraint and surfaced in code as a tagged union
through ``User.profile``.

No credentials are stored here: bearer tokens are issued by an external
identity provider and only verified by this service.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from runboard.core.actors import ROLE_CONTRIBUTOR, ROLE_COORDINATOR
from runboard.models import db


@dataclass(frozen=True)
class ContributorProfile:
    team: str
    manager_id: int


@dataclass(frozen=True)
class CoordinatorProfile:
    pass


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.String(20), nullable=False, comment="contributor | coordinator")
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), nullable=False, unique=True)
    team = db.Column(db.String(100), nullable=True, comment="Required for contributors")
    manager_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        comment="Coordinator of a contributor",
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint(
            f"role IN ('{ROLE_CONTRIBUTOR}', '{ROLE_COORDINATOR}')",
            name="ck_users_role",
        ),
        db.CheckConstraint(
            f"(role = '{ROLE_CONTRIBUTOR}' AND team IS NOT NULL AND manager_id IS NOT NULL) "
            f"OR (role = '{ROLE_COORDINATOR}' AND team IS NULL AND manager_id IS NULL)",
            name="ck_users_role_fields",
        ),
        db.Index("ix_users_role", "role"),
        db.Index("ix_users_manager_id", "manager_id"),
    )

    manager = db.relationship("User", remote_side=[id], foreign_keys=[manager_id])

    @property
    def profile(self):
        """Role-specific payload: ContributorProfile or CoordinatorProfile."""
        if self.role == ROLE_CONTRIBUTOR:
            return ContributorProfile(team=self.team, manager_id=self.manager_id)
        return CoordinatorProfile()

    def to_brief(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self, include_manager=False):
        d = {
            "id": self.id,
            "role": self.role,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if isinstance(self.profile, ContributorProfile):
            d["team"] = self.team
            d["manager_id"] = self.manager_id
            if include_manager and self.manager is not None:
                d["manager"] = self.manager.to_brief()
        return d
