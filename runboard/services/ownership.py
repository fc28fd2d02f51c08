"""
Ownership Resolver — who may see which submissions, and which teams exist.

Scope rules:
    contributor → submissions where lead_id    = actor.id  (own runs only)
    coordinator → submissions where manager_id = actor.id  (every run reported to them,
                                                             regardless of team)

Teams:
    A team is a free-text label on contributor users, not an entity. The
    teams of a coordinator are the distinct labels among their contributors.

    Known divergence (kept on purpose, no sync job): ``list_teams`` reads the
    CURRENT label from user rows, while each submission keeps the label it
    was created with. A contributor who renames their team keeps their old
    runs under the old label, and ``list_teams`` only reports the new one.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select

from runboard.core.actors import ROLE_CONTRIBUTOR, Contributor, Coordinator
from runboard.models.auth import User
from runboard.services.helpers.scoped_queries import fetch_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerScope:
    """A single ``<column> = <owner id>`` predicate on submissions."""

    field: str
    owner_id: int

    def apply(self, stmt, model):
        return stmt.where(getattr(model, self.field) == self.owner_id)

    def as_kwargs(self) -> dict:
        return {self.field: self.owner_id}


def resolve_scope(actor) -> OwnerScope:
    """Return the record scope for an authenticated actor."""
    if isinstance(actor, Contributor):
        return OwnerScope(field="lead_id", owner_id=actor.id)
    if isinstance(actor, Coordinator):
        return OwnerScope(field="manager_id", owner_id=actor.id)
    raise TypeError(f"Unsupported actor type: {type(actor).__name__}")


def list_team_leads(coordinator_id: int) -> list[User]:
    """Contributors currently assigned to the coordinator, by name."""
    stmt = (
        select(User)
        .where(User.role == ROLE_CONTRIBUTOR, User.manager_id == coordinator_id)
        .order_by(User.name, User.id)
    )
    return fetch_all(stmt, operation="load team leads")


def list_teams(coordinator_id: int) -> list[str]:
    """Distinct non-empty team labels of the coordinator's contributors, sorted."""
    stmt = (
        select(User.team)
        .where(
            User.role == ROLE_CONTRIBUTOR,
            User.manager_id == coordinator_id,
            User.team.is_not(None),
            User.team != "",
        )
        .distinct()
        .order_by(User.team)
    )
    return fetch_all(stmt, operation="list teams")


def list_team_rosters(coordinator_id: int) -> dict:
    """Teams of a coordinator with the leads currently under each label."""
    teams = list_teams(coordinator_id)
    leads = list_team_leads(coordinator_id)

    rosters = [
        {
            "name": team,
            "leads": [lead.to_brief() for lead in leads if lead.team == team],
        }
        for team in teams
    ]
    return {
        "teams": rosters,
        "total_teams": len(teams),
        "total_team_leads": len(leads),
    }
