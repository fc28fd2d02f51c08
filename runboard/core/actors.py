"""Authenticated actors — a tagged union over the two roles.

A contributor always carries its team label and coordinator id; a
coordinator carries neither. Services branch on the actor type instead of
checking optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ROLE_CONTRIBUTOR = "contributor"
ROLE_COORDINATOR = "coordinator"
ROLES = (ROLE_CONTRIBUTOR, ROLE_COORDINATOR)


@dataclass(frozen=True)
class Contributor:
    id: int
    team: str
    manager_id: int

    role = ROLE_CONTRIBUTOR


@dataclass(frozen=True)
class Coordinator:
    id: int

    role = ROLE_COORDINATOR


Actor = Union[Contributor, Coordinator]


def actor_from_user(user) -> Actor:
    """Build the actor for a persisted user row.

    Raises:
        ValueError: the row's role is neither contributor nor coordinator.
    """
    if user.role == ROLE_CONTRIBUTOR:
        return Contributor(id=user.id, team=user.team, manager_id=user.manager_id)
    if user.role == ROLE_COORDINATOR:
        return Coordinator(id=user.id)
    raise ValueError(f"User id={user.id} has unknown role {user.role!r}")
