"""Participant Assignment: tagged role/team variant and pure assignment planning.

Invariants:
    - A TeamMember always carries a team; Instructor, Customer and Unassigned never do
    - Unassigned participants are WAITING; every other variant is ASSIGNED
    - plan_assignment is PURE given its rng: same rng state, same plan
    - Every participant passed to plan_assignment appears exactly once in the plan

Design Decisions:
    - Variant classes instead of nullable role/team pairs: the role/team
      invariant cannot be expressed wrongly in Python code; the store columns
      are derived via to_columns() and guarded by a CHECK constraint
    - rng injected (random.Random): production seeds from wall clock,
      tests pass a seeded instance
"""

import random
from dataclasses import dataclass
from typing import Sequence, Union

from jokefactory.core.domain_types import (
    ParticipantStatus, Role, TeamId, UserId, TEAM_ROLES,
)
from jokefactory.core.errors import ValidationError


@dataclass(frozen=True)
class Unassigned:
    """In the lobby, no role yet."""


@dataclass(frozen=True)
class Instructor:
    """Runs the game; never on a team."""


@dataclass(frozen=True)
class Customer:
    """Spends budget in the market; never on a team."""


@dataclass(frozen=True)
class TeamMember:
    """JM or QC on a specific team."""
    team_id: TeamId
    role: Role

    def __post_init__(self):
        if self.role not in TEAM_ROLES:
            raise ValueError(f"TeamMember role must be JM or QC, got {self.role}")


Assignment = Union[Unassigned, Instructor, Customer, TeamMember]


def from_columns(role: Role | None, team_id: int | None) -> Assignment:
    """Rebuild the variant from stored role/team columns."""
    if role is None:
        return Unassigned()
    if role == Role.INSTRUCTOR:
        return Instructor()
    if role == Role.CUSTOMER:
        return Customer()
    if team_id is None:
        raise ValueError(f"stored {role.value} without a team")
    return TeamMember(team_id=TeamId(team_id), role=role)


def to_columns(assignment: Assignment) -> tuple[Role | None, TeamId | None]:
    """Project the variant onto (role, team_id) columns."""
    if isinstance(assignment, TeamMember):
        return assignment.role, assignment.team_id
    if isinstance(assignment, Instructor):
        return Role.INSTRUCTOR, None
    if isinstance(assignment, Customer):
        return Role.CUSTOMER, None
    return None, None


def status_of(assignment: Assignment) -> ParticipantStatus:
    if isinstance(assignment, Unassigned):
        return ParticipantStatus.WAITING
    return ParticipantStatus.ASSIGNED


def resolve_patch(
    current: Assignment,
    status: ParticipantStatus,
    role: Role | None = None,
    team_id: int | None = None,
) -> Assignment:
    """Apply a partial instructor correction to one participant.

    Omitted role/team keep the current values. WAITING wins over everything
    else. CUSTOMER/INSTRUCTOR drop the team; JM/QC need one, either supplied
    or already held.
    """
    if status == ParticipantStatus.WAITING:
        return Unassigned()

    current_role, current_team = to_columns(current)
    desired_role = role if role is not None else current_role
    desired_team = team_id if team_id is not None else current_team

    if desired_role is None:
        raise ValidationError(
            "role is required for ASSIGNED participants", field="role",
        )
    if desired_role == Role.INSTRUCTOR:
        return Instructor()
    if desired_role == Role.CUSTOMER:
        return Customer()
    if desired_team is None:
        raise ValidationError(
            "team_id is required for JM/QC roles", field="team_id",
        )
    return TeamMember(team_id=TeamId(desired_team), role=desired_role)


def plan_assignment(
    participant_ids: Sequence[UserId],
    team_ids: Sequence[TeamId],
    customer_count: int,
    rng: random.Random,
) -> list[tuple[UserId, Assignment]]:
    """Shuffle participants and hand out roles greedily.

    Order: JM then QC for each team (team order), then customers. Whoever
    is left returns to Unassigned.
    """
    shuffled = list(participant_ids)
    rng.shuffle(shuffled)

    slots: list[Assignment] = []
    for team_id in team_ids:
        slots.append(TeamMember(team_id=team_id, role=Role.JM))
        slots.append(TeamMember(team_id=team_id, role=Role.QC))
    slots.extend(Customer() for _ in range(customer_count))

    plan: list[tuple[UserId, Assignment]] = []
    for index, user_id in enumerate(shuffled):
        plan.append((user_id, slots[index] if index < len(slots) else Unassigned()))
    return plan
