"""Participant Assignment: tests for the role/team variant and assignment planning.

Tests cover:
    - TeamMember only accepts JM/QC
    - to_columns/from_columns agree for every variant
    - resolve_patch: WAITING clears, CUSTOMER/INSTRUCTOR drop team, JM/QC need a team
    - plan_assignment: JM+QC per team in team order, then customers, leftovers waiting
    - plan_assignment is deterministic for a seeded rng
"""

import random

import pytest

from jokefactory.core.assignment import (
    Customer, Instructor, TeamMember, Unassigned,
    from_columns, plan_assignment, resolve_patch, status_of, to_columns,
)
from jokefactory.core.domain_types import ParticipantStatus, Role
from jokefactory.core.errors import ValidationError


# ─── Variant ─────────────────────────────────────────────────────

def test_team_member_rejects_non_team_role():
    with pytest.raises(ValueError):
        TeamMember(team_id=1, role=Role.CUSTOMER)


@pytest.mark.parametrize("assignment,columns", [
    (Unassigned(), (None, None)),
    (Instructor(), (Role.INSTRUCTOR, None)),
    (Customer(), (Role.CUSTOMER, None)),
    (TeamMember(team_id=3, role=Role.QC), (Role.QC, 3)),
])
def test_columns_match_variant(assignment, columns):
    assert to_columns(assignment) == columns
    assert from_columns(*columns) == assignment


def test_from_columns_rejects_team_role_without_team():
    with pytest.raises(ValueError):
        from_columns(Role.JM, None)


def test_status_of_unassigned_is_waiting():
    assert status_of(Unassigned()) == ParticipantStatus.WAITING
    assert status_of(Customer()) == ParticipantStatus.ASSIGNED


# ─── resolve_patch ───────────────────────────────────────────────

def test_patch_waiting_clears_everything():
    current = TeamMember(team_id=1, role=Role.JM)
    result = resolve_patch(current, ParticipantStatus.WAITING, Role.QC, 2)
    assert result == Unassigned()


def test_patch_customer_drops_team():
    current = TeamMember(team_id=1, role=Role.JM)
    result = resolve_patch(current, ParticipantStatus.ASSIGNED, Role.CUSTOMER, 1)
    assert result == Customer()


def test_patch_team_role_keeps_held_team():
    current = TeamMember(team_id=4, role=Role.JM)
    result = resolve_patch(current, ParticipantStatus.ASSIGNED, Role.QC)
    assert result == TeamMember(team_id=4, role=Role.QC)


def test_patch_team_role_without_team_names_team_id():
    with pytest.raises(ValidationError) as exc:
        resolve_patch(Customer(), ParticipantStatus.ASSIGNED, Role.JM)
    assert exc.value.field == "team_id"


def test_patch_assigned_without_role_names_role():
    with pytest.raises(ValidationError) as exc:
        resolve_patch(Unassigned(), ParticipantStatus.ASSIGNED)
    assert exc.value.field == "role"


def test_patch_explicit_team_moves_member():
    current = TeamMember(team_id=1, role=Role.QC)
    result = resolve_patch(current, ParticipantStatus.ASSIGNED, team_id=2)
    assert result == TeamMember(team_id=2, role=Role.QC)


# ─── plan_assignment ─────────────────────────────────────────────

def test_plan_fills_teams_then_customers_then_waiting():
    plan = plan_assignment(list(range(1, 8)), [10, 20], 2, random.Random(0))
    assignments = [a for _, a in plan]
    assert assignments[:4] == [
        TeamMember(team_id=10, role=Role.JM),
        TeamMember(team_id=10, role=Role.QC),
        TeamMember(team_id=20, role=Role.JM),
        TeamMember(team_id=20, role=Role.QC),
    ]
    assert assignments[4:6] == [Customer(), Customer()]
    assert assignments[6:] == [Unassigned()]


def test_plan_covers_every_participant_once():
    ids = list(range(1, 12))
    plan = plan_assignment(ids, [1, 2, 3], 3, random.Random(7))
    assert sorted(uid for uid, _ in plan) == ids


def test_plan_with_fewer_participants_than_slots():
    plan = plan_assignment([1], [1, 2], 5, random.Random(1))
    assert plan == [(1, TeamMember(team_id=1, role=Role.JM))]


def test_plan_is_reproducible_with_seeded_rng():
    ids = list(range(1, 9))
    first = plan_assignment(ids, [1, 2], 2, random.Random(42))
    second = plan_assignment(ids, [1, 2], 2, random.Random(42))
    assert first == second


def test_plan_does_not_mutate_input():
    ids = [1, 2, 3, 4]
    plan_assignment(ids, [1], 1, random.Random(3))
    assert ids == [1, 2, 3, 4]
