"""User ORM: a participant identified by display name.

Invariants:
    - display_name is unique
    - role in (JM, QC) implies team_id set; any other role (or none) implies
      team_id NULL. Enforced by ck_users_role_team and by the Assignment variant
    - status WAITING means role and team are both NULL

Design Decisions:
    - role/team columns are written only through core.assignment.to_columns()
    - Enums stored as VARCHAR (native_enum=False): no PostgreSQL type to migrate
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, DateTime, Enum, ForeignKey, String,
)
from sqlalchemy.orm import Mapped, mapped_column

from jokefactory.core.assignment import Assignment, from_columns, status_of, to_columns
from jokefactory.core.domain_types import ParticipantStatus, Role
from jokefactory.db.base import Base, BigIntId


class User(Base):
    """Participant entity."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "(role IN ('JM', 'QC') AND team_id IS NOT NULL)"
            " OR ((role IS NULL OR role IN ('INSTRUCTOR', 'CUSTOMER'))"
            " AND team_id IS NULL)",
            name="ck_users_role_team",
        ),
    )

    user_id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    role: Mapped[Role | None] = mapped_column(
        Enum(Role, native_enum=False, length=20), nullable=True,
    )
    team_id: Mapped[int | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True,
    )
    status: Mapped[ParticipantStatus] = mapped_column(
        Enum(ParticipantStatus, native_enum=False, length=20),
        nullable=False, default=ParticipantStatus.WAITING,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def assignment(self) -> Assignment:
        return from_columns(self.role, self.team_id)

    def apply_assignment(self, assignment: Assignment, now: datetime) -> None:
        """Write a variant back to the role/team/status columns."""
        self.role, self.team_id = to_columns(assignment)
        self.status = status_of(assignment)
        self.assigned_at = now if self.status == ParticipantStatus.ASSIGNED else None
