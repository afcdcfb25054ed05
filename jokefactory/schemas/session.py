"""Session Schemas: join, admin login, and the shared user/round/team views.

Invariants:
    - display_name stripped, 1-100 chars
    - RoundResponse mirrors the rounds table one-to-one
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jokefactory.core.domain_types import ParticipantStatus, Role, RoundStatus


class JoinRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=100)

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name cannot be empty or whitespace")
        return v


class AdminLoginRequest(JoinRequest):
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    display_name: str
    role: Role | None
    team_id: int | None
    status: ParticipantStatus
    assigned_at: datetime | None = None
    joined_at: datetime | None = None


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class RoundResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    round_id: int
    round_number: int
    status: RoundStatus
    customer_budget: int
    batch_size: int
    market_price: float
    cost_of_publishing: float
    is_popped_active: bool
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime | None = None


class TeammateResponse(BaseModel):
    user_id: int
    display_name: str
    role: Role


class SessionResponse(BaseModel):
    """Join/login result: who the caller is and which round is current."""
    user: UserResponse
    round: RoundResponse


class MeResponse(SessionResponse):
    team: TeamResponse | None = None
    teammates: list[TeammateResponse] = []
