"""Instructor Schemas: round configuration, start, assignment and user patches.

Invariants:
    - RoundConfigRequest requires every setting; StartRoundRequest fields are
      optional and fall back to the stored configuration
    - Range checks live in core.enforce_round so service callers get the same errors
"""

from pydantic import BaseModel

from jokefactory.core.domain_types import ParticipantStatus, Role


class RoundConfigRequest(BaseModel):
    customer_budget: int
    batch_size: int
    market_price: float = 1.0
    cost_of_publishing: float = 0.1


class StartRoundRequest(BaseModel):
    customer_budget: int | None = None
    batch_size: int | None = None
    market_price: float | None = None
    cost_of_publishing: float | None = None


class AssignRequest(BaseModel):
    customer_count: int
    team_count: int


class PatchUserRequest(BaseModel):
    status: ParticipantStatus
    role: Role | None = None
    team_id: int | None = None


class PopupRequest(BaseModel):
    is_active: bool
