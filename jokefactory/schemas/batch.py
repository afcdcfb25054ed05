"""Batch Schemas: JM submission and batch/joke views.

Invariants:
    - BatchSubmit carries the team and an ordered list of joke texts;
      the exact count is checked against the round in core, not here
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from jokefactory.core.domain_types import BatchStatus


class BatchSubmit(BaseModel):
    team_id: int
    jokes: list[str] = Field(min_length=1, max_length=100)


class JokeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    joke_id: int
    joke_text: str
    joke_title: str | None = None


class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    batch_id: int
    round_id: int
    team_id: int
    status: BatchStatus
    submitted_at: datetime | None = None
    rated_at: datetime | None = None
    avg_score: float | None = None
    passes_count: int | None = None
    feedback: str | None = None
    jokes: list[JokeResponse] = []
