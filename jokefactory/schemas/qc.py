"""QC Schemas: rating payload and queue views.

Invariants:
    - tag kept as str so an unknown tag is reported by core with field "tag"
"""

from pydantic import BaseModel, Field

from jokefactory.core.scoring import RatingInput
from jokefactory.schemas.batch import BatchResponse, JokeResponse


class RatingItem(BaseModel):
    joke_id: int
    rating: int
    tag: str
    joke_title: str | None = None

    def to_input(self) -> RatingInput:
        return RatingInput(
            joke_id=self.joke_id, rating=self.rating,
            tag=self.tag, title=self.joke_title,
        )


class RateRequest(BaseModel):
    ratings: list[RatingItem] = Field(min_length=1)
    feedback: str | None = None


class QueueNextResponse(BaseModel):
    batch: BatchResponse
    jokes: list[JokeResponse]
    queue_count: int


class RateResponse(BaseModel):
    batch: BatchResponse
    published_joke_ids: list[int]


class QueueCountResponse(BaseModel):
    round_id: int
    queue_count: int
