"""Market Schemas: budget and trade responses."""

from pydantic import BaseModel, ConfigDict


class BudgetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    round_id: int
    customer_user_id: int
    starting_budget: int
    remaining_budget: int


class TradeResponse(BaseModel):
    joke_id: int
    team_id: int
    budget: BudgetResponse
