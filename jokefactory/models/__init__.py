"""ORM Models: SQLAlchemy declarative models for all game entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Round is the scope of all per-round state (team state, batches, budgets, purchases)

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from jokefactory.models.team import Team  # noqa: F401
from jokefactory.models.user import User  # noqa: F401
from jokefactory.models.round import Round  # noqa: F401
from jokefactory.models.team_round_state import TeamRoundState  # noqa: F401
from jokefactory.models.batch import Batch  # noqa: F401
from jokefactory.models.joke import Joke  # noqa: F401
from jokefactory.models.joke_rating import JokeRating  # noqa: F401
from jokefactory.models.published_joke import PublishedJoke  # noqa: F401
from jokefactory.models.customer_budget import CustomerRoundBudget  # noqa: F401
from jokefactory.models.purchase import Purchase  # noqa: F401
from jokefactory.models.purchase_event import PurchaseEvent  # noqa: F401
