"""Domain Types: identity aliases, enums and fixed game constants.

Invariants:
    - All valid states encoded as Enums, no raw string matching in domain logic
    - Enum names equal their values (persisted by name in the store)
    - PASS_RATING is the single source of truth for publication

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
TeamId = NewType("TeamId", int)
RoundId = NewType("RoundId", int)
BatchId = NewType("BatchId", int)
JokeId = NewType("JokeId", int)


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Participant roles. JM and QC belong to a team; the others never do."""
    INSTRUCTOR = "INSTRUCTOR"
    JM = "JM"
    QC = "QC"
    CUSTOMER = "CUSTOMER"


TEAM_ROLES = frozenset({Role.JM, Role.QC})


class ParticipantStatus(str, Enum):
    """Lobby state of a participant."""
    WAITING = "WAITING"
    ASSIGNED = "ASSIGNED"


class RoundStatus(str, Enum):
    """Round lifecycle, maps to rounds.status."""
    CONFIGURED = "CONFIGURED"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class BatchStatus(str, Enum):
    """Batch lifecycle, maps to batches.status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    RATED = "RATED"


class QCTag(str, Enum):
    """The single tag a QC attaches to each rated joke."""
    EXCELLENT_STANDOUT = "EXCELLENT_STANDOUT"
    GENUINELY_FUNNY = "GENUINELY_FUNNY"
    MADE_ME_SMILE = "MADE_ME_SMILE"
    ORIGINAL_IDEA = "ORIGINAL_IDEA"
    POLITE_SMILE = "POLITE_SMILE"
    DIDNT_LAND = "DIDNT_LAND"
    NOT_ACCEPTABLE = "NOT_ACCEPTABLE"
    OTHER = "OTHER"


# ─── Game Constants ──────────────────────────────────────────────

MIN_RATING: int = 1
MAX_RATING: int = 5
PASS_RATING: int = 5            # only a 5 publishes; 4 does not
FEEDBACK_MAX_LENGTH: int = 200
JOKE_TITLE_MAX_LENGTH: int = 120
