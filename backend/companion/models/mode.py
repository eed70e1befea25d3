from dataclasses import dataclass
from enum import Enum


class TripMode(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"


class SubMode(str, Enum):
    CHOICE = "choice"
    CRAVING = "craving"
    SERENDIPITY = "serendipity"
    REST = "rest"
    NEARBY = "nearby"
    CHAT = "chat"


@dataclass(frozen=True)
class ModeContext:
    """sub_mode is set iff mode is ACTIVE."""
    mode: TripMode = TripMode.PLANNING
    sub_mode: SubMode | None = None
    has_active_trip: bool = False
    trip_id: str | None = None
    day_number: int | None = None
