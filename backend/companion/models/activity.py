"""Itinerary activities and their scored, explained form."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class Activity:
    """A place or experience on the itinerary. Read-only input to the engine."""
    id: str
    name: str
    category: str
    latitude: float | None = None
    longitude: float | None = None
    description: str = ""
    types: list[str] = field(default_factory=list)
    rating: float | None = None  # 0-5
    city: str | None = None
    day_number: int | None = None
    best_time_of_day: str | None = None
    duration_minutes: int | None = None
    is_bookable: bool = False
    is_lodging: bool = False
    booking_confirmed: bool = False

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def keywords(self) -> str:
        """Lower-cased haystack of name, category, types and description."""
        return " ".join([self.name, self.category, *self.types, self.description]).lower()


class ReasonCategory(str, Enum):
    DISTANCE = "distance"
    TIME = "time"
    WEATHER = "weather"
    PREFERENCE = "preference"
    NOVELTY = "novelty"
    GENERIC = "generic"


# Tie-break order for why-now selection
REASON_PRIORITY: tuple[ReasonCategory, ...] = (
    ReasonCategory.DISTANCE,
    ReasonCategory.TIME,
    ReasonCategory.WEATHER,
    ReasonCategory.PREFERENCE,
    ReasonCategory.NOVELTY,
)


@dataclass(frozen=True)
class WhyNowReason:
    category: ReasonCategory
    text: str
    value: float = 0.0
    tag: str | None = None  # e.g. "golden_hour", "closing_soon"


@dataclass(frozen=True)
class WhyNow:
    primary: WhyNowReason
    secondary: tuple[WhyNowReason, ...] = ()

    @property
    def is_generic(self) -> bool:
        return self.primary.category == ReasonCategory.GENERIC


@dataclass
class EnrichedActivity:
    """Activity plus relevance score and why-now explanation. Always derived."""
    activity: Activity
    score: float
    why_now: WhyNow
    distance_m: float | None = None
    signals: dict[str, float] = field(default_factory=dict)
    serendipity_reason: str | None = None

    @property
    def id(self) -> str:
        return self.activity.id
