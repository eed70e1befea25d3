"""Proactive message model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from companion.models.activity import Activity


class MessageType(str, Enum):
    LOCATION_TRIGGER = "location_trigger"
    TIME_TRIGGER = "time_trigger"
    WEATHER_ALERT = "weather_alert"
    ACTIVITY_REMINDER = "activity_reminder"
    RECOMMENDATION = "recommendation"
    DISCOVERY = "discovery"
    ENCOURAGEMENT = "encouragement"
    BOOKING = "booking"


class MessagePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


@dataclass(frozen=True)
class MessageAction:
    label: str
    type: str  # navigate | add | skip | view | dismiss | book
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProactiveMessage:
    """Unsolicited, time-boxed suggestion.

    Generators fill in the content fields; the trigger scheduler stamps
    id, created_at, expires_at, trigger_id and cooldown_key when it fires.
    """
    type: MessageType
    message: str
    priority: MessagePriority = MessagePriority.MEDIUM
    category: str = ""
    detail: str | None = None
    activity: Activity | None = None
    action: MessageAction | None = None
    id: str = ""
    created_at: datetime | None = None
    expires_at: datetime | None = None
    is_dismissed: bool = False
    trigger_id: str | None = None
    cooldown_key: str | None = None

    @property
    def activity_id(self) -> str | None:
        return self.activity.id if self.activity else None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at
