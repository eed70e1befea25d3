from companion.models.activity import (
    REASON_PRIORITY,
    Activity,
    EnrichedActivity,
    ReasonCategory,
    WhyNow,
    WhyNowReason,
)
from companion.models.context import (
    HourlyForecast,
    LocationContext,
    LocationErrorCode,
    PositionFix,
    WeatherCondition,
    WeatherContext,
)
from companion.models.learning import CategoryStats, LearningData
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.models.mode import ModeContext, SubMode, TripMode

__all__ = [
    "REASON_PRIORITY",
    "Activity",
    "CategoryStats",
    "EnrichedActivity",
    "HourlyForecast",
    "LearningData",
    "LocationContext",
    "LocationErrorCode",
    "MessageAction",
    "MessagePriority",
    "MessageType",
    "ModeContext",
    "PositionFix",
    "ProactiveMessage",
    "ReasonCategory",
    "SubMode",
    "TripMode",
    "WeatherCondition",
    "WeatherContext",
    "WhyNow",
    "WhyNowReason",
]
