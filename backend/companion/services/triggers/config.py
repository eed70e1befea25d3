"""Trigger configuration: windows, radii and cooldowns for proactive messages."""

from dataclasses import dataclass, field

HOUR = 3600
MINUTE = 60


@dataclass(frozen=True)
class TriggerCooldowns:
    """Seconds before the same cooldown key may fire again."""
    location_proximity: int = 2 * HOUR
    time_sensitive: int = 3 * HOUR
    weather_pivot: int = 3 * HOUR
    heat_warning: int = 4 * HOUR
    golden_hour: int = 12 * HOUR
    rest_break: int = 2 * HOUR
    meal_time: int = 4 * HOUR
    lodging_reminder: int = 12 * HOUR
    popular_attraction: int = 6 * HOUR


@dataclass(frozen=True)
class MessageTTLs:
    default: int = 30 * MINUTE
    location_proximity: int = 10 * MINUTE
    weather_pivot: int = 2 * HOUR
    booking: int = 6 * HOUR


@dataclass(frozen=True)
class TriggerThresholds:
    proximity_radius_m: float = 200.0
    top_recommendations: int = 3
    time_sensitive_min_score: float = 0.6
    popular_min_score: float = 0.7
    rain_imminent_hours: float = 2.0
    heat_warning_c: float = 32.0
    rest_after_hours: float = 3.0
    meal_lead_hours: int = 2
    meal_hours: tuple[int, ...] = (9, 13, 19)


@dataclass(frozen=True)
class TriggerConfig:
    cooldowns: TriggerCooldowns = field(default_factory=TriggerCooldowns)
    ttls: MessageTTLs = field(default_factory=MessageTTLs)
    thresholds: TriggerThresholds = field(default_factory=TriggerThresholds)


BOOKABLE_KEYWORDS = (
    "museum", "gallery", "landmark", "monument", "attraction", "experience",
    "tour", "viewpoint", "castle", "palace", "church", "temple",
)
DINING_KEYWORDS = (
    "restaurant", "cafe", "bar", "bistro", "brasserie", "trattoria",
    "tavern", "pub", "food", "dining",
)
REST_KEYWORDS = ("cafe", "coffee", "park", "garden", "spa", "tea")


# Singleton: import this everywhere
trigger_config = TriggerConfig()
