"""Live context snapshots: location fixes and normalized weather."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class LocationErrorCode(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PositionFix:
    """Raw fix delivered by a positioning source."""
    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    heading: float | None = None
    speed: float | None = None  # m/s


@dataclass(frozen=True)
class LocationContext:
    """Immutable location snapshot; superseded by each new fix."""
    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    heading: float | None = None
    speed: float | None = None
    is_moving: bool = False
    city: str | None = None
    country_code: str | None = None

    @property
    def accuracy_quality(self) -> str:
        if self.accuracy <= 10:
            return "excellent"
        if self.accuracy <= 30:
            return "good"
        if self.accuracy <= 100:
            return "fair"
        return "poor"


class WeatherCondition(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    FOGGY = "foggy"


@dataclass(frozen=True)
class HourlyForecast:
    time: datetime
    temperature: float
    condition: WeatherCondition
    precipitation_chance: float  # 0-100


@dataclass(frozen=True)
class WeatherContext:
    """Normalized weather for one rounded-coordinate key. Replaced wholesale on refresh."""
    condition: WeatherCondition
    temperature: float  # celsius
    feels_like: float
    precipitation_chance: float  # 0-100
    is_daytime: bool
    sunrise: datetime | None
    sunset: datetime | None
    fetched_at: datetime
    location_key: str
    description: str = ""
    hourly: tuple[HourlyForecast, ...] = field(default_factory=tuple)

    @property
    def is_wet(self) -> bool:
        return self.condition in (WeatherCondition.RAINY, WeatherCondition.STORMY)
