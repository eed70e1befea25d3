"""Weather context provider: cached, normalized weather for the current coordinates."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol

from companion.config import settings
from companion.models.context import HourlyForecast, WeatherCondition, WeatherContext

logger = logging.getLogger(__name__)

CONDITION_MAP: dict[str, WeatherCondition] = {
    "clear": WeatherCondition.SUNNY,
    "clouds": WeatherCondition.CLOUDY,
    "rain": WeatherCondition.RAINY,
    "drizzle": WeatherCondition.RAINY,
    "thunderstorm": WeatherCondition.STORMY,
    "snow": WeatherCondition.SNOWY,
    "mist": WeatherCondition.FOGGY,
    "fog": WeatherCondition.FOGGY,
    "haze": WeatherCondition.FOGGY,
    "smoke": WeatherCondition.FOGGY,
    "dust": WeatherCondition.FOGGY,
}

SIGNIFICANT_TEMP_DELTA_C = 5.0
SIGNIFICANT_PRECIP_RISE = 30.0
RAIN_LOOKAHEAD_ENTRIES = 12
RAIN_PROBABILITY_THRESHOLD = 50.0


class WeatherFetcher(Protocol):
    async def fetch(self, latitude: float, longitude: float, days: int) -> dict[str, Any]: ...


def normalize_condition(raw: str | None) -> WeatherCondition:
    if not raw:
        return WeatherCondition.CLOUDY
    return CONDITION_MAP.get(raw.strip().lower(), WeatherCondition.CLOUDY)


def location_key(latitude: float, longitude: float) -> str:
    """Cache key from coordinates rounded to 2 decimals (~1 km)."""
    return f"{latitude:.2f},{longitude:.2f}"


def _timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.fromisoformat(str(value))


def to_weather_context(raw: dict[str, Any], key: str, fetched_at: datetime) -> WeatherContext:
    """Map a fetcher payload ({current, hourly[]}) onto a WeatherContext."""
    current = raw.get("current") or {}
    hourly = tuple(
        HourlyForecast(
            time=_timestamp(h["time"]),
            temperature=float(h.get("temperature", 0.0)),
            condition=normalize_condition(h.get("condition")),
            precipitation_chance=float(h.get("precipitation_chance", 0.0)),
        )
        for h in raw.get("hourly") or []
    )
    sunrise = _timestamp(current.get("sunrise"))
    sunset = _timestamp(current.get("sunset"))
    if sunrise and sunset:
        is_daytime = sunrise <= fetched_at < sunset
    else:
        is_daytime = 6 <= fetched_at.hour < 20

    precipitation = current.get("precipitation_chance")
    if precipitation is None:
        precipitation = hourly[0].precipitation_chance if hourly else 0.0

    temperature = float(current.get("temperature", 0.0))
    return WeatherContext(
        condition=normalize_condition(current.get("condition")),
        temperature=temperature,
        feels_like=float(current.get("feels_like", temperature)),
        precipitation_chance=float(precipitation),
        is_daytime=is_daytime,
        sunrise=sunrise,
        sunset=sunset,
        fetched_at=fetched_at,
        location_key=key,
        description=current.get("description", ""),
        hourly=hourly,
    )


def is_significant_change(previous: WeatherContext | None, current: WeatherContext | None) -> bool:
    if previous is None or current is None:
        return False
    if abs(current.temperature - previous.temperature) > SIGNIFICANT_TEMP_DELTA_C:
        return True
    if current.condition != previous.condition:
        return True
    return current.precipitation_chance - previous.precipitation_chance > SIGNIFICANT_PRECIP_RISE


def hours_until_rain(weather: WeatherContext | None, now: datetime) -> float | None:
    """Hours until the first upcoming forecast entry with a >50% chance of rain."""
    if weather is None:
        return None
    upcoming = [h for h in weather.hourly if h.time >= now - timedelta(hours=1)]
    for entry in upcoming[:RAIN_LOOKAHEAD_ENTRIES]:
        if entry.precipitation_chance > RAIN_PROBABILITY_THRESHOLD:
            return max(0.0, (entry.time - now).total_seconds() / 3600)
    return None


class WeatherContextProvider:
    """Fetches and caches weather per rounded-coordinate key.

    Each fetch takes a sequence number; a result is only handed back for
    application if no later request has been applied in the meantime.
    """

    def __init__(
        self,
        fetcher: WeatherFetcher,
        staleness_minutes: int | None = None,
        forecast_days: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._fetcher = fetcher
        self.staleness = timedelta(minutes=staleness_minutes or settings.weather_staleness_minutes)
        self.forecast_days = forecast_days or settings.weather_forecast_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._cache: dict[str, WeatherContext] = {}
        self._issued = 0
        self._applied = 0
        self.current: WeatherContext | None = None
        self.last_coordinates: tuple[float, float] | None = None

    def is_stale(self, weather: WeatherContext | None, now: datetime | None = None) -> bool:
        if weather is None:
            return True
        return (now or self._clock()) - weather.fetched_at > self.staleness

    def fresh(self, now: datetime | None = None) -> WeatherContext | None:
        """Current weather, or None when it is missing or stale."""
        return None if self.is_stale(self.current, now) else self.current

    async def refresh(self, latitude: float, longitude: float, force: bool = False) -> WeatherContext | None:
        """Fetch (or reuse cached) weather. Returns None when the fetch failed
        or was superseded by a newer request."""
        key = location_key(latitude, longitude)
        self.last_coordinates = (latitude, longitude)
        self._issued += 1
        seq = self._issued

        cached = self._cache.get(key)
        if cached is not None and not force and not self.is_stale(cached):
            return self._apply(seq, cached)

        try:
            raw = await self._fetcher.fetch(latitude, longitude, self.forecast_days)
        except Exception as e:
            logger.error(f"Weather fetch failed for {key}: {e}")
            return None

        weather = to_weather_context(raw, key, self._clock())
        self._cache[key] = weather
        return self._apply(seq, weather)

    def _apply(self, seq: int, weather: WeatherContext) -> WeatherContext | None:
        if seq < self._applied:
            logger.debug(f"Discarding superseded weather result #{seq} (applied #{self._applied})")
            return None
        self._applied = seq
        self.current = weather
        return weather
