"""Scoring signals: each maps (activity, context) to a value in [0, 1] plus reason text."""

import math
from dataclasses import dataclass
from datetime import datetime

from companion.models.activity import Activity
from companion.models.context import LocationContext, WeatherCondition, WeatherContext
from companion.services.recommendation.config import (
    CATEGORY_TIME_RULES,
    DAYLIGHT_ONLY_KEYWORDS,
    EARLY_OPEN_KEYWORDS,
    GOLDEN_HOUR_TYPES,
    INDOOR_CATEGORIES,
    INDOOR_TYPES,
    LATE_NIGHT_KEYWORDS,
    NIGHTLIFE_KEYWORDS,
    OUTDOOR_CATEGORIES,
    OUTDOOR_TYPES,
    TIME_PERIODS,
    ScoringConfig,
    scoring_config,
)


@dataclass(frozen=True)
class Signal:
    value: float
    text: str = ""
    available: bool = True  # False when the input is missing and value is the neutral default
    tag: str | None = None


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


# ─── Distance ───

def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float, radius_m: float = 6_371_000.0) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return radius_m * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_to(activity: Activity, location: LocationContext | None, config: ScoringConfig = scoring_config) -> float | None:
    if location is None or not activity.has_coordinates:
        return None
    return haversine_m(
        location.latitude, location.longitude,
        activity.latitude, activity.longitude,
        config.distance.earth_radius_m,
    )


def format_distance(meters: float, config: ScoringConfig = scoring_config) -> str:
    if meters < 100:
        return "Right around the corner"
    if meters < 300:
        return f"{round(meters)}m away"
    if meters < 1000:
        minutes = max(1, round(meters / config.distance.walking_speed_m_per_min))
        return f"{minutes} min walk"
    return f"{meters / 1000:.1f}km away"


def distance_signal(distance_m: float | None, config: ScoringConfig = scoring_config) -> Signal:
    curve = config.distance
    if distance_m is None:
        return Signal(curve.neutral, available=False)
    if distance_m <= curve.immediate_m:
        value = 1.0
    elif distance_m >= curve.max_m:
        value = 0.0
    else:
        value = 0.5 ** ((distance_m - curve.immediate_m) / curve.half_life_m)
    return Signal(_clamp(value), format_distance(distance_m, config))


# ─── Time of day ───

def time_period(hour: int) -> str:
    for name, (start, end) in TIME_PERIODS.items():
        if start < end and start <= hour < end:
            return name
    return "night"


def _has_keyword(haystack: str, keywords: tuple[str, ...]) -> bool:
    return any(k in haystack for k in keywords)


def is_open_now(activity: Activity, now: datetime, config: ScoringConfig = scoring_config) -> bool:
    """Generic opening window; nightlife is treated as always open."""
    if activity.category == "nightlife" or _has_keyword(activity.keywords, NIGHTLIFE_KEYWORDS):
        return True
    hours = config.opening_hours
    return hours.opens_hour <= now.hour < hours.closes_hour


def minutes_until_close(activity: Activity, now: datetime, config: ScoringConfig = scoring_config) -> int | None:
    if activity.category == "nightlife" or not is_open_now(activity, now, config):
        return None
    closes = now.replace(hour=config.opening_hours.closes_hour, minute=0, second=0, microsecond=0)
    return int((closes - now).total_seconds() // 60)


def time_signal(activity: Activity, now: datetime, config: ScoringConfig = scoring_config) -> Signal:
    scores = config.time_fit
    period = time_period(now.hour)
    label = period.replace("_", " ")
    haystack = activity.keywords

    if activity.best_time_of_day and activity.best_time_of_day.lower().replace(" ", "_") == period:
        return Signal(scores.keyword_override, f"Best enjoyed in the {label}")

    if period == "night" and _has_keyword(haystack, NIGHTLIFE_KEYWORDS):
        return Signal(scores.keyword_override, "The night is just getting started")
    if period in ("night", "early_morning") and _has_keyword(haystack, DAYLIGHT_ONLY_KEYWORDS):
        return Signal(scores.daylight_only_at_night, "Better during daylight hours")
    if period == "early_morning" and _has_keyword(haystack, EARLY_OPEN_KEYWORDS):
        return Signal(scores.keyword_override, "Open early, perfect for now")
    if period == "night" and _has_keyword(haystack, LATE_NIGHT_KEYWORDS):
        return Signal(scores.late_night, "Still open late")

    rules = CATEGORY_TIME_RULES.get(activity.category)
    if rules is None:
        value, text = scores.unlisted, ""
    elif period in rules["appropriate"]:
        value, text = scores.appropriate, f"Great {label} pick"
    elif period in rules["marginal"]:
        value, text = scores.marginal, ""
    elif period in rules["inappropriate"]:
        value, text = scores.inappropriate, f"Not ideal in the {label}"
    else:
        value, text = scores.unlisted, ""

    remaining = minutes_until_close(activity, now, config)
    if remaining is not None and remaining <= config.opening_hours.closing_soon_minutes and value >= scores.marginal:
        return Signal(max(value, 0.85), f"Closes in {remaining} min, last chance today", tag="closing_soon")
    return Signal(value, text)


# ─── Weather ───

def is_outdoor(activity: Activity) -> bool:
    return activity.category in OUTDOOR_CATEGORIES or _has_keyword(" ".join(activity.types).lower(), OUTDOOR_TYPES)


def is_indoor(activity: Activity) -> bool:
    if _has_keyword(" ".join(activity.types).lower(), INDOOR_TYPES):
        return True
    return activity.category in INDOOR_CATEGORIES and not is_outdoor(activity)


def minutes_until_sunset(weather: WeatherContext, now: datetime) -> float | None:
    if weather.sunset is None:
        return None
    return (weather.sunset - now).total_seconds() / 60


def is_golden_hour(weather: WeatherContext, now: datetime, config: ScoringConfig = scoring_config) -> bool:
    remaining = minutes_until_sunset(weather, now)
    if remaining is None or weather.condition != WeatherCondition.SUNNY:
        return False
    fit = config.weather_fit
    return fit.golden_hour_min_minutes <= remaining <= fit.golden_hour_max_minutes


def is_outdoor_friendly(weather: WeatherContext | None) -> bool:
    if weather is None:
        return True
    if weather.condition in (WeatherCondition.RAINY, WeatherCondition.STORMY, WeatherCondition.SNOWY):
        return False
    return weather.precipitation_chance < 40 and 5 < weather.temperature < 38


def weather_signal(
    activity: Activity,
    weather: WeatherContext | None,
    now: datetime,
    config: ScoringConfig = scoring_config,
) -> Signal:
    fit = config.weather_fit
    if weather is None:
        return Signal(fit.neutral, available=False)

    types = " ".join(activity.types).lower() + " " + activity.name.lower()
    if _has_keyword(types, GOLDEN_HOUR_TYPES) and is_golden_hour(weather, now, config):
        return Signal(1.0, "Golden hour is about to start", tag="golden_hour")

    outdoor, indoor = is_outdoor(activity), is_indoor(activity)
    if weather.is_wet:
        if outdoor:
            return Signal(fit.neutral - fit.poor_penalty, f"{weather.condition.value.capitalize()} weather outside")
        if indoor:
            return Signal(fit.neutral + fit.perfect_bonus, "Stay dry with an indoor option")
        return Signal(fit.neutral)

    if outdoor:
        if weather.temperature < fit.cold_below_c or weather.temperature > fit.hot_above_c:
            return Signal(fit.neutral - fit.poor_penalty, f"It's {round(weather.temperature)}°C outside")
        if weather.condition == WeatherCondition.SUNNY:
            return Signal(fit.neutral + fit.perfect_bonus, "Perfect weather for being outside")
    return Signal(fit.neutral)


# ─── Preferences & novelty ───

def preference_signal(activity: Activity, preferences: dict[str, float]) -> Signal:
    if not preferences:
        return Signal(0.5, available=False)
    keys = {activity.category.lower(), *(t.lower() for t in activity.types)}
    matched = [(weight, key) for key, weight in preferences.items() if key.lower() in keys]
    if not matched:
        return Signal(0.25)
    weight, key = max(matched)
    return Signal(_clamp(weight), f"Matches your interest in {key.replace('_', ' ')}")


def novelty_signal(
    activity: Activity,
    completed_ids: set[str],
    skipped_ids: set[str],
    explored_categories: set[str],
    over_suggested: bool,
    config: ScoringConfig = scoring_config,
) -> Signal:
    scores = config.novelty
    if activity.id in completed_ids:
        return Signal(scores.completed, "Already visited")
    if activity.id in skipped_ids:
        return Signal(scores.skipped, "Skipped earlier")
    if activity.category in explored_categories:
        value, text = 0.6, ""
    else:
        value, text = 1.0, "Something different from what you've done so far"
    if over_suggested:
        value -= scores.over_suggested_penalty
        text = ""
    return Signal(_clamp(value), text)
