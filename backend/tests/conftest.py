import random
from datetime import datetime, timedelta, timezone

import pytest

from companion.models.activity import Activity
from companion.models.context import LocationContext, WeatherCondition, WeatherContext
from companion.services.companion_service import ActiveCompanion
from companion.services.kv_store import InMemoryKeyValueStore
from companion.services.learning_store import CooldownStore, LearningStore
from companion.services.recommendation.engine import RecommendationEngine

BASE_LAT = 48.8566
BASE_LNG = 2.3522
METERS_PER_DEG_LAT = 111_195.0


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 6, 14, hour, minute, tzinfo=timezone.utc)


def north_of_base(meters: float) -> float:
    return BASE_LAT + meters / METERS_PER_DEG_LAT


def make_activity(id: str, name: str, category: str, meters: float | None = None, **kwargs) -> Activity:
    if meters is not None:
        kwargs.setdefault("latitude", north_of_base(meters))
        kwargs.setdefault("longitude", BASE_LNG)
    return Activity(id=id, name=name, category=category, **kwargs)


def make_location(timestamp: datetime, city: str | None = None, meters: float = 0.0) -> LocationContext:
    return LocationContext(
        latitude=north_of_base(meters),
        longitude=BASE_LNG,
        accuracy=15.0,
        timestamp=timestamp,
        city=city,
    )


def make_weather(
    condition: WeatherCondition,
    fetched_at: datetime,
    temperature: float = 20.0,
    precipitation: float = 10.0,
    sunset: datetime | None = None,
    hourly: tuple = (),
) -> WeatherContext:
    return WeatherContext(
        condition=condition,
        temperature=temperature,
        feels_like=temperature,
        precipitation_chance=precipitation,
        is_daytime=True,
        sunrise=None,
        sunset=sunset,
        fetched_at=fetched_at,
        location_key=f"{BASE_LAT:.2f},{BASE_LNG:.2f}",
        hourly=hourly,
    )


@pytest.fixture
def now():
    return at(10)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def learning(kv_store):
    return LearningStore(kv_store, min_samples=5, interest_threshold=0.3)


@pytest.fixture
def cooldowns(kv_store):
    return CooldownStore(kv_store)


@pytest.fixture
def engine():
    return RecommendationEngine(rng=random.Random(42))


@pytest.fixture
def museum():
    return make_activity("museum", "Musée d'Orsay", "culture", meters=150, types=["museum"], rating=4.7)


@pytest.fixture
def companion(kv_store, clock, engine):
    return ActiveCompanion(store=kv_store, engine=engine, clock=clock, queue_max=5, weather_max_age_minutes=10)
