from datetime import timedelta

import pytest

from companion.models.context import HourlyForecast, WeatherCondition
from companion.models.message import MessagePriority, MessageType, ProactiveMessage
from companion.models.mode import ModeContext, SubMode, TripMode
from companion.services.booking_links import default_link_generators
from companion.services.recommendation.engine import ScoringContext
from companion.services.triggers import DEFAULT_TRIGGERS, ProactiveTrigger, TriggerContext, TriggerScheduler
from companion.services.triggers.booking import lodging_reminder_trigger, popular_attraction_trigger
from companion.services.triggers.dining import meal_time_trigger
from companion.services.triggers.location import location_proximity_trigger
from companion.services.triggers.rest import rest_break_trigger
from companion.services.triggers.time_sensitive import time_sensitive_trigger
from companion.services.triggers.weather import golden_hour_trigger, heat_warning_trigger, weather_pivot_trigger

from conftest import at, make_activity, make_location, make_weather

ACTIVE = ModeContext(mode=TripMode.ACTIVE, sub_mode=SubMode.CHOICE, has_active_trip=True, trip_id="trip-1", day_number=1)


@pytest.fixture
def scheduler(cooldowns, learning):
    return TriggerScheduler(cooldowns, learning)


def _context(now, **kwargs) -> TriggerContext:
    kwargs.setdefault("mode", ACTIVE)
    return TriggerContext(now=now, **kwargs)


def _recs(engine, activities, now, location=None, weather=None):
    return engine.score(activities, ScoringContext(now=now, location=location, weather=weather))


# ─── Location proximity ───

def test_proximity_to_recommended_museum_fires(scheduler, engine, museum, now):
    location = make_location(now)
    recs = _recs(engine, [museum], now, location)

    messages = scheduler.check_triggers(_context(now, location=location), recs, DEFAULT_TRIGGERS)

    proximity = [m for m in messages if m.trigger_id == "location_proximity"]
    assert len(proximity) == 1
    message = proximity[0]
    assert message.activity.id == "museum"
    assert message.type == MessageType.LOCATION_TRIGGER
    assert message.priority == MessagePriority.HIGH
    assert message.cooldown_key == "location_proximity:museum"
    assert message.action.type == "navigate"


def test_fired_message_is_stamped(scheduler, engine, museum, now):
    location = make_location(now)
    recs = _recs(engine, [museum], now, location)

    message = scheduler.check_triggers(_context(now, location=location), recs, [location_proximity_trigger])[0]
    assert message.id
    assert message.created_at == now
    assert message.expires_at == now + timedelta(minutes=10)
    assert message.is_dismissed is False
    assert message.category == "location"


def test_proximity_never_fires_without_location(scheduler, engine, museum, now):
    recs = _recs(engine, [museum], now)
    assert scheduler.check_triggers(_context(now), recs, [location_proximity_trigger]) == []


def test_proximity_ignores_visited_and_far_places(scheduler, engine, museum, now):
    location = make_location(now)
    far = make_activity("far", "Far museum", "culture", meters=800, types=["museum"])
    recs = _recs(engine, [museum, far], now, location)

    ctx = _context(now, location=location, visited_ids={"museum"})
    assert scheduler.check_triggers(ctx, recs, [location_proximity_trigger]) == []


def test_cooldown_blocks_repeat_until_window_elapses(scheduler, engine, museum, now):
    location = make_location(now)
    recs = _recs(engine, [museum], now, location)
    triggers = [location_proximity_trigger]

    first = scheduler.check_triggers(_context(now, location=location), recs, triggers)
    assert len(first) == 1

    for minutes in (1, 30, 119):
        later = now + timedelta(minutes=minutes)
        assert scheduler.check_triggers(_context(later, location=location), recs, triggers) == []

    after = now + timedelta(hours=2)
    again = scheduler.check_triggers(_context(after, location=location), recs, triggers)
    assert len(again) == 1
    assert again[0].id != first[0].id


def test_cooldown_is_per_entity(scheduler, engine, now):
    location = make_location(now)
    a = make_activity("a", "Gallery A", "culture", meters=50, types=["gallery"])
    b = make_activity("b", "Gallery B", "culture", meters=120, types=["gallery"])
    recs = _recs(engine, [a, b], now, location)

    first = scheduler.check_triggers(_context(now, location=location), recs, [location_proximity_trigger])
    assert first[0].activity.id == "a"

    ctx = _context(now + timedelta(minutes=5), location=location, visited_ids={"a"})
    second = scheduler.check_triggers(ctx, recs, [location_proximity_trigger])
    assert second[0].activity.id == "b"


def test_proximity_moves_on_while_nearest_is_cooling_down(scheduler, engine, museum, now):
    location = make_location(now)
    gallery = make_activity("gallery", "Galerie Vivienne", "culture", meters=190, types=["gallery"])
    recs = _recs(engine, [museum, gallery], now, location)

    first = scheduler.check_triggers(_context(now, location=location), recs, [location_proximity_trigger])
    assert first[0].cooldown_key == "location_proximity:museum"

    ctx = _context(now + timedelta(minutes=5), location=location)
    second = scheduler.check_triggers(ctx, recs, [location_proximity_trigger])
    assert second[0].cooldown_key == "location_proximity:gallery"

    ctx = _context(now + timedelta(minutes=10), location=location)
    assert scheduler.check_triggers(ctx, recs, [location_proximity_trigger]) == []


# ─── Suppression ───

def test_suppressed_category_does_not_fire(scheduler, learning, engine):
    now = at(11, 30)
    bistro = make_activity("bistro", "Le Comptoir", "food_drink", types=["restaurant"])
    recs = _recs(engine, [bistro], now)
    for _ in range(5):
        learning.record_dismissal("restaurant")

    assert scheduler.check_triggers(_context(now), recs, [meal_time_trigger]) == []

    for _ in range(3):
        learning.record_click("restaurant")
    fired = scheduler.check_triggers(_context(now), recs, [meal_time_trigger])
    assert len(fired) == 1
    assert fired[0].category == "restaurant"


def test_firing_records_suggestion(scheduler, learning, engine):
    now = at(11, 30)
    bistro = make_activity("bistro", "Le Comptoir", "food_drink", types=["restaurant"])
    scheduler.check_triggers(_context(now), _recs(engine, [bistro], now), [meal_time_trigger])

    assert learning.get_data().category("restaurant").suggested == 1
    assert learning.get_data().last_suggestion_at == now


def test_meal_time_window(scheduler, engine):
    bistro = make_activity("bistro", "Le Comptoir", "food_drink", types=["restaurant"])
    for hour, minute in ((10, 0), (14, 0), (15, 30)):
        now = at(hour, minute)
        assert scheduler.check_triggers(_context(now), _recs(engine, [bistro], now), [meal_time_trigger]) == []


# ─── Isolation ───

def _broken_generate(context, recommendations):
    raise RuntimeError("template missing")


def _broken_condition(context, recommendations):
    raise KeyError("weather")


def test_failing_trigger_does_not_block_others(scheduler, engine, museum, now):
    broken = [
        ProactiveTrigger(
            id="broken_generate",
            category="test",
            priority=MessagePriority.LOW,
            cooldown_seconds=60,
            condition=lambda c, r: True,
            generate=_broken_generate,
        ),
        ProactiveTrigger(
            id="broken_condition",
            category="test",
            priority=MessagePriority.LOW,
            cooldown_seconds=60,
            condition=_broken_condition,
            generate=lambda c, r: None,
        ),
    ]
    location = make_location(now)
    recs = _recs(engine, [museum], now, location)

    fired = scheduler.check_triggers(_context(now, location=location), recs, [*broken, location_proximity_trigger])
    assert [m.trigger_id for m in fired] == ["location_proximity"]


def test_generator_returning_none_does_not_stamp(scheduler, cooldowns, now):
    quiet = ProactiveTrigger(
        id="quiet",
        category="test",
        priority=MessagePriority.LOW,
        cooldown_seconds=60,
        condition=lambda c, r: True,
        generate=lambda c, r: None,
    )
    assert scheduler.check_triggers(_context(now), [], [quiet]) == []
    assert cooldowns.last_fired("quiet") is None


def test_each_trigger_fires_at_most_once_per_sweep(scheduler, now):
    always = ProactiveTrigger(
        id="always",
        category="test",
        priority=MessagePriority.LOW,
        cooldown_seconds=60,
        condition=lambda c, r: True,
        generate=lambda c, r: ProactiveMessage(type=MessageType.DISCOVERY, message="hi"),
    )
    assert len(scheduler.check_triggers(_context(now), [], [always])) == 1


# ─── Weather ───

def test_weather_flip_fires_once(scheduler, now):
    sunny = make_weather(WeatherCondition.SUNNY, now - timedelta(minutes=15))
    stormy = make_weather(WeatherCondition.STORMY, now)

    ctx = _context(now, weather=stormy, previous_weather=sunny)
    fired = scheduler.check_triggers(ctx, [], [weather_pivot_trigger])
    assert len(fired) == 1
    assert fired[0].type == MessageType.WEATHER_ALERT
    assert fired[0].message.startswith("Storm")

    for minutes in (1, 15, 60):
        later = _context(now + timedelta(minutes=minutes), weather=stormy, previous_weather=sunny)
        assert scheduler.check_triggers(later, [], [weather_pivot_trigger]) == []


def test_weather_pivot_suggests_indoor_alternative(scheduler, engine, now):
    sunny = make_weather(WeatherCondition.SUNNY, now - timedelta(minutes=15))
    rainy = make_weather(WeatherCondition.RAINY, now)
    park = make_activity("park", "Parc Monceau", "nature", types=["park"])
    gallery = make_activity("gallery", "Orangerie", "culture", types=["gallery"])
    recs = _recs(engine, [park, gallery], now, weather=rainy)

    fired = scheduler.check_triggers(_context(now, weather=rainy, previous_weather=sunny), recs, [weather_pivot_trigger])
    assert fired[0].message == "It's started raining"
    assert fired[0].activity.id == "gallery"


def test_rain_incoming(scheduler, now):
    hourly = (
        HourlyForecast(now + timedelta(hours=1), 18, WeatherCondition.CLOUDY, 30),
        HourlyForecast(now + timedelta(hours=2), 17, WeatherCondition.RAINY, 80),
    )
    cloudy = make_weather(WeatherCondition.CLOUDY, now, hourly=hourly)

    fired = scheduler.check_triggers(_context(now, weather=cloudy), [], [weather_pivot_trigger])
    assert fired[0].message == "Rain expected in about 2 hours"
    assert fired[0].expires_at == now + timedelta(hours=2)


def test_no_weather_means_no_weather_triggers(scheduler, now):
    weather_triggers = [weather_pivot_trigger, heat_warning_trigger, golden_hour_trigger]
    ctx = _context(now, weather=None, previous_weather=make_weather(WeatherCondition.SUNNY, now))
    assert scheduler.check_triggers(ctx, [], weather_triggers) == []


def test_heat_warning(scheduler, now):
    hot = make_weather(WeatherCondition.SUNNY, now, temperature=34)
    fired = scheduler.check_triggers(_context(now, weather=hot), [], [heat_warning_trigger])
    assert fired[0].message.startswith("It's 34°C")


def test_golden_hour(scheduler, engine):
    now = at(19, 30)
    view = make_activity("view", "Montmartre lookout", "nature", types=["viewpoint"])
    weather = make_weather(WeatherCondition.SUNNY, now, sunset=now + timedelta(minutes=30))
    recs = _recs(engine, [view], now, weather=weather)

    fired = scheduler.check_triggers(_context(now, weather=weather), recs, [golden_hour_trigger])
    assert fired[0].activity.id == "view"
    assert "Sunset in 30 min" in fired[0].message


# ─── Time-sensitive ───

def test_golden_hour_reason_is_time_sensitive(scheduler, engine):
    now = at(19, 30)
    view = make_activity("view", "Montmartre lookout", "nature", types=["viewpoint"])
    weather = make_weather(WeatherCondition.SUNNY, now, sunset=now + timedelta(minutes=30))
    recs = _recs(engine, [view], now, weather=weather)
    assert recs[0].why_now.primary.tag == "golden_hour"

    fired = scheduler.check_triggers(_context(now, weather=weather), recs, [time_sensitive_trigger])
    assert fired[0].message == "Golden hour at Montmartre lookout"


def test_closing_soon_is_time_sensitive(scheduler, engine):
    now = at(21, 15)
    bistro = make_activity("bistro", "Le Comptoir", "food_drink", types=["restaurant"])
    recs = _recs(engine, [bistro], now)

    fired = scheduler.check_triggers(_context(now), recs, [time_sensitive_trigger])
    assert fired[0].message == "Last chance for Le Comptoir today"
    assert fired[0].cooldown_key == "time_sensitive:bistro"


# ─── Rest ───

def test_rest_break_after_long_stretch(scheduler, now):
    ctx = _context(now, active_since=now - timedelta(hours=3, minutes=30))
    fired = scheduler.check_triggers(ctx, [], [rest_break_trigger])
    assert fired[0].type == MessageType.ENCOURAGEMENT
    assert fired[0].action.payload == {"subMode": "rest"}


def test_rest_break_resets_after_break(scheduler, now):
    ctx = _context(now, active_since=now - timedelta(hours=5), last_break_at=now - timedelta(hours=1))
    assert scheduler.check_triggers(ctx, [], [rest_break_trigger]) == []


# ─── Booking ───

def test_lodging_reminder_on_arrival(scheduler, now):
    location = make_location(now, city="Lyon")
    ctx = _context(now, location=location, link_generators=default_link_generators())

    fired = scheduler.check_triggers(ctx, [], [lodging_reminder_trigger])
    assert fired[0].type == MessageType.BOOKING
    assert fired[0].cooldown_key == "lodging_reminder:Lyon"
    assert "Lyon" in fired[0].action.payload["url"]


def test_no_lodging_reminder_with_confirmed_stay(scheduler, now):
    location = make_location(now, city="Lyon")
    ctx = _context(now, location=location, confirmed_lodging_cities={"Lyon"})
    assert scheduler.check_triggers(ctx, [], [lodging_reminder_trigger]) == []


def test_popular_attraction_in_top_picks(scheduler, engine, museum, now):
    location = make_location(now, city="Paris")
    recs = _recs(engine, [museum], now, location)
    assert recs[0].score >= 0.7

    ctx = _context(now, location=location, link_generators=default_link_generators())
    fired = scheduler.check_triggers(ctx, recs, [popular_attraction_trigger])
    assert fired[0].cooldown_key == "popular_attraction:Paris-museum"
    assert fired[0].action.type == "book"
    assert fired[0].action.payload["url"].startswith("https://")
