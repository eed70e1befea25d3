"""Proactive triggers: stateless records evaluated by the TriggerScheduler.

Modules:
    config          Cooldowns, message TTLs and thresholds
    base            ProactiveTrigger record and TriggerContext snapshot
    location        Proximity to an unvisited recommendation
    time_sensitive  Golden-hour / closing-soon opportunities
    weather         Weather pivot, heat warning, golden hour
    rest            Break reminder after a long active stretch
    dining          Meal-time restaurant suggestion
    booking         Lodging on arrival, tickets for popular attractions
    scheduler       Cooldown + suppression gating, per-trigger isolation
"""

from companion.services.triggers.base import ProactiveTrigger, TriggerContext
from companion.services.triggers.booking import lodging_reminder_trigger, popular_attraction_trigger
from companion.services.triggers.dining import meal_time_trigger
from companion.services.triggers.location import location_proximity_trigger
from companion.services.triggers.rest import rest_break_trigger
from companion.services.triggers.scheduler import TriggerScheduler
from companion.services.triggers.time_sensitive import time_sensitive_trigger
from companion.services.triggers.weather import golden_hour_trigger, heat_warning_trigger, weather_pivot_trigger

DEFAULT_TRIGGERS: list[ProactiveTrigger] = [
    location_proximity_trigger,
    weather_pivot_trigger,
    lodging_reminder_trigger,
    time_sensitive_trigger,
    heat_warning_trigger,
    meal_time_trigger,
    popular_attraction_trigger,
    golden_hour_trigger,
    rest_break_trigger,
]

__all__ = [
    "DEFAULT_TRIGGERS",
    "ProactiveTrigger",
    "TriggerContext",
    "TriggerScheduler",
]
