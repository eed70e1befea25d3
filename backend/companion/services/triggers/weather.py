"""Weather triggers: pivots (flip, significant change, rain incoming), heat and golden hour."""

from companion.models.activity import EnrichedActivity
from companion.models.context import WeatherCondition
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.services.recommendation.config import GOLDEN_HOUR_TYPES
from companion.services.recommendation.signals import is_golden_hour, is_indoor, minutes_until_sunset
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, has_keyword, unvisited
from companion.services.triggers.config import trigger_config
from companion.services.weather_provider import hours_until_rain, is_significant_change


def _indoor_alternative(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    for rec in unvisited(context, recommendations):
        if is_indoor(rec.activity):
            return rec
    return None


def _turned_wet(context: TriggerContext) -> bool:
    previous, current = context.previous_weather, context.weather
    if previous is None or current is None:
        return False
    return current.is_wet and current.condition != previous.condition


def _rain_incoming(context: TriggerContext) -> float | None:
    if context.weather is None or context.weather.is_wet:
        return None
    hours = hours_until_rain(context.weather, context.now)
    if hours is not None and hours <= trigger_config.thresholds.rain_imminent_hours:
        return hours
    return None


def _pivot_condition(context, recommendations) -> bool:
    if context.weather is None:
        return False
    return (
        _turned_wet(context)
        or is_significant_change(context.previous_weather, context.weather)
        or _rain_incoming(context) is not None
    )


def _pivot_generate(context, recommendations) -> ProactiveMessage | None:
    weather = context.weather
    alternative = _indoor_alternative(context, recommendations)
    rain_in = _rain_incoming(context)

    if weather.condition == WeatherCondition.STORMY and _turned_wet(context):
        message = "Storm moving in. Time to head indoors"
    elif _turned_wet(context):
        message = "It's started raining"
    elif rain_in is not None:
        message = "Rain expected within the hour" if rain_in < 1 else f"Rain expected in about {round(rain_in)} hours"
    else:
        message = f"Weather update: {weather.condition.value}, {round(weather.temperature)}°C"

    detail, action = None, None
    if alternative is not None:
        detail = f"{alternative.activity.name} is a good indoor option"
        action = MessageAction(
            label="Switch plans",
            type="navigate",
            payload={"activityId": alternative.id},
        )
    return ProactiveMessage(
        type=MessageType.WEATHER_ALERT,
        message=message,
        detail=detail,
        activity=alternative.activity if alternative else None,
        action=action,
    )


def _heat_condition(context, recommendations) -> bool:
    return context.weather is not None and context.weather.temperature >= trigger_config.thresholds.heat_warning_c


def _heat_generate(context, recommendations) -> ProactiveMessage | None:
    alternative = _indoor_alternative(context, recommendations)
    return ProactiveMessage(
        type=MessageType.WEATHER_ALERT,
        message=f"It's {round(context.weather.temperature)}°C. Stay hydrated and find some shade",
        detail=f"{alternative.activity.name} could be a cool break" if alternative else None,
        activity=alternative.activity if alternative else None,
    )


def _today(context, recommendations) -> str:
    return context.now.date().isoformat()


def _golden_spot(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    if context.weather is None or not is_golden_hour(context.weather, context.now):
        return None
    for rec in unvisited(context, recommendations):
        if has_keyword(rec, GOLDEN_HOUR_TYPES):
            return rec
    return None


def _golden_condition(context, recommendations) -> bool:
    return _golden_spot(context, recommendations) is not None


def _golden_generate(context, recommendations) -> ProactiveMessage | None:
    spot = _golden_spot(context, recommendations)
    if spot is None:
        return None
    minutes = round(minutes_until_sunset(context.weather, context.now))
    return ProactiveMessage(
        type=MessageType.TIME_TRIGGER,
        message=f"Sunset in {minutes} min. {spot.activity.name} has the view",
        detail="Clear skies tonight",
        activity=spot.activity,
        action=MessageAction(label="Take me there", type="navigate", payload={"activityId": spot.id}),
    )


def _city_day(context, recommendations) -> str:
    return f"{context.city or 'here'}-{context.now.date().isoformat()}"


weather_pivot_trigger = ProactiveTrigger(
    id="weather_pivot",
    category="weather",
    priority=MessagePriority.HIGH,
    cooldown_seconds=trigger_config.cooldowns.weather_pivot,
    condition=_pivot_condition,
    generate=_pivot_generate,
    message_ttl_seconds=trigger_config.ttls.weather_pivot,
)

heat_warning_trigger = ProactiveTrigger(
    id="heat_warning",
    category="weather",
    priority=MessagePriority.MEDIUM,
    cooldown_seconds=trigger_config.cooldowns.heat_warning,
    condition=_heat_condition,
    generate=_heat_generate,
    entity_key=_today,
)

golden_hour_trigger = ProactiveTrigger(
    id="golden_hour",
    category="weather",
    priority=MessagePriority.LOW,
    cooldown_seconds=trigger_config.cooldowns.golden_hour,
    condition=_golden_condition,
    generate=_golden_generate,
    entity_key=_city_day,
)
