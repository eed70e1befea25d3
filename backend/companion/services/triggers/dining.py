"""Meal-time trigger: a restaurant suggestion in the lead-up to a meal."""

from companion.models.activity import EnrichedActivity
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.services.recommendation.signals import format_distance
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, has_keyword, unvisited
from companion.services.triggers.config import DINING_KEYWORDS, trigger_config

MEAL_NAMES = {9: "breakfast", 13: "lunch", 19: "dinner"}


def upcoming_meal(context: TriggerContext) -> int | None:
    """Meal hour whose lead-up window contains now."""
    lead = trigger_config.thresholds.meal_lead_hours
    minutes = context.now.hour * 60 + context.now.minute
    for hour in trigger_config.thresholds.meal_hours:
        if (hour - lead) * 60 <= minutes < hour * 60:
            return hour
    return None


def _restaurant(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    for rec in unvisited(context, recommendations):
        if rec.activity.category == "food_drink" or has_keyword(rec, DINING_KEYWORDS):
            return rec
    return None


def _condition(context, recommendations) -> bool:
    return upcoming_meal(context) is not None and _restaurant(context, recommendations) is not None


def _entity(context, recommendations) -> str | None:
    hour = upcoming_meal(context)
    if hour is None:
        return None
    return f"{MEAL_NAMES.get(hour, hour)}-{context.now.date().isoformat()}"


def _generate(context, recommendations) -> ProactiveMessage | None:
    hour = upcoming_meal(context)
    spot = _restaurant(context, recommendations)
    if hour is None or spot is None:
        return None
    meal = MEAL_NAMES.get(hour, "a meal")
    detail = format_distance(spot.distance_m) if spot.distance_m is not None else spot.why_now.primary.text
    return ProactiveMessage(
        type=MessageType.RECOMMENDATION,
        message=f"Thinking about {meal}? Try {spot.activity.name}",
        detail=detail,
        activity=spot.activity,
        action=MessageAction(label="See restaurant", type="view", payload={"activityId": spot.id}),
    )


meal_time_trigger = ProactiveTrigger(
    id="meal_time",
    category="restaurant",
    priority=MessagePriority.MEDIUM,
    cooldown_seconds=trigger_config.cooldowns.meal_time,
    condition=_condition,
    generate=_generate,
    entity_key=_entity,
)
