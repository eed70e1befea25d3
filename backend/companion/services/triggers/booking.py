"""Booking reminders: lodging on arrival in a new city, tickets for popular attractions."""

from companion.models.activity import EnrichedActivity
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, has_keyword, top_unvisited
from companion.services.triggers.config import BOOKABLE_KEYWORDS, trigger_config


def _link(context: TriggerContext, kind: str, params: dict) -> str | None:
    generator = context.link_generators.get(kind)
    if generator is None:
        return None
    return generator.generate(params).get("url")


# ─── Lodging ───

def _needs_lodging(context, recommendations) -> bool:
    city = context.city
    return bool(city) and city not in context.confirmed_lodging_cities


def _city(context, recommendations) -> str | None:
    return context.city


def _lodging_generate(context, recommendations) -> ProactiveMessage | None:
    city = context.city
    url = _link(context, "lodging", {"city": city, "checkin": context.now.date().isoformat()})
    return ProactiveMessage(
        type=MessageType.BOOKING,
        message=f"Welcome to {city}! Where are you staying tonight?",
        detail="You don't have a confirmed place to stay here yet",
        action=MessageAction(label="Find a hotel", type="book", payload={"city": city, "url": url}),
    )


# ─── Popular attractions ───

def _attraction(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    for rec in top_unvisited(context, recommendations):
        bookable = rec.activity.is_bookable or has_keyword(rec, BOOKABLE_KEYWORDS)
        if bookable and rec.score >= trigger_config.thresholds.popular_min_score:
            return rec
    return None


def _attraction_condition(context, recommendations) -> bool:
    return _attraction(context, recommendations) is not None


def _attraction_entity(context, recommendations) -> str | None:
    target = _attraction(context, recommendations)
    if target is None:
        return None
    return f"{context.city or target.activity.city or 'here'}-{target.id}"


def _attraction_generate(context, recommendations) -> ProactiveMessage | None:
    target = _attraction(context, recommendations)
    if target is None:
        return None
    activity = target.activity
    url = _link(context, "activity", {"name": activity.name, "city": context.city or activity.city})
    return ProactiveMessage(
        type=MessageType.BOOKING,
        message=f"{activity.name} is popular. Book ahead to skip the line",
        detail=target.why_now.primary.text,
        activity=activity,
        action=MessageAction(label="Get tickets", type="book", payload={"activityId": activity.id, "url": url}),
    )


lodging_reminder_trigger = ProactiveTrigger(
    id="lodging_reminder",
    category="booking",
    priority=MessagePriority.HIGH,
    cooldown_seconds=trigger_config.cooldowns.lodging_reminder,
    condition=_needs_lodging,
    generate=_lodging_generate,
    entity_key=_city,
    message_ttl_seconds=trigger_config.ttls.booking,
)

popular_attraction_trigger = ProactiveTrigger(
    id="popular_attraction",
    category="booking",
    priority=MessagePriority.MEDIUM,
    cooldown_seconds=trigger_config.cooldowns.popular_attraction,
    condition=_attraction_condition,
    generate=_attraction_generate,
    entity_key=_attraction_entity,
    message_ttl_seconds=trigger_config.ttls.booking,
)
