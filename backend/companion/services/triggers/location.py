"""Location-proximity trigger: the user is close to an unvisited recommended place."""

from companion.models.activity import EnrichedActivity
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.services.recommendation.signals import format_distance
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, unvisited
from companion.services.triggers.config import trigger_config

TRIGGER_ID = "location_proximity"


def _nearby(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    if context.location is None:
        return None
    radius = trigger_config.thresholds.proximity_radius_m
    close = sorted(
        (r for r in unvisited(context, recommendations) if r.distance_m is not None and r.distance_m <= radius),
        key=lambda r: r.distance_m,
    )
    cooldown = trigger_config.cooldowns.location_proximity
    # Nearest place that has not been announced recently
    return next((r for r in close if not context.is_cooling_down(f"{TRIGGER_ID}:{r.id}", cooldown)), None)


def _condition(context, recommendations) -> bool:
    return _nearby(context, recommendations) is not None


def _entity(context, recommendations) -> str | None:
    target = _nearby(context, recommendations)
    return target.id if target else None


def _generate(context, recommendations) -> ProactiveMessage | None:
    target = _nearby(context, recommendations)
    if target is None:
        return None
    activity = target.activity
    return ProactiveMessage(
        type=MessageType.LOCATION_TRIGGER,
        message=f"You're close to {activity.name}",
        detail=f"{format_distance(target.distance_m)}. {target.why_now.primary.text}",
        activity=activity,
        action=MessageAction(
            label="Take me there",
            type="navigate",
            payload={"activityId": activity.id, "lat": activity.latitude, "lng": activity.longitude},
        ),
    )


location_proximity_trigger = ProactiveTrigger(
    id=TRIGGER_ID,
    category="location",
    priority=MessagePriority.HIGH,
    cooldown_seconds=trigger_config.cooldowns.location_proximity,
    condition=_condition,
    generate=_generate,
    entity_key=_entity,
    message_ttl_seconds=trigger_config.ttls.location_proximity,
)
