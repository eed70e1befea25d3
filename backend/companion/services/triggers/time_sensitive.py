"""Time-sensitive opportunity: a top pick whose reason is bound to this moment."""

from companion.models.activity import EnrichedActivity
from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, top_unvisited
from companion.services.triggers.config import trigger_config

TIME_BOUND_TAGS = ("golden_hour", "closing_soon")


def _opportunity(context: TriggerContext, recommendations: list[EnrichedActivity]) -> EnrichedActivity | None:
    for rec in top_unvisited(context, recommendations):
        if rec.score >= trigger_config.thresholds.time_sensitive_min_score and rec.why_now.primary.tag in TIME_BOUND_TAGS:
            return rec
    return None


def _condition(context, recommendations) -> bool:
    return _opportunity(context, recommendations) is not None


def _entity(context, recommendations) -> str | None:
    target = _opportunity(context, recommendations)
    return target.id if target else None


def _generate(context, recommendations) -> ProactiveMessage | None:
    target = _opportunity(context, recommendations)
    if target is None:
        return None
    activity = target.activity
    if target.why_now.primary.tag == "golden_hour":
        message = f"Golden hour at {activity.name}"
    else:
        message = f"Last chance for {activity.name} today"
    return ProactiveMessage(
        type=MessageType.TIME_TRIGGER,
        message=message,
        detail=target.why_now.primary.text,
        activity=activity,
        action=MessageAction(label="Go now", type="navigate", payload={"activityId": activity.id}),
    )


time_sensitive_trigger = ProactiveTrigger(
    id="time_sensitive",
    category="time",
    priority=MessagePriority.MEDIUM,
    cooldown_seconds=trigger_config.cooldowns.time_sensitive,
    condition=_condition,
    generate=_generate,
    entity_key=_entity,
)
