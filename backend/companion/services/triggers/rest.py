"""Rest / energy trigger: suggest a break after a long stretch of activity."""

from companion.models.message import MessageAction, MessagePriority, MessageType, ProactiveMessage
from companion.models.mode import SubMode
from companion.services.triggers.base import ProactiveTrigger, TriggerContext, has_keyword, unvisited
from companion.services.triggers.config import REST_KEYWORDS, trigger_config


def _hours_active(context: TriggerContext) -> float | None:
    since = context.last_break_at or context.active_since
    if since is None:
        return None
    return (context.now - since).total_seconds() / 3600


def _condition(context, recommendations) -> bool:
    if context.mode.sub_mode == SubMode.REST:
        return False
    hours = _hours_active(context)
    return hours is not None and hours >= trigger_config.thresholds.rest_after_hours


def _generate(context, recommendations) -> ProactiveMessage | None:
    hours = int(_hours_active(context))
    spot = next((r for r in unvisited(context, recommendations) if has_keyword(r, REST_KEYWORDS)), None)
    if spot is not None:
        action = MessageAction(label=f"Rest at {spot.activity.name}", type="navigate", payload={"activityId": spot.id})
    else:
        action = MessageAction(label="Take a break", type="view", payload={"subMode": SubMode.REST.value})
    return ProactiveMessage(
        type=MessageType.ENCOURAGEMENT,
        message=f"You've been exploring for {hours} hours. Time for a break?",
        activity=spot.activity if spot else None,
        action=action,
    )


rest_break_trigger = ProactiveTrigger(
    id="rest_break",
    category="rest",
    priority=MessagePriority.LOW,
    cooldown_seconds=trigger_config.cooldowns.rest_break,
    condition=_condition,
    generate=_generate,
)
