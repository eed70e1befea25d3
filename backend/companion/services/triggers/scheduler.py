"""Trigger scheduler: evaluates the trigger registry against one context snapshot."""

import logging
import uuid
from dataclasses import replace
from datetime import timedelta

from companion.models.activity import EnrichedActivity
from companion.models.message import ProactiveMessage
from companion.services.learning_store import CooldownStore, LearningStore
from companion.services.triggers.base import ProactiveTrigger, TriggerContext

logger = logging.getLogger(__name__)


class TriggerScheduler:
    """Each trigger fires at most once per sweep, when its condition holds, its
    cooldown key has elapsed and the learning store does not suppress its category.

    Cooldown stamps and suggestion counts are written after the whole sweep.
    """

    def __init__(self, cooldowns: CooldownStore, learning: LearningStore):
        self.cooldowns = cooldowns
        self.learning = learning

    def check_triggers(
        self,
        context: TriggerContext,
        recommendations: list[EnrichedActivity],
        triggers: list[ProactiveTrigger],
    ) -> list[ProactiveMessage]:
        now = context.now
        context = replace(context, cooldown_check=lambda key, seconds: self.cooldowns.is_cooling_down(key, seconds, now))
        fired: list[tuple[ProactiveTrigger, ProactiveMessage]] = []
        for trigger in triggers:
            message = self._evaluate(trigger, context, recommendations)
            if message is not None:
                fired.append((trigger, message))

        for trigger, message in fired:
            self.cooldowns.stamp(message.cooldown_key, context.now)
            self._record_suggestion(trigger.category, context)
            logger.info(f"Trigger {trigger.id} fired ({message.cooldown_key}): {message.message}")
        return [message for _, message in fired]

    def _evaluate(
        self,
        trigger: ProactiveTrigger,
        context: TriggerContext,
        recommendations: list[EnrichedActivity],
    ) -> ProactiveMessage | None:
        try:
            if not trigger.condition(context, recommendations):
                return None
            key = trigger.cooldown_key(context, recommendations)
            if self.cooldowns.is_cooling_down(key, trigger.cooldown_seconds, context.now):
                return None
            if self._suppressed(trigger.category):
                logger.debug(f"Trigger {trigger.id} suppressed: low interest in {trigger.category}")
                return None
            message = trigger.generate(context, recommendations)
        except Exception as e:
            logger.error(f"Trigger {trigger.id} failed, skipping this tick: {e}")
            return None

        if message is None:
            return None
        message.id = str(uuid.uuid4())
        message.trigger_id = trigger.id
        message.cooldown_key = key
        message.category = message.category or trigger.category
        message.priority = trigger.priority
        message.created_at = context.now
        message.expires_at = context.now + timedelta(seconds=trigger.message_ttl_seconds)
        message.is_dismissed = False
        return message

    def _suppressed(self, category: str) -> bool:
        try:
            return self.learning.should_suppress(category)
        except Exception as e:
            logger.warning(f"Suppression check failed for {category}, not suppressing: {e}")
            return False

    def _record_suggestion(self, category: str, context: TriggerContext):
        try:
            self.learning.record_suggestion(category, context.now)
        except Exception as e:
            logger.warning(f"Could not record suggestion for {category}: {e}")
