"""Trigger records and the context they are evaluated against."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from companion.models.activity import EnrichedActivity
from companion.models.context import LocationContext, WeatherContext
from companion.models.message import MessagePriority, ProactiveMessage
from companion.models.mode import ModeContext
from companion.services.booking_links import LinkGenerator
from companion.services.triggers.config import trigger_config


@dataclass
class TriggerContext:
    """Read-only snapshot for one trigger sweep. Weather is None when missing or stale."""
    now: datetime
    mode: ModeContext = field(default_factory=ModeContext)
    location: LocationContext | None = None
    weather: WeatherContext | None = None
    previous_weather: WeatherContext | None = None
    visited_ids: set[str] = field(default_factory=set)
    active_since: datetime | None = None
    last_break_at: datetime | None = None
    confirmed_lodging_cities: set[str] = field(default_factory=set)
    link_generators: dict[str, LinkGenerator] = field(default_factory=dict)
    cooldown_check: Callable[[str, int], bool] | None = None

    @property
    def city(self) -> str | None:
        return self.location.city if self.location else None

    def is_cooling_down(self, key: str, seconds: int) -> bool:
        """Lets a trigger skip entities whose own cooldown has not elapsed."""
        return self.cooldown_check is not None and self.cooldown_check(key, seconds)


Condition = Callable[[TriggerContext, list[EnrichedActivity]], bool]
Generator = Callable[[TriggerContext, list[EnrichedActivity]], ProactiveMessage | None]
KeyFunction = Callable[[TriggerContext, list[EnrichedActivity]], str | None]


@dataclass(frozen=True)
class ProactiveTrigger:
    """Stateless trigger definition. Cooldown state lives in the CooldownStore."""
    id: str
    category: str
    priority: MessagePriority
    cooldown_seconds: int
    condition: Condition
    generate: Generator
    entity_key: KeyFunction | None = None
    message_ttl_seconds: int = trigger_config.ttls.default

    def cooldown_key(self, context: TriggerContext, recommendations: list[EnrichedActivity]) -> str:
        """Trigger id, scoped to an entity (city, activity) where the trigger has one."""
        entity = self.entity_key(context, recommendations) if self.entity_key else None
        return f"{self.id}:{entity}" if entity else self.id


def unvisited(context: TriggerContext, recommendations: list[EnrichedActivity]) -> list[EnrichedActivity]:
    return [r for r in recommendations if r.id not in context.visited_ids]


def top_unvisited(context: TriggerContext, recommendations: list[EnrichedActivity]) -> list[EnrichedActivity]:
    return unvisited(context, recommendations)[: trigger_config.thresholds.top_recommendations]


def has_keyword(rec: EnrichedActivity, keywords: tuple[str, ...]) -> bool:
    haystack = rec.activity.keywords
    return any(k in haystack for k in keywords)
