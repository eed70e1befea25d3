"""Active companion: the single-threaded pipeline tying context, scoring and triggers together.

Every context change (location fix, weather refresh, clock tick, itinerary or
user action) is pushed onto one FIFO event queue. Draining an event applies it
and runs exactly one re-score plus one trigger sweep against the latest state.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from companion.config import settings
from companion.exceptions import ActivityNotFoundError
from companion.models.activity import Activity, EnrichedActivity
from companion.models.context import LocationContext, WeatherContext
from companion.models.message import ProactiveMessage
from companion.models.mode import ModeContext, SubMode
from companion.services.booking_links import LinkGenerator, default_link_generators
from companion.services.kv_store import KeyValueStore, create_key_value_store
from companion.services.learning_store import CooldownStore, LearningStore
from companion.services.location_tracker import LocationTracker
from companion.services.message_queue import ProactiveMessageQueue
from companion.services.mode_controller import ModeController
from companion.services.recommendation.engine import CravingResult, RecommendationEngine, ScoringContext
from companion.services.triggers import DEFAULT_TRIGGERS, ProactiveTrigger, TriggerContext, TriggerScheduler
from companion.services.weather_provider import WeatherContextProvider

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class HistoryEntry:
    action: str  # choice | completion | skip
    activity_id: str
    at: datetime


class ActiveCompanion:
    def __init__(
        self,
        store: KeyValueStore | None = None,
        engine: RecommendationEngine | None = None,
        triggers: list[ProactiveTrigger] | None = None,
        link_generators: dict[str, LinkGenerator] | None = None,
        tracker: LocationTracker | None = None,
        weather_provider: WeatherContextProvider | None = None,
        clock: Callable[[], datetime] | None = None,
        queue_max: int | None = None,
        weather_max_age_minutes: int | None = None,
    ):
        store = store if store is not None else create_key_value_store()
        self._clock = clock or _local_now
        self.learning = LearningStore(store)
        self.cooldowns = CooldownStore(store)
        self.engine = engine or RecommendationEngine()
        self.mode = ModeController()
        self.scheduler = TriggerScheduler(self.cooldowns, self.learning)
        self.messages = ProactiveMessageQueue(queue_max, clock=self._clock)
        self.triggers = list(DEFAULT_TRIGGERS if triggers is None else triggers)
        self.link_generators = default_link_generators() if link_generators is None else link_generators
        self.tracker = tracker
        self.weather_provider = weather_provider
        self.weather_max_age = timedelta(minutes=weather_max_age_minutes or settings.weather_max_age_minutes)

        self.activities: list[Activity] = []
        self.location: LocationContext | None = None
        self.weather: WeatherContext | None = None
        self.previous_weather: WeatherContext | None = None
        self.preferences: dict[str, float] = {}
        self.completed_ids: set[str] = set()
        self.skipped_ids: set[str] = set()
        self.not_interested_ids: set[str] = set()
        self.chosen_ids: list[str] = []
        self.history: list[HistoryEntry] = []
        self.active_since: datetime | None = None
        self.last_break_at: datetime | None = None
        self.proactive_enabled = settings.proactive_enabled

        self.enriched: list[EnrichedActivity] = []
        self.recompute_count = 0
        self._events: deque[tuple[str, Any]] = deque()
        self._draining = False

    # ─── Event pipeline ───

    def _submit(self, kind: str, payload: Any = None) -> list[ProactiveMessage]:
        """Queue an event; drain the queue unless already draining.
        Returns the messages newly enqueued while draining."""
        self._events.append((kind, payload))
        if self._draining:
            return []
        self._draining = True
        delivered: list[ProactiveMessage] = []
        try:
            while self._events:
                event_kind, event_payload = self._events.popleft()
                if self._apply(event_kind, event_payload):
                    delivered.extend(self._recompute())
        finally:
            self._draining = False
        return delivered

    def _apply(self, kind: str, payload: Any) -> bool:
        """Mutate state for one event. False means the event was stale and dropped."""
        if kind == "location":
            if self.location is not None and payload.timestamp <= self.location.timestamp:
                logger.debug("Dropping out-of-order location update")
                return False
            self.location = payload
        elif kind == "weather":
            if self.weather is not None and payload.fetched_at < self.weather.fetched_at:
                logger.debug("Dropping out-of-order weather update")
                return False
            if payload is not self.weather:
                self.previous_weather, self.weather = self.weather, payload
        elif kind == "activities":
            self.activities = list(payload)
        return True

    def _fresh_weather(self, now: datetime) -> WeatherContext | None:
        if self.weather is None or now - self.weather.fetched_at > self.weather_max_age:
            return None
        return self.weather

    def learned_preferences(self) -> dict[str, float]:
        """Explicit preferences over interest levels learned per activity category.

        Trigger categories (location, weather, booking, ...) share the learning
        store but only gate proactive messages; they never become activity weights.
        """
        activity_categories = {a.category for a in self.activities}
        learned = {
            name: stats.interest_level
            for name, stats in self.learning.get_data().categories.items()
            if stats.responses > 0 and name in activity_categories
        }
        return {**learned, **self.preferences}

    def explored_categories(self) -> set[str]:
        seen = self.completed_ids | set(self.chosen_ids)
        return {a.category for a in self.activities if a.id in seen}

    def scoring_context(self, now: datetime | None = None) -> ScoringContext:
        now = now or self._clock()
        return ScoringContext(
            now=now,
            location=self.location,
            weather=self._fresh_weather(now),
            preferences=self.learned_preferences(),
            completed_ids=set(self.completed_ids),
            skipped_ids=set(self.skipped_ids),
            not_interested_ids=set(self.not_interested_ids),
            explored_categories=self.explored_categories(),
            learning=self.learning,
        )

    def _trigger_context(self, now: datetime) -> TriggerContext:
        weather = self._fresh_weather(now)
        return TriggerContext(
            now=now,
            mode=self.mode.context,
            location=self.location,
            weather=weather,
            previous_weather=self.previous_weather if weather is not None else None,
            visited_ids=self.completed_ids | self.skipped_ids | self.not_interested_ids,
            active_since=self.active_since,
            last_break_at=self.last_break_at,
            confirmed_lodging_cities={
                a.city for a in self.activities if a.is_lodging and a.booking_confirmed and a.city
            },
            link_generators=self.link_generators,
        )

    def _recompute(self) -> list[ProactiveMessage]:
        now = self._clock()
        self.recompute_count += 1
        self.enriched = self.engine.score(self.current_activities(), self.scoring_context(now))

        if not self.proactive_enabled or not self.mode.is_active:
            return []
        triggers = [t for t in self.triggers if self.mode.allows_trigger_category(t.category)]
        fired = self.scheduler.check_triggers(self._trigger_context(now), self.enriched, triggers)
        return [m for m in fired if self.messages.enqueue(m, now)]

    # ─── Context updates ───

    def update_location(self, location: LocationContext) -> list[ProactiveMessage]:
        return self._submit("location", location)

    def update_weather(self, weather: WeatherContext) -> list[ProactiveMessage]:
        return self._submit("weather", weather)

    def tick(self) -> list[ProactiveMessage]:
        """Periodic clock tick: time-based signals and triggers move on."""
        self.messages.collect_garbage()
        return self._submit("tick")

    def set_activities(self, activities: list[Activity]) -> list[ProactiveMessage]:
        return self._submit("activities", activities)

    async def refresh_location(self) -> list[ProactiveMessage]:
        if self.tracker is None:
            return []
        context = await self.tracker.refresh()
        return self.update_location(context) if context is not None else []

    async def refresh_weather(self, force: bool = False) -> list[ProactiveMessage]:
        if self.weather_provider is None or self.location is None:
            return []
        weather = await self.weather_provider.refresh(self.location.latitude, self.location.longitude, force=force)
        return self.update_weather(weather) if weather is not None else []

    # ─── Mode ───

    @property
    def mode_context(self) -> ModeContext:
        return self.mode.context

    def activate_trip(self, trip_id: str, day_number: int = 1) -> ModeContext:
        was_active = self.mode.is_active and self.mode.context.trip_id == trip_id
        context = self.mode.activate(trip_id, day_number)
        if not was_active:
            self.active_since = self._clock()
            self.last_break_at = None
            self._submit("mode")
        return context

    def end_trip(self) -> ModeContext:
        context = self.mode.end_trip()
        self.active_since = None
        self.last_break_at = None
        self._submit("mode")
        return context

    def switch_mode(self, sub_mode: SubMode) -> ModeContext:
        previous = self.mode.context.sub_mode
        context = self.mode.switch_mode(sub_mode)
        if context.sub_mode != previous:
            if sub_mode == SubMode.REST:
                self.last_break_at = self._clock()
            self._submit("mode")
        return context

    def set_day(self, day_number: int) -> ModeContext:
        context = self.mode.set_day(day_number)
        self._submit("mode")
        return context

    # ─── Queries ───

    def current_activities(self) -> list[Activity]:
        day = self.mode.context.day_number
        if day is None:
            return list(self.activities)
        return [a for a in self.activities if a.day_number is None or a.day_number == day]

    def activities_for_day(self, day_number: int) -> list[Activity]:
        return [a for a in self.activities if a.day_number == day_number]

    def recommendations(self, count: int | None = None) -> list[EnrichedActivity]:
        return self.engine.top(self.enriched, count)

    def search_craving(
        self,
        query: str,
        limit: int | None = None,
        max_distance_m: float | None = None,
        require_open: bool = False,
    ) -> CravingResult:
        if self.mode.is_active:
            self.mode.switch_mode(SubMode.CRAVING)
        result = self.engine.search_craving(
            query,
            self.current_activities(),
            self.scoring_context(),
            limit=limit,
            max_distance_m=max_distance_m,
            require_open=require_open,
        )
        self.mode.set_craving_results(result.query, result.matches)
        return result

    def get_serendipity(self) -> EnrichedActivity | None:
        if self.mode.is_active:
            self.mode.switch_mode(SubMode.SERENDIPITY)
        pick = self.engine.get_serendipity(self.current_activities(), self.scoring_context())
        self.mode.set_serendipity_pick(pick)
        return pick

    def active_messages(self) -> list[ProactiveMessage]:
        return self.messages.active_messages()

    # ─── Feedback ───

    def dismiss_message(self, message_id: str) -> ProactiveMessage:
        """Dismissal is learned once per message; repeat calls are no-ops."""
        message = self.messages.get(message_id)
        if message.is_dismissed:
            return message
        self.messages.dismiss(message_id)
        self.learning.record_dismissal(message.category)
        return message

    def act_on_message(self, message_id: str) -> ProactiveMessage:
        """Acting on an already dismissed or acted-on message records nothing."""
        message = self.messages.get(message_id)
        if message.is_dismissed:
            return message
        self.messages.act(message_id)
        self.learning.record_click(message.category)
        if message.activity_id and self._find(message.activity_id) is not None:
            self.record_choice(message.activity_id)
        return message

    def clear_messages(self):
        self.messages.clear()

    def _find(self, activity_id: str) -> Activity | None:
        return next((a for a in self.activities if a.id == activity_id), None)

    def _require(self, activity_id: str) -> Activity:
        activity = self._find(activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id)
        return activity

    def record_choice(self, activity_id: str) -> list[ProactiveMessage]:
        activity = self._require(activity_id)
        self.chosen_ids.append(activity_id)
        self.history.append(HistoryEntry("choice", activity_id, self._clock()))
        self.learning.record_click(activity.category)
        return self._submit("choice", activity_id)

    def record_completion(self, activity_id: str) -> list[ProactiveMessage]:
        self._require(activity_id)
        self.completed_ids.add(activity_id)
        self.skipped_ids.discard(activity_id)
        self.history.append(HistoryEntry("completion", activity_id, self._clock()))
        return self._submit("completion", activity_id)

    def record_skip(self, activity_id: str) -> list[ProactiveMessage]:
        activity = self._require(activity_id)
        self.skipped_ids.add(activity_id)
        self.history.append(HistoryEntry("skip", activity_id, self._clock()))
        self.learning.record_dismissal(activity.category)
        return self._submit("skip", activity_id)

    def mark_not_interested(self, activity_id: str) -> list[ProactiveMessage]:
        activity = self._require(activity_id)
        self.not_interested_ids.add(activity_id)
        self.learning.record_dismissal(activity.category)
        return self._submit("not_interested", activity_id)

    def undo(self) -> HistoryEntry | None:
        """Revert the last choice / completion / skip. Learning counters are kept."""
        if not self.history:
            return None
        entry = self.history.pop()
        if entry.action == "choice" and entry.activity_id in self.chosen_ids:
            last = len(self.chosen_ids) - 1 - self.chosen_ids[::-1].index(entry.activity_id)
            del self.chosen_ids[last]
        elif entry.action == "completion":
            self.completed_ids.discard(entry.activity_id)
        elif entry.action == "skip":
            self.skipped_ids.discard(entry.activity_id)
        self._submit("undo", entry.activity_id)
        return entry

    def take_break(self):
        self.last_break_at = self._clock()

    def set_preferences(self, preferences: dict[str, float]) -> list[ProactiveMessage]:
        self.preferences = dict(preferences)
        return self._submit("preferences")

    def set_proactive_enabled(self, enabled: bool):
        self.proactive_enabled = enabled
        logger.info(f"Proactive messages {'enabled' if enabled else 'disabled'}")

    def reset_learning(self):
        self.learning.reset()

    def get_stats(self) -> dict:
        day_activities = self.current_activities()
        done = {a.id for a in day_activities} & (self.completed_ids | self.skipped_ids)
        data = self.learning.get_data()
        return {
            "total_activities": len(day_activities),
            "completed": len(self.completed_ids),
            "skipped": len(self.skipped_ids),
            "chosen": len(self.chosen_ids),
            "remaining": len(day_activities) - len(done),
            "active_messages": len(self.messages.active_messages()),
            "total_suggestions": data.total_suggestions,
            "interest_level": round(data.interest_level, 3),
        }
