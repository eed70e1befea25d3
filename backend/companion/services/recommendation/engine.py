"""Recommendation engine: scores itinerary activities against live context.

score() combines the distance, time, weather, preference and novelty signals
into one relevance value and picks a single why-now reason per activity.
Craving search and serendipity run on top of the same scorer.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol

from companion.models.activity import (
    REASON_PRIORITY,
    Activity,
    EnrichedActivity,
    ReasonCategory,
    WhyNow,
    WhyNowReason,
)
from companion.models.context import LocationContext, WeatherContext
from companion.services.recommendation import signals
from companion.services.recommendation.config import ScoringConfig, scoring_config

logger = logging.getLogger(__name__)


class LearningReader(Protocol):
    def is_over_suggested(self, category: str) -> bool: ...


@dataclass
class ScoringContext:
    """Snapshot the scorer reads. Weather is None when missing or stale."""
    now: datetime
    location: LocationContext | None = None
    weather: WeatherContext | None = None
    preferences: dict[str, float] = field(default_factory=dict)
    completed_ids: set[str] = field(default_factory=set)
    skipped_ids: set[str] = field(default_factory=set)
    not_interested_ids: set[str] = field(default_factory=set)
    explored_categories: set[str] = field(default_factory=set)
    learning: LearningReader | None = None


@dataclass
class CravingResult:
    query: str
    matches: list[EnrichedActivity]
    explanation: str

    @property
    def is_empty(self) -> bool:
        return not self.matches


class RecommendationEngine:
    def __init__(self, config: ScoringConfig = scoring_config, rng: random.Random | None = None):
        self.config = config
        self.rng = rng or random.Random()

    # ─── Scoring ───

    def _over_suggested(self, category: str, context: ScoringContext) -> bool:
        if context.learning is None:
            return False
        try:
            return context.learning.is_over_suggested(category)
        except Exception as e:
            logger.warning(f"Learning lookup failed for {category}, no novelty penalty: {e}")
            return False

    def _signals(self, activity: Activity, context: ScoringContext) -> tuple[dict[ReasonCategory, signals.Signal], float | None]:
        distance_m = signals.distance_to(activity, context.location, self.config)
        return {
            ReasonCategory.DISTANCE: signals.distance_signal(distance_m, self.config),
            ReasonCategory.TIME: signals.time_signal(activity, context.now, self.config),
            ReasonCategory.WEATHER: signals.weather_signal(activity, context.weather, context.now, self.config),
            ReasonCategory.PREFERENCE: signals.preference_signal(activity, context.preferences),
            ReasonCategory.NOVELTY: signals.novelty_signal(
                activity,
                context.completed_ids,
                context.skipped_ids,
                context.explored_categories,
                self._over_suggested(activity.category, context),
                self.config,
            ),
        }, distance_m

    def _why_now(self, scored: dict[ReasonCategory, signals.Signal]) -> WhyNow:
        weights = self.config.weights.as_dict()
        qualifying = [
            (category, sig)
            for category, sig in scored.items()
            if sig.available and sig.text and sig.value >= self.config.reasons.min_signal
        ]
        if not qualifying:
            return WhyNow(primary=WhyNowReason(ReasonCategory.GENERIC, self.config.reasons.generic_text))

        def rank(item):
            category, sig = item
            return (-round(weights[category.value] * sig.value, 9), REASON_PRIORITY.index(category))

        ordered = sorted(qualifying, key=rank)
        reasons = [WhyNowReason(category, sig.text, sig.value, sig.tag) for category, sig in ordered]
        secondary = sorted(reasons[1:], key=lambda r: REASON_PRIORITY.index(r.category))
        return WhyNow(primary=reasons[0], secondary=tuple(secondary))

    def score_activity(self, activity: Activity, context: ScoringContext) -> EnrichedActivity:
        scored, distance_m = self._signals(activity, context)
        weights = self.config.weights.as_dict()
        total = sum(weights[category.value] * sig.value for category, sig in scored.items())
        return EnrichedActivity(
            activity=activity,
            score=round(max(0.0, min(1.0, total)), 4),
            why_now=self._why_now(scored),
            distance_m=distance_m,
            signals={category.value: sig.value for category, sig in scored.items()},
        )

    def score(self, activities: list[Activity], context: ScoringContext) -> list[EnrichedActivity]:
        """Score and rank. Activities with a why-now reason rank above generic ones;
        ties keep input order."""
        enriched = [self.score_activity(a, context) for a in activities]
        return sorted(enriched, key=lambda e: (e.why_now.is_generic, -e.score))

    def top(self, enriched: list[EnrichedActivity], count: int | None = None) -> list[EnrichedActivity]:
        """Best open recommendations: above the minimum score and not yet done."""
        limits = self.config.limits
        picks = [
            e for e in enriched
            if e.score >= limits.minimum_score and e.signals.get("novelty", 1.0) > self.config.novelty.completed
        ]
        return picks[: count or limits.default_count]

    # ─── Craving search ───

    def search_craving(
        self,
        query: str,
        activities: list[Activity],
        context: ScoringContext,
        limit: int | None = None,
        max_distance_m: float | None = None,
        require_open: bool = False,
    ) -> CravingResult:
        """Keyword/category match first, then rank by the regular scorer."""
        q = (query or "").strip()
        if not q:
            return CravingResult(query=q, matches=[], explanation="Tell me what you're craving")

        words = q.lower().split()
        candidates = [
            a for a in activities
            if a.id not in context.completed_ids and all(w in a.keywords for w in words)
        ]
        if require_open:
            candidates = [a for a in candidates if signals.is_open_now(a, context.now, self.config)]

        ranked = self.score(candidates, context)
        if max_distance_m is not None:
            ranked = [e for e in ranked if e.distance_m is None or e.distance_m <= max_distance_m]
        ranked = ranked[: limit or self.config.limits.craving_default_limit]

        if not ranked:
            explanation = f'No matches found for "{q}"'
        elif len(ranked) == 1:
            explanation = f'Found a great match for "{q}"'
        else:
            explanation = f'Found {len(ranked)} options for "{q}"'
        return CravingResult(query=q, matches=ranked, explanation=explanation)

    # ─── Serendipity ───

    def get_serendipity(
        self,
        activities: list[Activity],
        context: ScoringContext,
        exclude_top: int | None = None,
    ) -> EnrichedActivity | None:
        """One surprising pick outside the obvious top-K. None when the pool is empty."""
        exclude_top = self.config.limits.serendipity_exclude_top if exclude_top is None else exclude_top
        ranked = self.score(activities, context)
        excluded = {e.id for e in ranked[:exclude_top]}
        excluded |= context.not_interested_ids | context.completed_ids

        pool = [e for e in ranked if e.id not in excluded]
        if not pool:
            return None

        weights = []
        for e in pool:
            weight = 1.0 + e.signals.get("novelty", 0.0)
            if e.activity.rating:
                weight += e.activity.rating / 5
            weights.append(weight)
        pick = self.rng.choices(pool, weights=weights, k=1)[0]

        if pick.activity.category not in context.explored_categories:
            reason = f"Something different: a {pick.activity.category.replace('_', ' ')} stop to mix things up"
        elif pick.distance_m is not None and pick.distance_m < 1000:
            reason = f"A hidden gem nearby ({signals.format_distance(pick.distance_m, self.config)})"
        else:
            reason = "A hidden gem you might have overlooked"
        return replace(pick, serendipity_reason=reason)


recommendation_engine = RecommendationEngine()
