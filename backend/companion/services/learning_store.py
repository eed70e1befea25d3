"""Learning store: suggestion outcomes per category, plus trigger cooldown stamps.

Both persist through an injected KeyValueStore under a fixed namespace.
Persistence failures are soft: they are logged and the store falls back to
neutral defaults, so scoring and trigger evaluation are never blocked.
"""

import logging
from datetime import datetime, timezone

from companion.config import settings
from companion.models.learning import LearningData
from companion.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class LearningStore:
    """Tracks shown / dismissed / clicked suggestions and derives interest levels."""

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str | None = None,
        min_samples: int | None = None,
        interest_threshold: float | None = None,
    ):
        self._store = store
        self._key = f"{namespace or settings.learning_store_namespace}learning"
        self.min_samples = min_samples if min_samples is not None else settings.suppression_min_samples
        self.interest_threshold = (
            interest_threshold if interest_threshold is not None else settings.suppression_interest_threshold
        )
        self._data: LearningData | None = None

    def _load(self) -> LearningData:
        if self._data is None:
            try:
                raw = self._store.get(self._key)
                self._data = LearningData.from_dict(raw) if raw else LearningData()
            except Exception as e:
                logger.warning(f"Learning store read failed, using neutral defaults: {e}")
                self._data = LearningData()
        return self._data

    def _save(self, data: LearningData):
        try:
            if not self._store.set(self._key, data.to_dict()):
                logger.warning("Learning store write was not persisted")
        except Exception as e:
            logger.warning(f"Learning store write failed: {e}")

    def get_data(self) -> LearningData:
        return self._load()

    # Recording (one write per event)

    def record_suggestion(self, category: str, when: datetime | None = None):
        data = self._load()
        data.total_suggestions += 1
        data.categories.setdefault(category, data.category(category)).suggested += 1
        data.last_suggestion_at = when or datetime.now(timezone.utc)
        self._save(data)

    def record_dismissal(self, category: str):
        data = self._load()
        data.dismissed_count += 1
        data.dismissed_categories[category] = data.dismissed_categories.get(category, 0) + 1
        data.categories.setdefault(category, data.category(category)).dismissed += 1
        self._save(data)

    def record_click(self, category: str):
        data = self._load()
        data.clicked_count += 1
        data.categories.setdefault(category, data.category(category)).clicked += 1
        self._save(data)

    def reset(self):
        """Explicit user action: forget all learned outcomes."""
        self._data = LearningData()
        try:
            self._store.delete(self._key)
        except Exception as e:
            logger.warning(f"Learning store reset failed: {e}")

    # Reading

    def interest_level(self, category: str | None = None) -> float:
        """clicks / (clicks + dismissals); 0.5 when there is no data."""
        data = self._load()
        if category is None:
            return data.interest_level
        return data.category(category).interest_level

    def should_suppress(self, category: str) -> bool:
        """True only after enough responses and a low interest level."""
        stats = self._load().category(category)
        if stats.responses < self.min_samples:
            return False
        return stats.interest_level < self.interest_threshold

    def is_over_suggested(self, category: str) -> bool:
        """Shown often and mostly ignored: drives the mild novelty penalty."""
        stats = self._load().category(category)
        return stats.suggested >= self.min_samples and stats.clicked * 2 < stats.suggested


class CooldownStore:
    """Last-firing timestamps keyed by cooldown key."""

    def __init__(self, store: KeyValueStore, namespace: str | None = None):
        self._store = store
        self._prefix = f"{namespace or settings.learning_store_namespace}cooldown:"

    def last_fired(self, key: str) -> datetime | None:
        try:
            raw = self._store.get(self._prefix + key)
        except Exception as e:
            logger.warning(f"Cooldown read failed for {key}: {e}")
            return None
        return datetime.fromisoformat(raw) if raw else None

    def stamp(self, key: str, when: datetime):
        try:
            self._store.set(self._prefix + key, when.isoformat())
        except Exception as e:
            logger.warning(f"Cooldown write failed for {key}: {e}")

    def is_cooling_down(self, key: str, cooldown_seconds: float, now: datetime) -> bool:
        last = self.last_fired(key)
        if last is None:
            return False
        return (now - last).total_seconds() < cooldown_seconds
