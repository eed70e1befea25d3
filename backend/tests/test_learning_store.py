from datetime import timedelta

import pytest

from companion.services.kv_store import InMemoryKeyValueStore
from companion.services.learning_store import CooldownStore, LearningStore


class BrokenStore:
    def get(self, key):
        raise ConnectionError("store offline")

    def set(self, key, value):
        raise ConnectionError("store offline")

    def delete(self, key):
        raise ConnectionError("store offline")


def test_interest_is_neutral_without_data(learning):
    assert learning.interest_level() == 0.5
    assert learning.interest_level("restaurant") == 0.5
    assert learning.should_suppress("restaurant") is False


def test_five_dismissals_suppress_category(learning):
    for _ in range(5):
        learning.record_suggestion("restaurant")
        learning.record_dismissal("restaurant")

    assert learning.interest_level("restaurant") == 0
    assert learning.should_suppress("restaurant") is True
    # Other categories are unaffected
    assert learning.should_suppress("weather") is False


@pytest.mark.parametrize("dismissals", [1, 2, 3, 4])
def test_no_suppression_below_minimum_sample(learning, dismissals):
    for _ in range(dismissals):
        learning.record_dismissal("restaurant")

    assert learning.interest_level("restaurant") == 0
    assert learning.should_suppress("restaurant") is False


def test_clicks_lift_suppression_once_ratio_recovers(learning):
    for _ in range(5):
        learning.record_dismissal("restaurant")
    learning.record_click("restaurant")
    learning.record_click("restaurant")
    # 2 / 7 is still under 0.3
    assert learning.should_suppress("restaurant") is True

    learning.record_click("restaurant")
    assert learning.interest_level("restaurant") == pytest.approx(3 / 8)
    assert learning.should_suppress("restaurant") is False


def test_counters_accumulate(learning, now):
    learning.record_suggestion("culture", now)
    learning.record_suggestion("culture", now)
    learning.record_click("culture")
    learning.record_dismissal("nature")

    data = learning.get_data()
    assert data.total_suggestions == 2
    assert data.clicked_count == 1
    assert data.dismissed_count == 1
    assert data.dismissed_categories == {"nature": 1}
    assert data.category("culture").suggested == 2
    assert data.last_suggestion_at == now
    assert data.interest_level == 0.5


def test_data_survives_new_instance(kv_store):
    first = LearningStore(kv_store)
    for _ in range(5):
        first.record_dismissal("restaurant")

    second = LearningStore(kv_store)
    assert second.get_data().dismissed_count == 5
    assert second.should_suppress("restaurant") is True


def test_reset_clears_everything(kv_store, learning):
    learning.record_click("culture")
    learning.reset()

    assert learning.get_data().clicked_count == 0
    assert LearningStore(kv_store).get_data().clicked_count == 0


def test_store_failures_are_soft():
    learning = LearningStore(BrokenStore())
    for _ in range(6):
        learning.record_dismissal("restaurant")

    assert LearningStore(BrokenStore()).should_suppress("restaurant") is False
    assert LearningStore(BrokenStore()).interest_level("restaurant") == 0.5


def test_over_suggested_needs_volume_and_low_clicks(learning):
    for _ in range(5):
        learning.record_suggestion("shopping")
    assert learning.is_over_suggested("shopping") is True

    for _ in range(3):
        learning.record_click("shopping")
    assert learning.is_over_suggested("shopping") is False


def test_cooldown_window(cooldowns, now):
    assert cooldowns.is_cooling_down("weather_pivot", 3600, now) is False

    cooldowns.stamp("weather_pivot", now)
    assert cooldowns.last_fired("weather_pivot") == now
    assert cooldowns.is_cooling_down("weather_pivot", 3600, now + timedelta(minutes=59)) is True
    assert cooldowns.is_cooling_down("weather_pivot", 3600, now + timedelta(hours=1)) is False


def test_cooldown_keys_are_namespaced(now):
    store = InMemoryKeyValueStore()
    CooldownStore(store, namespace="test:").stamp("golden_hour", now)

    assert store.keys() == ["test:cooldown:golden_hour"]


def test_cooldown_read_failure_means_no_cooldown(now):
    assert CooldownStore(BrokenStore()).is_cooling_down("x", 3600, now) is False
