from datetime import timedelta

import pytest

from companion.exceptions import MessageNotFoundError
from companion.models.message import MessagePriority, MessageType, ProactiveMessage
from companion.services.message_queue import ProactiveMessageQueue

from conftest import make_activity


def _message(id, now, priority=MessagePriority.MEDIUM, key=None, activity=None, ttl_minutes=30, type=MessageType.RECOMMENDATION):
    return ProactiveMessage(
        type=type,
        message=f"message {id}",
        priority=priority,
        activity=activity,
        id=id,
        created_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
        cooldown_key=key or id,
    )


@pytest.fixture
def queue(clock):
    return ProactiveMessageQueue(max_size=5, clock=clock)


def test_active_messages_ordered_by_priority_then_newest(queue, now):
    queue.enqueue(_message("low", now, MessagePriority.LOW))
    queue.enqueue(_message("old-high", now, MessagePriority.HIGH))
    queue.enqueue(_message("new-high", now + timedelta(minutes=1), MessagePriority.HIGH))
    queue.enqueue(_message("medium", now, MessagePriority.MEDIUM))

    ids = [m.id for m in queue.active_messages(now + timedelta(minutes=2))]
    assert ids == ["new-high", "old-high", "medium", "low"]


def test_sixth_message_evicts_lowest_priority_oldest(queue, now):
    queue.enqueue(_message("low-old", now, MessagePriority.LOW))
    queue.enqueue(_message("low-new", now + timedelta(minutes=1), MessagePriority.LOW))
    for i in range(3):
        queue.enqueue(_message(f"high-{i}", now, MessagePriority.HIGH))

    assert queue.enqueue(_message("medium", now + timedelta(minutes=2), MessagePriority.MEDIUM))
    ids = {m.id for m in queue.active_messages(now + timedelta(minutes=2))}
    assert len(queue) == 5
    assert "low-old" not in ids
    assert "low-new" in ids
    assert "medium" in ids


def test_dismissed_messages_are_evicted_first(queue, now):
    for i in range(5):
        queue.enqueue(_message(f"high-{i}", now, MessagePriority.HIGH))
    queue.dismiss("high-3")

    assert queue.enqueue(_message("low", now, MessagePriority.LOW))
    with pytest.raises(MessageNotFoundError):
        queue.get("high-3")


def test_incoming_message_can_be_the_one_evicted(queue, now):
    for i in range(5):
        queue.enqueue(_message(f"high-{i}", now, MessagePriority.HIGH))

    assert queue.enqueue(_message("low", now, MessagePriority.LOW)) is False
    assert len(queue) == 5


def test_duplicate_cooldown_key_is_ignored(queue, now):
    assert queue.enqueue(_message("a", now, key="weather_pivot"))
    assert queue.enqueue(_message("b", now, key="weather_pivot")) is False
    assert len(queue) == 1


def test_duplicate_activity_and_type_is_ignored(queue, now):
    museum = make_activity("museum", "Musée d'Orsay", "culture")
    assert queue.enqueue(_message("a", now, activity=museum, key="one"))
    assert queue.enqueue(_message("b", now, activity=museum, key="two")) is False
    assert queue.enqueue(_message("c", now, activity=museum, key="three", type=MessageType.BOOKING))


def test_dismissed_message_does_not_block_new_one(queue, now):
    queue.enqueue(_message("a", now, key="weather_pivot"))
    queue.dismiss("a")
    assert queue.enqueue(_message("b", now, key="weather_pivot"))


def test_expired_messages_are_hidden_and_collected(queue, clock, now):
    queue.enqueue(_message("short", now, ttl_minutes=10))
    queue.enqueue(_message("long", now, ttl_minutes=60))

    clock.advance(minutes=10)
    assert [m.id for m in queue.active_messages()] == ["long"]
    assert queue.collect_garbage() == 1
    assert len(queue) == 1


def test_dismiss_is_permanent(queue, now):
    queue.enqueue(_message("a", now))
    dismissed = queue.dismiss("a")

    assert dismissed.is_dismissed is True
    assert queue.active_messages(now) == []
    # Still resolvable after dismissal
    assert queue.get("a") is dismissed


def test_act_implies_dismiss(queue, now):
    museum = make_activity("museum", "Musée d'Orsay", "culture")
    queue.enqueue(_message("a", now, activity=museum))

    acted = queue.act("a")
    assert acted.is_dismissed is True
    assert acted.activity_id == "museum"


def test_unknown_id_raises(queue):
    with pytest.raises(MessageNotFoundError):
        queue.dismiss("missing")
    with pytest.raises(MessageNotFoundError):
        queue.act("missing")


def test_clear(queue, now):
    queue.enqueue(_message("a", now))
    queue.clear()
    assert len(queue) == 0
