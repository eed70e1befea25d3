"""Proactive message queue: bounded, deduplicated, priority-ordered, with expiry."""

import logging
from datetime import datetime, timezone
from typing import Callable

from companion.config import settings
from companion.exceptions import MessageNotFoundError
from companion.models.message import ProactiveMessage

logger = logging.getLogger(__name__)


class ProactiveMessageQueue:
    def __init__(self, max_size: int | None = None, clock: Callable[[], datetime] | None = None):
        self.max_size = max_size or settings.message_queue_max
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._messages: list[ProactiveMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def _is_live(self, message: ProactiveMessage, now: datetime) -> bool:
        return not message.is_dismissed and not message.is_expired(now)

    def _duplicate_of(self, message: ProactiveMessage, now: datetime) -> ProactiveMessage | None:
        for existing in self._messages:
            if not self._is_live(existing, now):
                continue
            if message.cooldown_key and existing.cooldown_key == message.cooldown_key:
                return existing
            if existing.type == message.type and message.activity_id and existing.activity_id == message.activity_id:
                return existing
        return None

    def enqueue(self, message: ProactiveMessage, now: datetime | None = None) -> bool:
        """Add a message. Returns False when it duplicates a live one or is evicted at once."""
        now = now or self._clock()
        self.collect_garbage(now)
        if self._duplicate_of(message, now) is not None:
            logger.debug(f"Duplicate message ignored: {message.cooldown_key or message.id}")
            return False

        self._messages.append(message)
        while len(self._messages) > self.max_size:
            evicted = self._eviction_candidate()
            self._messages.remove(evicted)
            logger.debug(f"Queue full, evicted {evicted.id} ({evicted.priority.value})")
            if evicted is message:
                return False
        return True

    def _eviction_candidate(self) -> ProactiveMessage:
        # Dismissed first, then lowest priority, then oldest
        return min(
            self._messages,
            key=lambda m: (not m.is_dismissed, m.priority.rank, m.created_at or datetime.min.replace(tzinfo=timezone.utc)),
        )

    def get(self, message_id: str) -> ProactiveMessage:
        for message in self._messages:
            if message.id == message_id:
                return message
        raise MessageNotFoundError(message_id)

    def dismiss(self, message_id: str) -> ProactiveMessage:
        """Permanent for this message instance."""
        message = self.get(message_id)
        message.is_dismissed = True
        return message

    def act(self, message_id: str) -> ProactiveMessage:
        """Act implies dismiss. Callers forward message.activity_id to selection tracking."""
        return self.dismiss(message_id)

    def clear(self):
        self._messages = []

    def active_messages(self, now: datetime | None = None) -> list[ProactiveMessage]:
        """Undismissed, unexpired messages: highest priority first, newest first among equals."""
        now = now or self._clock()
        live = [m for m in self._messages if self._is_live(m, now)]
        live.sort(key=lambda m: m.created_at or now, reverse=True)
        live.sort(key=lambda m: m.priority.rank, reverse=True)
        return live

    def collect_garbage(self, now: datetime | None = None) -> int:
        """Drop expired messages. Dismissed ones stay so their ids resolve."""
        now = now or self._clock()
        before = len(self._messages)
        self._messages = [m for m in self._messages if not m.is_expired(now)]
        return before - len(self._messages)
