"""Trip mode state machine: planning vs active, with one active sub-mode."""

import logging

from companion.exceptions import ModeTransitionError
from companion.models.activity import EnrichedActivity
from companion.models.mode import ModeContext, SubMode, TripMode

logger = logging.getLogger(__name__)

# Trigger categories that stay live while the user is resting or chatting
QUIET_SUBMODE_CATEGORIES = frozenset({"weather", "booking"})
QUIET_SUBMODES = frozenset({SubMode.REST, SubMode.CHAT})


class ModeController:
    """Flat two-level state machine. Holds the transient craving/serendipity results
    so they can be cleared when the user moves to another sub-mode."""

    def __init__(self):
        self._context = ModeContext()
        self.craving_query: str | None = None
        self.craving_results: list[EnrichedActivity] = []
        self.serendipity_pick: EnrichedActivity | None = None

    @property
    def context(self) -> ModeContext:
        return self._context

    @property
    def is_active(self) -> bool:
        return self._context.mode == TripMode.ACTIVE

    def activate(self, trip_id: str, day_number: int = 1) -> ModeContext:
        """planning → active. Entry sub-mode is always choice."""
        if self.is_active and self._context.trip_id == trip_id:
            return self._context
        self._clear_transient()
        self._context = ModeContext(
            mode=TripMode.ACTIVE,
            sub_mode=SubMode.CHOICE,
            has_active_trip=True,
            trip_id=trip_id,
            day_number=day_number,
        )
        logger.info(f"Trip {trip_id} active (day {day_number})")
        return self._context

    def end_trip(self) -> ModeContext:
        """active → planning. No sub-mode is retained."""
        if self.is_active:
            logger.info(f"Trip {self._context.trip_id} ended")
        self._clear_transient()
        self._context = ModeContext()
        return self._context

    def switch_mode(self, sub_mode: SubMode) -> ModeContext:
        if not self.is_active:
            raise ModeTransitionError("Sub-modes are only available during an active trip")
        if sub_mode == self._context.sub_mode:
            return self._context

        if sub_mode != SubMode.CRAVING:
            self.craving_query = None
            self.craving_results = []
        if sub_mode != SubMode.SERENDIPITY:
            self.serendipity_pick = None

        self._context = ModeContext(
            mode=TripMode.ACTIVE,
            sub_mode=sub_mode,
            has_active_trip=True,
            trip_id=self._context.trip_id,
            day_number=self._context.day_number,
        )
        return self._context

    def set_day(self, day_number: int) -> ModeContext:
        if not self.is_active:
            raise ModeTransitionError("No active trip")
        self._context = ModeContext(
            mode=TripMode.ACTIVE,
            sub_mode=self._context.sub_mode,
            has_active_trip=True,
            trip_id=self._context.trip_id,
            day_number=day_number,
        )
        return self._context

    def set_craving_results(self, query: str, results: list[EnrichedActivity]):
        # Transient sub-mode state only exists during an active trip
        if not self.is_active:
            return
        self.craving_query = query
        self.craving_results = results

    def set_serendipity_pick(self, pick: EnrichedActivity | None):
        if not self.is_active:
            return
        self.serendipity_pick = pick

    def allows_trigger_category(self, category: str) -> bool:
        """Which trigger categories run in the current state."""
        if not self.is_active:
            return False
        if self._context.sub_mode in QUIET_SUBMODES:
            return category in QUIET_SUBMODE_CATEGORIES
        return True

    def _clear_transient(self):
        self.craving_query = None
        self.craving_results = []
        self.serendipity_pick = None
