"""Location tracker: turns raw position fixes into LocationContext snapshots."""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Protocol

from companion.exceptions import LocationError
from companion.models.context import LocationContext, LocationErrorCode, PositionFix
from companion.services.recommendation.signals import haversine_m

logger = logging.getLogger(__name__)

MOVING_SPEED_MPS = 0.5
MOVING_DISPLACEMENT_M = 10.0
CITY_REUSE_RADIUS_M = 500.0


class LocationSource(Protocol):
    async def get_position(self) -> PositionFix: ...

    def watch(self) -> AsyncIterator[PositionFix]: ...


class ReverseGeocoder(Protocol):
    async def reverse(self, latitude: float, longitude: float) -> dict[str, str | None]: ...


def map_error(error: Exception) -> LocationErrorCode:
    if isinstance(error, LocationError):
        return error.code
    if isinstance(error, PermissionError):
        return LocationErrorCode.PERMISSION_DENIED
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return LocationErrorCode.TIMEOUT
    return LocationErrorCode.UNKNOWN


def detect_movement(fix: PositionFix, previous: LocationContext | None) -> bool:
    """Reported speed wins; otherwise implied speed from displacement."""
    if fix.speed is not None:
        return fix.speed > MOVING_SPEED_MPS
    if previous is None:
        return False
    displacement = haversine_m(previous.latitude, previous.longitude, fix.latitude, fix.longitude)
    elapsed = (fix.timestamp - previous.timestamp).total_seconds()
    if elapsed > 0:
        return displacement / elapsed > MOVING_SPEED_MPS
    return displacement > MOVING_DISPLACEMENT_M


class LocationTracker:
    def __init__(self, source: LocationSource | None = None, geocoder: ReverseGeocoder | None = None):
        self._source = source
        self._geocoder = geocoder
        self._watch_task: asyncio.Task | None = None
        self.current: LocationContext | None = None
        self.last_error: LocationErrorCode | None = None

    @property
    def is_watching(self) -> bool:
        return self._watch_task is not None and not self._watch_task.done()

    async def refresh(self) -> LocationContext | None:
        """Request a single fix. Errors are recorded in last_error, not raised."""
        if self._source is None:
            self.last_error = LocationErrorCode.POSITION_UNAVAILABLE
            return None
        try:
            fix = await self._source.get_position()
        except Exception as e:
            self.last_error = map_error(e)
            logger.warning(f"Location refresh failed ({self.last_error.value}): {e}")
            return None
        return await self.handle_fix(fix)

    async def handle_fix(self, fix: PositionFix) -> LocationContext | None:
        """Build a context from a fix. Returns None if a newer fix was applied first."""
        if self.current is not None and fix.timestamp <= self.current.timestamp:
            return None

        previous = self.current
        city, country = await self._resolve_city(fix, previous)

        # A newer fix may have landed while geocoding
        if self.current is not None and fix.timestamp <= self.current.timestamp:
            logger.debug(f"Discarding superseded fix at {fix.timestamp.isoformat()}")
            return None

        context = LocationContext(
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy=fix.accuracy,
            timestamp=fix.timestamp,
            heading=fix.heading,
            speed=fix.speed,
            is_moving=detect_movement(fix, previous),
            city=city,
            country_code=country,
        )
        self.current = context
        self.last_error = None
        return context

    async def _resolve_city(self, fix: PositionFix, previous: LocationContext | None) -> tuple[str | None, str | None]:
        if previous is not None and previous.city:
            moved = haversine_m(previous.latitude, previous.longitude, fix.latitude, fix.longitude)
            if moved < CITY_REUSE_RADIUS_M:
                return previous.city, previous.country_code
        if self._geocoder is None:
            return None, None
        try:
            result = await self._geocoder.reverse(fix.latitude, fix.longitude)
        except Exception as e:
            logger.warning(f"Reverse geocoding failed, city unknown: {e}")
            return None, None
        return result.get("city"), result.get("country_code")

    def start_watching(self, on_update: Callable[[LocationContext], Awaitable[None] | None]):
        """Consume continuous fixes in a background task until stop_watching()."""
        if self._source is None or self.is_watching:
            return

        async def _consume():
            try:
                async for fix in self._source.watch():
                    context = await self.handle_fix(fix)
                    if context is not None:
                        result = on_update(context)
                        if asyncio.iscoroutine(result):
                            await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.last_error = map_error(e)
                logger.warning(f"Location watch stopped ({self.last_error.value}): {e}")

        self._watch_task = asyncio.create_task(_consume())

    def stop_watching(self):
        if self._watch_task is not None:
            self._watch_task.cancel()
            self._watch_task = None
