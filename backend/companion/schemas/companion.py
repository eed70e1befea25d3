from datetime import datetime

from pydantic import BaseModel, Field

from companion.models.mode import SubMode


class ActivityIn(BaseModel):
    id: str
    name: str
    category: str
    latitude: float | None = None
    longitude: float | None = None
    description: str = ""
    types: list[str] = []
    rating: float | None = Field(None, ge=0, le=5)
    city: str | None = None
    day_number: int | None = None
    best_time_of_day: str | None = None
    duration_minutes: int | None = None
    is_bookable: bool = False
    is_lodging: bool = False
    booking_confirmed: bool = False


class ItineraryRequest(BaseModel):
    activities: list[ActivityIn]


class LocationFixRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float = Field(..., ge=0)
    timestamp: datetime | None = None
    heading: float | None = None
    speed: float | None = None


class TripActivateRequest(BaseModel):
    trip_id: str
    day_number: int = 1


class ModeSwitchRequest(BaseModel):
    sub_mode: SubMode


class DayRequest(BaseModel):
    day_number: int = Field(..., ge=1)


class CravingRequest(BaseModel):
    query: str
    limit: int | None = Field(None, ge=1, le=20)
    max_distance_m: float | None = Field(None, gt=0)
    require_open: bool = False


class PreferencesRequest(BaseModel):
    preferences: dict[str, float]


class ProactiveToggleRequest(BaseModel):
    enabled: bool
