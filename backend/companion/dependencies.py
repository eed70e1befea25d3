from companion.services.companion_service import ActiveCompanion
from companion.services.geocoding_client import NominatimGeocoder
from companion.services.location_tracker import LocationTracker
from companion.services.weather_client import OpenWeatherClient
from companion.services.weather_provider import WeatherContextProvider

_companion: ActiveCompanion | None = None


def get_companion() -> ActiveCompanion:
    """Process-wide companion wired to the configured store and HTTP adapters."""
    global _companion
    if _companion is None:
        _companion = ActiveCompanion(
            tracker=LocationTracker(geocoder=NominatimGeocoder()),
            weather_provider=WeatherContextProvider(OpenWeatherClient()),
        )
    return _companion
