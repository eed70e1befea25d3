"""Nominatim reverse geocoder: coordinates to city name. Best-effort."""

import logging

import httpx

from companion.config import settings

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.nominatim_base_url,
                timeout=10.0,
                headers={"User-Agent": settings.nominatim_user_agent},
            )
        return self._client

    async def reverse(self, latitude: float, longitude: float) -> dict[str, str | None]:
        """Returns {"city", "country_code"}; both None when the lookup fails."""
        try:
            client = await self._get_client()
            resp = await client.get(
                "/reverse",
                params={"lat": latitude, "lon": longitude, "format": "json", "zoom": 10},
            )
            resp.raise_for_status()
            address = resp.json().get("address", {})
            city = (
                address.get("city")
                or address.get("town")
                or address.get("village")
                or address.get("municipality")
            )
            country = address.get("country_code")
            return {"city": city, "country_code": country.upper() if country else None}
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for {latitude:.4f},{longitude:.4f}: {e}")
            return {"city": None, "country_code": None}

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
