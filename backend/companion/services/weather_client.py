"""OpenWeatherMap client: adapter for current weather + 3-hourly forecast with mock fallback."""

import hashlib
import logging
import random
import time
from typing import Any

import httpx

from companion.config import settings

logger = logging.getLogger(__name__)

MOCK_CONDITIONS = ["Clear", "Clear", "Clouds", "Clouds", "Rain", "Drizzle"]


class OpenWeatherClient:
    """Returns {"current": {...}, "hourly": [...]} in a provider-neutral shape."""

    def __init__(self, api_key: str | None = None, client: httpx.AsyncClient | None = None):
        self._api_key = settings.openweather_api_key if api_key is None else api_key
        self._client = client
        self._use_mock = not self._api_key

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.openweather_base_url,
                timeout=10.0,
            )
        return self._client

    async def fetch(self, latitude: float, longitude: float, days: int = 2) -> dict[str, Any]:
        if self._use_mock:
            return self._generate_mock_weather(latitude, longitude, days)

        try:
            client = await self._get_client()
            params = {"lat": latitude, "lon": longitude, "units": "metric", "appid": self._api_key}

            current_resp = await client.get("/weather", params=params)
            current_resp.raise_for_status()
            forecast_resp = await client.get("/forecast", params={**params, "cnt": days * 8})
            forecast_resp.raise_for_status()

            return self._transform(current_resp.json(), forecast_resp.json())

        except Exception as e:
            logger.error(f"OpenWeatherMap API failed, falling back to mock: {e}")
            return self._generate_mock_weather(latitude, longitude, days)

    def _transform(self, current: dict, forecast: dict) -> dict[str, Any]:
        entries = forecast.get("list", [])
        hourly = [
            {
                "time": e["dt"],
                "temperature": e.get("main", {}).get("temp", 0.0),
                "condition": (e.get("weather") or [{}])[0].get("main"),
                "precipitation_chance": round(e.get("pop", 0.0) * 100),
            }
            for e in entries
        ]
        weather = (current.get("weather") or [{}])[0]
        main = current.get("main", {})
        return {
            "current": {
                "condition": weather.get("main"),
                "description": weather.get("description", ""),
                "temperature": main.get("temp", 0.0),
                "feels_like": main.get("feels_like", main.get("temp", 0.0)),
                "precipitation_chance": hourly[0]["precipitation_chance"] if hourly else 0,
                "sunrise": current.get("sys", {}).get("sunrise"),
                "sunset": current.get("sys", {}).get("sunset"),
                "timestamp": current.get("dt"),
            },
            "hourly": hourly,
        }

    def _generate_mock_weather(self, latitude: float, longitude: float, days: int) -> dict[str, Any]:
        """Deterministic per location and hour, for demo mode."""
        now = int(time.time())
        hour_bucket = now // 3600
        seed_str = f"{latitude:.2f}{longitude:.2f}{hour_bucket}"
        rng = random.Random(int(hashlib.md5(seed_str.encode()).hexdigest()[:8], 16))

        condition = rng.choice(MOCK_CONDITIONS)
        temperature = round(rng.uniform(8, 30), 1)
        day_start = now - now % 86400
        hourly = []
        for i in range(days * 8):
            entry_condition = condition if rng.random() < 0.7 else rng.choice(MOCK_CONDITIONS)
            hourly.append({
                "time": now + i * 3 * 3600,
                "temperature": round(temperature + rng.uniform(-4, 4), 1),
                "condition": entry_condition,
                "precipitation_chance": rng.randint(60, 90) if entry_condition in ("Rain", "Drizzle") else rng.randint(0, 30),
            })
        return {
            "current": {
                "condition": condition,
                "description": condition.lower(),
                "temperature": temperature,
                "feels_like": round(temperature + rng.uniform(-2, 2), 1),
                "precipitation_chance": hourly[0]["precipitation_chance"],
                "sunrise": day_start + 6 * 3600,
                "sunset": day_start + 20 * 3600,
                "timestamp": now,
            },
            "hourly": hourly,
        }

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
