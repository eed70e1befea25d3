from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (learning store + cooldown persistence)
    redis_url: str = "redis://localhost:6379/0"
    learning_store_backend: str = "memory"  # memory | redis
    learning_store_namespace: str = "waycraft:companion:"

    # OpenWeatherMap
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_staleness_minutes: int = 10
    weather_refresh_minutes: int = 15
    weather_forecast_days: int = 2

    # Nominatim reverse geocoding
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "waycraft-companion/0.1"

    # Booking links
    lodging_search_base_url: str = "https://www.booking.com/searchresults.html"
    activity_search_base_url: str = "https://www.getyourguide.com/s/"

    # Proactive messages
    proactive_enabled: bool = True
    message_queue_max: int = 5
    suppression_min_samples: int = 5
    suppression_interest_threshold: float = 0.3

    # Scheduler
    scheduler_enabled: bool = True
    clock_tick_seconds: int = 60

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def weather_max_age_minutes(self) -> int:
        # Usable until the next scheduled refresh has had time to land
        return self.weather_refresh_minutes + self.weather_staleness_minutes

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
