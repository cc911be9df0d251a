"""
WeatherClient - Forecasts from WeatherAPI.com
"""

import os
import httpx
import logging
from datetime import date
from typing import Any, Dict, Optional
from tenacity import retry, stop_after_attempt, wait_exponential

from tripchat.data_sources.errors import ProviderError
from tripchat.models.schemas import DailyForecast, TemperatureRange, WeatherSnapshot

logger = logging.getLogger(__name__)


NORTHERN_SEASONS = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Fall", 10: "Fall", 11: "Fall",
}

OPPOSITE_SEASON = {"Winter": "Summer", "Summer": "Winter", "Spring": "Fall", "Fall": "Spring"}


def season_for(month: int, latitude: float = 1.0) -> str:
    """Season for a month; southern latitudes get the opposite season"""
    season = NORTHERN_SEASONS[month]
    if latitude < 0:
        return OPPOSITE_SEASON[season]
    return season


def format_celsius(value: float) -> str:
    return f"{value:.1f}°C"


class WeatherClient:
    """Client for the WeatherAPI.com forecast endpoint"""

    BASE_URL = "https://api.weatherapi.com/v1/forecast.json"

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key or os.getenv("WEATHER_API_KEY")
        self.timeout = timeout or float(os.getenv("HTTP_TIMEOUT", "10"))
        self.enabled = bool(self.api_key)

        if not self.enabled:
            logger.warning("WEATHER_API_KEY not found - live forecasts disabled")
        else:
            logger.info("✅ WeatherClient initialized")

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True
    )
    async def _make_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.BASE_URL, params=params)
            response.raise_for_status()
            return response.json()

    async def forecast(self, location: str, days: int = 3) -> Dict[str, Any]:
        """
        Raw forecast payload for a location

        Raises:
            ProviderError: missing key, HTTP failure or malformed payload
        """

        if not self.enabled:
            raise ProviderError("weatherapi", "API key not configured")

        params = {
            "key": self.api_key,
            "q": location,
            "days": days,
            "aqi": "no",
            "alerts": "no",
        }

        try:
            data = await self._make_request(params)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Weather lookup failed for '{location}': {e}")
            raise ProviderError("weatherapi", str(e)) from e

        logger.info(f"🌤️  Forecast fetched for {location}")
        return data

    async def get_weather(self, location: str, days: int = 3, today: Optional[date] = None) -> WeatherSnapshot:
        data = await self.forecast(location, days)
        return self.format_weather(data, location, today=today)

    def format_weather(
        self,
        data: Dict[str, Any],
        location: str,
        today: Optional[date] = None
    ) -> WeatherSnapshot:
        """Summarize a forecast payload into a WeatherSnapshot"""

        try:
            forecast_days = data["forecast"]["forecastday"]
            current = data["current"]
            latitude = float(data.get("location", {}).get("lat", 1.0))

            averages = [d["day"]["avgtemp_c"] for d in forecast_days]
            minimum = min(d["day"]["mintemp_c"] for d in forecast_days)
            maximum = max(d["day"]["maxtemp_c"] for d in forecast_days)

            forecasts = [
                DailyForecast(
                    date=d["date"],
                    max_temp=format_celsius(d["day"]["maxtemp_c"]),
                    min_temp=format_celsius(d["day"]["mintemp_c"]),
                    condition=d["day"]["condition"]["text"],
                    icon=d["day"]["condition"]["icon"],
                )
                for d in forecast_days
            ]

            month = (today or date.today()).month

            return WeatherSnapshot(
                location=location,
                temperature=TemperatureRange(
                    average=format_celsius(sum(averages) / len(averages)),
                    min=format_celsius(minimum),
                    max=format_celsius(maximum),
                ),
                conditions=current["condition"]["text"],
                season=season_for(month, latitude),
                icon=current["condition"]["icon"],
                forecasts=forecasts,
                source="live",
            )

        except (KeyError, TypeError, ValueError, ZeroDivisionError) as e:
            raise ProviderError("weatherapi", f"unexpected forecast payload: {e}") from e


# Singleton
_weather_client = None

def get_weather_client() -> WeatherClient:
    """Get singleton WeatherClient instance"""
    global _weather_client
    if _weather_client is None:
        _weather_client = WeatherClient()
    return _weather_client
