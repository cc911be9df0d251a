"""
WeatherExtractor - Weather for the place the conversation is about
"""

import logging
import re
from datetime import date
from typing import Optional

from tripchat.data_sources.errors import ProviderError
from tripchat.data_sources.synthetic_data import SyntheticDataProvider
from tripchat.data_sources.weather_client import WeatherClient
from tripchat.extraction.strategies import RegexCaptureStrategy, run_strategies
from tripchat.extraction.text_utils import clean_place, display_place, normalize_key
from tripchat.models.schemas import TravelSession, WeatherSnapshot

logger = logging.getLogger(__name__)

FORECAST_DAYS = 3

WEATHER_KEYWORDS = re.compile(
    r"\b(weather|temperature|temperatures|climate|forecast|rain|rainy|sunny|snow|"
    r"humid|humidity|°c|°f|degrees|season)\b",
    re.IGNORECASE
)

PLACE = r"([A-Z][A-Za-z'\-]*(?:[ \t]+[A-Z][A-Za-z'\-]*){0,3})"


class WeatherExtractor:
    """Live forecast first, seasonal tables when the reply is about weather"""

    def __init__(self, weather_client: WeatherClient, synthetic: SyntheticDataProvider):
        self.weather_client = weather_client
        self.synthetic = synthetic
        self.location_strategies = [
            RegexCaptureStrategy(
                "weather_in",
                re.compile(r"(?i:weather|climate|forecast)\s+(?i:in|for|at)\s+" + PLACE),
                cleaner=clean_place,
            ),
            RegexCaptureStrategy(
                "in_place_is",
                re.compile(r"\b(?i:in|at)\s+" + PLACE + r"\s+(?i:is|ranges|averages|tends)\b"),
                cleaner=clean_place,
            ),
            RegexCaptureStrategy(
                "possessive",
                re.compile(PLACE + r"'s\s+(?i:weather|climate|temperatures?)"),
                cleaner=clean_place,
            ),
        ]

    def resolve_location(self, model_text: str, session: TravelSession) -> Optional[str]:
        if session.destination:
            return session.destination
        location = run_strategies(self.location_strategies, model_text)
        return display_place(location) if location else None

    @staticmethod
    def mentions_weather(text: str) -> bool:
        return bool(WEATHER_KEYWORDS.search(text or ""))

    async def extract(
        self,
        model_text: str,
        session: TravelSession,
        today: Optional[date] = None
    ) -> Optional[WeatherSnapshot]:

        location = self.resolve_location(model_text, session)
        if not location:
            return None

        cached = session.weather_info
        if cached and normalize_key(cached.location) == normalize_key(location):
            logger.debug(f"Reusing cached weather for {location}")
            return cached

        try:
            return await self.weather_client.get_weather(location, days=FORECAST_DAYS, today=today)
        except ProviderError as e:
            logger.warning(f"⚠️  Live weather unavailable for {location}: {e}")
        except Exception as e:
            logger.exception(f"❌ Weather lookup crashed for {location}: {e}")

        if not self.mentions_weather(model_text):
            return None

        return await self.synthetic.get_weather(location, days=FORECAST_DAYS, today=today)
