"""
ResponseExtractor - Structured travel entities from one model reply

Sub-extractors run independently. A failure in one is logged and yields its
empty default; the others are unaffected.
"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from tripchat.data_sources.nominatim_client import NominatimClient, get_nominatim_client
from tripchat.data_sources.synthetic_data import SyntheticDataProvider, get_synthetic_provider
from tripchat.data_sources.weather_client import WeatherClient, get_weather_client
from tripchat.extraction.itinerary import ItineraryExtractor
from tripchat.extraction.locations import LocationExtractor
from tripchat.extraction.structured_blocks import StructuredBlockExtractor
from tripchat.extraction.weather import WeatherExtractor
from tripchat.models.chat_schemas import ExtractionResult
from tripchat.models.schemas import TravelSession

logger = logging.getLogger(__name__)


class ResponseExtractor:
    """Runs every sub-extractor over a reply"""

    def __init__(
        self,
        geocoder: Optional[NominatimClient] = None,
        weather_client: Optional[WeatherClient] = None,
        synthetic: Optional[SyntheticDataProvider] = None
    ):
        self.locations = LocationExtractor(geocoder or get_nominatim_client())
        self.itinerary = ItineraryExtractor()
        self.weather = WeatherExtractor(
            weather_client or get_weather_client(),
            synthetic or get_synthetic_provider()
        )
        self.blocks = StructuredBlockExtractor()

        logger.info("✅ ResponseExtractor initialized")

    async def extract(
        self,
        model_text: str,
        user_utterance: str,
        session: TravelSession,
        today: Optional[date] = None
    ) -> ExtractionResult:

        destination = session.destination

        locations = await self._isolated(
            "locations", [], self.locations.extract, model_text, user_utterance
        )
        weather = await self._isolated(
            "weather", None, self.weather.extract, model_text, session, today
        )
        itinerary = self._isolated_sync(
            "itinerary", None, self.itinerary.extract, model_text, user_utterance
        )
        local_food = self._isolated_sync(
            "local_food", [], self.blocks.extract_food, model_text, destination
        )
        local_attractions = self._isolated_sync(
            "local_attractions", [], self.blocks.extract_attractions, model_text, destination
        )

        logger.info(
            f"🧩 Extracted: {len(locations)} locations, "
            f"itinerary={'yes' if itinerary else 'no'}, "
            f"weather={'yes' if weather else 'no'}, "
            f"{len(local_food)} food, {len(local_attractions)} attractions"
        )

        return ExtractionResult(
            locations=locations,
            itinerary=itinerary,
            weather=weather,
            local_food=local_food,
            local_attractions=local_attractions,
        )

    @staticmethod
    async def _isolated(name: str, default: Any, func: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            return await func(*args)
        except Exception as e:
            logger.exception(f"❌ {name} extraction failed: {e}")
            return default

    @staticmethod
    def _isolated_sync(name: str, default: Any, func: Callable[..., Any], *args) -> Any:
        try:
            return func(*args)
        except Exception as e:
            logger.exception(f"❌ {name} extraction failed: {e}")
            return default
