"""
LocationExtractor - Finds place names in a reply and geocodes them
"""

import asyncio
import logging
import re
from typing import List

from tripchat.data_sources.nominatim_client import NominatimClient
from tripchat.extraction.strategies import ExtractionStrategy, run_strategies
from tripchat.extraction.text_utils import clean_place, dedupe, display_place, looks_like_place
from tripchat.models.schemas import LocationHit

logger = logging.getLogger(__name__)

MAX_LOCATIONS = 3

CAPITALIZED_PHRASE = r"((?:[A-Z][A-Za-z'\-]*)(?:[ \t]+[A-Z][A-Za-z'\-]*){0,3})"

# "Kyoto is located at...", "Kyoto, a city in...", "Kyoto, the capital of..."
APPOSITION_PATTERN = re.compile(
    CAPITALIZED_PHRASE
    + r"[ \t]*(?i:is\s+located\s+(?:at|in)|,\s*a\s+city\s+in|,\s*the\s+capital\s+of)"
)

# "plan a trip to Kyoto", "travel to Kyoto", "visit Kyoto", "in Kyoto"
TRIP_INTENT_PATTERN = re.compile(
    r"\b(?:plan\s+a\s+trip\s+to|trip\s+to|travel(?:l?ing)?\s+to|visit(?:ing)?|in)\s+"
    r"([A-Za-z][A-Za-z'\-]*(?:\s+[A-Za-z][A-Za-z'\-]*){0,3})",
    re.IGNORECASE
)


class PlaceListStrategy(ExtractionStrategy):
    """Every cleaned capture of a pattern, deduplicated"""

    def __init__(self, name: str, pattern: re.Pattern, require_place_shape: bool = False):
        self.name = name
        self.pattern = pattern
        self.require_place_shape = require_place_shape

    def try_extract(self, text: str) -> List[str]:
        names = []
        for match in self.pattern.finditer(text):
            name = clean_place(match.group(1))
            if not name:
                continue
            if self.require_place_shape and not looks_like_place(name):
                continue
            names.append(display_place(name))
        return dedupe(names)


class LocationExtractor:
    """Place-name candidates from model text (or the user's words) to geocoded hits"""

    def __init__(self, geocoder: NominatimClient):
        self.geocoder = geocoder
        self.reply_strategies = [PlaceListStrategy("apposition", APPOSITION_PATTERN)]
        self.utterance_strategies = [
            PlaceListStrategy("trip_intent", TRIP_INTENT_PATTERN, require_place_shape=True)
        ]

    def find_candidates(self, model_text: str, user_utterance: str) -> List[str]:
        """Up to three unique place names"""

        names = run_strategies(self.reply_strategies, model_text)
        if not names:
            names = run_strategies(self.utterance_strategies, user_utterance) or []

        return dedupe(names)[:MAX_LOCATIONS]

    async def extract(self, model_text: str, user_utterance: str) -> List[LocationHit]:
        names = self.find_candidates(model_text, user_utterance)
        if not names:
            return []

        logger.info(f"📍 Location candidates: {names}")

        results = await asyncio.gather(
            *(self.geocoder.search(name) for name in names),
            return_exceptions=True
        )

        locations = []
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning(f"⚠️  Geocoding failed for '{name}': {result}")
                continue
            if result:
                locations.extend(result)

        return locations
