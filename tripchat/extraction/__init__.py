"""
Response Extraction Engine

Regex and heuristic parsers that turn free-text model replies into
structured travel entities:
- Locations (geocoded)
- Itinerary days
- Weather
- Local food and attractions
"""

from .engine import ResponseExtractor
from .itinerary import ItineraryExtractor
from .locations import LocationExtractor
from .structured_blocks import StructuredBlockExtractor, parse_tolerant_json, strip_structured_blocks
from .weather import WeatherExtractor

__all__ = [
    "ResponseExtractor",
    "ItineraryExtractor",
    "LocationExtractor",
    "StructuredBlockExtractor",
    "WeatherExtractor",
    "parse_tolerant_json",
    "strip_structured_blocks",
]
