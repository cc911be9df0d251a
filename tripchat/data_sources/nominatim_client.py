"""
NominatimClient - Geocodes place names via OpenStreetMap Nominatim
Free API, no key required (a descriptive User-Agent is mandatory)
"""

import os
import httpx
import logging
from typing import Any, Dict, List, Optional
from tenacity import retry, stop_after_attempt, wait_exponential

from tripchat.data_sources.errors import ProviderError
from tripchat.models.schemas import LocationCategory, LocationHit, new_id

logger = logging.getLogger(__name__)


CATEGORY_TYPES = {
    LocationCategory.FOOD: {"restaurant", "bar", "cafe", "pub", "food_court", "fast_food"},
    LocationCategory.HOTEL: {"hotel", "hostel", "motel", "guest_house"},
    LocationCategory.NATURE: {"park", "forest", "nature_reserve", "beach", "garden"},
    LocationCategory.ATTRACTION: {"museum", "castle", "monument", "artwork", "attraction", "viewpoint"},
    LocationCategory.LANDMARK: {"town", "city", "village", "state", "country"},
}


def determine_location_type(osm_class: str, osm_type: str) -> LocationCategory:
    """Map an OSM class/type pair to a map category"""

    if osm_class == "tourism" and osm_type not in CATEGORY_TYPES[LocationCategory.HOTEL]:
        return LocationCategory.ATTRACTION

    for category, types in CATEGORY_TYPES.items():
        if osm_type in types:
            return category

    return LocationCategory.LANDMARK


# Offline data for the cities the fallback responder talks about
MOCK_LOCATIONS: Dict[str, List[Dict[str, Any]]] = {
    "tokyo": [
        {"name": "Tokyo", "lat": 35.6762, "lon": 139.6503, "category": "landmark"},
        {"name": "Senso-ji Temple", "lat": 35.7148, "lon": 139.7967, "category": "attraction"},
        {"name": "Shinjuku Gyoen", "lat": 35.6852, "lon": 139.7100, "category": "nature"},
        {"name": "Tsukiji Outer Market", "lat": 35.6655, "lon": 139.7707, "category": "food"},
    ],
    "paris": [
        {"name": "Paris", "lat": 48.8566, "lon": 2.3522, "category": "landmark"},
        {"name": "Eiffel Tower", "lat": 48.8584, "lon": 2.2945, "category": "attraction"},
        {"name": "Louvre Museum", "lat": 48.8606, "lon": 2.3376, "category": "attraction"},
        {"name": "Jardin du Luxembourg", "lat": 48.8462, "lon": 2.3372, "category": "nature"},
    ],
    "new york": [
        {"name": "New York", "lat": 40.7128, "lon": -74.0060, "category": "landmark"},
        {"name": "Central Park", "lat": 40.7829, "lon": -73.9654, "category": "nature"},
        {"name": "Statue of Liberty", "lat": 40.6892, "lon": -74.0445, "category": "attraction"},
        {"name": "Times Square", "lat": 40.7580, "lon": -73.9855, "category": "landmark"},
    ],
    "barcelona": [
        {"name": "Barcelona", "lat": 41.3874, "lon": 2.1686, "category": "landmark"},
        {"name": "Sagrada Familia", "lat": 41.4036, "lon": 2.1744, "category": "attraction"},
        {"name": "Park Guell", "lat": 41.4145, "lon": 2.1527, "category": "nature"},
        {"name": "La Boqueria", "lat": 41.3818, "lon": 2.1716, "category": "food"},
    ],
    "london": [
        {"name": "London", "lat": 51.5072, "lon": -0.1276, "category": "landmark"},
        {"name": "British Museum", "lat": 51.5194, "lon": -0.1270, "category": "attraction"},
        {"name": "Hyde Park", "lat": 51.5073, "lon": -0.1657, "category": "nature"},
        {"name": "Borough Market", "lat": 51.5055, "lon": -0.0910, "category": "food"},
    ],
}

MOCK_ALIASES = {"nyc": "new york", "new york city": "new york"}


class NominatimClient:
    """Client for the Nominatim search API"""

    BASE_URL = "https://nominatim.openstreetmap.org/search"
    USER_AGENT = "TripChat/1.0"

    def __init__(self, timeout: Optional[float] = None, limit: int = 5):
        self.timeout = timeout or float(os.getenv("HTTP_TIMEOUT", "10"))
        self.limit = limit

        # Keyed by lowercased, trimmed query; lives as long as the process
        self.cache: Dict[str, List[LocationHit]] = {}

        logger.info("NominatimClient initialized")

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True
    )
    async def _make_request(self, query: str) -> List[Dict[str, Any]]:
        """Make HTTP request to Nominatim with retry logic"""

        params = {"q": query, "format": "json", "limit": self.limit}
        headers = {"User-Agent": self.USER_AGENT}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.BASE_URL, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

    async def search(self, query: str) -> List[LocationHit]:
        """
        Geocode a free-text place name

        Args:
            query: Place name, e.g. "Kyoto"

        Returns:
            Up to `limit` LocationHit entries

        Raises:
            ProviderError: API unreachable and no offline data for the query
        """

        key = query.lower().strip()
        if not key:
            return []

        if key in self.cache:
            logger.debug(f"Geocode cache hit: {key}")
            return self.cache[key]

        try:
            raw_results = await self._make_request(query)
            hits = [self._parse_result(r) for r in raw_results]
            hits = [h for h in hits if h is not None]
            logger.info(f"📍 Nominatim found {len(hits)} results for '{query}'")

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Nominatim request failed for '{query}': {e}")
            hits = self.get_mock_locations(key)
            if not hits:
                raise ProviderError("nominatim", f"geocoding failed for '{query}'") from e
            logger.info(f"🗂️  Using offline locations for '{query}'")

        self.cache[key] = hits
        return hits

    def get_mock_locations(self, query: str) -> List[LocationHit]:
        """Offline locations for well-known cities"""

        key = query.lower().strip()
        key = MOCK_ALIASES.get(key, key)

        entries = MOCK_LOCATIONS.get(key)
        if not entries:
            # "restaurants in paris" style queries
            entries = next(
                (v for city, v in MOCK_LOCATIONS.items() if city in key),
                None
            )

        if not entries:
            return []

        return [
            LocationHit(
                name=e["name"],
                full_name=e["name"],
                latitude=e["lat"],
                longitude=e["lon"],
                category=LocationCategory(e["category"]),
                details={"source": "offline"},
            )
            for e in entries
        ]

    def _parse_result(self, result: Dict[str, Any]) -> Optional[LocationHit]:
        """Parse Nominatim result to our format"""

        try:
            display_name = result.get("display_name", "")
            osm_class = result.get("class", "")
            osm_type = result.get("type", "")

            return LocationHit(
                id=str(result.get("place_id") or new_id()),
                name=display_name.split(",")[0].strip(),
                full_name=display_name,
                latitude=float(result["lat"]),
                longitude=float(result["lon"]),
                category=determine_location_type(osm_class, osm_type),
                details={
                    "class": osm_class,
                    "type": osm_type,
                    "importance": result.get("importance"),
                },
            )

        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed Nominatim result: {e}")
            return None


# Singleton
_nominatim_client = None

def get_nominatim_client() -> NominatimClient:
    """Get singleton NominatimClient instance"""
    global _nominatim_client
    if _nominatim_client is None:
        _nominatim_client = NominatimClient()
    return _nominatim_client
