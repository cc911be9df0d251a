"""
Shared fakes and fixtures for the TripChat test suite.

Every external provider is replaced by an in-process fake so no test touches
the network.
"""

from datetime import date
from typing import Dict, List, Optional

import pytest

from tripchat.data_sources.errors import ProviderError
from tripchat.data_sources.synthetic_data import SyntheticDataProvider
from tripchat.database import Database
from tripchat.models.schemas import LocationCategory, LocationHit
from tripchat.storage import ChatStorage

TODAY = date(2025, 1, 10)


class FakeGeocoder:
    """Records queries; answers from a fixed table or raises for listed names"""

    def __init__(self, known: Optional[Dict[str, tuple]] = None, failing: tuple = ()):
        self.known = known or {
            "tokyo": (35.6762, 139.6503),
            "kyoto": (35.0116, 135.7681),
            "paris": (48.8566, 2.3522),
        }
        self.failing = {name.lower() for name in failing}
        self.queries: List[str] = []

    async def search(self, query: str) -> List[LocationHit]:
        self.queries.append(query)
        key = query.lower().strip()
        if key in self.failing:
            raise ProviderError("fake-geocoder", f"cannot geocode {query}")
        if key not in self.known:
            return []
        lat, lon = self.known[key]
        return [
            LocationHit(name=query, full_name=query, latitude=lat, longitude=lon,
                        category=LocationCategory.LANDMARK),
            LocationHit(name=f"{query} Station", latitude=lat + 0.01, longitude=lon + 0.01),
        ]


class FailingWeatherClient:
    """Weather provider that is always down"""

    def __init__(self):
        self.calls = 0

    async def get_weather(self, location: str, days: int = 3, today: Optional[date] = None):
        self.calls += 1
        raise ProviderError("weatherapi", "service unavailable")


class FakeLLM:
    """Stands in for GeminiClient; returns canned replies in order"""

    def __init__(self, *replies: str, error: Optional[Exception] = None):
        self.replies = list(replies)
        self.error = error
        self.calls = []
        self.enabled = error is None

    async def chat(self, system_instruction, history, temperature=0.7, max_output_tokens=1024):
        self.calls.append((system_instruction, list(history)))
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class FakeTravelProvider:
    """Amadeus stand-in: static codes, searches fail unless told otherwise"""

    def __init__(self, codes: Optional[Dict[str, str]] = None, fail: bool = True):
        self.codes = codes if codes is not None else {"london": "LON", "tokyo": "TYO", "paris": "PAR"}
        self.fail = fail
        self.flight_calls = 0
        self.hotel_calls = 0
        self.hotel_params = None

    async def get_location_code(self, city_name: str) -> Optional[str]:
        return self.codes.get(city_name.lower().strip())

    async def search_flights(self, **params):
        self.flight_calls += 1
        if self.fail:
            raise ProviderError("amadeus", "API not enabled")
        return []

    async def search_hotels(self, **params):
        self.hotel_calls += 1
        self.hotel_params = params
        if self.fail:
            raise ProviderError("amadeus", "API not enabled")
        return []


@pytest.fixture
def storage():
    return ChatStorage(Database("sqlite://"))


@pytest.fixture
def synthetic():
    return SyntheticDataProvider()


@pytest.fixture
def geocoder():
    return FakeGeocoder()
