"""
Unit tests for flight/hotel enrichment and the Amadeus client helpers.
"""

import asyncio
from datetime import date, timedelta

import pytest

from tests.conftest import FakeTravelProvider
from tripchat.data_sources.amadeus_client import AmadeusTravelClient, format_duration
from tripchat.data_sources.enrichment import TravelEnricher
from tripchat.data_sources.errors import DateValidationError, ProviderError
from tripchat.models.schemas import TravelSession

DEPARTURE = date.today() + timedelta(days=30)


def ready_session(**overrides) -> TravelSession:
    fields = dict(
        origin="London",
        destination="Tokyo",
        departure_date=DEPARTURE,
        return_date=DEPARTURE + timedelta(days=5),
        budget=500.0,
        travelers=3,
    )
    fields.update(overrides)
    return TravelSession(**fields)


class TestTravelEnricher:
    """Tests for TravelEnricher.enrich."""

    def test_incomplete_session_skipped(self, synthetic):
        """Nothing is fetched until origin, destination and dates are known."""
        provider = FakeTravelProvider()
        flights, hotels = asyncio.run(
            TravelEnricher(provider, synthetic).enrich(TravelSession(destination="Tokyo"))
        )
        assert (flights, hotels) == ([], [])
        assert provider.flight_calls == provider.hotel_calls == 0

    def test_provider_failure_uses_synthetic(self, synthetic):
        """Provider errors switch both searches to synthetic data."""
        provider = FakeTravelProvider(fail=True)
        flights, hotels = asyncio.run(TravelEnricher(provider, synthetic).enrich(ready_session()))

        assert provider.flight_calls == 1
        assert provider.hotel_calls == 1
        assert flights and all(f.source == "synthetic" for f in flights)
        assert hotels and all(h.source == "synthetic" for h in hotels)
        assert flights[0].departure_airport == "LON"
        assert flights[0].arrival_airport == "TYO"
        assert all(f.price <= 500.0 for f in flights)
        assert hotels[0].check_in == DEPARTURE

    def test_empty_results_use_synthetic(self, synthetic):
        """A provider with no offers is treated like one that is down."""
        provider = FakeTravelProvider(fail=False)
        flights, hotels = asyncio.run(TravelEnricher(provider, synthetic).enrich(ready_session()))

        assert provider.flight_calls == provider.hotel_calls == 1
        assert flights and all(f.source == "synthetic" for f in flights)
        assert hotels and all(h.source == "synthetic" for h in hotels)

    def test_code_lookup_error_skips_searches(self, synthetic):
        """A crashing code lookup counts as a missing code."""

        class BrokenLookup(FakeTravelProvider):
            async def get_location_code(self, city_name):
                raise ConnectionError("connection reset")

        provider = BrokenLookup()
        flights, hotels = asyncio.run(TravelEnricher(provider, synthetic).enrich(ready_session()))

        assert (flights, hotels) == ([], [])
        assert provider.flight_calls == provider.hotel_calls == 0

    def test_rooms_from_travelers(self, synthetic):
        """Two travelers per room, rounded up."""
        provider = FakeTravelProvider(fail=False)
        asyncio.run(TravelEnricher(provider, synthetic).enrich(ready_session(travelers=3)))
        assert provider.hotel_params["rooms"] == 2
        assert provider.hotel_params["adults"] == 3

    def test_missing_code_skips_search(self, synthetic):
        """An unresolvable destination skips flights and hotels."""
        provider = FakeTravelProvider(codes={"london": "LON"})
        flights, hotels = asyncio.run(
            TravelEnricher(provider, synthetic).enrich(ready_session(destination="Atlantis"))
        )
        assert (flights, hotels) == ([], [])
        assert provider.flight_calls == provider.hotel_calls == 0

    def test_missing_origin_code_keeps_hotels(self, synthetic):
        """Hotels only need the destination code."""
        provider = FakeTravelProvider(codes={"tokyo": "TYO"})
        flights, hotels = asyncio.run(TravelEnricher(provider, synthetic).enrich(ready_session()))
        assert flights == []
        assert hotels


class TestSyntheticOffers:
    """Tests for deterministic synthetic offers."""

    def test_same_query_same_offers(self, synthetic):
        """Seeded generation repeats for identical parameters."""
        params = dict(origin_code="LON", destination_code="TYO", departure_date=DEPARTURE)
        first = asyncio.run(synthetic.search_flights(**params))
        second = asyncio.run(synthetic.search_flights(**params))
        assert [(f.airline, f.price) for f in first] == [(f.airline, f.price) for f in second]

    def test_hotel_price_covers_stay(self, synthetic):
        """Hotels are priced for the whole stay and sorted cheapest first."""
        hotels = asyncio.run(synthetic.search_hotels("PAR", DEPARTURE, DEPARTURE + timedelta(days=2)))
        prices = [h.price for h in hotels]
        assert prices == sorted(prices)
        assert all(h.check_out == DEPARTURE + timedelta(days=2) for h in hotels)


class TestAmadeusClient:
    """Tests for AmadeusTravelClient that need no credentials."""

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.delenv("AMADEUS_API_KEY", raising=False)
        monkeypatch.delenv("AMADEUS_API_SECRET", raising=False)
        return AmadeusTravelClient()

    def test_disabled_without_credentials(self, client):
        """Searches raise ProviderError when the client is disabled."""
        assert client.enabled is False
        with pytest.raises(ProviderError):
            asyncio.run(client.search_flights("LON", "TYO", DEPARTURE))
        with pytest.raises(ProviderError):
            asyncio.run(client.search_hotels("TYO", DEPARTURE, DEPARTURE + timedelta(days=2)))

    def test_static_city_codes(self, client):
        """Exact and partial city names resolve from the static map."""
        assert asyncio.run(client.get_location_code("Tokyo")) == "TYO"
        assert asyncio.run(client.get_location_code("New York, USA")) == "NYC"
        assert asyncio.run(client.get_location_code("Atlantis")) is None

    def test_validate_date(self, client):
        """Past dates and dates beyond the booking window are rejected."""
        today = date(2025, 1, 10)
        client.validate_date(date(2025, 2, 1), today=today)
        with pytest.raises(DateValidationError):
            client.validate_date(date(2025, 1, 1), today=today)
        with pytest.raises(DateValidationError):
            client.validate_date(date(2026, 6, 1), today=today)

    def test_durations(self, client):
        """ISO 8601 durations become '7h 35m'."""
        assert client._parse_duration("PT7H35M") == 455
        assert format_duration(455) == "7h 35m"
        assert client._parse_duration("PT45M") == 45

    def test_parse_flight_offer(self, client):
        """Amadeus offers map onto FlightOffer."""
        offer = {
            "id": "1",
            "itineraries": [{
                "duration": "PT13H5M",
                "segments": [
                    {"carrierCode": "JL", "number": "44",
                     "departure": {"iataCode": "LHR", "at": "2025-03-01T11:00"},
                     "arrival": {"iataCode": "HND", "at": "2025-03-02T07:05"}},
                ],
            }],
            "price": {"total": "912.40", "currency": "USD"},
        }
        flight = client._parse_flight_offer(offer)
        assert flight.airline == "Japan Airlines"
        assert flight.flight_number == "JL44"
        assert flight.duration == "13h 5m"
        assert flight.stops == 0
        assert flight.price == 912.40
