"""
SyntheticDataProvider - Plausible stand-in data when live providers fail

Mirrors the live clients' method names so callers can swap it in directly.
Output is seeded from the request parameters: the same query always yields
the same offers.
"""

import random
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from tripchat.data_sources.weather_client import format_celsius, season_for
from tripchat.models.schemas import FlightOffer, HotelOffer, TemperatureRange, WeatherSnapshot

logger = logging.getLogger(__name__)


SYNTHETIC_AIRLINES = [
    ("AA", "American Airlines"), ("DL", "Delta Air Lines"),
    ("UA", "United Airlines"), ("BA", "British Airways"),
    ("LH", "Lufthansa"), ("AF", "Air France"),
    ("EK", "Emirates"), ("SQ", "Singapore Airlines"),
    ("JL", "Japan Airlines"), ("QR", "Qatar Airways"),
]

HOTEL_CHAINS = ["Marriott", "Hilton", "Hyatt", "InterContinental", "Sheraton", "Novotel", "Ibis"]
HOTEL_STYLES = ["Grand", "Central", "Plaza", "Garden", "Riverside", "Boutique"]
HOTEL_AMENITIES = [
    "Free WiFi", "Breakfast included", "Pool", "Fitness center",
    "Spa", "Airport shuttle", "Restaurant", "Bar", "Parking",
]
NEIGHBORHOODS = ["City Center", "Old Town", "Waterfront", "Business District", "Arts Quarter"]

# Season -> (average, min, max, conditions) in °C
CITY_CLIMATES: Dict[str, Dict[str, Tuple[float, float, float, str]]] = {
    "tokyo": {
        "Winter": (6.0, 1.0, 11.0, "Clear and cold"),
        "Spring": (15.0, 9.0, 20.0, "Mild with cherry blossoms"),
        "Summer": (27.0, 23.0, 32.0, "Hot and humid"),
        "Fall": (18.0, 13.0, 23.0, "Pleasant and sunny"),
    },
    "paris": {
        "Winter": (5.0, 2.0, 8.0, "Cloudy and cold"),
        "Spring": (12.0, 7.0, 17.0, "Mild with occasional rain"),
        "Summer": (20.0, 15.0, 25.0, "Warm and sunny"),
        "Fall": (12.0, 8.0, 16.0, "Cool and rainy"),
    },
    "new york": {
        "Winter": (1.0, -3.0, 5.0, "Cold with snow"),
        "Spring": (13.0, 7.0, 18.0, "Mild and breezy"),
        "Summer": (25.0, 20.0, 30.0, "Hot and humid"),
        "Fall": (14.0, 9.0, 19.0, "Crisp and clear"),
    },
    "london": {
        "Winter": (5.0, 2.0, 8.0, "Overcast and drizzly"),
        "Spring": (11.0, 6.0, 15.0, "Mild with showers"),
        "Summer": (18.0, 13.0, 23.0, "Mild and partly cloudy"),
        "Fall": (12.0, 8.0, 15.0, "Cool and rainy"),
    },
    "barcelona": {
        "Winter": (10.0, 6.0, 14.0, "Mild and sunny"),
        "Spring": (15.0, 11.0, 19.0, "Warm and pleasant"),
        "Summer": (25.0, 21.0, 29.0, "Hot and sunny"),
        "Fall": (18.0, 14.0, 22.0, "Warm with some rain"),
    },
}

GENERIC_CLIMATE = {
    "Winter": (8.0, 3.0, 13.0, "Cool"),
    "Spring": (16.0, 10.0, 21.0, "Mild"),
    "Summer": (26.0, 20.0, 31.0, "Warm and sunny"),
    "Fall": (17.0, 11.0, 22.0, "Mild"),
}

SEASON_ICONS = {"Spring": "🌸", "Summer": "🌞", "Fall": "🍂", "Winter": "❄️"}


def weather_icon(conditions: str, season: Optional[str] = None) -> str:
    """Emoji for a conditions string, falling back to the season"""

    text = conditions.lower()
    if "rain" in text or "storm" in text or "drizzl" in text or "shower" in text:
        return "🌧️"
    if "snow" in text:
        return "❄️"
    if "cloud" in text or "overcast" in text:
        return "☁️"
    if "sun" in text or "clear" in text:
        return "☀️"
    if season:
        return SEASON_ICONS.get(season, "🌤️")
    return "🌤️"


class SyntheticDataProvider:
    """Deterministic generator for flights, hotels and weather"""

    def __init__(self):
        logger.info("SyntheticDataProvider initialized")

    @staticmethod
    def _rng(*parts) -> random.Random:
        return random.Random("|".join(str(p) for p in parts))

    async def search_flights(
        self,
        origin_code: str,
        destination_code: str,
        departure_date: date,
        return_date: Optional[date] = None,
        adults: int = 1,
        max_price: Optional[float] = None,
        max_results: int = 5
    ) -> List[FlightOffer]:
        """Fabricate flight offers for a route"""

        rng = self._rng(origin_code, destination_code, departure_date, return_date, adults)
        offers = []

        for _ in range(max_results):
            code, airline = rng.choice(SYNTHETIC_AIRLINES)
            stops = rng.choice([0, 0, 1, 1, 2])
            minutes = rng.randint(90, 840) + stops * rng.randint(60, 180)
            departure = datetime.combine(departure_date, datetime.min.time()) + timedelta(
                hours=rng.randint(5, 22), minutes=rng.choice([0, 15, 30, 45])
            )
            arrival = departure + timedelta(minutes=minutes)

            price = round(rng.uniform(180, 1400) * adults, 2)
            if max_price and price > max_price:
                price = round(rng.uniform(0.6, 0.95) * max_price, 2)

            offers.append(FlightOffer(
                airline=airline,
                airline_code=code,
                flight_number=f"{code}{rng.randint(100, 9999)}",
                departure_airport=origin_code,
                arrival_airport=destination_code,
                departure_time=departure.isoformat(timespec="minutes"),
                arrival_time=arrival.isoformat(timespec="minutes"),
                duration=f"{minutes // 60}h {minutes % 60}m",
                stops=stops,
                price=price,
                currency="USD",
                source="synthetic",
            ))

        offers.sort(key=lambda o: o.price)
        logger.info(f"🎲 Generated {len(offers)} synthetic flights {origin_code} → {destination_code}")
        return offers

    async def search_hotels(
        self,
        city_code: str,
        check_in: date,
        check_out: date,
        adults: int = 1,
        rooms: int = 1,
        max_results: int = 5
    ) -> List[HotelOffer]:
        """Fabricate hotel offers for a city"""

        rng = self._rng(city_code, check_in, check_out, adults, rooms)
        nights = max((check_out - check_in).days, 1)
        hotels = []

        for _ in range(max_results):
            chain = rng.choice(HOTEL_CHAINS)
            nightly = rng.uniform(60, 420)

            hotels.append(HotelOffer(
                name=f"{chain} {rng.choice(HOTEL_STYLES)} {city_code}",
                chain=chain,
                rating=round(rng.uniform(3.0, 5.0), 1),
                price=round(nightly * nights * rooms, 2),
                currency="USD",
                amenities=rng.sample(HOTEL_AMENITIES, k=rng.randint(3, 6)),
                neighborhood=rng.choice(NEIGHBORHOODS),
                check_in=check_in,
                check_out=check_out,
                source="synthetic",
            ))

        hotels.sort(key=lambda h: h.price)
        logger.info(f"🎲 Generated {len(hotels)} synthetic hotels in {city_code}")
        return hotels

    async def get_weather(self, location: str, days: int = 3, today: Optional[date] = None) -> WeatherSnapshot:
        """Seasonal weather from fixed climate tables (Northern Hemisphere months)"""

        season = season_for((today or date.today()).month)
        key = location.lower().strip()
        climate = next(
            (table for city, table in CITY_CLIMATES.items() if city in key),
            GENERIC_CLIMATE
        )
        average, low, high, conditions = climate[season]

        logger.info(f"🎲 Synthetic {season.lower()} weather for {location}")

        return WeatherSnapshot(
            location=location,
            temperature=TemperatureRange(
                average=format_celsius(average),
                min=format_celsius(low),
                max=format_celsius(high),
            ),
            conditions=conditions,
            season=season,
            icon=weather_icon(conditions, season),
            source="synthetic",
        )


# Singleton
_synthetic_provider = None

def get_synthetic_provider() -> SyntheticDataProvider:
    """Get singleton SyntheticDataProvider instance"""
    global _synthetic_provider
    if _synthetic_provider is None:
        _synthetic_provider = SyntheticDataProvider()
    return _synthetic_provider
