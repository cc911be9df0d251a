"""
Amadeus API Client - flight offers, hotel offers and IATA city codes
"""

import os
import re
import asyncio
import logging
from typing import Optional, List, Dict, Any
from datetime import date, timedelta
from amadeus import Client, ResponseError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tripchat.data_sources.errors import DateValidationError, ProviderError
from tripchat.models.schemas import FlightOffer, HotelOffer, new_id

logger = logging.getLogger(__name__)


AIRLINE_NAMES = {
    'SQ': 'Singapore Airlines', 'MH': 'Malaysia Airlines',
    'TG': 'Thai Airways', 'CX': 'Cathay Pacific',
    'NH': 'ANA', 'JL': 'Japan Airlines',
    'KE': 'Korean Air', 'EK': 'Emirates',
    'QR': 'Qatar Airways', 'AF': 'Air France',
    'BA': 'British Airways', 'LH': 'Lufthansa',
    'UA': 'United Airlines', 'AA': 'American Airlines',
    'DL': 'Delta Air Lines', 'IB': 'Iberia',
    'AI': 'Air India', '6E': 'IndiGo',
    'TK': 'Turkish Airlines', 'KL': 'KLM',
}

CITY_CODES = {
    # Asia
    'tokyo': 'TYO', 'kyoto': 'OSA', 'osaka': 'OSA',
    'seoul': 'SEL', 'hong kong': 'HKG', 'taipei': 'TPE',
    'beijing': 'BJS', 'shanghai': 'SHA', 'singapore': 'SIN',
    'bangkok': 'BKK', 'kuala lumpur': 'KUL', 'bali': 'DPS',
    'jakarta': 'JKT', 'manila': 'MNL', 'hanoi': 'HAN',
    'mumbai': 'BOM', 'delhi': 'DEL', 'new delhi': 'DEL',
    'bangalore': 'BLR', 'chennai': 'MAA', 'goa': 'GOI',

    # Europe
    'paris': 'PAR', 'london': 'LON', 'rome': 'ROM',
    'barcelona': 'BCN', 'madrid': 'MAD', 'lisbon': 'LIS',
    'amsterdam': 'AMS', 'berlin': 'BER', 'frankfurt': 'FRA',
    'istanbul': 'IST', 'athens': 'ATH', 'prague': 'PRG',

    # Americas
    'new york': 'NYC', 'los angeles': 'LAX', 'san francisco': 'SFO',
    'chicago': 'CHI', 'miami': 'MIA', 'toronto': 'YTO',
    'mexico city': 'MEX',

    # Middle East / Oceania
    'dubai': 'DXB', 'doha': 'DOH', 'abu dhabi': 'AUH',
    'sydney': 'SYD', 'melbourne': 'MEL', 'auckland': 'AKL',
}


def format_duration(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m"


class AmadeusTravelClient:
    """Client for Amadeus Self-Service flight and hotel APIs"""

    # Date validation constants
    MIN_DAYS_ADVANCE = 0
    MAX_DAYS_ADVANCE = 330

    def __init__(self, api_key: Optional[str] = None, api_secret: Optional[str] = None):
        """Initialize Amadeus client from credentials or environment"""

        self.api_key = api_key or os.getenv("AMADEUS_API_KEY")
        self.api_secret = api_secret or os.getenv("AMADEUS_API_SECRET")
        self.client = None
        self.enabled = False

        if not self.api_key or not self.api_secret:
            logger.warning("Amadeus API credentials not found")
            return

        try:
            self.client = Client(
                client_id=self.api_key,
                client_secret=self.api_secret,
                hostname=os.getenv("AMADEUS_HOSTNAME", "test")
            )
            self.enabled = True
            logger.info("✅ Amadeus client initialized")
        except ValueError as e:
            logger.error(f"Failed to initialize Amadeus: {e}")

    def validate_date(self, travel_date: date, date_type: str = "departure", today: Optional[date] = None):
        """Raise DateValidationError when a date is outside the booking window"""

        today = today or date.today()
        days_from_now = (travel_date - today).days

        if days_from_now < self.MIN_DAYS_ADVANCE:
            raise DateValidationError(
                f"Invalid {date_type} date: {travel_date} is in the past. "
                f"Please select a date starting from {today + timedelta(days=self.MIN_DAYS_ADVANCE)}."
            )

        if days_from_now > self.MAX_DAYS_ADVANCE:
            raise DateValidationError(
                f"Invalid {date_type} date: {travel_date} is too far in the future. "
                f"Maximum booking window is {self.MAX_DAYS_ADVANCE} days."
            )

    def _require_enabled(self):
        if not self.enabled:
            raise ProviderError("amadeus", "API not enabled")

    @retry(
        retry=retry_if_exception_type(ResponseError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True
    )
    async def _call(self, endpoint, **params) -> Any:
        """Run a blocking SDK call off the event loop"""
        response = await asyncio.to_thread(endpoint.get, **params)
        return response.data if hasattr(response, 'data') else []

    async def get_location_code(self, city_name: str) -> Optional[str]:
        """
        Get IATA city code using 2-tier strategy:
        1. Static map (fastest)
        2. Amadeus reference-data API
        """

        # TIER 1: Static map
        code = self._get_city_code_fallback(city_name)
        if code:
            logger.info(f"✅ [Tier 1] Static map: {city_name} → {code}")
            return code

        # TIER 2: Amadeus API
        if self.enabled:
            try:
                logger.info(f"🔍 [Tier 2] Trying Amadeus API for: {city_name}")
                locations = await self._call(
                    self.client.reference_data.locations,
                    keyword=city_name,
                    subType='CITY'
                )
                if locations:
                    code = locations[0].get('iataCode')
                    logger.info(f"✅ [Tier 2] Amadeus API: {city_name} → {code}")
                    return code
            except ResponseError as error:
                logger.error(f"❌ Amadeus location lookup failed: {error}")

        logger.warning(f"⚠️  No city code found for: {city_name}")
        return None

    def _get_city_code_fallback(self, city_name: str) -> Optional[str]:
        """Static map for common cities"""

        city_lower = city_name.lower().strip()

        code = CITY_CODES.get(city_lower)
        if code:
            return code

        # "Tokyo, Japan" style names
        for city, code in CITY_CODES.items():
            if re.search(rf"\b{re.escape(city)}\b", city_lower):
                logger.info(f"Partial match: {city_name} → {code} (matched '{city}')")
                return code

        return None

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
        """
        Search round-trip flight offers priced in USD

        Raises:
            ProviderError: API disabled or request rejected
            DateValidationError: dates outside the booking window
        """

        self._require_enabled()

        self.validate_date(departure_date, "departure")
        if return_date:
            self.validate_date(return_date, "return")
            if return_date <= departure_date:
                raise DateValidationError(
                    f"Return date ({return_date}) must be after departure date ({departure_date})"
                )

        params = {
            'originLocationCode': origin_code,
            'destinationLocationCode': destination_code,
            'departureDate': departure_date.isoformat(),
            'adults': adults,
            'currencyCode': 'USD',
            'max': max_results
        }
        if return_date:
            params['returnDate'] = return_date.isoformat()
        if max_price:
            params['maxPrice'] = int(max_price)

        logger.info(f"🔍 Searching flights: {origin_code} → {destination_code} on {params['departureDate']}")

        try:
            offers = await self._call(self.client.shopping.flight_offers_search, **params)
        except ResponseError as error:
            logger.error(f"❌ Amadeus flight search failed: {error}")
            raise ProviderError("amadeus", f"flight search failed: {error}") from error

        parsed = [self._parse_flight_offer(o) for o in offers]
        parsed = [p for p in parsed if p is not None]

        logger.info(f"✅ Found {len(parsed)} flight offers from Amadeus API")
        return parsed

    async def search_hotels(
        self,
        city_code: str,
        check_in: date,
        check_out: date,
        adults: int = 1,
        rooms: int = 1,
        max_hotels: int = 20
    ) -> List[HotelOffer]:
        """
        Search hotel offers in a city priced in USD

        Raises:
            ProviderError: API disabled or request rejected
        """

        self._require_enabled()

        logger.info(f"🏨 Searching hotels in {city_code}: {check_in} → {check_out}")

        try:
            hotels = await self._call(
                self.client.reference_data.locations.hotels.by_city,
                cityCode=city_code
            )
            hotel_ids = [h['hotelId'] for h in hotels[:max_hotels] if h.get('hotelId')]
            if not hotel_ids:
                return []

            offers = await self._call(
                self.client.shopping.hotel_offers_search,
                hotelIds=','.join(hotel_ids),
                checkInDate=check_in.isoformat(),
                checkOutDate=check_out.isoformat(),
                adults=adults,
                roomQuantity=rooms,
                currency='USD',
                bestRateOnly=True
            )
        except ResponseError as error:
            logger.error(f"❌ Amadeus hotel search failed: {error}")
            raise ProviderError("amadeus", f"hotel search failed: {error}") from error

        parsed = [self._parse_hotel_offer(o) for o in offers]
        parsed = [p for p in parsed if p is not None]

        logger.info(f"✅ Found {len(parsed)} hotel offers from Amadeus API")
        return parsed

    def _parse_flight_offer(self, offer: Dict) -> Optional[FlightOffer]:
        """Parse Amadeus flight offer to our format"""

        itineraries = offer.get('itineraries', [])
        if not itineraries or not itineraries[0].get('segments'):
            return None

        segments = itineraries[0]['segments']
        first_segment = segments[0]
        last_segment = segments[-1]
        carrier_code = first_segment.get('carrierCode', '')

        try:
            return FlightOffer(
                id=str(offer.get('id') or new_id()),
                airline=AIRLINE_NAMES.get(carrier_code, carrier_code),
                airline_code=carrier_code,
                flight_number=f"{carrier_code}{first_segment.get('number', '')}",
                departure_airport=first_segment.get('departure', {}).get('iataCode', ''),
                arrival_airport=last_segment.get('arrival', {}).get('iataCode', ''),
                departure_time=first_segment.get('departure', {}).get('at', ''),
                arrival_time=last_segment.get('arrival', {}).get('at', ''),
                duration=format_duration(self._parse_duration(itineraries[0].get('duration', 'PT0M'))),
                stops=len(segments) - 1,
                price=float(offer.get('price', {}).get('total', 0)),
                currency=offer.get('price', {}).get('currency', 'USD'),
                source='amadeus_api',
            )
        except ValueError as e:
            logger.error(f"Failed to parse flight offer: {e}")
            return None

    def _parse_hotel_offer(self, entry: Dict) -> Optional[HotelOffer]:
        """Parse Amadeus hotel offer to our format"""

        hotel = entry.get('hotel', {})
        offers = entry.get('offers', [])
        if not hotel.get('name') or not offers:
            return None

        offer = offers[0]
        rating = hotel.get('rating')

        try:
            return HotelOffer(
                name=hotel['name'].title(),
                chain=hotel.get('chainCode'),
                rating=float(rating) if rating else None,
                price=float(offer.get('price', {}).get('total', 0)),
                currency=offer.get('price', {}).get('currency', 'USD'),
                check_in=offer.get('checkInDate'),
                check_out=offer.get('checkOutDate'),
                source='amadeus_api',
            )
        except ValueError as e:
            logger.error(f"Failed to parse hotel offer: {e}")
            return None

    def _parse_duration(self, duration_str: str) -> int:
        """Parse ISO 8601 duration to minutes"""

        hours = re.search(r'(\d+)H', duration_str)
        minutes = re.search(r'(\d+)M', duration_str)
        return (int(hours.group(1)) * 60 if hours else 0) + (int(minutes.group(1)) if minutes else 0)


# Singleton
_amadeus_client = None

def get_amadeus_client() -> AmadeusTravelClient:
    """Get singleton AmadeusTravelClient instance"""
    global _amadeus_client
    if _amadeus_client is None:
        _amadeus_client = AmadeusTravelClient()
    return _amadeus_client
