"""
TravelEnricher - Attaches flight and hotel offers to a complete travel session
Live Amadeus data first, synthetic data when the provider fails or has nothing
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from amadeus import ResponseError

from tripchat.data_sources.amadeus_client import AmadeusTravelClient, get_amadeus_client
from tripchat.data_sources.errors import DateValidationError, ProviderError
from tripchat.data_sources.synthetic_data import SyntheticDataProvider, get_synthetic_provider
from tripchat.models.schemas import FlightOffer, HotelOffer, TravelSession

logger = logging.getLogger(__name__)

PROVIDER_FAILURES = (ProviderError, DateValidationError, ResponseError)


class TravelEnricher:
    """Fetch flights and hotels for a session"""

    def __init__(
        self,
        provider: Optional[AmadeusTravelClient] = None,
        synthetic: Optional[SyntheticDataProvider] = None
    ):
        self.provider = provider or get_amadeus_client()
        self.synthetic = synthetic or get_synthetic_provider()

    async def enrich(self, session: TravelSession) -> Tuple[List[FlightOffer], List[HotelOffer]]:
        """
        Look up offers for the session's trip

        Returns empty lists when the session is incomplete or a city code
        cannot be resolved. Never raises for provider problems.
        """

        if not session.is_ready_for_enrichment():
            logger.debug("Session incomplete - skipping enrichment")
            return [], []

        origin_code, destination_code = await asyncio.gather(
            self._location_code(session.origin),
            self._location_code(session.destination),
        )

        flights_task = self._flights(session, origin_code, destination_code)
        hotels_task = self._hotels(session, destination_code)
        flights, hotels = await asyncio.gather(flights_task, hotels_task)

        logger.info(f"✈️  Enrichment: {len(flights)} flights, {len(hotels)} hotels")
        return flights, hotels

    async def _location_code(self, city_name: str) -> Optional[str]:
        try:
            return await self.provider.get_location_code(city_name)
        except Exception as e:
            logger.warning(f"⚠️  Code lookup failed for {city_name}: {e}")
            return None

    async def _flights(
        self,
        session: TravelSession,
        origin_code: Optional[str],
        destination_code: Optional[str]
    ) -> List[FlightOffer]:

        if not origin_code or not destination_code:
            logger.warning(f"⚠️  Skipping flights: missing code for {session.origin} → {session.destination}")
            return []

        params = dict(
            origin_code=origin_code,
            destination_code=destination_code,
            departure_date=session.departure_date,
            return_date=session.return_date,
            adults=session.travelers,
            max_price=session.budget,
        )

        try:
            offers = await self.provider.search_flights(**params)
        except PROVIDER_FAILURES as e:
            logger.warning(f"⚠️  Flight provider failed ({e}), using synthetic flights")
            return await self.synthetic.search_flights(**params)

        if not offers:
            logger.info("📭 No live flights, using synthetic flights")
            return await self.synthetic.search_flights(**params)
        return offers

    async def _hotels(self, session: TravelSession, city_code: Optional[str]) -> List[HotelOffer]:

        if not city_code:
            logger.warning(f"⚠️  Skipping hotels: missing code for {session.destination}")
            return []

        params = dict(
            city_code=city_code,
            check_in=session.departure_date,
            check_out=session.return_date,
            adults=session.travelers,
            rooms=max(1, (session.travelers + 1) // 2),
        )

        try:
            offers = await self.provider.search_hotels(**params)
        except PROVIDER_FAILURES as e:
            logger.warning(f"⚠️  Hotel provider failed ({e}), using synthetic hotels")
            return await self.synthetic.search_hotels(**params)

        if not offers:
            logger.info("📭 No live hotels, using synthetic hotels")
            return await self.synthetic.search_hotels(**params)
        return offers
