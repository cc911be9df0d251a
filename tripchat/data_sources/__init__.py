"""
Data Sources Layer - live providers with synthetic fallback
Nominatim (geocoding), WeatherAPI.com (forecasts), Amadeus (flights/hotels)
"""

from .errors import ProviderError, DateValidationError
from .nominatim_client import NominatimClient, get_nominatim_client
from .weather_client import WeatherClient, get_weather_client
from .amadeus_client import AmadeusTravelClient, get_amadeus_client
from .synthetic_data import SyntheticDataProvider, get_synthetic_provider
from .enrichment import TravelEnricher

__all__ = [
    "ProviderError",
    "DateValidationError",
    "NominatimClient",
    "get_nominatim_client",
    "WeatherClient",
    "get_weather_client",
    "AmadeusTravelClient",
    "get_amadeus_client",
    "SyntheticDataProvider",
    "get_synthetic_provider",
    "TravelEnricher",
]
