"""
Pydantic schemas for TripChat
Travel session state and the structured entities mined from assistant replies
"""

import uuid
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Generate a fresh entity id"""
    return uuid.uuid4().hex


# ============================================================================
# LOCATION MODELS
# ============================================================================

class LocationCategory(str, Enum):
    """Coarse place categories used by the map view"""
    FOOD = "food"
    ATTRACTION = "attraction"
    NATURE = "nature"
    LANDMARK = "landmark"
    HOTEL = "hotel"


class LocationHit(BaseModel):
    """A geocoded place mentioned in a reply"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    full_name: Optional[str] = None
    latitude: float
    longitude: float
    category: LocationCategory = LocationCategory.LANDMARK
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


# ============================================================================
# ITINERARY MODELS
# ============================================================================

class Activity(BaseModel):
    """Single timed activity inside a day"""
    model_config = ConfigDict(frozen=True)

    time: str = Field(..., description="e.g. '9:00 AM'")
    description: str


class ItineraryDay(BaseModel):
    """One day of an itinerary"""
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1)
    title: str
    activities: List[Activity] = Field(default_factory=list)


class ItineraryDraft(BaseModel):
    """Day-by-day plan recovered from a reply"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    title: str
    destination: str
    days: List[ItineraryDay] = Field(default_factory=list)


# ============================================================================
# WEATHER MODELS
# ============================================================================

class TemperatureRange(BaseModel):
    """Formatted temperatures, e.g. '21.5°C'"""
    model_config = ConfigDict(frozen=True)

    average: str
    min: str
    max: str


class DailyForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    max_temp: str
    min_temp: str
    condition: str
    icon: str


class WeatherSnapshot(BaseModel):
    """Weather summary for a destination"""
    model_config = ConfigDict(frozen=True)

    location: str
    temperature: TemperatureRange
    conditions: str
    season: Optional[str] = None
    icon: str
    forecasts: List[DailyForecast] = Field(default_factory=list)
    source: str = Field(default="live", pattern="^(live|synthetic)$")


# ============================================================================
# LOCAL FOOD / ATTRACTION MODELS
# ============================================================================

class FoodItem(BaseModel):
    """Local dish recommendation"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    price: str = "Varies"
    description: str = ""
    location: str = ""
    image_url: str


class AttractionItem(BaseModel):
    """Local attraction recommendation"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    price: str = "Varies"
    description: str = ""
    location: str = ""
    duration: Optional[str] = None
    image_url: str


# ============================================================================
# FLIGHT / HOTEL MODELS
# ============================================================================

class FlightOffer(BaseModel):
    """Flight offer, live or synthetic"""
    id: str = Field(default_factory=new_id)
    airline: str
    airline_code: str
    flight_number: str
    departure_airport: str
    arrival_airport: str
    departure_time: str
    arrival_time: str
    duration: str = Field(..., description="e.g. '7h 35m'")
    stops: int = 0
    price: float
    currency: str = "USD"
    source: str = "amadeus_api"


class HotelOffer(BaseModel):
    """Hotel offer, live or synthetic"""
    id: str = Field(default_factory=new_id)
    name: str
    chain: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    price: float
    currency: str = "USD"
    amenities: List[str] = Field(default_factory=list)
    neighborhood: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    source: str = "amadeus_api"


# ============================================================================
# TRAVEL SESSION
# ============================================================================

class TravelSession(BaseModel):
    """Trip parameters accumulated across turns of one conversation"""
    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_date: Optional[date] = None
    return_date: Optional[date] = None
    budget: Optional[float] = Field(None, ge=0, description="Always in USD")
    currency: str = "USD"
    travelers: int = Field(default=1, ge=1)

    # Cached results
    flight_options: List[FlightOffer] = Field(default_factory=list)
    hotel_options: List[HotelOffer] = Field(default_factory=list)
    weather_info: Optional[WeatherSnapshot] = None

    @field_validator("return_date")
    @classmethod
    def return_after_departure(cls, v, info):
        departure = info.data.get("departure_date")
        if v is not None and departure is not None and v < departure:
            raise ValueError("return_date must not be before departure_date")
        return v

    def apply(self, changes: Dict[str, Any]) -> List[str]:
        """Merge a partial update, returning the names of fields that changed"""
        changed = []
        for field, value in changes.items():
            if getattr(self, field) != value:
                setattr(self, field, value)
                changed.append(field)
        return changed

    def is_ready_for_enrichment(self) -> bool:
        return bool(
            self.origin
            and self.destination
            and self.departure_date
            and self.return_date
        )

    def trip_days(self) -> Optional[int]:
        if self.departure_date and self.return_date:
            return (self.return_date - self.departure_date).days
        return None

