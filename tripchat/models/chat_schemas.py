"""
Conversation System Schemas
Pydantic models for the chat turn pipeline and HTTP surface

Author: TripChat Team
Date: 2024
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from tripchat.models.schemas import (
    AttractionItem,
    FlightOffer,
    FoodItem,
    HotelOffer,
    ItineraryDraft,
    LocationHit,
    TravelSession,
    WeatherSnapshot,
)


# ============================================================================
# HISTORY MODELS
# ============================================================================

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationEntry(BaseModel):
    """Single entry in the model's context window"""
    role: Role
    content: str


class ConversationHistory(BaseModel):
    """
    Bounded message window sent to the model.

    Oldest entries are evicted first once `max_entries` is exceeded. Eviction
    works on single entries, so the window can start with an assistant reply.
    """
    entries: List[ConversationEntry] = Field(default_factory=list)
    max_entries: int = Field(default=10, ge=1)

    def add(self, role: Role, content: str) -> ConversationEntry:
        entry = ConversationEntry(role=role, content=content)
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            self.entries = self.entries[-self.max_entries:]
        return entry

    def clear(self):
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)


# ============================================================================
# TURN RESULT MODELS
# ============================================================================

class MessageOut(BaseModel):
    """Persisted chat message as returned to the client"""
    id: int
    role: Role
    content: str
    timestamp: datetime


class ExtractionResult(BaseModel):
    """Structured entities mined from one model reply"""
    locations: List[LocationHit] = Field(default_factory=list)
    itinerary: Optional[ItineraryDraft] = None
    weather: Optional[WeatherSnapshot] = None
    local_food: List[FoodItem] = Field(default_factory=list)
    local_attractions: List[AttractionItem] = Field(default_factory=list)


class TurnResult(BaseModel):
    """Everything produced by one user turn"""
    conversation_id: str
    message: MessageOut
    reply_text: str
    locations: List[LocationHit] = Field(default_factory=list)
    itinerary: Optional[ItineraryDraft] = None
    weather: Optional[WeatherSnapshot] = None
    local_food: List[FoodItem] = Field(default_factory=list)
    local_attractions: List[AttractionItem] = Field(default_factory=list)
    flights: List[FlightOffer] = Field(default_factory=list)
    hotels: List[HotelOffer] = Field(default_factory=list)
    session: TravelSession
    processing_time_ms: Optional[int] = None


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ChatRequest(BaseModel):
    """Chat message from the browser"""
    message: Optional[Any] = None
    conversation_id: str = Field(default="default", min_length=1, max_length=100)


class ItineraryCreate(BaseModel):
    """Itinerary the user chose to save"""
    title: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    content: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v, info):
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("end_date must not be before start_date")
        return v


class SavedItineraryOut(BaseModel):
    id: int
    user_id: int
    title: str
    destination: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    content: Dict[str, Any] = Field(default_factory=dict)
    created: datetime
