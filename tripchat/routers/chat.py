"""
Chat API Router

Provides the conversational trip planning endpoints

Author: TripChat Team
Date: 2024
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from tripchat.conversational import ConversationManager, get_conversation_manager
from tripchat.data_sources.errors import ProviderError
from tripchat.data_sources.nominatim_client import NominatimClient, get_nominatim_client
from tripchat.models.chat_schemas import (
    ChatRequest,
    ItineraryCreate,
    MessageOut,
    SavedItineraryOut,
    TurnResult,
)
from tripchat.models.schemas import LocationHit, TravelSession
from tripchat.storage import ChatStorage, get_chat_storage

logger = logging.getLogger(__name__)

router = APIRouter()


class ClearHistoryResponse(BaseModel):
    success: bool


# ============================================================================
# CHAT ENDPOINTS
# ============================================================================

@router.post("/chat", response_model=TurnResult)
async def chat(
    request: ChatRequest,
    manager: ConversationManager = Depends(get_conversation_manager)
):
    """
    Main chat endpoint

    User sends message, assistant responds with text + extracted data
    """

    if not isinstance(request.message, str) or not request.message.strip():
        raise HTTPException(status_code=400, detail="Invalid message format")

    try:
        return await manager.handle_message(
            conversation_id=request.conversation_id,
            message=request.message.strip()
        )
    except Exception as e:
        logger.exception(f"❌ Chat request failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to process message")


@router.get("/chat/history", response_model=List[MessageOut])
async def get_history(storage: ChatStorage = Depends(get_chat_storage)):
    """Persisted messages, oldest first"""
    return storage.get_messages_by_user_id()


@router.delete("/chat/history", response_model=ClearHistoryResponse)
async def clear_history(
    conversation_id: str = Query("default", min_length=1),
    manager: ConversationManager = Depends(get_conversation_manager)
):
    """Forget a conversation's working state"""
    return ClearHistoryResponse(success=manager.clear_history(conversation_id))


@router.get("/session/{conversation_id}", response_model=TravelSession)
async def get_session(
    conversation_id: str,
    manager: ConversationManager = Depends(get_conversation_manager)
):
    """Current travel session of a conversation"""

    session = manager.get_session(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ============================================================================
# LOCATION / ITINERARY ENDPOINTS
# ============================================================================

@router.get("/location", response_model=List[LocationHit])
async def search_location(
    q: str = Query(""),
    geocoder: NominatimClient = Depends(get_nominatim_client)
):
    """Geocode a free-text place name"""

    if not q.strip():
        raise HTTPException(status_code=400, detail="Invalid location query")

    try:
        return await geocoder.search(q.strip())
    except ProviderError as e:
        logger.error(f"❌ Location search failed for '{q}': {e}")
        raise HTTPException(status_code=502, detail="Location service unavailable")


@router.post("/itinerary", response_model=SavedItineraryOut)
async def save_itinerary(
    payload: Any = Body(None),
    storage: ChatStorage = Depends(get_chat_storage)
):
    """Save an itinerary the user wants to keep"""

    try:
        itinerary = ItineraryCreate.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"⚠️  Rejected itinerary: {e.errors()}")
        raise HTTPException(status_code=400, detail="Invalid itinerary format")

    # Bodies without a content key are the itinerary itself
    content = itinerary.content if "content" in payload else payload

    return storage.create_itinerary(
        title=itinerary.title,
        destination=itinerary.destination,
        content=content,
        start_date=itinerary.start_date,
        end_date=itinerary.end_date,
    )
