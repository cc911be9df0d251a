"""
ConversationManager - Main Conversation Orchestrator

Coordinates all conversational components for one user turn:
- Session parameter extraction
- Response generation
- Entity extraction from the reply
- Flight / hotel enrichment
- Message persistence

Author: TripChat Team
Date: 2024
"""

import logging
from datetime import date, datetime
from typing import Optional

from tripchat.data_sources.enrichment import TravelEnricher
from tripchat.extraction import ResponseExtractor, strip_structured_blocks
from tripchat.models.chat_schemas import ExtractionResult, MessageOut, Role, TurnResult
from tripchat.models.schemas import TravelSession
from tripchat.storage import ChatStorage, get_chat_storage
from .intent_parser import IntentParser, get_intent_parser
from .response_generator import ResponseGenerator, get_response_generator
from .session_store import ConversationContext, SessionStore, get_session_store

logger = logging.getLogger(__name__)

# Changes to any of these invalidate cached flights and hotels
TRIP_FIELDS = {"origin", "destination", "departure_date", "return_date", "travelers", "budget"}

APOLOGY_MESSAGE = (
    "I'm sorry, I ran into a problem while planning that. "
    "Could you try asking again?"
)


class ConversationManager:
    """
    Main conversation orchestrator

    Handles all user interactions and coordinates components
    """

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        intent_parser: Optional[IntentParser] = None,
        response_generator: Optional[ResponseGenerator] = None,
        extractor: Optional[ResponseExtractor] = None,
        enricher: Optional[TravelEnricher] = None,
        storage: Optional[ChatStorage] = None
    ):
        self.session_store = session_store or get_session_store()
        self.intent_parser = intent_parser or get_intent_parser()
        self.response_generator = response_generator or get_response_generator()
        self.extractor = extractor or ResponseExtractor()
        self.enricher = enricher or TravelEnricher()
        self.storage = storage or get_chat_storage()

        logger.info("✅ ConversationManager initialized")

    async def handle_message(
        self,
        conversation_id: str,
        message: str,
        today: Optional[date] = None
    ) -> TurnResult:
        """
        Main entry point for all user messages

        Args:
            conversation_id: Caller-supplied conversation id
            message: User's message
            today: Reference date for synthesized trip dates

        Returns:
            TurnResult with the assistant reply and extracted entities
        """

        start_time = datetime.now()
        context = self.session_store.get_or_create(conversation_id)

        logger.info(f"📩 [{conversation_id[:8]}] Received: '{message[:50]}'")

        async with context.lock:
            try:
                result = await self._process_turn(context, message, today)
            except Exception as e:
                logger.exception(f"❌ [{conversation_id[:8]}] Turn failed: {e}")
                result = self._apology(context)
                # Keep the window alternating when the user entry already went in
                if context.history.entries and context.history.entries[-1].role == Role.USER:
                    context.history.add(Role.ASSISTANT, APOLOGY_MESSAGE)

            context.touch()

        processing_time = (datetime.now() - start_time).total_seconds() * 1000
        result.processing_time_ms = int(processing_time)

        logger.info(f"✅ [{conversation_id[:8]}] Response generated in {processing_time:.0f}ms")
        return result

    async def _process_turn(
        self,
        context: ConversationContext,
        message: str,
        today: Optional[date]
    ) -> TurnResult:

        session = context.travel_session

        changes = self.intent_parser.update_session(message, session, today)
        changed_fields = session.apply(changes)

        context.history.add(Role.USER, message)
        self.storage.create_message(Role.USER, message)

        model_text = await self.response_generator.generate(context.history.entries, session)

        extracted = await self.extractor.extract(model_text, message, session, today)
        if extracted.weather is not None:
            session.weather_info = extracted.weather

        await self._refresh_offers(session, changed_fields)

        reply_text = strip_structured_blocks(model_text) or model_text

        context.history.add(Role.ASSISTANT, reply_text)
        stored = self.storage.create_message(Role.ASSISTANT, reply_text)

        return self._build_result(context, stored, reply_text, extracted)

    async def _refresh_offers(self, session: TravelSession, changed_fields) -> None:
        """Re-run enrichment when trip details moved or nothing is cached yet"""

        if not session.is_ready_for_enrichment():
            return

        trip_changed = bool(TRIP_FIELDS.intersection(changed_fields))
        nothing_cached = not session.flight_options and not session.hotel_options
        if not trip_changed and not nothing_cached:
            return

        try:
            flights, hotels = await self.enricher.enrich(session)
        except Exception as e:
            logger.exception(f"❌ Enrichment failed, keeping cached offers: {e}")
            return

        session.flight_options = flights
        session.hotel_options = hotels

    @staticmethod
    def _build_result(
        context: ConversationContext,
        stored: MessageOut,
        reply_text: str,
        extracted: ExtractionResult
    ) -> TurnResult:
        session = context.travel_session
        return TurnResult(
            conversation_id=context.conversation_id,
            message=stored,
            reply_text=reply_text,
            locations=extracted.locations,
            itinerary=extracted.itinerary,
            weather=extracted.weather,
            local_food=extracted.local_food,
            local_attractions=extracted.local_attractions,
            flights=session.flight_options,
            hotels=session.hotel_options,
            session=session.model_copy(deep=True),
        )

    def _apology(self, context: ConversationContext) -> TurnResult:
        """Turn result for a failed turn; no entities, message not persisted"""
        return TurnResult(
            conversation_id=context.conversation_id,
            message=MessageOut(
                id=0,
                role=Role.ASSISTANT,
                content=APOLOGY_MESSAGE,
                timestamp=datetime.now(),
            ),
            reply_text=APOLOGY_MESSAGE,
            session=context.travel_session.model_copy(deep=True),
        )

    def clear_history(self, conversation_id: str) -> bool:
        """
        Forget a conversation's in-process state.

        The persisted message log is left untouched.
        """
        self.session_store.clear(conversation_id)
        return True

    def get_session(self, conversation_id: str) -> Optional[TravelSession]:
        context = self.session_store.get(conversation_id)
        return context.travel_session if context else None


# Singleton instance
_conversation_manager = None

def get_conversation_manager() -> ConversationManager:
    """Get singleton ConversationManager instance"""
    global _conversation_manager
    if _conversation_manager is None:
        _conversation_manager = ConversationManager()
    return _conversation_manager
