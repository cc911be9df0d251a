"""
Unit tests for reply generation and the offline fallback responder.
"""

import asyncio

import pytest

from tests.conftest import FakeLLM
from tripchat.conversational.prompts import build_context_line, build_system_instruction
from tripchat.conversational.response_generator import (
    CAPABILITIES_MESSAGE,
    FallbackResponder,
    ResponseGenerator,
    detect_intents,
)
from tripchat.extraction import ItineraryExtractor, StructuredBlockExtractor
from tripchat.models.chat_schemas import ConversationHistory, Role
from tripchat.models.schemas import TravelSession
from tripchat.utils.llm_client import GeminiClient


def history_of(*messages):
    history = ConversationHistory()
    for i, message in enumerate(messages):
        history.add(Role.USER if i % 2 == 0 else Role.ASSISTANT, message)
    return history.entries


class TestPrompts:
    """Tests for the system instruction."""

    def test_no_context_for_empty_session(self):
        assert build_context_line(TravelSession()) is None
        assert build_system_instruction(None) == build_system_instruction(TravelSession())

    def test_context_line(self):
        """Known trip details are appended to the instruction."""
        session = TravelSession(destination="Tokyo", budget=1500, travelers=2)
        instruction = build_system_instruction(session)
        assert "Destination: Tokyo" in instruction
        assert "Budget: $1,500 USD" in instruction
        assert "Travelers: 2" in instruction
        assert "LOCAL_FOOD" in instruction


class TestResponseGenerator:
    """Tests for ResponseGenerator.generate."""

    def test_model_reply_returned(self):
        """A working model's text is passed through."""
        llm = FakeLLM("Tokyo is wonderful!")
        generator = ResponseGenerator(llm_client=llm)

        reply = asyncio.run(generator.generate(history_of("Tell me about Tokyo"), TravelSession(destination="Tokyo")))

        assert reply == "Tokyo is wonderful!"
        system_instruction, history = llm.calls[0]
        assert "Destination: Tokyo" in system_instruction
        assert history[0].content == "Tell me about Tokyo"

    def test_fallback_when_model_fails(self):
        """Any model error produces the canned reply for the last user message."""
        generator = ResponseGenerator(llm_client=FakeLLM(error=RuntimeError("Gemini API key missing")))

        reply = asyncio.run(generator.generate(history_of("Plan a 3 day trip to Tokyo"), TravelSession()))

        assert "Tokyo, a city in Japan" in reply
        assert "Day 3:" in reply
        assert "LOCAL_ATTRACTIONS" in reply


class TestFallbackResponder:
    """Tests for the canned responder."""

    @pytest.fixture
    def responder(self):
        return FallbackResponder()

    def test_intents(self):
        assert detect_intents("Where should I eat and stay?") == ["food", "hotel"]
        assert detect_intents("hello") == []

    def test_capabilities_without_destination(self, responder):
        """Small talk with no known place lists what the assistant can do."""
        assert responder.respond("hello") == CAPABILITIES_MESSAGE

    def test_itinerary_is_parseable(self, responder):
        """The canned itinerary uses the same format the model is asked for."""
        reply = responder.respond("Plan a 3 day trip to Tokyo")
        draft = ItineraryExtractor().extract(reply, "Plan a 3 day trip to Tokyo")

        assert draft.destination == "Tokyo"
        assert [d.day for d in draft.days] == [1, 2, 3]
        assert draft.days[0].title == "Arrival & Shinjuku"
        assert draft.days[0].activities[0].time == "9:00 AM"

    def test_day_count_from_session(self, responder):
        """Without a count in the message, the session's trip length is used."""
        from datetime import date
        session = TravelSession(destination="Paris", departure_date=date(2025, 5, 1), return_date=date(2025, 5, 5))
        reply = responder.respond("make me an itinerary", session)
        assert "Day 4:" in reply
        assert "Day 5:" not in reply

    def test_food_block_from_session_destination(self, responder):
        """Food questions use the session destination and embed a LOCAL_FOOD block."""
        reply = responder.respond("What should I eat?", TravelSession(destination="Paris"))
        food = StructuredBlockExtractor().extract_food(reply, "Paris")

        assert [f.name for f in food] == ["Croissant", "Steak Frites", "Macarons"]
        assert "LOCAL_ATTRACTIONS" not in reply

    def test_weather_and_hotels(self, responder):
        reply = responder.respond("What's the weather like and which hotel area is best in London?")
        assert "The weather in London" in reply
        assert "Covent Garden" in reply

    def test_unknown_destination_itinerary(self, responder):
        """Unlisted places get the generic plan."""
        reply = responder.respond("Plan my 2 day itinerary", TravelSession(destination="Lisbon"))
        assert "Day 1: Arrival & Orientation" in reply
        assert "Day 3" not in reply


class TestGeminiClient:
    """Tests for the Gemini wrapper that need no API key."""

    def test_role_mapping(self):
        """assistant turns are sent with the 'model' role."""
        contents = GeminiClient.to_contents(history_of("hi", "hello!"))
        assert contents == [
            {"role": "user", "parts": ["hi"]},
            {"role": "model", "parts": ["hello!"]},
        ]

    def test_disabled_without_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        client = GeminiClient()
        assert client.enabled is False
        with pytest.raises(RuntimeError):
            asyncio.run(client.chat("system", history_of("hi")))
