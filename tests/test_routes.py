"""
HTTP tests for the chat API using FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from tests.conftest import FakeGeocoder, FakeLLM
from tests.test_conversation_manager import build_manager
from tripchat.conversational import get_conversation_manager
from tripchat.data_sources.nominatim_client import get_nominatim_client
from tripchat.extraction import ItineraryExtractor
from tripchat.main import app
from tripchat.storage import get_chat_storage


@pytest.fixture
def client(storage):
    manager = build_manager(FakeLLM("Happy to help with an itinerary!"), storage)

    app.dependency_overrides[get_conversation_manager] = lambda: manager
    app.dependency_overrides[get_chat_storage] = lambda: storage
    app.dependency_overrides[get_nominatim_client] = lambda: FakeGeocoder()

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestChatRoutes:
    """Tests for /api/chat and friends."""

    def test_chat_turn(self, client):
        response = client.post("/api/chat", json={"message": "I want a 3 day trip to Tokyo", "conversation_id": "t1"})

        assert response.status_code == 200
        body = response.json()
        assert body["conversation_id"] == "t1"
        assert body["session"]["destination"] == "Tokyo"
        assert len(body["itinerary"]["days"]) == 3
        assert body["message"]["role"] == "assistant"

    @pytest.mark.parametrize("payload", [{}, {"message": 42}, {"message": "   "}, {"message": None}])
    def test_invalid_message(self, client, payload):
        response = client.post("/api/chat", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid message format"

    def test_history_and_clear(self, client):
        client.post("/api/chat", json={"message": "Plan a trip to Paris", "conversation_id": "t2"})

        history = client.get("/api/chat/history").json()
        assert [m["role"] for m in history] == ["user", "assistant"]

        assert client.get("/api/session/t2").json()["destination"] == "Paris"

        response = client.delete("/api/chat/history", params={"conversation_id": "t2"})
        assert response.json() == {"success": True}
        assert client.get("/api/session/t2").status_code == 404

        # The message log survives clearing
        assert len(client.get("/api/chat/history").json()) == 2

    def test_unknown_session(self, client):
        assert client.get("/api/session/nope").status_code == 404


class TestLocationRoute:
    """Tests for /api/location."""

    def test_search(self, client):
        response = client.get("/api/location", params={"q": "Tokyo"})
        assert response.status_code == 200
        assert response.json()[0]["name"] == "Tokyo"

    @pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
    def test_invalid_query(self, client, params):
        response = client.get("/api/location", params=params)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid location query"

    def test_provider_failure(self, client):
        app.dependency_overrides[get_nominatim_client] = lambda: FakeGeocoder(failing=("Atlantis",))
        assert client.get("/api/location", params={"q": "Atlantis"}).status_code == 502


class TestItineraryRoute:
    """Tests for /api/itinerary."""

    def test_save(self, client, storage):
        payload = {
            "title": "3-Day Itinerary for Tokyo",
            "destination": "Tokyo",
            "start_date": "2025-03-01",
            "end_date": "2025-03-04",
            "content": {"days": []},
        }
        response = client.post("/api/itinerary", json=payload)

        assert response.status_code == 200
        saved = response.json()
        assert saved["destination"] == "Tokyo"
        assert storage.get_itinerary(saved["id"]).title == "3-Day Itinerary for Tokyo"

    def test_save_extracted_itinerary(self, client, storage):
        """An itinerary posted as-is keeps its days."""
        text = "Day 1: Temples\n9:00 AM - Visit Senso-ji\nDay 2: Markets\n10:00 AM - Tsukiji Outer Market"
        draft = ItineraryExtractor().extract(text, "Plan my itinerary for Tokyo")

        response = client.post("/api/itinerary", json=draft.model_dump(mode="json"))

        assert response.status_code == 200
        saved = storage.get_itinerary(response.json()["id"])
        assert saved.title == draft.title
        assert [d["title"] for d in saved.content["days"]] == ["Temples", "Markets"]

    @pytest.mark.parametrize("payload", [
        {"destination": "Tokyo"},
        {"title": "Trip", "destination": "Tokyo", "start_date": "2025-03-04", "end_date": "2025-03-01"},
        [],
        "just a string",
    ])
    def test_invalid(self, client, payload):
        response = client.post("/api/itinerary", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid itinerary format"


class TestAppRoutes:
    def test_root_and_health(self, client):
        assert client.get("/").json()["status"] == "running"
        assert client.get("/health").json()["status"] == "healthy"
