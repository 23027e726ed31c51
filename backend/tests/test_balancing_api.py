import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.main import app  # noqa: E402
from app.services.balancing import GeminiBalancingClient  # noqa: E402

TEAMS = "/api/v0/balancing/teams"


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def roster(client):
    return {
        name: client.post("/api/v0/players", json={"name": name}).json()["id"]
        for name in ("Ana", "Bruno", "Carla", "Davi")
    }


def test_not_configured_is_503(client, roster):
    resp = client.post(TEAMS, json={"attendance": list(roster.values())})
    assert resp.status_code == 503
    assert resp.json()["code"] == "balancing_not_configured"

    resp = client.get("/api/v0/balancing/ranking-formula")
    assert resp.status_code == 503


def test_unknown_attendee_is_422(client, roster):
    resp = client.post(TEAMS, json={"attendance": [roster["Ana"], "ghost"]})
    assert resp.status_code == 422
    assert resp.json()["code"] == "unknown_player"


def test_too_few_attendees_is_422(client, roster, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    resp = client.post(TEAMS, json={"attendance": [roster["Ana"], roster["Bruno"]]})
    assert resp.status_code == 422
    assert resp.json()["code"] == "not_enough_players"


def test_suggestion_round_trip(client, roster, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    async def fake_generate(self, prompt, *, response_schema=None):
        return (
            '{"matchups": [{"teamA": {"player1": "Ana", "player2": "Davi"},'
            ' "teamB": {"player1": "Bruno", "player2": "Carla"}}],'
            ' "rationale": "Balanced."}'
        )

    monkeypatch.setattr(GeminiBalancingClient, "generate", fake_generate)
    resp = client.post(TEAMS, json={"attendance": list(roster.values())})
    assert resp.status_code == 200, resp.text
    assert resp.json()["matchups"][0]["teamB"]["player2"] == "Carla"


def test_invalid_suggestion_is_502(client, roster, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    async def fake_generate(self, prompt, *, response_schema=None):
        return (
            '{"matchups": [{"teamA": {"player1": "Ana", "player2": "Zeca"},'
            ' "teamB": {"player1": "Bruno", "player2": "Carla"}}],'
            ' "rationale": "?"}'
        )

    monkeypatch.setattr(GeminiBalancingClient, "generate", fake_generate)
    resp = client.post(TEAMS, json={"attendance": list(roster.values())})
    assert resp.status_code == 502
    assert resp.json()["code"] == "balancing_invalid_response"


def test_read_transaction_released_before_model_call(client, roster, monkeypatch):
    from sqlalchemy.ext.asyncio import AsyncSession

    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    events: list[str] = []
    original_rollback = AsyncSession.rollback

    async def spy_rollback(self):
        events.append("rollback")
        await original_rollback(self)

    async def fake_generate(self, prompt, *, response_schema=None):
        events.append("generate")
        return (
            '{"matchups": [{"teamA": {"player1": "Ana", "player2": "Davi"},'
            ' "teamB": {"player1": "Bruno", "player2": "Carla"}}],'
            ' "rationale": "Balanced."}'
        )

    monkeypatch.setattr(AsyncSession, "rollback", spy_rollback)
    monkeypatch.setattr(GeminiBalancingClient, "generate", fake_generate)
    resp = client.post(TEAMS, json={"attendance": list(roster.values())})
    assert resp.status_code == 200, resp.text
    assert "generate" in events
    assert events.index("rollback") < events.index("generate")
