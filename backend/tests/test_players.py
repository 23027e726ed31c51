import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.main import app  # noqa: E402

PLAYERS = "/api/v0/players"
MATCHES = "/api/v0/matches"


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _add(client, name, **extra):
    resp = client.post(PLAYERS, json={"name": name, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def test_create_player_reports_age(client):
    resp = client.post(PLAYERS, json={"name": "  Ana   Souza ", "dateOfBirth": "1990-01-01"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Ana Souza"
    assert data["dateOfBirth"] == "1990-01-01"
    assert isinstance(data["age"], int) and data["age"] >= 34


def test_duplicate_name_is_rejected_case_insensitively(client):
    _add(client, "Bruno")
    resp = client.post(PLAYERS, json={"name": "bruno"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "player_exists"
    assert resp.headers["content-type"].startswith("application/problem+json")


def test_future_birth_date_is_rejected(client):
    resp = client.post(PLAYERS, json={"name": "Kid", "dateOfBirth": "2999-01-01"})
    assert resp.status_code == 422


def test_list_sorted_by_name_and_searchable(client):
    for name in ("Élodie", "davi", "Carla"):
        _add(client, name)
    data = client.get(PLAYERS).json()
    assert data["total"] == 3
    assert [p["name"] for p in data["players"]] == ["Carla", "davi", "Élodie"]

    found = client.get(PLAYERS, params={"q": "elo"}).json()
    assert [p["name"] for p in found["players"]] == ["Élodie"]


def test_get_and_update_player(client):
    pid = _add(client, "Eva")
    assert client.get(f"{PLAYERS}/{pid}").json()["name"] == "Eva"

    resp = client.put(f"{PLAYERS}/{pid}", json={"name": "Eva Lima", "dateOfBirth": None})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Eva Lima"
    assert resp.json()["age"] is None

    assert client.get(f"{PLAYERS}/missing").status_code == 404
    assert client.put(f"{PLAYERS}/missing", json={"name": "X"}).status_code == 404


def test_rename_onto_existing_name_is_rejected(client):
    _add(client, "Fred")
    pid = _add(client, "Gil")
    resp = client.put(f"{PLAYERS}/{pid}", json={"name": "FRED"})
    assert resp.status_code == 400


def test_delete_requires_confirmation_and_cascades(client):
    ids = [_add(client, n) for n in ("P1", "P2", "P3", "P4", "P5")]
    matches = [
        {"teamA": {"playerIds": ids[0:2], "score": 6}, "teamB": {"playerIds": ids[2:4], "score": 2}},
        {"teamA": {"playerIds": [ids[1], ids[4]], "score": 6}, "teamB": {"playerIds": ids[2:4], "score": 3}},
    ]
    for body in matches:
        resp = client.post(MATCHES, json={"date": "2024-03-01", **body})
        assert resp.status_code == 200, resp.text

    resp = client.delete(f"{PLAYERS}/{ids[0]}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "deletion_not_confirmed"
    assert "1 match" in resp.json()["detail"]
    assert len(client.get(MATCHES).json()) == 2

    resp = client.delete(f"{PLAYERS}/{ids[0]}", params={"confirm": "true"})
    assert resp.status_code == 204
    remaining = client.get(MATCHES).json()
    assert len(remaining) == 1
    assert ids[0] not in remaining[0]["teamA"]["playerIds"] + remaining[0]["teamB"]["playerIds"]
    assert client.get(f"{PLAYERS}/{ids[0]}").status_code == 404


def test_delete_unknown_player(client):
    assert client.delete(f"{PLAYERS}/nobody", params={"confirm": "true"}).status_code == 404


def test_registering_clears_pending_name(client):
    for name in ("Ana", "Bruno", "Carla"):
        _add(client, name)
    rows = [
        {
            "date": "2024-01-05",
            "player1": "Ana",
            "player2": "Bruno",
            "scoreA": 6,
            "scoreB": 4,
            "player3": "Carla",
            "player4": "Zeca",
        }
    ]
    client.post(f"{MATCHES}/import", json={"rows": rows})
    assert client.get(f"{PLAYERS}/pending").json()["names"] == ["Zeca"]

    _add(client, "zeca")
    assert client.get(f"{PLAYERS}/pending").json()["names"] == []
