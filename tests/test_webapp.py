"""Tests for the look-time HTTP API."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from look_tracker.webapp import create_app


@pytest.fixture
def client(tmp_path: Path) -> TestClient:
    return TestClient(create_app(db_path=tmp_path / "looktime.sqlite3"))


def _player(client: TestClient, name: str) -> int:
    response = client.post("/player", json={"playerName": name})
    assert response.status_code == 200
    return response.json()["playerId"]


def _session(client: TestClient, player_id: int) -> int:
    response = client.post("/session/start", json={"playerId": player_id})
    assert response.status_code == 200
    return response.json()["sessionId"]


def test_status(client: TestClient, tmp_path: Path) -> None:
    response = client.get("/api/status")
    assert response.json()["database_path"] == str(tmp_path / "looktime.sqlite3")


def test_full_flow(client: TestClient) -> None:
    player_id = _player(client, "alice")
    session_id = _session(client, player_id)

    response = client.post(
        "/looktime",
        json={
            "sessionId": session_id,
            "items": [
                {"objectName": "Lamp42", "productGenre": "Lighting", "totalTime": 1.5},
                {"objectName": "Box", "totalTime": 0.75},
            ],
        },
    )
    assert response.json() == {"success": True, "inserted": 2}

    assert client.post("/session/end", json={"sessionId": session_id}).json() == {
        "success": True
    }

    data = client.get("/data").json()
    assert data["success"] is True
    assert data["count"] == 2
    by_name = {row["object_name"]: row for row in data["data"]}
    assert by_name["Lamp42"]["product_genre"] == "Lighting"
    assert by_name["Lamp42"]["player_name"] == "alice"
    assert by_name["Box"]["product_genre"] == "Box"

    genres = client.get("/api/genres").json()["data"]
    assert genres[0] == {
        "genre": "Lighting",
        "seconds": 1.5,
        "objects": 1,
        "minutes": "0.03",
        "display": "0 min 2 sec",
    }


def test_user_sessions_ranking(client: TestClient) -> None:
    alice = _player(client, "alice")
    bob = _player(client, "bob")
    _player(client, "nobody")
    for _ in range(2):
        _session(client, bob)
    _session(client, alice)

    data = client.get("/user-sessions").json()
    assert data["data"] == [
        {"user": "bob", "session_count": 2},
        {"user": "alice", "session_count": 1},
    ]
    assert data["count"] == 2


def test_blank_player_name_rejected(client: TestClient) -> None:
    assert client.post("/player", json={"playerName": "  "}).status_code == 400


def test_unknown_player_session(client: TestClient) -> None:
    assert client.post("/session/start", json={"playerId": 42}).status_code == 404


def test_unknown_session_end(client: TestClient) -> None:
    assert client.post("/session/end", json={"sessionId": 42}).status_code == 404


def test_look_time_for_unknown_session_inserts_nothing(client: TestClient) -> None:
    response = client.post(
        "/looktime",
        json={"sessionId": 42, "items": [{"objectName": "Lamp42", "totalTime": 1.0}]},
    )
    assert response.status_code == 404
    assert client.get("/data").json()["count"] == 0


def test_negative_look_time_rejected(client: TestClient) -> None:
    session_id = _session(client, _player(client, "alice"))
    response = client.post(
        "/looktime",
        json={"sessionId": session_id, "items": [{"objectName": "Lamp42", "totalTime": -1}]},
    )
    assert response.status_code == 422
