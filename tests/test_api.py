import re

import pytest
from fastapi.testclient import TestClient

from app import create_app

CODE_RE = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}$")


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def join(ws, room_code, user_name):
    ws.send_json({"type": "join-room", "roomCode": room_code, "userName": user_name})
    return ws.receive_json()


def test_create_room(client):
    response = client.post("/api/rooms/create")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert CODE_RE.match(body["roomCode"])


def test_room_status_for_new_room(client):
    code = client.post("/api/rooms/create").json()["roomCode"]
    response = client.get(f"/api/rooms/{code.lower()}")
    assert response.json() == {"exists": True, "participantCount": 0, "isFull": False}


def test_room_status_for_unknown_room(client):
    response = client.get("/api/rooms/NOPE-NOPE")
    assert response.status_code == 200
    assert response.json() == {"exists": False}


def test_health(client):
    client.post("/api/rooms/create")
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["rooms"] == 1
    assert body["uptime"] >= 0
    assert body["timestamp"].endswith("Z")


def test_service_info(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["endpoints"]["createRoom"] == "POST /api/rooms/create"


def test_full_call_setup_over_websocket(client):
    code = client.post("/api/rooms/create").json()["roomCode"]

    with client.websocket_connect("/ws") as alice:
        joined = join(alice, code, "Alice")
        assert joined == {"type": "room-joined", "roomCode": code, "participantCount": 1, "isInitiator": True}
        assert client.get(f"/api/rooms/{code}").json() == {"exists": True, "participantCount": 1, "isFull": False}

        with client.websocket_connect("/ws") as bob:
            joined = join(bob, code.lower(), "Bob")
            assert joined["isInitiator"] is False
            assert joined["participantCount"] == 2

            existing = bob.receive_json()
            assert existing["type"] == "existing-user"
            assert existing["userName"] == "Alice"
            alice_id = existing["connectionId"]

            user_joined = alice.receive_json()
            assert user_joined["type"] == "user-joined"
            assert user_joined["userName"] == "Bob"
            bob_id = user_joined["connectionId"]

            assert client.get(f"/api/rooms/{code}").json() == {"exists": True, "participantCount": 2, "isFull": True}

            with client.websocket_connect("/ws") as carol:
                rejected = join(carol, code, "Carol")
                assert rejected["type"] == "room-full"
            assert client.get(f"/api/rooms/{code}").json()["participantCount"] == 2

            alice.send_json({"type": "offer", "sdp": {"type": "offer", "sdp": "v=0"}, "to": bob_id})
            assert bob.receive_json() == {
                "type": "offer",
                "sdp": {"type": "offer", "sdp": "v=0"},
                "from": alice_id,
                "userName": "Alice",
            }

            bob.send_json({"type": "answer", "sdp": {"type": "answer", "sdp": "v=0"}, "to": alice_id})
            assert alice.receive_json() == {"type": "answer", "sdp": {"type": "answer", "sdp": "v=0"}, "from": bob_id}

            alice.send_text("garbage")
            alice.send_json({"type": "toggle-video", "state": True})
            assert bob.receive_json() == {"type": "peer-video-toggle", "connectionId": alice_id, "state": True}

        left = alice.receive_json()
        assert left == {"type": "user-left", "connectionId": bob_id, "userName": "Bob"}
        assert client.get(f"/api/rooms/{code}").json()["participantCount"] == 1

    assert client.get(f"/api/rooms/{code}").json() == {"exists": False}


def test_any_origin_may_create_rooms(client):
    origin = "https://meetflow-client.onrender.com"
    response = client.post("/api/rooms/create", headers={"Origin": origin})
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", origin)


def test_cors_preflight_for_create(client):
    origin = "https://calls.example.org"
    response = client.options(
        "/api/rooms/create",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", origin)


def test_binary_frames_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b"\x00\x01")
        joined = join(ws, "BIN1-ROOM", "Alice")
        assert joined["type"] == "room-joined"
        assert joined["isInitiator"] is True
