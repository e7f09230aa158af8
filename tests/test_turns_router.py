from fastapi.testclient import TestClient

from src.roomchat.api.main import app
from src.roomchat.infrastructure import turn_store
from src.roomchat.services.errors import StoreError


client = TestClient(app)


def test_session_turns_in_order(monkeypatch):
    store = turn_store.InMemoryTurnStore()
    monkeypatch.setattr(turn_store, "_store", store)
    store.append("lobby", "user", "hello")
    store.append("lobby", "assistant", "Hi there!")
    store.append("elsewhere", "user", "not here")

    r = client.get("/api/sessions/lobby/turns")

    assert r.status_code == 200
    data = r.json()
    assert data["session_id"] == "lobby"
    assert [(t["role"], t["content"]) for t in data["turns"]] == [("user", "hello"), ("assistant", "Hi there!")]
    assert all(t["state"] == "confirmed" and t["created_at"] for t in data["turns"])


def test_room_turns_use_configured_session(monkeypatch):
    store = turn_store.InMemoryTurnStore()
    monkeypatch.setattr(turn_store, "_store", store)
    store.append("00000000-0000-0000-0000-000000000000", "user", "default room")

    r = client.get("/api/turns")
    assert r.status_code == 200
    assert [t["content"] for t in r.json()["turns"]] == ["default room"]

    monkeypatch.setenv("ROOMCHAT_SESSION_ID", "other")
    r = client.get("/api/turns")
    assert r.json() == {"session_id": "other", "turns": []}


def test_store_failure_is_503(monkeypatch):
    class DownStore:
        def list_turns(self, session_id):
            raise StoreError("database unavailable")

    monkeypatch.setattr(turn_store, "_store", DownStore())
    r = client.get("/api/turns")
    assert r.status_code == 503
    assert r.json() == {"error": "database unavailable"}


def test_unconfigured_supabase_is_503(monkeypatch):
    monkeypatch.setenv("ROOMCHAT_TURN_STORE_IMPL", "supabase")
    r = client.get("/api/turns")
    assert r.status_code == 503


def test_wrong_method_on_turns_uses_error_body():
    r = client.post("/api/turns")
    assert r.status_code == 405
    assert r.json() == {"error": "Method Not Allowed"}
