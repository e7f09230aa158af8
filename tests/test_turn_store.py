import pytest

from src.roomchat.infrastructure import turn_store
from src.roomchat.services.errors import StoreError


@pytest.fixture
def fresh_store():
    return turn_store.InMemoryTurnStore()


def test_append_assigns_id_and_timestamp(fresh_store):
    turn = fresh_store.append("room", "user", "hello")
    assert turn.id
    assert turn.created_at and turn.created_at.endswith("Z")
    assert turn.session_id == "room"
    assert turn.state == "confirmed"


def test_list_turns_returns_insertion_order_within_same_tick(fresh_store, monkeypatch):
    monkeypatch.setattr(fresh_store, "_now_iso", lambda: "2026-01-01T00:00:00Z")
    for idx in range(5):
        fresh_store.append("room", "user" if idx % 2 == 0 else "assistant", f"m{idx}")
    assert [t.content for t in fresh_store.list_turns("room")] == ["m0", "m1", "m2", "m3", "m4"]


def test_list_turns_twice_is_identical(fresh_store):
    fresh_store.append("room", "user", "one")
    fresh_store.append("room", "assistant", "two")
    assert fresh_store.list_turns("room") == fresh_store.list_turns("room")


def test_sessions_are_independent(fresh_store):
    fresh_store.append("a", "user", "in a")
    fresh_store.append("b", "user", "in b")
    assert [t.content for t in fresh_store.list_turns("a")] == ["in a"]
    assert [t.content for t in fresh_store.list_turns("b")] == ["in b"]
    assert fresh_store.list_turns("missing") == []


@pytest.mark.parametrize("role", ["system", "tool", ""])
def test_non_conversation_roles_are_not_persisted(fresh_store, role):
    with pytest.raises(StoreError):
        fresh_store.append("room", role, "nope")
    assert fresh_store.list_turns("room") == []


def test_get_turn_store_defaults_to_memory_and_caches():
    store = turn_store.get_turn_store()
    assert isinstance(store, turn_store.InMemoryTurnStore)
    assert turn_store.get_turn_store() is store


def test_get_turn_store_unknown_impl_falls_back_to_memory(monkeypatch):
    monkeypatch.setenv("ROOMCHAT_TURN_STORE_IMPL", "cassandra")
    assert isinstance(turn_store.get_turn_store(), turn_store.InMemoryTurnStore)


def test_get_turn_store_supabase(monkeypatch):
    monkeypatch.setenv("ROOMCHAT_TURN_STORE_IMPL", "supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    from src.roomchat.infrastructure.turn_store_supabase import SupabaseTurnStore

    store = turn_store.get_turn_store()
    assert isinstance(store, SupabaseTurnStore)


def test_configured_session_id(monkeypatch):
    assert turn_store.configured_session_id() == "00000000-0000-0000-0000-000000000000"
    monkeypatch.setenv("ROOMCHAT_SESSION_ID", "  lobby ")
    assert turn_store.configured_session_id() == "lobby"
