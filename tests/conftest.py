import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Start every test without credentials and with a fresh store singleton."""
    for key in (
        "NVIDIA_API_KEY",
        "VITE_NVIDIA_API_KEY",
        "ROOMCHAT_UPSTREAM_URL",
        "ROOMCHAT_UPSTREAM_CONNECT_TIMEOUT",
        "ROOMCHAT_UPSTREAM_READ_TIMEOUT",
        "ROOMCHAT_SESSION_ID",
        "ROOMCHAT_TURN_STORE_IMPL",
        "ROOMCHAT_PROXY_URL",
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "VITE_SUPABASE_URL",
        "VITE_SUPABASE_ANON_KEY",
    ):
        monkeypatch.delenv(key, raising=False)

    from src.roomchat.infrastructure import turn_store

    monkeypatch.setattr(turn_store, "_store", None, raising=False)
