from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from threading import RLock
from typing import Dict, List, Protocol
import logging
import os
import uuid

from ..domain.chat_models import DEFAULT_SESSION_ID, PERSISTED_ROLES, Turn
from ..services.errors import StoreError

logger = logging.getLogger(__name__)


class TurnStore(Protocol):
    def append(self, session_id: str, role: str, content: str) -> Turn: ...

    def list_turns(self, session_id: str) -> List[Turn]: ...


def check_role(role: str) -> str:
    if role not in PERSISTED_ROLES:
        raise StoreError(f"Role '{role}' cannot be persisted")
    return role


@dataclass
class _Row:
    id: str
    session_id: str
    role: str
    content: str
    created_at: str
    seq: int


class InMemoryTurnStore:
    def __init__(self) -> None:
        self._rows: Dict[str, List[_Row]] = {}
        self._seq = 0
        self._lock = RLock()

    def _now_iso(self) -> str:
        return datetime.now(UTC).isoformat().replace("+00:00", "Z")

    def _turn_model(self, row: _Row) -> Turn:
        return Turn(
            id=row.id,
            role=row.role,
            content=row.content,
            created_at=row.created_at,
            session_id=row.session_id,
            state="confirmed",
        )

    def append(self, session_id: str, role: str, content: str) -> Turn:
        check_role(role)
        with self._lock:
            self._seq += 1
            row = _Row(
                id=uuid.uuid4().hex,
                session_id=session_id,
                role=role,
                content=content,
                created_at=self._now_iso(),
                seq=self._seq,
            )
            self._rows.setdefault(session_id, []).append(row)
            return self._turn_model(row)

    def list_turns(self, session_id: str) -> List[Turn]:
        with self._lock:
            rows = list(self._rows.get(session_id, []))
        # ISO timestamps sort lexically; seq breaks ties within the same tick
        rows.sort(key=lambda r: (r.created_at, r.seq))
        return [self._turn_model(r) for r in rows]


_store: TurnStore | None = None


def get_turn_store() -> TurnStore:
    global _store
    if _store is not None:
        return _store
    impl = os.getenv("ROOMCHAT_TURN_STORE_IMPL", "memory").lower()
    if impl == "supabase":
        from .turn_store_supabase import SupabaseTurnStore

        _store = SupabaseTurnStore()
        return _store
    if impl != "memory":
        logger.warning("unknown_turn_store_impl", extra={"impl": impl})
    _store = InMemoryTurnStore()
    return _store


def configured_session_id() -> str:
    return (os.getenv("ROOMCHAT_SESSION_ID") or "").strip() or DEFAULT_SESSION_ID
