from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ...domain.chat_models import SessionTranscript
from ...infrastructure.turn_store import configured_session_id, get_turn_store
from ...services.errors import StoreError

router = APIRouter(prefix="/api", tags=["turns"])


@router.get("/sessions/{session_id}/turns", response_model=SessionTranscript)
def list_session_turns(session_id: str) -> SessionTranscript:
    try:
        turns = get_turn_store().list_turns(session_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return SessionTranscript(session_id=session_id, turns=turns)


@router.get("/turns", response_model=SessionTranscript)
def list_room_turns() -> SessionTranscript:
    return list_session_turns(configured_session_id())
