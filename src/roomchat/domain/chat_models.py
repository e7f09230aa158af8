from __future__ import annotations

from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field


# The zero UUID: the shared room is a single session whose id column is a UUID.
DEFAULT_SESSION_ID = "00000000-0000-0000-0000-000000000000"

DEFAULT_SYSTEM_PROMPT = "You are a helpful, concise AI assistant."


Role = Literal["system", "user", "assistant"]
PersistedRole = Literal["user", "assistant"]
TurnState = Literal["pending", "confirmed", "local_fallback"]

PERSISTED_ROLES = ("user", "assistant")


class Turn(BaseModel):
    """One message of the conversation as shown to a viewer.

    ``pending`` turns are optimistic and carry a locally generated id,
    ``confirmed`` turns came back from the store, ``local_fallback`` turns
    are shown but were never durably saved.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str
    created_at: Optional[str] = None
    session_id: Optional[str] = None
    state: TurnState = "confirmed"


class CompletionMessage(BaseModel):
    role: Role
    content: str


class ChatProxyRequest(BaseModel):
    messages: List[CompletionMessage] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class SessionTranscript(BaseModel):
    session_id: str
    turns: List[Turn]
