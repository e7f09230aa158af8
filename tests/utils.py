from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.roomchat.domain.chat_models import Turn
from src.roomchat.infrastructure.turn_store import InMemoryTurnStore


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: Optional[str] = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses or raises."""

    def __init__(self, responses: Sequence[Any] = ()) -> None:
        self._responses: List[Any] = list(responses)
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        outcome = self._responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)


def completion_body(content: str) -> Dict[str, Any]:
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


class RecordingStore:
    """In-memory store that can be scripted to return fixed turns or fail."""

    def __init__(self, scripted: Sequence[Any] = ()) -> None:
        self._scripted: List[Any] = list(scripted)
        self._inner = InMemoryTurnStore()
        self.calls: List[Tuple[str, str, str]] = []

    def append(self, session_id: str, role: str, content: str) -> Turn:
        self.calls.append((session_id, role, content))
        if self._scripted:
            outcome = self._scripted.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is not None:
                return outcome
        return self._inner.append(session_id, role, content)

    def list_turns(self, session_id: str) -> List[Turn]:
        return self._inner.list_turns(session_id)

    def roles_appended(self) -> List[str]:
        return [role for _, role, _ in self.calls]


class ScriptedCompletions:
    def __init__(self, replies: Sequence[Any] = ()) -> None:
        self._replies: List[Any] = list(replies)
        self.prompts: List[List[Dict[str, str]]] = []

    def complete(self, messages: Sequence[Dict[str, str]]) -> str:
        self.prompts.append([dict(m) for m in messages])
        outcome = self._replies.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
