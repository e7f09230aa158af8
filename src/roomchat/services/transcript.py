from __future__ import annotations

from typing import Dict, Iterable, List

from ..domain.chat_models import Turn


class Transcript:
    """Ordered, append-only list of turns a single viewer is looking at.

    The only replacement allowed is the pending -> confirmed/local_fallback
    transition of an optimistic turn, which keeps its slot.
    """

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: List[Turn] = []
        self.hydrate(turns)

    def __len__(self) -> int:
        return len(self._turns)

    def _index_of(self, turn_id: str) -> int:
        for idx, turn in enumerate(self._turns):
            if turn.id == turn_id:
                return idx
        raise KeyError(turn_id)

    def hydrate(self, turns: Iterable[Turn]) -> None:
        fresh: List[Turn] = []
        seen: set[str] = set()
        for turn in turns:
            if turn.id in seen:
                continue
            seen.add(turn.id)
            fresh.append(turn)
        self._turns = fresh

    def append(self, turn: Turn) -> None:
        if any(t.id == turn.id for t in self._turns):
            raise ValueError(f"Turn {turn.id} is already in the transcript")
        self._turns.append(turn)

    def reconcile(self, local_id: str, confirmed: Turn) -> None:
        idx = self._index_of(local_id)
        if self._turns[idx].state != "pending":
            raise ValueError(f"Turn {local_id} is not pending")
        if confirmed.id != local_id and any(t.id == confirmed.id for t in self._turns):
            raise ValueError(f"Turn {confirmed.id} is already in the transcript")
        self._turns[idx] = confirmed

    def mark_local(self, local_id: str) -> None:
        idx = self._index_of(local_id)
        current = self._turns[idx]
        if current.state != "pending":
            raise ValueError(f"Turn {local_id} is not pending")
        self._turns[idx] = current.model_copy(update={"state": "local_fallback"})

    def turns(self) -> List[Turn]:
        return list(self._turns)

    def prompt_messages(self) -> List[Dict[str, str]]:
        return [{"role": t.role, "content": t.content} for t in self._turns]
