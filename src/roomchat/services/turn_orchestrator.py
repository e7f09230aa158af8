"""Turn orchestration for one viewer of the shared room.

A submission runs through a fixed sequence: validate, optimistic append,
persist the user turn, build the prompt, call the completion provider,
persist the assistant turn, settle. Persistence is best effort: a failed
write is logged and the turn stays on screen as ``local_fallback``.
Completion failures become an assistant turn carrying the error text.
Nothing but :class:`SubmissionRejected` leaves :meth:`TurnOrchestrator.submit`.

Store and provider calls are blocking (``requests``); they run in a worker
thread so the viewer's event loop keeps serving input while a submission is
suspended on the network.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from ..domain.chat_models import DEFAULT_SESSION_ID, DEFAULT_SYSTEM_PROMPT, Turn
from ..infrastructure.turn_store import TurnStore
from .completion_gateway import CompletionProvider
from .errors import NetworkError, SubmissionRejected
from .transcript import Transcript

logger = logging.getLogger(__name__)

NETWORK_FAILURE_MESSAGE = "Failed to connect to the API. This might be a CORS issue or network offline."
GENERIC_FAILURE_MESSAGE = "An error occurred while processing your request."


def _local_id() -> str:
    return uuid.uuid4().hex


def describe_failure(exc: BaseException) -> str:
    """Render a completion failure as the assistant-visible error text.

    Only an unreachable endpoint gets the connectivity hint; timeouts and
    HTTP failures are shown with their own message.
    """

    if isinstance(exc, NetworkError):
        detail = NETWORK_FAILURE_MESSAGE
    else:
        detail = str(exc).strip() or GENERIC_FAILURE_MESSAGE
    return f"Error: {detail}"


class TurnOrchestrator:
    def __init__(
        self,
        store: TurnStore,
        completions: CompletionProvider,
        *,
        session_id: str = DEFAULT_SESSION_ID,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        transcript: Optional[Transcript] = None,
    ) -> None:
        self._store = store
        self._completions = completions
        self.session_id = session_id
        self.system_prompt = system_prompt
        self.transcript = transcript if transcript is not None else Transcript()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def hydrate(self) -> List[Turn]:
        """Load the session from the store; a failed read leaves the transcript as is.

        While a submission is in flight the transcript holds its pending turn,
        so the refresh is skipped and the current snapshot is returned.
        """

        if self._busy:
            logger.info("transcript_hydrate_skipped", extra={"session_id": self.session_id, "reason": "busy"})
            return self.transcript.turns()
        try:
            turns = await asyncio.to_thread(self._store.list_turns, self.session_id)
        except Exception:
            logger.warning("transcript_hydrate_failed", extra={"session_id": self.session_id}, exc_info=True)
            return self.transcript.turns()
        if self._busy:
            # a submission started while the store was being read
            logger.info("transcript_hydrate_skipped", extra={"session_id": self.session_id, "reason": "busy"})
            return self.transcript.turns()
        self.transcript.hydrate(turns)
        return self.transcript.turns()

    def build_prompt(self, prior: List[Dict[str, str]], text: str) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(prior)
        messages.append({"role": "user", "content": text})
        return messages

    async def submit(self, text: str) -> Turn:
        """Run one submission and return the assistant turn it appended."""

        content = (text or "").strip()
        if not content:
            raise SubmissionRejected("empty")
        if self._busy:
            raise SubmissionRejected("busy")
        self._busy = True
        try:
            return await self._run(content)
        finally:
            self._busy = False

    async def _run(self, content: str) -> Turn:
        # Captured before the optimistic append. Reading history from the view
        # only holds while this viewer runs one submission at a time.
        prior = self.transcript.prompt_messages()
        pending = Turn(id=_local_id(), role="user", content=content, session_id=self.session_id, state="pending")
        self.transcript.append(pending)

        await self._persist_user_turn(pending)

        prompt = self.build_prompt(prior, content)
        try:
            reply = await asyncio.to_thread(self._completions.complete, prompt)
        except Exception as exc:
            logger.warning(
                "completion_failed",
                extra={"session_id": self.session_id, "err_type": type(exc).__name__, "err": str(exc)},
            )
            error_turn = self._local_assistant(describe_failure(exc))
            self.transcript.append(error_turn)
            return error_turn

        assistant = await self._persist_assistant_turn(reply)
        try:
            self.transcript.append(assistant)
        except ValueError:
            logger.warning("turn_reconcile_conflict", extra={"session_id": self.session_id, "turn_id": assistant.id})
            assistant = self._local_assistant(reply)
            self.transcript.append(assistant)
        return assistant

    def _local_assistant(self, content: str) -> Turn:
        return Turn(id=_local_id(), role="assistant", content=content, session_id=self.session_id, state="local_fallback")

    async def _persist_user_turn(self, pending: Turn) -> None:
        try:
            saved = await asyncio.to_thread(self._store.append, self.session_id, "user", pending.content)
        except Exception:
            logger.warning("turn_persist_failed", extra={"session_id": self.session_id, "role": "user"}, exc_info=True)
            self.transcript.mark_local(pending.id)
            return
        try:
            self.transcript.reconcile(pending.id, saved)
        except ValueError:
            # store handed back an id this viewer already shows
            logger.warning("turn_reconcile_conflict", extra={"session_id": self.session_id, "turn_id": saved.id})
            self.transcript.mark_local(pending.id)

    async def _persist_assistant_turn(self, reply: str) -> Turn:
        try:
            return await asyncio.to_thread(self._store.append, self.session_id, "assistant", reply)
        except Exception:
            logger.warning(
                "turn_persist_failed", extra={"session_id": self.session_id, "role": "assistant"}, exc_info=True
            )
        return self._local_assistant(reply)
