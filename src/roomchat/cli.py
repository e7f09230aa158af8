"""Terminal viewer for the shared room.

Run:
  python -m src.roomchat.cli                # talk to the proxy at ROOMCHAT_PROXY_URL
  python -m src.roomchat.cli --direct       # call the provider in-process (needs NVIDIA_API_KEY)

Lines typed are submitted as user turns. ``/refresh`` reloads the room from
the store, ``/quit`` exits.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Callable, List, Optional, Set

from dotenv import load_dotenv

from .domain.chat_models import Turn
from .infrastructure.turn_store import InMemoryTurnStore, TurnStore, configured_session_id, get_turn_store
from .services.completion_client import ProxyCompletionClient
from .services.completion_gateway import CompletionGateway, CompletionProvider
from .services.errors import StoreError, SubmissionRejected
from .services.turn_orchestrator import TurnOrchestrator

BANNER = "This is a global, public chat room. All users share this conversational history."

REJECTION_NOTICES = {
    "busy": "(still waiting for the assistant; message not sent)",
    "empty": "(nothing to send)",
}


def format_turn(turn: Turn) -> str:
    label = "You" if turn.role == "user" else "Assistant"
    suffix = " (not saved)" if turn.state == "local_fallback" else ""
    return f"{label}{suffix}: {turn.content}"


def render(turns: List[Turn], write: Callable[[str], None]) -> None:
    if not turns:
        write(BANNER)
        return
    for turn in turns:
        write(format_turn(turn))


async def _submit_and_render(orchestrator: TurnOrchestrator, text: str, write: Callable[[str], None]) -> None:
    try:
        turn = await orchestrator.submit(text)
    except SubmissionRejected as exc:
        write(REJECTION_NOTICES.get(exc.reason, str(exc)))
        return
    write(format_turn(turn))


async def run_repl(
    orchestrator: TurnOrchestrator,
    read_line: Callable[[], Optional[str]],
    write: Callable[[str], None] = print,
) -> None:
    render(await orchestrator.hydrate(), write)
    in_flight: Set[asyncio.Task] = set()
    while True:
        line = await asyncio.to_thread(read_line)
        if line is None:
            break
        command = line.strip()
        if command == "/quit":
            break
        if command == "/refresh":
            if orchestrator.busy:
                write(REJECTION_NOTICES["busy"])
                continue
            render(await orchestrator.hydrate(), write)
            continue
        task = asyncio.create_task(_submit_and_render(orchestrator, line, write))
        in_flight.add(task)
        task.add_done_callback(in_flight.discard)
        # let the submission take the busy flag before the next line is read
        await asyncio.sleep(0)
    if in_flight:
        await asyncio.gather(*in_flight)


def _read_stdin() -> Optional[str]:
    try:
        return input()
    except EOFError:
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Roomchat terminal viewer")
    parser.add_argument("--proxy-url", default=None, help="Chat route of the proxy (default: ROOMCHAT_PROXY_URL)")
    parser.add_argument("--direct", action="store_true", help="Call the completion provider in-process")
    parser.add_argument("--session-id", default=None, help="Session to join (default: ROOMCHAT_SESSION_ID)")
    parser.add_argument(
        "--store",
        choices=("env", "memory"),
        default="env",
        help="'env' uses ROOMCHAT_TURN_STORE_IMPL, 'memory' keeps the room in this process only",
    )
    return parser


def build_orchestrator(args: argparse.Namespace) -> TurnOrchestrator:
    store: TurnStore = InMemoryTurnStore() if args.store == "memory" else get_turn_store()
    completions: CompletionProvider = CompletionGateway() if args.direct else ProxyCompletionClient(url=args.proxy_url)
    return TurnOrchestrator(store, completions, session_id=args.session_id or configured_session_id())


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)
    try:
        orchestrator = build_orchestrator(args)
    except StoreError as exc:
        raise SystemExit(f"roomchat: cannot open the turn store: {exc}") from exc
    asyncio.run(run_repl(orchestrator, _read_stdin))


if __name__ == "__main__":
    main()
