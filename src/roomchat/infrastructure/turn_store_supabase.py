from __future__ import annotations

"""Turn store backed by a Supabase project's PostgREST endpoint.

Rows live in the ``chats`` table: ``{id, session_id, role, content,
created_at}`` with ``id`` and ``created_at`` filled in by the database.
"""

from typing import Any, Dict, List, Optional
import logging
import os

import requests

from ..domain.chat_models import Turn
from ..services.errors import StoreError
from .turn_store import check_role

logger = logging.getLogger(__name__)

TABLE = "chats"


def _env_first(env: Dict[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


class SupabaseTurnStore:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: tuple[float, float] = (3, 15),
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        env = env if env is not None else os.environ
        base = url or _env_first(env, "SUPABASE_URL", "VITE_SUPABASE_URL")
        key = api_key or _env_first(env, "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY")
        if not base or not key:
            raise StoreError("Supabase store requires SUPABASE_URL and SUPABASE_ANON_KEY")
        self._endpoint = f"{base.rstrip('/')}/rest/v1/{TABLE}"
        self._api_key = key
        self._session = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _to_turn(self, row: Dict[str, Any]) -> Turn:
        try:
            return Turn(
                id=str(row["id"]),
                role=row["role"],
                content=row["content"],
                created_at=row.get("created_at"),
                session_id=row.get("session_id"),
                state="confirmed",
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed row from Supabase: {exc}") from exc

    def _request(self, method: str, **kwargs: Any) -> Any:
        try:
            resp = self._session.request(method, self._endpoint, timeout=self._timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise StoreError(f"Supabase request failed: {exc}") from exc
        if not resp.ok:
            raise StoreError(f"Supabase error: {resp.status_code} {resp.text}")
        try:
            return resp.json()
        except ValueError as exc:
            raise StoreError("Supabase returned a non-JSON body") from exc

    def append(self, session_id: str, role: str, content: str) -> Turn:
        check_role(role)
        headers = self._headers()
        headers["Prefer"] = "return=representation"
        data = self._request(
            "POST",
            headers=headers,
            json={"session_id": session_id, "role": role, "content": content},
        )
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            raise StoreError("Supabase insert returned no row")
        return self._to_turn(rows[0])

    def list_turns(self, session_id: str) -> List[Turn]:
        data = self._request(
            "GET",
            headers=self._headers(),
            params={
                "select": "*",
                "session_id": f"eq.{session_id}",
                "order": "created_at.asc",
            },
        )
        if not isinstance(data, list):
            raise StoreError("Supabase list returned a non-list body")
        return [self._to_turn(row) for row in data]
