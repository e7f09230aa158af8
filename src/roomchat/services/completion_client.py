from __future__ import annotations

from typing import Optional, Sequence, Tuple
import logging
import os

import requests

from .. import LLM_LOGGER
from .completion_gateway import MessageLike, extract_content, normalize_messages
from .errors import GatewayError, GatewayTimeout, NetworkError

logger = logging.getLogger(LLM_LOGGER)

DEFAULT_PROXY_URL = "http://127.0.0.1:8000/api/chat"


class ProxyCompletionClient:
    """Viewer-side caller of the proxy's chat route.

    Holds no credential: the proxy resolves it server-side.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Tuple[float, float] = (5, 180),
    ) -> None:
        self.url = url or os.getenv("ROOMCHAT_PROXY_URL") or DEFAULT_PROXY_URL
        self._session = session or requests.Session()
        self._timeout = timeout

    def complete(self, messages: Sequence[MessageLike]) -> str:
        try:
            resp = self._session.post(
                self.url,
                json={"messages": normalize_messages(messages)},
                timeout=self._timeout,
            )
        except requests.exceptions.ReadTimeout as exc:
            logger.warning("proxy_timeout", extra={"url": self.url, "err": str(exc)})
            raise GatewayTimeout(str(exc)) from exc
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
            logger.warning("proxy_unreachable", extra={"url": self.url, "err": str(exc)})
            raise NetworkError(str(exc)) from exc
        except requests.exceptions.RequestException as exc:
            raise GatewayError(500, str(exc)) from exc

        if not resp.ok:
            raise GatewayError(resp.status_code, resp.reason or "")
        try:
            data = resp.json()
        except ValueError as exc:
            raise GatewayError(resp.status_code, "Proxy returned a non-JSON body") from exc
        return extract_content(data)
