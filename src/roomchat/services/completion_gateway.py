from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union
import logging

import requests
from requests.adapters import HTTPAdapter

from .. import LLM_LOGGER
from ..domain.chat_models import CompletionMessage
from ..observability.metrics import GATEWAY_RELAYS
from .errors import ConfigurationError, GatewayTimeout, NetworkError, UpstreamError
from .provider import UpstreamProvider, resolve_provider

LOG = logging.getLogger(LLM_LOGGER)

EMPTY_REPLY = "Sorry, I couldn't formulate a response."
MISSING_KEY_DETAIL = "Backend Configuration Error: NVIDIA API Key is missing."

MessageLike = Union[CompletionMessage, Mapping[str, Any]]


class CompletionProvider(Protocol):
    def complete(self, messages: Sequence[MessageLike]) -> str: ...


def _build_session() -> requests.Session:
    # Single-attempt relay: failures go straight back to the caller.
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def normalize_messages(messages: Sequence[MessageLike]) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for msg in messages:
        if isinstance(msg, CompletionMessage):
            out.append({"role": msg.role, "content": msg.content})
        else:
            out.append({"role": str(msg.get("role") or "user"), "content": str(msg.get("content") or "")})
    return out


def extract_content(data: Any) -> str:
    """Pull ``choices[0].message.content`` out of a completion response."""

    if not isinstance(data, dict):
        return EMPTY_REPLY
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if content:
            return str(content)
    return EMPTY_REPLY


class CompletionGateway:
    """Stateless relay to the upstream completion provider."""

    def __init__(
        self,
        provider: Optional[UpstreamProvider] = None,
        session: Optional[requests.Session] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._env = env
        self.provider = provider or resolve_provider(env)
        self._session = session or _build_session()

    def relay(self, messages: Sequence[MessageLike]) -> Dict[str, Any]:
        """Send the conversation upstream and return the provider JSON verbatim."""

        api_key = self.provider.api_key(self._env)
        if not api_key:
            GATEWAY_RELAYS.labels(outcome="config_error").inc()
            LOG.error("gateway_missing_api_key", extra={"provider": self.provider.name})
            raise ConfigurationError(MISSING_KEY_DETAIL)

        payload = self.provider.payload(normalize_messages(messages))
        LOG.debug(
            "gateway_relay",
            extra={"provider": self.provider.name, "model": self.provider.model, "messages": len(payload["messages"])},  # type: ignore[arg-type]
        )
        try:
            resp = self._session.post(
                self.provider.url,
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=self.provider.timeout,
            )
        except requests.exceptions.ReadTimeout as exc:
            GATEWAY_RELAYS.labels(outcome="timeout").inc()
            LOG.warning("gateway_timeout", extra={"provider": self.provider.name, "err": str(exc)})
            raise GatewayTimeout(str(exc)) from exc
        except requests.exceptions.RequestException as exc:
            GATEWAY_RELAYS.labels(outcome="network_error").inc()
            LOG.warning("gateway_network_error", extra={"provider": self.provider.name, "err": str(exc)})
            raise NetworkError(str(exc)) from exc

        if not resp.ok:
            GATEWAY_RELAYS.labels(outcome="upstream_error").inc()
            LOG.warning(
                "gateway_upstream_error",
                extra={"provider": self.provider.name, "status": resp.status_code},
            )
            raise UpstreamError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            GATEWAY_RELAYS.labels(outcome="upstream_error").inc()
            raise UpstreamError(502, "Upstream returned a non-JSON body") from exc
        GATEWAY_RELAYS.labels(outcome="ok").inc()
        return data

    def complete(self, messages: Sequence[MessageLike]) -> str:
        return extract_content(self.relay(messages))
