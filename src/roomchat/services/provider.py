"""Upstream completion provider settings.

The gateway talks to exactly one provider. Its sampling parameters are
fixed here and never taken from the caller; only the endpoint, timeouts and
credential come from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class UpstreamProvider:
    """Resolved details about the provider that handles completions."""

    name: str
    url: str
    model: str
    temperature: float
    max_tokens: int
    api_key_envs: Tuple[str, ...]
    timeout: Tuple[float, float]

    def api_key(self, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Look the credential up at call time; the value is never cached."""

        source = env if env is not None else os.environ
        for name in self.api_key_envs:
            value = (source.get(name) or "").strip()
            if value:
                return value
        return None

    def payload(self, messages: list) -> Dict[str, object]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


PROVIDER_CONFIG: Dict[str, object] = {
    "name": "nvidia",
    "url_env": "ROOMCHAT_UPSTREAM_URL",
    "default_url": "https://integrate.api.nvidia.com/v1/chat/completions",
    "model": "meta/llama-3.1-70b-instruct",
    "temperature": 0.7,
    "max_tokens": 1024,
    # VITE_ prefix kept for deployments that still export the browser-era name
    "api_key_envs": ("NVIDIA_API_KEY", "VITE_NVIDIA_API_KEY"),
    "connect_timeout_env": "ROOMCHAT_UPSTREAM_CONNECT_TIMEOUT",
    "read_timeout_env": "ROOMCHAT_UPSTREAM_READ_TIMEOUT",
}


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def resolve_provider(env: Optional[Mapping[str, str]] = None) -> UpstreamProvider:
    env = env if env is not None else os.environ
    cfg = PROVIDER_CONFIG
    url = (env.get(str(cfg["url_env"])) or "").strip() or str(cfg["default_url"])
    return UpstreamProvider(
        name=str(cfg["name"]),
        url=url,
        model=str(cfg["model"]),
        temperature=float(cfg["temperature"]),  # type: ignore[arg-type]
        max_tokens=int(cfg["max_tokens"]),  # type: ignore[arg-type]
        api_key_envs=tuple(cfg["api_key_envs"]),  # type: ignore[arg-type]
        timeout=(
            _float_env(env, str(cfg["connect_timeout_env"]), 5.0),
            _float_env(env, str(cfg["read_timeout_env"]), 120.0),
        ),
    )
