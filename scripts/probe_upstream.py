"""
Send a one-message "hello" conversation straight to the completion provider
and print the HTTP status and raw body. Useful for checking a credential
before pointing the proxy at it.

Run:
  NVIDIA_API_KEY=... python scripts/probe_upstream.py
"""
from __future__ import annotations

from pathlib import Path
import sys

import requests
from dotenv import load_dotenv

# Ensure repository root is on sys.path so 'src' package can be imported when
# executing this script from the scripts/ directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.roomchat.services.provider import resolve_provider


def probe(message: str = "hello") -> int:
    provider = resolve_provider()
    api_key = provider.api_key()
    if not api_key:
        print("No credential found in " + " or ".join(provider.api_key_envs), file=sys.stderr)
        return 2
    try:
        resp = requests.post(
            provider.url,
            json=provider.payload([{"role": "user", "content": message}]),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=provider.timeout,
        )
    except requests.exceptions.RequestException as exc:
        print(f"Fetch error: {exc}", file=sys.stderr)
        return 1
    print("Status:", resp.status_code)
    print("Body:", resp.text)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    load_dotenv()
    sys.exit(probe(*sys.argv[1:2]))
