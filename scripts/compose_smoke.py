#!/usr/bin/env python3
from __future__ import annotations

import os
import sys

import httpx


def main() -> int:
    base_url = os.getenv("MAPGPT_API_URL", "http://localhost:8000").rstrip("/")
    try:
        with httpx.Client(base_url=base_url, timeout=5.0) as client:
            health = client.get("/healthz")
            health.raise_for_status()
            print("/healthz:", health.text)
            usage = client.get("/api/chat")
            usage.raise_for_status()
            print("GET /api/chat:", usage.text)
            # Help is answered without any upstream call, so it works without API keys
            reply = client.post("/api/chat", json={"prompt": "help"})
            reply.raise_for_status()
            print("POST /api/chat (help):", reply.json()["response"][:80])
    except (httpx.HTTPError, KeyError, ValueError) as exc:
        print(f"Compose smoke failed: {exc}", file=sys.stderr)
        return 1
    print("Compose smoke passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
