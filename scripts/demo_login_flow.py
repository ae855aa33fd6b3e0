"""Demo: walk the Discord login flow against a fake provider.

No Discord application is needed; token and identity calls are answered
by an httpx MockTransport.  Run with:
    NODE_ENV=development python scripts/demo_login_flow.py
"""

from __future__ import annotations

import os

os.environ.setdefault("NODE_ENV", "development")
os.environ.setdefault("CLIENT_ID", "demo-client")
os.environ.setdefault("CLIENT_SECRET", "demo-secret")

from urllib.parse import parse_qs, urlparse  # noqa: E402

import httpx  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.dependencies import get_oauth_client  # noqa: E402
from app.core.config import SETTINGS  # noqa: E402
from app.main import app  # noqa: E402
from app.services.oauth_client import (  # noqa: E402
    OAUTH2_TOKEN_ENDPOINT,
    DiscordOAuthClient,
)


def _fake_discord(request: httpx.Request) -> httpx.Response:
    if request.url.path == httpx.URL(OAUTH2_TOKEN_ENDPOINT).path:
        return httpx.Response(
            200, json={"access_token": "demo-token", "scope": "identify email"}
        )
    return httpx.Response(
        200, json={"user": {"username": "demo-user", "discriminator": "0001"}}
    )


def main() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(_fake_discord))
    app.dependency_overrides[get_oauth_client] = lambda: DiscordOAuthClient(
        SETTINGS, http
    )
    client = TestClient(app, follow_redirects=False)
    nav = {"sec-fetch-site": "same-origin", "sec-fetch-mode": "navigate",
           "sec-fetch-dest": "document", "sec-fetch-user": "?1"}

    # ── Step 1: GET / ───────────────────────────────────────────────
    r = client.get("/")
    print(f"1. GET  /                      → {r.status_code}  (login link)")

    # ── Step 2: cross-site GET /login (rejected) ───────────────────
    r = client.get("/login", headers={**nav, "sec-fetch-site": "cross-site"})
    print(f"2. GET  /login (cross-site)    → {r.status_code}  ({r.text})")

    # ── Step 3: GET /login ─────────────────────────────────────────
    r = client.get("/login", headers=nav)
    location = r.headers["location"]
    state = parse_qs(urlparse(location).query)["state"][0]
    print(f"3. GET  /login                 → {r.status_code}  → {location.split('?')[0]}")

    # ── Step 4: callback with a forged state (rejected) ────────────
    r = client.get("/callback", params={"code": "demo-code", "state": "forged"})
    print(f"4. GET  /callback (bad state)  → {r.status_code}  ({r.text})")

    # ── Step 5: state was consumed, start over ─────────────────────
    r = client.get("/login", headers=nav)
    state = parse_qs(urlparse(r.headers["location"]).query)["state"][0]
    print(f"5. GET  /login                 → {r.status_code}  (fresh state)")

    # ── Step 6: GET /callback ──────────────────────────────────────
    r = client.get("/callback", params={"code": "demo-code", "state": state})
    print(f"6. GET  /callback              → {r.status_code}  (authorized page)")
    print()
    print(r.text)


if __name__ == "__main__":
    main()
