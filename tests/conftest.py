from __future__ import annotations

import os

# Settings are read once at import time, so the test environment has to be
# in place before anything under app/ is imported.
os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("CLIENT_ID", "test-client-id")
os.environ.setdefault("CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("REDIRECT_URI", "https://testserver/callback")
os.environ.pop("REDIS_URL", None)

from collections.abc import Iterator  # noqa: E402
from urllib.parse import parse_qs, urlparse  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.dependencies import get_oauth_client  # noqa: E402
from app.core.config import SETTINGS  # noqa: E402
from app.main import app  # noqa: E402
from app.repos.session_repo import session_repo  # noqa: E402
from app.services.oauth_client import (  # noqa: E402
    OAUTH2_CURRENT_AUTHORIZATION_ENDPOINT,
    OAUTH2_TOKEN_ENDPOINT,
    DiscordOAuthClient,
)
from app.services.session_cookie import unsign_session_id  # noqa: E402

BASE_URL = "https://testserver"

# Headers a browser sends when the visitor clicks the login link on "/".
LOGIN_NAV_HEADERS = {
    "sec-fetch-site": "same-origin",
    "sec-fetch-mode": "navigate",
    "sec-fetch-dest": "document",
    "sec-fetch-user": "?1",
}

# Headers a browser sends when the provider redirects back to /callback.
CALLBACK_NAV_HEADERS = {
    "sec-fetch-site": "cross-site",
    "sec-fetch-mode": "navigate",
    "sec-fetch-dest": "document",
}


class FakeProvider:
    """Scriptable stand-in for Discord's token and current-authorization endpoints."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_body: dict = {"access_token": "t", "scope": "identify email"}
        self.identity_status = 200
        self.identity_body: dict = {"user": {"username": "bob", "discriminator": "0"}}
        self.raise_transport_error = False
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_transport_error:
            raise httpx.ConnectError("connection refused", request=request)
        if _is(request, OAUTH2_TOKEN_ENDPOINT):
            return httpx.Response(self.token_status, json=self.token_body)
        if _is(request, OAUTH2_CURRENT_AUTHORIZATION_ENDPOINT):
            return httpx.Response(self.identity_status, json=self.identity_body)
        return httpx.Response(404, json={"message": "404: Not Found"})

    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if _is(r, OAUTH2_TOKEN_ENDPOINT)]

    def identity_requests(self) -> list[httpx.Request]:
        return [
            r for r in self.requests if _is(r, OAUTH2_CURRENT_AUTHORIZATION_ENDPOINT)
        ]


def _is(request: httpx.Request, endpoint: str) -> bool:
    target = httpx.URL(endpoint)
    return request.url.host == target.host and request.url.path == target.path


@pytest.fixture(autouse=True)
def reset_sessions() -> None:
    """Clear the in-memory session store between tests."""
    if hasattr(session_repo, "_by_id"):
        session_repo._by_id.clear()  # type: ignore[union-attr]
        session_repo._expires_at.clear()  # type: ignore[union-attr]


@pytest.fixture
def provider() -> Iterator[FakeProvider]:
    fake = FakeProvider()
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    oauth = DiscordOAuthClient(SETTINGS, http)
    app.dependency_overrides[get_oauth_client] = lambda: oauth
    yield fake
    app.dependency_overrides.pop(get_oauth_client, None)


@pytest.fixture
def client(provider: FakeProvider) -> TestClient:
    # https base URL so the Secure session cookie is sent back.
    return TestClient(app, base_url=BASE_URL, follow_redirects=False)


# ---------------------------------------------------------------------------
# Flow helpers
# ---------------------------------------------------------------------------


def session_cookie(client: TestClient) -> str | None:
    return client.cookies.get(SETTINGS.session_cookie_name)


def current_session_id(client: TestClient) -> str | None:
    return unsign_session_id(session_cookie(client), SETTINGS.session_secret)


def start_login(client: TestClient) -> str:
    """GET /login as a browser would and return the state sent to the provider."""
    resp = client.get("/login", headers=LOGIN_NAV_HEADERS)
    assert resp.status_code == 302, resp.text
    query = parse_qs(urlparse(resp.headers["location"]).query)
    return query["state"][0]


def complete_callback(client: TestClient, **params: str) -> httpx.Response:
    return client.get("/callback", params=params, headers=CALLBACK_NAV_HEADERS)


def dump_form(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode("utf-8"))
