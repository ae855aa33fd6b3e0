from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.core.config import SETTINGS
from app.core.errors import IdentityFetchFailed, InsufficientScope, TokenExchangeFailed
from app.services.oauth_client import (
    SCOPES,
    DiscordOAuthClient,
    build_authorization_url,
    verify_scope,
)

# ---- build_authorization_url ----


def test_build_authorization_url_has_all_parameters() -> None:
    url = build_authorization_url(
        "cid", "https://example.com/callback", ["identify", "email"], "st"
    )
    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://discord.com/api/oauth2/authorize"
    )
    assert parse_qs(parsed.query) == {
        "client_id": ["cid"],
        "response_type": ["code"],
        "scope": ["identify email"],
        "redirect_uri": ["https://example.com/callback"],
        "prompt": ["none"],
        "state": ["st"],
    }


def test_build_authorization_url_parameter_order_and_encoding() -> None:
    url = build_authorization_url("cid", "https://example.com/cb", SCOPES, "st")
    assert url.endswith(
        "?client_id=cid&response_type=code&scope=identify%20email"
        "&redirect_uri=https%3A%2F%2Fexample.com%2Fcb&prompt=none&state=st"
    )


# ---- verify_scope ----


@pytest.mark.parametrize("granted", ["identify email", "email identify"])
def test_verify_scope_accepts_exact_set(granted: str) -> None:
    verify_scope(granted, SCOPES)


@pytest.mark.parametrize(
    "granted",
    ["identify", "email", "", "identify email guilds", "identify  email"],
)
def test_verify_scope_rejects_anything_else(granted: str) -> None:
    with pytest.raises(InsufficientScope):
        verify_scope(granted, SCOPES)


def test_verify_scope_accepts_duplicates_of_required_scopes() -> None:
    verify_scope("identify email identify", SCOPES)


# ---- provider calls ----


def _client(handler) -> DiscordOAuthClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DiscordOAuthClient(SETTINGS, http)


def test_exchange_code_returns_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "access_token": "t",
                "token_type": "Bearer",
                "expires_in": 604800,
                "refresh_token": "r",
                "scope": "identify email",
            },
        )

    token = asyncio.run(_client(handler).exchange_code("abc"))
    assert token.access_token == "t"
    assert token.scope == "identify email"
    assert token.expires_in == 604800


def test_token_repr_hides_access_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"access_token": "very-secret", "scope": "identify email"}
        )

    token = asyncio.run(_client(handler).exchange_code("abc"))
    assert "very-secret" not in repr(token)


@pytest.mark.parametrize("status_code", [201, 400, 401, 429, 500])
def test_exchange_code_non_200_fails(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code, json={"access_token": "t", "scope": "identify email"}
        )

    with pytest.raises(TokenExchangeFailed):
        asyncio.run(_client(handler).exchange_code("abc"))


def test_exchange_code_non_json_body_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(TokenExchangeFailed):
        asyncio.run(_client(handler).exchange_code("abc"))


def test_exchange_code_transport_error_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TokenExchangeFailed) as exc_info:
        asyncio.run(_client(handler).exchange_code("abc"))
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


def test_fetch_identity_returns_nested_user() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "application": {"id": "1"},
                "scopes": ["identify", "email"],
                "user": {"id": "42", "username": "bob", "discriminator": "0"},
            },
        )

    identity = asyncio.run(_client(handler).fetch_identity("t"))
    assert identity.username == "bob"
    assert identity.discriminator == "0"
    assert seen[0].url.path == "/api/oauth2/@me"
    assert seen[0].headers["authorization"] == "Bearer t"


def test_fetch_identity_non_200_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "401: Unauthorized"})

    with pytest.raises(IdentityFetchFailed):
        asyncio.run(_client(handler).fetch_identity("t"))


def test_fetch_identity_missing_user_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"scopes": ["identify"]})

    with pytest.raises(IdentityFetchFailed):
        asyncio.run(_client(handler).fetch_identity("t"))
