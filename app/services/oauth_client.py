"""Discord OAuth2 client — the relying-party half of the Authorization Code flow.

  build_authorization_url — where /login sends the visitor (pure, no I/O)
  exchange_code           — POST the code to the token endpoint
  verify_scope            — the granted scope set must equal the requested one
  fetch_identity          — GET the current authorization with the bearer token

Every provider call is a single attempt.  Any non-200, transport error or
unexpected payload raises an UpstreamFailure subclass; the route layer
turns that into a 500 without echoing provider details to the visitor.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from app.core.config import Settings
from app.core.errors import IdentityFetchFailed, InsufficientScope, TokenExchangeFailed
from app.core.metrics import PROVIDER_REQUESTS
from app.models.provider import CurrentAuthorization, Identity, TokenResponse

OAUTH2_ENDPOINT = "https://discord.com/api/oauth2"
OAUTH2_AUTHORIZATION_ENDPOINT = OAUTH2_ENDPOINT + "/authorize"
OAUTH2_TOKEN_ENDPOINT = OAUTH2_ENDPOINT + "/token"
OAUTH2_CURRENT_AUTHORIZATION_ENDPOINT = OAUTH2_ENDPOINT + "/@me"

SCOPES: tuple[str, ...] = ("identify", "email")


def build_authorization_url(
    client_id: str, redirect_uri: str, scopes: Iterable[str], state: str
) -> str:
    params = {
        "client_id": client_id,
        "response_type": "code",
        "scope": " ".join(scopes),
        "redirect_uri": redirect_uri,
        "prompt": "none",
        "state": state,
    }
    # quote (not quote_plus) so the scope separator is encoded as %20
    return f"{OAUTH2_AUTHORIZATION_ENDPOINT}?{urlencode(params, quote_via=quote)}"


def verify_scope(granted: str, required: Iterable[str]) -> None:
    """Raise InsufficientScope unless the granted set equals the required set.

    Exact equality, not superset.
    """
    granted_set = set(granted.split(" "))
    required_set = set(required)
    if granted_set != required_set:
        missing = sorted(required_set - granted_set)
        extra = sorted(granted_set - required_set)
        raise InsufficientScope(f"scope mismatch missing={missing} extra={extra}")


class DiscordOAuthClient:
    """Provider calls bound to one application's credentials and HTTP client."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def exchange_code(self, code: str) -> TokenResponse:
        # NOTE: never log the code, the client secret or the returned token.
        try:
            response = await self._http.post(
                OAUTH2_TOKEN_ENDPOINT,
                data={
                    "client_id": self._settings.client_id,
                    "client_secret": self._settings.client_secret,
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self._settings.redirect_uri,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            PROVIDER_REQUESTS.labels(endpoint="token", result="transport_error").inc()
            raise TokenExchangeFailed(f"transport error: {type(e).__name__}") from e

        if response.status_code != 200:
            PROVIDER_REQUESTS.labels(endpoint="token", result="http_error").inc()
            raise TokenExchangeFailed(f"token endpoint returned {response.status_code}")

        try:
            token = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            PROVIDER_REQUESTS.labels(endpoint="token", result="bad_payload").inc()
            raise TokenExchangeFailed("token endpoint returned an invalid body") from e

        PROVIDER_REQUESTS.labels(endpoint="token", result="ok").inc()
        return token

    async def fetch_identity(self, access_token: str) -> Identity:
        try:
            response = await self._http.get(
                OAUTH2_CURRENT_AUTHORIZATION_ENDPOINT,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            PROVIDER_REQUESTS.labels(endpoint="identity", result="transport_error").inc()
            raise IdentityFetchFailed(f"transport error: {type(e).__name__}") from e

        if response.status_code != 200:
            PROVIDER_REQUESTS.labels(endpoint="identity", result="http_error").inc()
            raise IdentityFetchFailed(
                f"current authorization endpoint returned {response.status_code}"
            )

        try:
            current = CurrentAuthorization.model_validate_json(response.content)
        except ValidationError as e:
            PROVIDER_REQUESTS.labels(endpoint="identity", result="bad_payload").inc()
            raise IdentityFetchFailed(
                "current authorization endpoint returned an invalid body"
            ) from e

        PROVIDER_REQUESTS.labels(endpoint="identity", result="ok").inc()
        return current.user


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
