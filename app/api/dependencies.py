from __future__ import annotations

import logging

from fastapi import Request

from app.core.config import SETTINGS
from app.core.errors import InvalidRequest, UpstreamFailure
from app.core.metrics import FETCH_METADATA_REJECTIONS
from app.repos.session_repo import SessionRepo, session_repo
from app.services.fetch_metadata import (
    FetchMetadata,
    callback_violation,
    login_violation,
)
from app.services.oauth_client import DiscordOAuthClient
from app.services.session_cookie import unsign_session_id

logger = logging.getLogger(__name__)


def get_session_repo() -> SessionRepo:
    return session_repo


def get_oauth_client(request: Request) -> DiscordOAuthClient:
    """The provider client built in the app lifespan."""
    client = getattr(request.app.state, "oauth_client", None)
    if client is None:
        raise UpstreamFailure("provider client not initialised")
    return client


def session_id_from_cookie(request: Request) -> str | None:
    """Verified session id from the cookie, or None (missing or forged)."""
    raw = request.cookies.get(SETTINGS.session_cookie_name)
    session_id = unsign_session_id(raw, SETTINGS.session_secret)
    if raw is not None and session_id is None:
        logger.warning("Ignoring session cookie with a bad signature")
    return session_id


def require_login_metadata(request: Request) -> None:
    """Reject /login requests that are not user-initiated same-origin navigations."""
    violation = login_violation(FetchMetadata.from_headers(request.headers))
    if violation is not None:
        FETCH_METADATA_REJECTIONS.labels(endpoint="login").inc()
        raise InvalidRequest(f"fetch metadata rejected: {violation}")


def require_callback_metadata(request: Request) -> None:
    """Reject /callback requests that are not cross-site top-level navigations."""
    violation = callback_violation(FetchMetadata.from_headers(request.headers))
    if violation is not None:
        FETCH_METADATA_REJECTIONS.labels(endpoint="callback").inc()
        raise InvalidRequest(f"fetch metadata rejected: {violation}")
