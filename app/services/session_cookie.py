"""Signed session cookie helpers.

The cookie value is ``<session id>.<signature>``, where the signature is an
HMAC-SHA256 of the id keyed by SESSION_SECRET.  The id alone already has
256 bits of entropy; the signature means a forged or truncated cookie is
rejected before the store is ever queried.

Cookie attributes:
  HttpOnly      — not readable from page scripts
  SameSite=Lax  — not sent on cross-site subresource requests, but still
                  sent on the provider's top-level redirect to /callback
  Secure        — unless NODE_ENV=development (plain-http localhost)
"""

from __future__ import annotations

import base64
import hashlib
import hmac

from starlette.responses import Response

from app.core.config import Settings
from app.models.session import Session


def _signature(session_id: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def sign_session_id(session_id: str, secret: str) -> str:
    return f"{session_id}.{_signature(session_id, secret)}"


def unsign_session_id(cookie_value: str | None, secret: str) -> str | None:
    """Return the session id from a cookie value, or None if it doesn't verify."""
    if not cookie_value:
        return None
    session_id, sep, sig = cookie_value.rpartition(".")
    if not sep or not session_id:
        return None
    expected = _signature(session_id, secret)
    if not hmac.compare_digest(sig.encode("utf-8"), expected.encode("utf-8")):
        return None
    return session_id


def set_session_cookie(response: Response, session: Session, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_session_id(session.id, settings.session_secret),
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
