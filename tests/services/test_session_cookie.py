from __future__ import annotations

import dataclasses

from starlette.responses import Response

from app.core.config import SETTINGS
from app.models.session import Session
from app.services.session_cookie import (
    set_session_cookie,
    sign_session_id,
    unsign_session_id,
)

SECRET = "cookie-test-secret"


def test_signed_id_round_trips() -> None:
    assert unsign_session_id(sign_session_id("abc", SECRET), SECRET) == "abc"


def test_unsign_rejects_wrong_secret() -> None:
    assert unsign_session_id(sign_session_id("abc", SECRET), "other-secret") is None


def test_unsign_rejects_tampered_id() -> None:
    signed = sign_session_id("abc", SECRET)
    sig = signed.rpartition(".")[2]
    assert unsign_session_id(f"abd.{sig}", SECRET) is None


def test_unsign_rejects_unsigned_and_empty_values() -> None:
    assert unsign_session_id(None, SECRET) is None
    assert unsign_session_id("", SECRET) is None
    assert unsign_session_id("abc", SECRET) is None
    assert unsign_session_id(".sig", SECRET) is None


def test_unsign_tolerates_non_ascii_signature() -> None:
    assert unsign_session_id("abc.sïg", SECRET) is None


def test_set_session_cookie_attributes() -> None:
    response = Response()
    session = Session.new()
    set_session_cookie(response, session, SETTINGS)

    header = response.headers["set-cookie"]
    assert header.startswith(f"{SETTINGS.session_cookie_name}={session.id}.")
    lowered = header.lower()
    assert "httponly" in lowered
    assert "samesite=lax" in lowered
    assert "secure" in lowered
    assert f"max-age={SETTINGS.session_ttl_seconds}" in lowered


def test_set_session_cookie_not_secure_in_development() -> None:
    dev = dataclasses.replace(SETTINGS, node_env="development")
    response = Response()
    set_session_cookie(response, Session.new(), dev)
    assert "secure" not in response.headers["set-cookie"].lower()
