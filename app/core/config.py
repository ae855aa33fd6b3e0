from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("", "0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: str = "false") -> bool:
    raw = _getenv(name, default).lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_int(name: str, default: str) -> int:
    raw = _getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    client_id: str
    client_secret: str
    redirect_uri: str
    session_secret: str
    port: int
    debug: bool
    node_env: str
    log_level: LogLevel
    log_json: bool
    redis_url: str | None
    session_cookie_name: str
    session_ttl_seconds: int
    provider_timeout_seconds: float

    @property
    def is_development(self) -> bool:
        return self.node_env == "development"

    @property
    def cookie_secure(self) -> bool:
        # Secure cookies break plain-http localhost testing, so only
        # development mode opts out.
        return not self.is_development


def load_settings(env_file: str | os.PathLike[str] | None = None) -> Settings:
    """Build Settings from the environment.

    When ``env_file`` exists its variables are loaded first.  Variables
    already set in the process environment win over the file.
    """
    if env_file is not None and Path(env_file).is_file():
        load_dotenv(env_file, override=False)

    node_env = _getenv("NODE_ENV", "production").lower()
    debug = _getenv_bool("DEBUG")
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )
    if debug:
        log_level_raw = "debug"

    port = _getenv_int("SERVER_PORT", "3000")
    session_ttl = _getenv_int("SESSION_TTL_SECONDS", "86400")
    if session_ttl <= 0:
        raise ValueError(f"SESSION_TTL_SECONDS must be positive (got {session_ttl})")

    timeout_raw = _getenv("PROVIDER_TIMEOUT_SECONDS", "10")
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"PROVIDER_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None

    session_secret = _getenv("SESSION_SECRET", "")
    if not session_secret:
        if node_env != "development":
            raise ValueError("SESSION_SECRET is required outside development")
        session_secret = "dev-only-session-secret-change-me"

    cookie_name = _getenv("SESSION_COOKIE_NAME", "sessionId")
    if not cookie_name:
        raise ValueError("SESSION_COOKIE_NAME must not be empty")

    return Settings(  # type: ignore[arg-type]
        client_id=_getenv("CLIENT_ID", ""),
        client_secret=_getenv("CLIENT_SECRET", ""),
        redirect_uri=_getenv("REDIRECT_URI", "http://localhost:3000/callback"),
        session_secret=session_secret,
        port=port,
        debug=debug,
        node_env=node_env,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON"),
        redis_url=_getenv("REDIS_URL", "") or None,
        session_cookie_name=cookie_name,
        session_ttl_seconds=session_ttl,
        provider_timeout_seconds=timeout,
    )


# Module-level singleton; a .env in the working directory fills in unset vars.
SETTINGS = load_settings(Path(".env"))
