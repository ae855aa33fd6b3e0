"""Server-side session storage.

A session is keyed by an opaque id carried in the visitor's cookie and
holds the pending OAuth ``state`` between /login and /callback.

``regenerate`` is the session fixation defence: it issues a brand-new id,
drops the old record, and returns an empty session.  Callers that still
need data from the old session (the callback's ``state``) must read it
before regenerating.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import redis.asyncio as aioredis

from app.core.config import SETTINGS
from app.db.redis import redis_pool
from app.models.session import Session

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    """The backing store failed; the session state is unknown."""


@runtime_checkable
class SessionRepo(Protocol):
    async def load(self, session_id: str) -> Session | None: ...
    async def create(self) -> Session: ...
    async def save(self, session: Session) -> None: ...
    async def regenerate(self, old: Session) -> Session: ...
    async def delete(self, session_id: str) -> None: ...


class InMemorySessionRepo:
    """Dict-backed store for dev and tests, single process only.

    Each save pushes the record's expiry ``ttl_seconds`` into the future,
    the same sliding window Redis SETEX gives.  Expired records load as
    None and are swept whenever a new session is created, so abandoned
    logins do not pile up.

    The autouse fixture in conftest.py clears ``_by_id`` and
    ``_expires_at`` between tests.
    """

    def __init__(
        self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._by_id: dict[str, Session] = {}
        self._expires_at: dict[str, float] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        for session_id in [k for k, exp in self._expires_at.items() if exp <= now]:
            self._by_id.pop(session_id, None)
            self._expires_at.pop(session_id, None)

    async def load(self, session_id: str) -> Session | None:
        expires_at = self._expires_at.get(session_id)
        if expires_at is None or expires_at <= self._clock():
            await self.delete(session_id)
            return None
        return self._by_id.get(session_id)

    async def create(self) -> Session:
        self._purge_expired()
        session = Session.new()
        await self.save(session)
        return session

    async def save(self, session: Session) -> None:
        self._by_id[session.id] = session
        self._expires_at[session.id] = self._clock() + self._ttl

    async def regenerate(self, old: Session) -> Session:
        await self.delete(old.id)
        return await self.create()

    async def delete(self, session_id: str) -> None:
        self._by_id.pop(session_id, None)
        self._expires_at.pop(session_id, None)


class RedisSessionRepo:
    """Redis-backed store shared across instances; keys expire with the cookie."""

    _PREFIX = "session:"

    def __init__(self, redis_client, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"{self._PREFIX}{session_id}"

    async def load(self, session_id: str) -> Session | None:
        try:
            raw = await self._redis.get(self._key(session_id))
        except aioredis.RedisError as e:
            raise SessionStoreError("session load failed") from e
        if raw is None:
            return None
        try:
            return Session.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            # A corrupt record is as good as no session.
            logger.warning("Discarding unreadable session record")
            return None

    async def create(self) -> Session:
        session = Session.new()
        await self.save(session)
        return session

    async def save(self, session: Session) -> None:
        try:
            await self._redis.setex(
                self._key(session.id), self._ttl, json.dumps(session.to_dict())
            )
        except aioredis.RedisError as e:
            raise SessionStoreError("session save failed") from e

    async def regenerate(self, old: Session) -> Session:
        # The old id must be gone before a new one is issued.
        try:
            await self._redis.delete(self._key(old.id))
        except aioredis.RedisError as e:
            raise SessionStoreError("session regenerate failed") from e
        return await self.create()

    async def delete(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._key(session_id))
        except aioredis.RedisError as e:
            raise SessionStoreError("session delete failed") from e


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    session_repo: SessionRepo = RedisSessionRepo(
        redis_pool, ttl_seconds=SETTINGS.session_ttl_seconds
    )
else:
    session_repo = InMemorySessionRepo(ttl_seconds=SETTINGS.session_ttl_seconds)
