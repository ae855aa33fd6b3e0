from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime

# •	id: str (opaque, URL-safe, carried in the session cookie)
# •	state: str | None (pending OAuth state between /login and /callback)
# •	created_at: int (epoch seconds)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


@dataclass(frozen=True, slots=True)
class Session:
    id: str
    state: str | None
    created_at: int

    @staticmethod
    def new() -> Session:
        return Session(
            id=new_session_id(),
            state=None,
            created_at=int(datetime.now(UTC).timestamp()),
        )

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "state": self.state, "created_at": self.created_at}

    @staticmethod
    def from_dict(data: dict) -> Session:
        return Session(
            id=str(data["id"]),
            state=data.get("state"),
            created_at=int(data["created_at"]),
        )
