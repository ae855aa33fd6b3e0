from __future__ import annotations

from pydantic import BaseModel, Field

# Payloads returned by the provider. Only the fields the login flow reads
# are declared; pydantic ignores the rest.


class TokenResponse(BaseModel):
    # repr=False keeps the bearer token out of tracebacks and debug output.
    access_token: str = Field(repr=False)
    scope: str
    token_type: str = "Bearer"
    expires_in: int | None = None


class Identity(BaseModel):
    username: str
    discriminator: str


class CurrentAuthorization(BaseModel):
    user: Identity
