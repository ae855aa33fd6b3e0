"""Parsed shapes of the provider's redirect back to /callback.

The raw query string is parsed once, at the boundary, into exactly one of
three variants.  Route code dispatches on the variant type and never
probes the query mapping again.

  ProviderError — the provider sent ``error`` (user denied, bad client, ...)
  AuthCode      — the provider sent ``code`` (``state`` may still be missing)
  Malformed     — neither; nobody legitimate sends this

``error`` is checked before ``code``: a redirect carrying both is treated
as a failed authorization.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProviderError:
    error: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class AuthCode:
    code: str
    state: str | None


@dataclass(frozen=True, slots=True)
class Malformed:
    pass


CallbackQuery = ProviderError | AuthCode | Malformed


def parse_callback_query(query: Mapping[str, str]) -> CallbackQuery:
    if "error" in query:
        return ProviderError(
            error=query["error"],
            description=query.get("error_description"),
        )
    if "code" in query:
        return AuthCode(code=query["code"], state=query.get("state"))
    return Malformed()
