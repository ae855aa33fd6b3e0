"""Fetch-metadata (Sec-Fetch-*) request screening.

Browsers attach four headers that describe where a request came from:

  Sec-Fetch-Site  — same-origin | same-site | cross-site | none
  Sec-Fetch-Dest  — document, image, script, iframe, ...
  Sec-Fetch-Mode  — navigate, cors, no-cors, same-origin, websocket
  Sec-Fetch-User  — "?1" when the navigation was user-activated

/login and /callback are both top-level document navigations, so anything
fetched as a subresource or through a script API is refused.  The two
endpoints differ in which ``site`` values are plausible:

  /login     — must be same-origin or typed into the address bar (none),
               and user-activated (not a prefetch).
  /callback  — must arrive cross-site, redirected from the provider.

Requests with no Sec-Fetch-Site header at all (older browsers, curl)
pass: the check only applies when the browser supplies the metadata.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

DISALLOWED_FETCH_DEST = frozenset(
    {
        "audio",
        "audioworklet",
        "embed",
        "empty",
        "font",
        "frame",
        "iframe",
        "image",
        "manifest",
        "object",
        "paintworklet",
        "report",
        "script",
        "serviceworker",
        "sharedworker",
        "style",
        "track",
        "video",
        "worker",
        "xslt",
    }
)

DISALLOWED_FETCH_MODE = frozenset({"cors", "no-cors", "same-origin", "websocket"})

LOGIN_DISALLOWED_SITES = frozenset({"cross-site", "same-site"})
CALLBACK_DISALLOWED_SITES = frozenset({"same-origin", "same-site", "none"})


@dataclass(frozen=True, slots=True)
class FetchMetadata:
    site: str
    dest: str | None
    mode: str | None
    user: str | None

    @staticmethod
    def from_headers(headers: Mapping[str, str]) -> FetchMetadata | None:
        """Snapshot the Sec-Fetch-* headers; None when the browser sent none."""
        site = headers.get("sec-fetch-site")
        if site is None:
            return None
        return FetchMetadata(
            site=site,
            dest=headers.get("sec-fetch-dest"),
            mode=headers.get("sec-fetch-mode"),
            user=headers.get("sec-fetch-user"),
        )


def _navigation_violation(meta: FetchMetadata) -> str | None:
    if meta.dest in DISALLOWED_FETCH_DEST:
        return f"dest={meta.dest}"
    if meta.mode in DISALLOWED_FETCH_MODE:
        return f"mode={meta.mode}"
    return None


def login_violation(meta: FetchMetadata | None) -> str | None:
    """Return the rule a /login request breaks, or None if it may proceed."""
    if meta is None:
        return None
    if meta.site in LOGIN_DISALLOWED_SITES:
        return f"site={meta.site}"
    violation = _navigation_violation(meta)
    if violation is not None:
        return violation
    if meta.user != "?1":
        return f"user={meta.user}"
    return None


def callback_violation(meta: FetchMetadata | None) -> str | None:
    """Return the rule a /callback request breaks, or None if it may proceed."""
    if meta is None:
        return None
    if meta.site in CALLBACK_DISALLOWED_SITES:
        return f"site={meta.site}"
    return _navigation_violation(meta)


def validate_login_metadata(meta: FetchMetadata | None) -> bool:
    return login_violation(meta) is None


def validate_callback_metadata(meta: FetchMetadata | None) -> bool:
    return callback_violation(meta) is None
