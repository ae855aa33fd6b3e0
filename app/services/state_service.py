from __future__ import annotations

import base64
import hmac
import secrets

# OAuth `state` handling for the /login → /callback round-trip.
#
# generate_state creates the anti-CSRF value stored in the session and sent
# to the provider; states_match checks the value the provider echoes back.


def generate_state() -> str:
    # 32 bytes of random data → 43 chars after base64url with padding removed.
    random_bytes = secrets.token_bytes(32)
    return base64.urlsafe_b64encode(random_bytes).rstrip(b"=").decode("ascii")


def states_match(expected: str | None, presented: str | None) -> bool:
    """Constant-time comparison of the stored and echoed state.

    A missing value on either side never matches.
    """
    if not expected or not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))
