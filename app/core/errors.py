"""Login flow errors and the handler that turns them into responses.

Routes raise one of the LoginFlowError subclasses below; a single handler
maps it to a short plain-text response.  The public message is fixed per
class (or chosen by the raiser from a small vocabulary), so nothing the
visitor or the provider sent is ever echoed back.  The ``reason`` is for
the server log only.

An error raised after the callback regenerated the session carries the
new session in ``reissued_session``; the handler sends its cookie so the
visitor is never left pointing at the deleted record.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from app.core.config import SETTINGS
from app.models.session import Session
from app.services.session_cookie import set_session_cookie

logger = logging.getLogger(__name__)


class LoginFlowError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "internal server error!"

    def __init__(self, reason: str = "", *, message: str | None = None) -> None:
        super().__init__(reason or self.message)
        self.reason = reason or self.message
        self.reissued_session: Session | None = None
        if message is not None:
            self.message = message


class InvalidRequest(LoginFlowError):
    """Malformed or missing parameters, or fetch metadata that fails policy."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid request"


class InvalidState(LoginFlowError):
    """The callback ``state`` does not match the one stored at login."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid state"


class InsufficientScope(LoginFlowError):
    """The provider granted a scope set other than the one requested."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "insufficient granted scope"


class UpstreamFailure(LoginFlowError):
    """A dependency the flow cannot continue without has failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "internal server error!"


class TokenExchangeFailed(UpstreamFailure):
    message = "failed to exchange code"


class IdentityFetchFailed(UpstreamFailure):
    message = "failed to fetch authorization information"


class SessionRegenerationFailed(UpstreamFailure):
    pass


async def login_flow_error_handler(
    request: Request, exc: LoginFlowError
) -> PlainTextResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.reason,
            exc_info=exc if exc.__cause__ is not None else None,
        )
    else:
        logger.warning(
            "%s %s rejected: %s (%s)",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.reason,
        )
    response = PlainTextResponse(exc.message, status_code=exc.status_code)
    if exc.reissued_session is not None:
        set_session_cookie(response, exc.reissued_session, SETTINGS)
    return response


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoginFlowError, login_flow_error_handler)  # type: ignore[arg-type]
