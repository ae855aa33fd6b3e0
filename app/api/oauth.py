from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from app.api.dependencies import (
    get_oauth_client,
    get_session_repo,
    require_callback_metadata,
    require_login_metadata,
    session_id_from_cookie,
)
from app.api.pages import authorize_error_page, authorized_page
from app.core.config import SETTINGS
from app.core.errors import (
    InsufficientScope,
    InvalidRequest,
    InvalidState,
    LoginFlowError,
    SessionRegenerationFailed,
    UpstreamFailure,
)
from app.core.metrics import CALLBACK_OUTCOMES, LOGIN_REDIRECTS
from app.models.callback import AuthCode, ProviderError, parse_callback_query
from app.models.provider import Identity
from app.models.session import Session
from app.repos.session_repo import SessionRepo, SessionStoreError
from app.services import state_service
from app.services.oauth_client import (
    SCOPES,
    DiscordOAuthClient,
    build_authorization_url,
    verify_scope,
)
from app.services.session_cookie import set_session_cookie

# ---------------------------------------------------------------------------
# Relying party — OAuth2 Authorization Code flow against Discord
#
# Endpoints:
#   GET /login     — store a fresh state in the session, redirect to provider
#   GET /callback  — provider redirects back here with code+state (or error)
#
# Not handled here: token storage/refresh, logout. The access token lives
# for one callback request and is dropped.
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


async def _load_session(request: Request, sessions: SessionRepo) -> Session | None:
    session_id = session_id_from_cookie(request)
    if session_id is None:
        return None
    try:
        return await sessions.load(session_id)
    except SessionStoreError as e:
        raise UpstreamFailure("session store unavailable") from e


# ============================== GET /login =================================


@router.get("/login", dependencies=[Depends(require_login_metadata)])
async def login(
    request: Request,
    sessions: SessionRepo = Depends(get_session_repo),
) -> RedirectResponse:
    logger.info("LOGIN FLOW [login] step 1: fetch metadata accepted  ✓")

    session = await _load_session(request, sessions)
    state = state_service.generate_state()
    try:
        if session is None:
            session = await sessions.create()
            logger.info("LOGIN FLOW [login] step 2: new session created")
        else:
            logger.info("LOGIN FLOW [login] step 2: existing session reused")
        # A second /login overwrites any pending state; only the latest
        # redirect can complete.
        session = dataclasses.replace(session, state=state)
        await sessions.save(session)
    except SessionStoreError as e:
        raise UpstreamFailure("session store unavailable") from e
    logger.info("LOGIN FLOW [login] step 3: state stored in session  ✓")

    url = build_authorization_url(
        SETTINGS.client_id, SETTINGS.redirect_uri, SCOPES, state
    )
    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, session, SETTINGS)
    LOGIN_REDIRECTS.inc()
    logger.info("LOGIN FLOW [login] step 4: redirecting to provider authorize endpoint")
    return response


# ============================= GET /callback ===============================


def _outcome_for(exc: LoginFlowError) -> str:
    if isinstance(exc, InvalidState):
        return "invalid_state"
    if isinstance(exc, InsufficientScope):
        return "insufficient_scope"
    if isinstance(exc, InvalidRequest):
        return "missing_params"
    return "upstream_failure"


async def _complete_login(
    auth: AuthCode,
    session: Session | None,
    sessions: SessionRepo,
    oauth: DiscordOAuthClient,
) -> tuple[Identity, Session]:
    """Run the success path for a callback that carried ``code``.

    Each step is a hard gate; the first failure raises and the rest never run.
    Returns the identity to render and the regenerated session.
    """
    # --- Required inputs -------------------------------------------------------
    # FAIL POINT: no pending state (never visited /login, or already consumed)
    # or the provider dropped state from the redirect.
    expected_state = session.state if session is not None else None
    if session is None or expected_state is None or auth.state is None:
        raise InvalidRequest(
            "callback without pending session state or query state",
            message="insufficient query parameter",
        )
    logger.info("LOGIN FLOW [callback] step 2: code, state and session state present  ✓")

    # --- Regenerate session ----------------------------------------------------
    # Session fixation: whatever id the visitor arrived with is retired here.
    # expected_state was captured above; the new session starts empty, which
    # also makes the state single-use.
    try:
        new_session = await sessions.regenerate(session)
    except SessionStoreError as e:
        raise SessionRegenerationFailed("session regeneration failed") from e
    logger.info("LOGIN FLOW [callback] step 3: session regenerated  ✓")

    try:
        identity = await _verify_and_fetch(auth, expected_state, oauth)
    except LoginFlowError as e:
        # The old record is gone; the error response must carry the new cookie.
        e.reissued_session = new_session
        raise
    return identity, new_session


async def _verify_and_fetch(
    auth: AuthCode, expected_state: str, oauth: DiscordOAuthClient
) -> Identity:
    # --- Compare state ---------------------------------------------------------
    # FAIL POINT: mismatch means the redirect was not the answer to our own
    # /login (login CSRF).
    if not state_service.states_match(expected_state, auth.state):
        raise InvalidState("state mismatch")
    logger.info("LOGIN FLOW [callback] step 4: state matches  ✓")

    # --- Exchange code ---------------------------------------------------------
    token = await oauth.exchange_code(auth.code)
    logger.info("LOGIN FLOW [callback] step 5: code exchanged for access token  ✓")

    # --- Verify scope ----------------------------------------------------------
    verify_scope(token.scope, SCOPES)
    logger.info("LOGIN FLOW [callback] step 6: granted scope matches request  ✓")

    # --- Fetch identity --------------------------------------------------------
    identity = await oauth.fetch_identity(token.access_token)
    logger.info("LOGIN FLOW [callback] step 7: identity fetched  ✓")
    return identity


@router.get(
    "/callback",
    response_class=HTMLResponse,
    dependencies=[Depends(require_callback_metadata)],
)
async def callback(
    request: Request,
    sessions: SessionRepo = Depends(get_session_repo),
    oauth: DiscordOAuthClient = Depends(get_oauth_client),
) -> HTMLResponse:
    query = parse_callback_query(request.query_params)

    if isinstance(query, ProviderError):
        CALLBACK_OUTCOMES.labels(outcome="provider_error").inc()
        logger.info(
            "LOGIN FLOW [callback] provider returned an error",
            extra={"outcome": "provider_error"},
        )
        return HTMLResponse(authorize_error_page(query.error, query.description))

    if not isinstance(query, AuthCode):
        CALLBACK_OUTCOMES.labels(outcome="malformed").inc()
        raise InvalidRequest("callback without code or error")

    logger.info("LOGIN FLOW [callback] step 1: authorization code received")
    try:
        session = await _load_session(request, sessions)
        identity, new_session = await _complete_login(query, session, sessions, oauth)
    except LoginFlowError as e:
        CALLBACK_OUTCOMES.labels(outcome=_outcome_for(e)).inc()
        raise

    CALLBACK_OUTCOMES.labels(outcome="success").inc()
    response = HTMLResponse(authorized_page(identity.username, identity.discriminator))
    set_session_cookie(response, new_session, SETTINGS)
    logger.info(
        "LOGIN FLOW [callback] step 8: identity rendered  ✓",
        extra={"outcome": "success"},
    )
    return response
