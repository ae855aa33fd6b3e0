from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.health import router as health_router
from app.api.home import router as home_router
from app.api.metrics_endpoint import router as metrics_router
from app.api.oauth import router as oauth_router
from app.core.config import SETTINGS
from app.core.errors import register_error_handlers
from app.core.logging import setup_logging
from app.db.redis import lifespan_redis
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.services.oauth_client import DiscordOAuthClient, create_http_client

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # One pooled HTTP client for all provider calls; closed after Redis so
    # teardown runs in reverse order of startup.
    async with lifespan_redis():
        async with create_http_client(SETTINGS) as http:
            app.state.oauth_client = DiscordOAuthClient(SETTINGS, http)
            yield


app = FastAPI(
    title="discord-login",
    lifespan=lifespan,
    debug=SETTINGS.debug,
    docs_url="/docs" if SETTINGS.is_development else None,
    redoc_url="/redoc" if SETTINGS.is_development else None,
    openapi_url="/openapi.json" if SETTINGS.is_development else None,
)

register_error_handlers(app)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → SecurityHeaders → route handler
app.add_middleware(SecurityHeadersMiddleware, hsts=SETTINGS.cookie_secure)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(home_router)
app.include_router(oauth_router)
app.include_router(health_router)
app.include_router(metrics_router)

if not SETTINGS.client_id or not SETTINGS.client_secret:
    logger.warning("CLIENT_ID or CLIENT_SECRET is not set — logins will fail")

logger.info(
    "discord-login started  env=%s log_level=%s port=%d secure_cookies=%s",
    SETTINGS.node_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.cookie_secure else "off",
)
