"""GitHub OAuth relay - FastAPI application.

The relay sits between a popup-based browser client and GitHub:
- /index: landing page with a login link
- /auth: redirect to GitHub with a fresh anti-forgery state
- /callback: exchange the code for a token and hand it to the opener window

Run with `github-oauth-relay serve` or
`uvicorn main:create_app --factory`.
"""
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from config import Settings, load_settings
from oauth.endpoints import router as oauth_router
from oauth.middleware import RequestLogMiddleware

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared outbound client; one per process, reused across requests."""
    return httpx.AsyncClient(
        timeout=settings.token_exchange_timeout,
        follow_redirects=False,
        headers={"User-Agent": f"github-oauth-relay/{VERSION}"},
    )


def create_app(settings: Settings = None, http_client: httpx.AsyncClient = None) -> FastAPI:
    """Build the relay app.

    Raises ConfigurationError when settings are incomplete, so a misconfigured
    process never starts serving. An injected `http_client` is used as-is and
    left open on shutdown.
    """
    settings = (settings or load_settings()).validate()

    # httpx logs every request URL at INFO; the token URL carries the client secret
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = create_http_client(settings)
        logger.info(f"[STARTUP] Relay ready, client_id: {settings.client_id}, "
                    f"state verification: {bool(settings.state_secret)}")
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()
                app.state.http_client = None
            logger.info("[SHUTDOWN] Relay stopped")

    app = FastAPI(
        title="GitHub OAuth Relay",
        description="Authorization-code relay for popup-based GitHub login",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    app.add_middleware(RequestLogMiddleware)
    app.include_router(oauth_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "github-oauth-relay", "version": VERSION}

    return app
