"""OAuth relay endpoints.

This module contains the three relay endpoints:
- Landing page (/index)
- Login start (/auth): redirect to GitHub with a fresh state
- Provider callback (/callback): code-for-token exchange and bridging page

Settings and the shared HTTP client live on `app.state`; see main.create_app().
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from oauth.authorization import CALLBACK_PATH, build_local_url, build_login_redirect
from oauth.exchange import TokenExchangeError, exchange_code
from oauth.state import STATE_COOKIE_NAME, STATE_EXPIRE_SECONDS, create_state_token, verify_state
from oauth.templates import INDEX_PAGE, render_bridge_page

logger = logging.getLogger(__name__)

# Router for OAuth relay endpoints
router = APIRouter(tags=["oauth"])

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _plain_error(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers=NO_STORE_HEADERS)


# ============== Landing Page ==============

@router.get("/index")
async def index():
    """Static landing page with a login link."""
    return HTMLResponse(INDEX_PAGE)


# ============== Authorization Flow ==============

@router.get("/auth")
async def auth(request: Request):
    """Start the login: 302 to the GitHub authorization URL."""
    settings = request.app.state.settings
    login = build_login_redirect(request.url, settings)

    response = RedirectResponse(url=login.url(settings.authorize_url), status_code=302)

    if settings.state_secret:
        response.set_cookie(
            STATE_COOKIE_NAME,
            create_state_token(login.state, settings.state_secret),
            max_age=STATE_EXPIRE_SECONDS,
            path=CALLBACK_PATH,
            httponly=True,
            secure=login.redirect_uri.startswith("https://"),
            samesite="lax",
        )
    return response


@router.get("/callback")
async def callback(request: Request, code: str = "", state: str = "", error: str = ""):
    """Provider redirect target: exchange the code and hand the token to the opener."""
    settings = request.app.state.settings

    if not code:
        if error:
            logger.info(f"[CALLBACK] Provider reported error: {error}")
            return _plain_error(f"Code is missing (provider error: {error})", 400)
        logger.info("[CALLBACK] Request rejected: code is missing")
        return _plain_error("Code is missing", 400)

    if settings.state_secret:
        cookie = request.cookies.get(STATE_COOKIE_NAME)
        if not verify_state(cookie, state, settings.state_secret):
            logger.warning("[CALLBACK] Request rejected: state mismatch")
            response = _plain_error("State mismatch", 400)
            response.delete_cookie(STATE_COOKIE_NAME, path=CALLBACK_PATH)
            return response

    redirect_uri = build_local_url(request.url, CALLBACK_PATH, settings.server_url)

    try:
        token = await exchange_code(
            request.app.state.http_client,
            settings.token_url,
            settings.client_id,
            settings.client_secret,
            code,
            redirect_uri,
            timeout=settings.token_exchange_timeout,
        )
    except TokenExchangeError as e:
        logger.warning(f"[CALLBACK] Token exchange failed: {type(e).__name__}")
        return _plain_error(e.public_message, e.status_code)

    logger.info("[CALLBACK] Token exchanged, serving bridging page")
    response = HTMLResponse(
        render_bridge_page(token.access_token, settings.origin_pattern),
        headers=NO_STORE_HEADERS,
    )
    if settings.state_secret:
        response.delete_cookie(STATE_COOKIE_NAME, path=CALLBACK_PATH)
    return response
