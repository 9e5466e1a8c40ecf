"""Login URL construction for the GitHub authorization-code flow."""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import quote, urlencode

from starlette.datastructures import URL

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/callback"
DEFAULT_PORTS = {"http": 80, "https": 443}


def generate_state() -> str:
    """Return a fresh 32-character URL-safe anti-forgery token."""
    return secrets.token_urlsafe(24)


def build_local_url(request_url: URL, path: str, server_url: Optional[str] = None) -> str:
    """Build an absolute URL on this deployment.

    Uses the configured public server URL when given, otherwise the scheme,
    host and (non-default) port the request came in on.
    """
    if server_url:
        return server_url.rstrip("/") + path

    host = request_url.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    base = f"{request_url.scheme}://{host}"
    port = request_url.port
    if port is not None and port != DEFAULT_PORTS.get(request_url.scheme):
        base += f":{port}"
    return base + path


@dataclass(frozen=True)
class LoginRequest:
    client_id: str
    redirect_uri: str
    scopes: tuple
    state: str

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)

    def url(self, authorize_url: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": self.state,
        }
        return f"{authorize_url}?{urlencode(params, quote_via=quote)}"


def build_login_request(
    client_id: str,
    redirect_uri: str,
    scopes: Sequence[str],
    state: str = None,
) -> LoginRequest:
    return LoginRequest(
        client_id=client_id,
        redirect_uri=redirect_uri,
        scopes=tuple(scopes),
        state=state or generate_state(),
    )


def build_login_redirect(request_url: URL, settings) -> LoginRequest:
    """Prepare the provider login for a request to the /auth endpoint.

    Never contacts the provider; the caller turns the result into a 302.
    """
    redirect_uri = build_local_url(request_url, CALLBACK_PATH, settings.server_url)
    login = build_login_request(settings.client_id, redirect_uri, settings.scopes)
    logger.info(f"[AUTH] Login redirect built, redirect_uri: {redirect_uri}, scope: {login.scope}")
    return login
