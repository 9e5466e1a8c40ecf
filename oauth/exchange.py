"""Server-to-server exchange of an authorization code for an access token.

The token endpoint URL carries the client secret in its query string, so
nothing in here logs or raises with the request URL or the raw code.
"""

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


class TokenExchangeError(Exception):
    """The provider did not hand back a usable access token."""

    status_code = 502
    public_message = "Token exchange failed"


class TokenExchangeTimeout(TokenExchangeError):
    status_code = 504
    public_message = "Token exchange timed out"


@dataclass(frozen=True)
class TokenResponse:
    access_token: str
    token_type: str = ""
    scope: str = ""

    @classmethod
    def from_json(cls, data) -> "TokenResponse":
        if not isinstance(data, dict):
            raise TokenExchangeError("Token response is not a JSON object")

        # GitHub reports bad codes as 200 with an error body
        if data.get("error"):
            raise TokenExchangeError(f"Provider returned error: {data.get('error')}")

        access_token = data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise TokenExchangeError("Token response has no access_token")

        return cls(
            access_token=access_token,
            token_type=str(data.get("token_type") or ""),
            scope=str(data.get("scope") or ""),
        )

    def __repr__(self) -> str:
        return f"TokenResponse(token_type={self.token_type!r}, scope={self.scope!r})"


async def exchange_code(
    client: httpx.AsyncClient,
    token_url: str,
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    timeout: float = 5.0,
) -> TokenResponse:
    """Exchange `code` for an access token with a single GET, no retries.

    Raises:
        TokenExchangeTimeout: the provider did not answer within `timeout`.
        TokenExchangeError: transport failure, non-2xx status, malformed JSON
            or a body without an access token.
    """
    params = {
        "client_id": client_id,
        "client_secret": client_secret,
        "code": code,
        "redirect_uri": redirect_uri,
    }
    try:
        response = await client.get(
            token_url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
    except httpx.TimeoutException as e:
        logger.warning(f"[EXCHANGE] Token endpoint timed out after {timeout}s ({type(e).__name__})")
        raise TokenExchangeTimeout("Token endpoint timed out") from None
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"[EXCHANGE] Transport error talking to token endpoint: {type(e).__name__}")
        raise TokenExchangeError("Transport error") from None

    if not response.is_success:
        logger.warning(f"[EXCHANGE] Token endpoint answered HTTP {response.status_code}")
        raise TokenExchangeError(f"Token endpoint answered HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError:
        logger.warning("[EXCHANGE] Token endpoint returned malformed JSON")
        raise TokenExchangeError("Malformed token response") from None

    try:
        token = TokenResponse.from_json(data)
    except TokenExchangeError as e:
        logger.warning(f"[EXCHANGE] {e}")
        raise

    logger.info(f"[EXCHANGE] Access token received, token_type: {token.token_type}, scope: {token.scope}")
    return token
