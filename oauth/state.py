"""Signed anti-forgery state cookie.

When a STATE_SECRET is configured, /auth stores the state it put into the
login URL in a short-lived HS256 JWT cookie, and /callback checks the state
GitHub echoes back against it. The relay itself stays stateless.
"""

import logging
import secrets
import time
from typing import Optional

import jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
STATE_COOKIE_NAME = "oauth_state"
STATE_TOKEN_TYPE = "oauth_state"
STATE_EXPIRE_SECONDS = 10 * 60  # 10 minutes


def create_state_token(state: str, secret: str, expires_in: int = STATE_EXPIRE_SECONDS) -> str:
    """Create a signed token binding the browser to one login attempt."""
    now = int(time.time())
    payload = {
        "state": state,
        "type": STATE_TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_state_token(token: str, secret: str) -> Optional[str]:
    """Return the state carried by a state cookie, or None if it is unusable."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "state"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("[STATE] State cookie expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"[STATE] Invalid state cookie: {type(e).__name__}")
        return None

    if payload.get("type") != STATE_TOKEN_TYPE:
        logger.info("[STATE] Cookie is not a state token")
        return None

    state = payload.get("state")
    return state if isinstance(state, str) else None


def verify_state(cookie: Optional[str], state: Optional[str], secret: str) -> bool:
    """Check the state query parameter against the signed cookie."""
    if not cookie or not state:
        return False

    expected = decode_state_token(cookie, secret)
    if expected is None:
        return False

    return secrets.compare_digest(expected.encode(), state.encode())
