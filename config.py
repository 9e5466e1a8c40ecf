"""Config management for github-oauth-relay.

Settings are read once at startup from the environment (optionally seeded
from a .env file) and exposed read-only to the request handlers.
"""
import math
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
DEFAULT_TOKEN_URL = "https://github.com/login/oauth/access_token"
DEFAULT_SCOPES = "user repo"
DEFAULT_TIMEOUT = 5.0

REQUIRED_KEYS = ("CLIENT_ID", "CLIENT_SECRET", "ORIGIN_PATTERN")


class ConfigurationError(Exception):
    """Raised when required settings are missing or malformed."""


class Settings:
    """Read-only configuration container."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, str] = None):
        object.__setattr__(self, "_data", dict(data or {}))

    def __setattr__(self, name, value):
        raise AttributeError("Settings are read-only")

    def _get(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def client_id(self) -> Optional[str]:
        return self._get("CLIENT_ID")

    @property
    def client_secret(self) -> Optional[str]:
        return self._get("CLIENT_SECRET")

    @property
    def origin_pattern(self) -> Optional[str]:
        return self._get("ORIGIN_PATTERN")

    @property
    def scopes(self) -> tuple:
        raw = self._get("OAUTH_SCOPES") or DEFAULT_SCOPES
        return tuple(raw.replace(",", " ").split())

    @property
    def server_url(self) -> Optional[str]:
        url = self._get("SERVER_URL")
        return url.rstrip("/") if url else None

    @property
    def state_secret(self) -> Optional[str]:
        return self._get("STATE_SECRET")

    @property
    def authorize_url(self) -> str:
        return self._get("GITHUB_AUTHORIZE_URL") or DEFAULT_AUTHORIZE_URL

    @property
    def token_url(self) -> str:
        return self._get("GITHUB_TOKEN_URL") or DEFAULT_TOKEN_URL

    @property
    def token_exchange_timeout(self) -> float:
        raw = self._get("TOKEN_EXCHANGE_TIMEOUT")
        if raw is None:
            return DEFAULT_TIMEOUT
        try:
            timeout = float(raw)
        except ValueError:
            raise ConfigurationError(f"TOKEN_EXCHANGE_TIMEOUT must be a number, got {raw!r}")
        if not math.isfinite(timeout) or timeout <= 0:
            raise ConfigurationError("TOKEN_EXCHANGE_TIMEOUT must be a positive, finite number")
        return timeout

    @property
    def host(self) -> str:
        return self._get("HOST") or "0.0.0.0"

    @property
    def port(self) -> int:
        raw = self._get("PORT") or "8080"
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {raw!r}")

    @property
    def log_level(self) -> str:
        return (self._get("LOG_LEVEL") or "INFO").upper()

    @property
    def supabase_url(self) -> Optional[str]:
        return self._get("SUPABASE_URL")

    @property
    def supabase_anon_key(self) -> Optional[str]:
        return self._get("SUPABASE_ANON_KEY")

    @property
    def secret_values(self) -> list:
        """Values that must never show up in log output."""
        return [v for v in (self.client_secret, self.state_secret, self.supabase_anon_key) if v]

    def missing(self) -> list:
        """Names of required settings that are absent or blank."""
        return [key for key in REQUIRED_KEYS if not self._get(key)]

    def is_valid(self) -> bool:
        """Check if config has required fields."""
        return not self.missing()

    def validate(self) -> "Settings":
        missing = self.missing()
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
        # Surface malformed numbers at startup instead of on first request
        self.token_exchange_timeout
        self.port
        return self

    def summary(self) -> dict:
        """Masked view of the settings, safe to print."""
        return {
            "client_id": self.client_id,
            "client_secret": "***" if self.client_secret else None,
            "origin_pattern": self.origin_pattern,
            "scopes": " ".join(self.scopes),
            "server_url": self.server_url,
            "state_verification": bool(self.state_secret),
            "token_url": self.token_url,
            "token_exchange_timeout": self.token_exchange_timeout,
        }

    def __repr__(self) -> str:
        return f"Settings(client_id={self.client_id!r}, origin_pattern={self.origin_pattern!r})"


def load_env(env_file: Path = None) -> None:
    """Load .env into the process environment without overriding it."""
    env_file = env_file or Path(".env")
    if env_file.exists():
        load_dotenv(env_file)


def load_settings(environ: Mapping[str, str] = None) -> Settings:
    """Load and validate settings, failing fast when required keys are absent."""
    if environ is None:
        load_env()
        environ = os.environ
    return Settings(environ).validate()
