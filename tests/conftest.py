"""
Shared pytest fixtures for the relay test suite.

The GitHub token endpoint is stubbed with httpx.MockTransport on the shared
client injected into create_app(), so every outbound call is recorded and no
test touches the network.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

CLIENT_ID = "abc123"
CLIENT_SECRET = "s3cr3t-client-value-never-shown"
STATE_SECRET = "state-signing-secret-at-least-32-bytes-long"
ORIGIN_PATTERN = r"^https://app\.example\.com$"

BASE_ENV = {
    "CLIENT_ID": CLIENT_ID,
    "CLIENT_SECRET": CLIENT_SECRET,
    "ORIGIN_PATTERN": ORIGIN_PATTERN,
}


class ProviderStub:
    """Stand-in for GitHub's token endpoint that records every request."""

    def __init__(self):
        self.requests = []
        self.response = httpx.Response(
            200,
            json={"access_token": "abc", "token_type": "bearer", "scope": "user"},
        )
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        # A fresh response per call; httpx binds each one to its request
        return httpx.Response(
            self.response.status_code,
            headers=self.response.headers,
            content=self.response.content,
        )

    def respond_with(self, response: httpx.Response):
        self.response = response

    def fail_with(self, error: Exception):
        self.error = error


@pytest.fixture
def make_settings():
    def _make(**overrides):
        data = dict(BASE_ENV)
        data.update(overrides)
        return Settings(data)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def provider():
    return ProviderStub()


@pytest.fixture
def http_client(provider):
    return httpx.AsyncClient(transport=httpx.MockTransport(provider))


@pytest.fixture
def make_client(http_client):
    def _make(settings, base_url="https://app.example.com"):
        app = create_app(settings, http_client=http_client)
        return TestClient(app, base_url=base_url)
    return _make


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)
