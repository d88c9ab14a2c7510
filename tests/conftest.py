import json
import sys
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from convertkit_api.api.client import ConvertKitAPI  # noqa: E402
from convertkit_api.auth.verifier_store import InMemoryCodeVerifierStore  # noqa: E402
from convertkit_api.config.settings import Settings  # noqa: E402
from convertkit_api.models.base_models import Credentials  # noqa: E402
from convertkit_api.utils.http.retry import RetryPolicy  # noqa: E402
from convertkit_api.utils.http.transport import HttpxTransport  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "auth: mark test as testing authentication")


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set environment variables read by Settings during tests."""
    monkeypatch.setenv("CONVERTKIT_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("CONVERTKIT_REDIRECT_URI", "https://example.com/oauth/callback")
    monkeypatch.setenv("CONVERTKIT_SITE_URL", "https://example.com")
    monkeypatch.setenv("CONVERTKIT_LOG_LEVEL", "INFO")
    yield


@pytest.fixture
def test_settings():
    return Settings(
        client_id="test-client-id",
        redirect_uri="https://example.com/oauth/callback",
        site_url="https://example.com",
    )


@pytest.fixture
def credentials():
    return Credentials(
        client_id="test-client-id",
        redirect_uri="https://example.com/oauth/callback",
        access_token="test-access-token",
        refresh_token="test-refresh-token",
    )


@pytest.fixture
def sample_oauth_token():
    """Sample token endpoint response."""
    return {
        "access_token": "new-access-token",
        "refresh_token": "new-refresh-token",
        "token_type": "bearer",
        "created_at": 1700000000,
        "expires_in": 10000,
        "scope": "public",
    }


def json_response(status_code, payload=None):
    """Build an httpx response with a JSON body, or an empty body for None."""
    if payload is None:
        return httpx.Response(status_code, content=b"")
    return httpx.Response(status_code, content=json.dumps(payload).encode())


class RecordingHandler:
    """MockTransport handler replaying queued responses and recording requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def paths(self):
        return [request.url.path for request in self.requests]


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_api(test_settings, credentials, sleeps):
    """Factory building a client whose HTTP calls are served by a handler."""
    created = []

    def _make(handler, **kwargs):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        kwargs.setdefault("credentials", credentials)
        kwargs.setdefault("settings", test_settings)
        kwargs.setdefault("verifier_store", InMemoryCodeVerifierStore())
        kwargs.setdefault(
            "retry_policy", RetryPolicy(rate_limit_delay=2.0, sleep=sleeps.append)
        )
        api = ConvertKitAPI(transport=HttpxTransport(client), **kwargs)
        created.append(client)
        return api

    yield _make
    for client in created:
        client.close()
