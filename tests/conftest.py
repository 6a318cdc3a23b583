"""Pytest configuration and shared fixtures."""

import time
from urllib.parse import parse_qs, urlparse

import pytest
import respx
from starlette.testclient import TestClient

from strava_routes.auth import StravaAppConfig, StravaOAuthService, TokenLifecycleManager
from strava_routes.models import TokenRecord
from strava_routes.server import create_app
from tests.fixtures.athlete_fixtures import NOW, SUMMARY_ATHLETE, token_response
from tests.stubs.strava_api_stub import StravaAPIStubber


@pytest.fixture
def app_config():
    """Provide a test configuration that ignores the local environment."""
    return StravaAppConfig(
        _env_file=None,
        strava_client_id="test_client_id",
        strava_client_secret="test_client_secret",
        base_url="http://testserver",
        session_secret="test_session_secret",
    )


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP requests."""
    with respx.mock(assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def stub_api(respx_mock):
    """Provide a Strava API stubber."""
    return StravaAPIStubber(respx_mock)


@pytest.fixture
def clock():
    """A controllable clock starting at NOW."""

    class Clock:
        def __init__(self):
            self.now = float(NOW)

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def tokens(app_config, clock):
    """Token manager driven by the test clock."""
    return TokenLifecycleManager(StravaOAuthService(app_config), clock=clock)


@pytest.fixture
def token_record():
    """Factory for token records expiring ``expires_in`` seconds after NOW."""

    def build(expires_in: int, **overrides) -> TokenRecord:
        values = {
            "access_token": "stale_access_token",
            "refresh_token": "stale_refresh_token",
            "expires_at": NOW + expires_in,
            "athlete": SUMMARY_ATHLETE,
        }
        values.update(overrides)
        return TokenRecord(**values)

    return build


@pytest.fixture
def client(app_config):
    """Starlette test client that does not follow redirects."""
    with TestClient(create_app(app_config), follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def login(client, stub_api):
    """Run the OAuth flow against the stubbed token endpoint.

    Returns the token route so tests can stub refreshes on the same route.
    """

    def do_login(expires_in: int = 6 * 60 * 60, refresh=None, refresh_status=200):
        route = stub_api.stub_token_endpoint(
            exchange=token_response(
                int(time.time()) + expires_in, athlete=SUMMARY_ATHLETE
            ),
            refresh=refresh,
            refresh_status=refresh_status,
        )
        response = client.get("/auth")
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
        response = client.get("/oauth/callback", params={"code": "auth_code", "state": state})
        assert response.status_code == 302
        return route

    return do_login
