"""
Pytest configuration and shared fixtures for consent flow tests.

This module provides common test fixtures, fake collaborators and
configuration used across all test modules.
"""

import pytest
import httpx
from typing import Callable, Dict, List
from unittest.mock import AsyncMock

from oauth_consent.shared.oauth_models import AuthorizationRequest, ClientInfo
from oauth_consent.consent_app.gateways import AuthorizationGateway, ClientInfoGateway
from oauth_consent.consent_app.navigation import NavigationPort


class RecordingNavigator(NavigationPort):
    """Navigation port that records calls instead of navigating."""

    def __init__(self, depth: int = 1):
        self.depth = depth
        self.redirects: List[str] = []
        self.back_calls = 0
        self.home_calls = 0

    def redirect(self, url: str) -> None:
        self.redirects.append(url)

    def go_back(self) -> None:
        self.back_calls += 1

    def go_home(self) -> None:
        self.home_calls += 1

    def history_depth(self) -> int:
        return self.depth


@pytest.fixture
def valid_consent_params() -> Dict[str, str]:
    """Valid inbound authorization request parameters."""
    return {
        "client_id": "8f9a0002-ae0f-4412-ac4c-902f1e88e5ff",
        "scope": "conversion",
        "state": "-G2EoDooYcrJ5p8EF1AM677T8BvnSMxQMU4HtUjoQ4Y",
        "redirect_uri": "https://zapier.com/dashboard/auth/oauth/return/App222291CLIAPI/",
        "response_type": "code",
        "code_challenge": "BSupaW6JDyiPDgU4HM8wkLj94DELW0BvsxPAoO2d5XA",
        "code_challenge_method": "S256"
    }


@pytest.fixture
def valid_authorization_request(valid_consent_params) -> AuthorizationRequest:
    """A validated AuthorizationRequest built from the valid parameters."""
    return AuthorizationRequest(**valid_consent_params)


@pytest.fixture
def client_info_body() -> Dict:
    """Successful scopes endpoint response body."""
    return {
        "data": {
            "name": "Test App",
            "description": "Test Description",
            "scope_description": ["Read your conversion data", "Create conversions"]
        }
    }


@pytest.fixture
def client_info() -> ClientInfo:
    """Client info as shown on a first-consent screen."""
    return ClientInfo(
        name="Test App",
        description="Test Description",
        display_description="Test Description",
        scope_descriptions=["Read your conversion data"]
    )


@pytest.fixture
def navigator_factory():
    """Build recording navigators with a given history depth."""
    return RecordingNavigator


@pytest.fixture
def navigator() -> RecordingNavigator:
    """Recording navigator with no history to go back to."""
    return RecordingNavigator()


@pytest.fixture
def client_info_gateway(client_info) -> AsyncMock:
    """Client info gateway returning the client_info fixture."""
    gateway = AsyncMock(spec=ClientInfoGateway)
    gateway.fetch.return_value = client_info
    return gateway


@pytest.fixture
def authorization_gateway() -> AsyncMock:
    """Authorization gateway mock; tests set its result."""
    return AsyncMock(spec=AuthorizationGateway)


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    """Requests seen by the mock authorization API."""
    return []


@pytest.fixture
def make_transport(recorded_requests) -> Callable[..., httpx.MockTransport]:
    """
    Build a mock authorization API transport.

    Each route takes either an httpx.Response or an exception to raise.
    """
    def factory(scopes=None, authorize=None) -> httpx.MockTransport:
        routes = {"/oauth/scopes": scopes, "/oauth/authorize": authorize}

        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            outcome = routes.get(request.url.path)
            if outcome is None:
                return httpx.Response(404, json={"message": "Not found"})
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        return httpx.MockTransport(handler)

    return factory


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "consent_app" in item.nodeid or "callback_app" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
