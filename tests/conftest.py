"""
Pytest configuration and shared fixtures for the token harness tests.

Provides a stub identity provider built on httpx.MockTransport that records
every request it receives, plus common client configurations.
"""

import pytest
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx

from src.shared.oauth_models import ClientConfiguration


class StubIdentityProvider:
    """
    Request-recording stand-in for the identity provider.

    Responses are registered per path suffix; the longest matching suffix wins
    so `/token/introspect` is not answered by the `/token` entry.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[str, Any] = {}

    def respond(self, path_suffix: str, status_code: int = 200,
                json: Optional[Any] = None, text: Optional[str] = None):
        if json is not None:
            self._routes[path_suffix] = lambda request: httpx.Response(status_code, json=json)
        else:
            self._routes[path_suffix] = lambda request: httpx.Response(status_code, text=text or "")

    def fail_with(self, path_suffix: str, exc_type=httpx.ConnectError, message: str = "connection refused"):
        def _raise(request):
            raise exc_type(message, request=request)
        self._routes[path_suffix] = _raise

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix in sorted(self._routes, key=len, reverse=True):
            if request.url.path.endswith(suffix):
                return self._routes[suffix](request)
        return httpx.Response(404, json={"error": "not_found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def form(self, index: int = -1) -> Dict[str, str]:
        """Decoded form body of a recorded request, one value per key."""
        parsed = parse_qs(self.requests[index].content.decode("utf-8"), keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}


@pytest.fixture
def stub_idp() -> StubIdentityProvider:
    """Stub identity provider with no responses registered."""
    return StubIdentityProvider()


@pytest.fixture
def token_payload() -> Dict[str, Any]:
    """Minimal successful token endpoint body."""
    return {
        "access_token": "a",
        "token_type": "Bearer",
        "refresh_token": "r",
        "expires_in": 300
    }


@pytest.fixture
def confidential_config() -> ClientConfiguration:
    """Configuration of a confidential client."""
    return ClientConfiguration(
        api_origin="http://idp.test/",
        root_path="",
        realm="test",
        client_id="harness-client",
        client_secret="s3cret",
        scope="openid profile",
        redirect_uri="http://testserver/"
    )


@pytest.fixture
def public_config(confidential_config) -> ClientConfiguration:
    """Same client without a secret."""
    return confidential_config.model_copy(update={"client_secret": ""})


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "security: marks tests as security-focused tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers automatically based on test file names."""
    for item in items:
        if "application" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        elif "flow" in item.nodeid or "error_handling" in item.nodeid:
            item.add_marker(pytest.mark.security)
        else:
            item.add_marker(pytest.mark.unit)
