"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import httpx
import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import RelayConfig  # noqa: E402

TEST_SECRET = "test_secret"
TEST_VERIFY_TOKEN = "test_verify_token"
TEST_ACCESS_TOKEN = "test_access_token"
TEST_BASE_URL = "https://graph.example.test/v18.0"
TEST_PLACEHOLDER_URL = "https://placeholder.example.test/image.gif"


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(
        base_url=TEST_BASE_URL,
        access_token=TEST_ACCESS_TOKEN,
        verify_token=TEST_VERIFY_TOKEN,
        app_secret=TEST_SECRET,
        response_text_prefix="echo: ",
        image_placeholder_url=TEST_PLACEHOLDER_URL,
        send_timeout_seconds=5.0,
        request_timeout_seconds=10.0,
    )


class SendApiStub:
    """Records Send API calls and answers with a fixed status."""

    def __init__(self, status_code: int = 200, body: dict | None = None):
        self.status_code = status_code
        self.body = body if body is not None else {"recipient_id": "U1", "message_id": "m.out"}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def send_api() -> SendApiStub:
    return SendApiStub()


@pytest.fixture
def send_api_factory():
    return SendApiStub
