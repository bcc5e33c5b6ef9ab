"""Pytest config: add project root to path and provide a stubbed Emlog API client."""

import sys
from pathlib import Path

import httpx
import pytest

# Add project root to Python path
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from emlog_mcp.api_client import EmlogClient  # noqa: E402
from emlog_mcp.config import Credentials  # noqa: E402

TEST_BASE_URL = "https://blog.example.com"
TEST_API_KEY = "test_key_123"


@pytest.fixture
def envelope():
    """Build an Emlog-style response body: {code, msg, data}"""

    def build(data=None, code=0, msg="ok"):
        return {"code": code, "msg": msg, "data": data}

    return build


@pytest.fixture
def credentials():
    return Credentials(base_url=TEST_BASE_URL, api_key=TEST_API_KEY)


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def make_client(credentials, recorded_requests):
    """
    Build an EmlogClient whose network is a handler function

    The handler receives the httpx.Request and returns an httpx.Response;
    every request is appended to recorded_requests.
    """

    def factory(handler, timeout=5.0):
        def record(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return EmlogClient(credentials, timeout=timeout, transport=httpx.MockTransport(record))

    return factory
