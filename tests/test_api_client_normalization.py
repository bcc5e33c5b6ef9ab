"""
Test API client URL normalization

The configured base URL may carry a trailing slash; request paths already
start with one, so the slash is stripped once when credentials are built.
"""

import httpx
import pytest

from emlog_mcp.api_client import EmlogClient
from emlog_mcp.config import Credentials


def test_credentials_strip_trailing_slash():
    """Test that base URL with trailing slash is stripped"""
    credentials = Credentials(base_url="https://blog.example.com/", api_key="k")
    assert credentials.base_url == "https://blog.example.com"


def test_credentials_keep_subdirectory_install():
    """Test that an Emlog installed under a subdirectory keeps its path"""
    credentials = Credentials(base_url="https://example.com/blog/", api_key="k")
    assert credentials.base_url == "https://example.com/blog"


def test_credentials_repr_masks_api_key():
    """Test that the API key never shows up in reprs (and therefore logs)"""
    credentials = Credentials(base_url="https://blog.example.com", api_key="super-secret")
    assert "super-secret" not in repr(credentials)
    assert "***" in repr(credentials)


def test_client_uses_normalized_base_url():
    client = EmlogClient(Credentials(base_url="https://blog.example.com/", api_key="k"))
    assert client.base_url == "https://blog.example.com"
    assert client.timeout == 30.0


@pytest.mark.asyncio
async def test_requests_have_no_double_slash():
    """Test that the final URL joins base and path with exactly one slash"""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"code": 0, "data": {}})

    client = EmlogClient(
        Credentials(base_url="https://example.com/blog/", api_key="k"),
        transport=httpx.MockTransport(handler),
    )

    await client.get_sort_list()
    await client.like_comment(1)

    assert seen[0].url.path == "/blog/"
    assert seen[1].url.path == "/blog/index.php"
