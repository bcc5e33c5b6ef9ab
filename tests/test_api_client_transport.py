#!/usr/bin/env python3
"""
Test the Emlog transport adapter: request encoding and envelope normalization
"""

from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from emlog_mcp.api_client import USER_AGENT
from emlog_mcp.errors import FileUnreadable, NotFound, RemoteApiError, TransportError

TEST_API_KEY = "test_key_123"


def form_fields(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.content.decode())


class TestEnvelopeNormalization:
    """Envelope code 0 is success; anything else is a RemoteApiError"""

    @pytest.mark.asyncio
    async def test_status_zero_returns_payload_only(self, make_client, envelope):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"sorts": [{"sid": 1}]})))

        result = await client.get_sort_list()

        assert result == {"sorts": [{"sid": 1}]}

    @pytest.mark.asyncio
    async def test_absent_code_is_success(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"userinfo": {"uid": 1}}}))

        result = await client.get_current_user()

        assert result == {"userinfo": {"uid": 1}}

    @pytest.mark.asyncio
    async def test_non_zero_code_raises_remote_error_with_message(self, make_client, envelope):
        client = make_client(lambda request: httpx.Response(200, json=envelope(code=7, msg="bad password")))

        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_article_detail(1, password="wrong")

        assert str(exc_info.value) == "bad password"
        assert exc_info.value.code == 7

    @pytest.mark.asyncio
    async def test_non_zero_code_without_message_uses_generic_text(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"code": 5}))

        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_draft_list()

        assert str(exc_info.value) == "API request failed"


class TestTransportErrors:
    """HTTP-level failures surface as TransportError"""

    @pytest.mark.asyncio
    async def test_non_2xx_uses_body_message(self, make_client):
        client = make_client(lambda request: httpx.Response(403, json={"code": 1, "msg": "api key error"}))

        with pytest.raises(TransportError) as exc_info:
            await client.get_article_list()

        assert exc_info.value.status == 403
        assert exc_info.value.message == "api key error"
        assert str(exc_info.value) == "HTTP 403: api key error"

    @pytest.mark.asyncio
    async def test_non_2xx_without_body_uses_reason_phrase(self, make_client):
        client = make_client(lambda request: httpx.Response(502, text="<html>upstream down</html>"))

        with pytest.raises(TransportError) as exc_info:
            await client.get_article_list()

        assert exc_info.value.status == 502
        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_2xx_without_json_envelope(self, make_client):
        client = make_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(TransportError) as exc_info:
            await client.get_article_list()

        assert exc_info.value.status == 200
        assert "envelope" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout(self, make_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler, timeout=2.5)

        with pytest.raises(TransportError) as exc_info:
            await client.get_article_list()

        assert exc_info.value.status is None
        assert "2.5s" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_refused(self, make_client):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(TransportError) as exc_info:
            await client.get_sort_list()

        assert "Connection refused" in str(exc_info.value)


class TestRequestEncoding:
    """Reads use the query string, writes a form body, uploads multipart"""

    @pytest.mark.asyncio
    async def test_get_puts_selector_params_and_api_key_in_query(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"articles": []})))

        await client.get_article_list(page=2, keyword="python", order="views")

        request = recorded_requests[0]
        assert request.method == "GET"
        assert request.url.path == "/"
        params = request.url.params
        assert list(params.keys())[0] == "rest-api"
        assert params["rest-api"] == "article_list"
        assert params["page"] == "2"
        assert params["keyword"] == "python"
        assert params["order"] == "views"
        assert params["api_key"] == TEST_API_KEY
        # None values are not sent
        assert "tag" not in params
        assert "sort_id" not in params

    @pytest.mark.asyncio
    async def test_every_request_carries_user_agent(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({})))

        await client.get_current_user()
        await client.like_article(3)

        assert [r.headers["user-agent"] for r in recorded_requests] == [USER_AGENT, USER_AGENT]

    @pytest.mark.asyncio
    async def test_post_sends_url_encoded_form_with_api_key(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"article_id": 12})))

        result = await client.create_article(title="Hello", content="World", draft="y", sort_id=None)

        assert result == {"article_id": 12}
        request = recorded_requests[0]
        assert request.method == "POST"
        assert request.url.params["rest-api"] == "article_post"
        assert "api_key" not in request.url.params
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        fields = form_fields(request)
        assert fields["title"] == ["Hello"]
        assert fields["content"] == ["World"]
        assert fields["draft"] == ["y"]
        assert fields["api_key"] == [TEST_API_KEY]
        assert "sort_id" not in fields

    @pytest.mark.asyncio
    async def test_list_values_become_repeated_bracket_fields(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"article_id": 1})))

        await client.create_article(title="t", content="c", field_keys=["color", "size"], field_values=["red", "L"])

        fields = form_fields(recorded_requests[0])
        assert fields["field_keys[]"] == ["color", "size"]
        assert fields["field_values[]"] == ["red", "L"]

    @pytest.mark.asyncio
    async def test_action_endpoints_use_index_php(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"cid": 9})))

        await client.add_comment(gid=5, comname="Ann", comment="Nice post")

        request = recorded_requests[0]
        assert request.url.path == "/index.php"
        assert request.url.params["action"] == "addcom"
        fields = form_fields(request)
        assert fields["resp"] == ["json"]
        assert fields["gid"] == ["5"]
        assert fields["api_key"] == [TEST_API_KEY]

    @pytest.mark.asyncio
    async def test_update_article_sends_id_with_fields(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope(None)))

        await client.update_article(42, title="New", draft="n")

        request = recorded_requests[0]
        assert request.url.params["rest-api"] == "article_update"
        fields = form_fields(request)
        assert fields["id"] == ["42"]
        assert fields["title"] == ["New"]
        assert fields["draft"] == ["n"]

    @pytest.mark.asyncio
    async def test_publish_note_defaults_to_public(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"note_id": 3})))

        await client.publish_note("hello")

        assert form_fields(recorded_requests[0])["private"] == ["n"]

    @pytest.mark.asyncio
    async def test_article_detail_unwraps_article(self, make_client, envelope):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"article": {"id": 42, "title": "T"}})))

        article = await client.get_article_detail(42)

        assert article == {"id": 42, "title": "T"}


class TestUpload:
    """Uploads are multipart with the API key as a form field"""

    @pytest.mark.asyncio
    async def test_upload_sends_multipart_with_api_key_field(self, make_client, envelope, recorded_requests, tmp_path):
        image = tmp_path / "cover.png"
        image.write_bytes(b"\x89PNG fake image bytes")
        client = make_client(lambda request: httpx.Response(200, json=envelope({"media_id": 1, "url": "https://blog.example.com/content/uploadfile/cover.png"})))

        result = await client.upload_file(str(image), sid=4)

        assert result["url"].endswith("cover.png")
        request = recorded_requests[0]
        assert request.url.params["rest-api"] == "upload"
        assert "api_key" not in request.url.params
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="api_key"' in body
        assert TEST_API_KEY.encode() in body
        assert b'name="sid"' in body
        assert b'filename="cover.png"' in body
        assert b"\x89PNG fake image bytes" in body

    @pytest.mark.asyncio
    async def test_missing_file_fails_before_any_request(self, make_client, recorded_requests, tmp_path):
        client = make_client(lambda request: httpx.Response(200, json={"code": 0}))
        missing = tmp_path / "nope.jpg"

        with pytest.raises(NotFound) as exc_info:
            await client.upload_file(str(missing))

        assert exc_info.value.path == str(missing)
        assert recorded_requests == []

    @pytest.mark.asyncio
    async def test_directory_is_not_uploadable(self, make_client, recorded_requests, tmp_path):
        client = make_client(lambda request: httpx.Response(200, json={"code": 0}))

        with pytest.raises(NotFound):
            await client.upload_file(str(tmp_path))

        assert recorded_requests == []

    @pytest.mark.asyncio
    async def test_unreadable_file_fails_before_any_request(self, make_client, recorded_requests, tmp_path, monkeypatch):
        locked = tmp_path / "locked.png"
        locked.write_bytes(b"secret")

        def deny(self):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "read_bytes", deny)
        client = make_client(lambda request: httpx.Response(200, json={"code": 0}))

        with pytest.raises(FileUnreadable) as exc_info:
            await client.upload_file(str(locked))

        assert exc_info.value.path == str(locked)
        assert "Permission denied" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert recorded_requests == []


class TestFrontEndActions:
    @pytest.mark.asyncio
    async def test_like_article_form(self, make_client, envelope, recorded_requests):
        client = make_client(lambda request: httpx.Response(200, json=envelope({"id": 1})))

        await client.like_article(7, name="Ann")

        request = recorded_requests[0]
        assert request.url.path == "/index.php"
        assert request.url.params["action"] == "addlike"
        fields = form_fields(request)
        assert fields["gid"] == ["7"]
        assert fields["name"] == ["Ann"]
        assert "avatar" not in fields
        # Same authentication field as every other write
        assert fields["api_key"] == [TEST_API_KEY]
