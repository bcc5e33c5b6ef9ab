import logging
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from .config import Credentials
from .errors import FileUnreadable, NotFound, RemoteApiError, TransportError
from .models import Encoding, RequestSpec, ResponseEnvelope

logger = logging.getLogger(__name__)

USER_AGENT = "Emlog-MCP-Client/1.0"
API_KEY_FIELD = "api_key"
DEFAULT_ERROR_MESSAGE = "API request failed"
# Never written to logs
_SENSITIVE_PARAMS = {API_KEY_FIELD, "password"}


def _rest(selector: str) -> str:
    return f"/?rest-api={selector}"


def _action(action: str) -> str:
    return f"/index.php?action={action}"


class EmlogClient:
    """Client for making authenticated requests to the Emlog REST API"""

    def __init__(
        self,
        credentials: Credentials,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the API client

        Args:
            credentials: Base URL and API key of the Emlog site
            timeout: Ceiling for every request in seconds
            transport: Optional httpx transport (used by tests to stub the network)
        """
        self.credentials = credentials
        self.base_url = credentials.base_url
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }

    @staticmethod
    def _encode_params(params: dict[str, Any]) -> dict[str, Any]:
        """
        Flatten a parameter mapping into what Emlog expects

        None values are dropped, list values become repeated `name[]` fields
        and everything else is sent as its string form.
        """
        encoded: dict[str, Any] = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                encoded[f"{key}[]"] = [str(item) for item in value]
            else:
                encoded[key] = str(value)
        return encoded

    def _with_api_key(self, params: dict[str, Any]) -> dict[str, Any]:
        encoded = self._encode_params(params)
        encoded[API_KEY_FIELD] = self.credentials.api_key
        return encoded

    async def get(self, selector: str, params: dict[str, Any] | None = None) -> Any:
        """
        Issue a read against the fixed REST path

        Args:
            selector: Emlog `rest-api` endpoint selector (e.g. "article_list")
            params: Query parameters; the API key is appended automatically

        Returns:
            The envelope's `data` payload
        """
        spec = RequestSpec(
            method="GET",
            path="/",
            params={"rest-api": selector, **(params or {})},
            encoding=Encoding.QUERY,
        )
        return await self.send(spec)

    async def post(
        self,
        path: str,
        fields: dict[str, Any] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> Any:
        """
        Issue a write

        Fields go in a URL-encoded form body unless binary parts are attached,
        in which case a multipart body is used. The API key is always a form field.

        Args:
            path: Path including the selector query (e.g. "/?rest-api=article_post")
            fields: Form fields
            files: Multipart parts {field: (filename, content, mime_type)}

        Returns:
            The envelope's `data` payload
        """
        spec = RequestSpec(
            method="POST",
            path=path,
            params=fields or {},
            encoding=Encoding.MULTIPART if files else Encoding.FORM,
            files=files,
        )
        return await self.send(spec)

    async def send(self, spec: RequestSpec) -> Any:
        """
        Send a RequestSpec and normalize the reply

        Raises:
            TransportError: connection failure, timeout, non-2xx or non-envelope body
            RemoteApiError: 2xx response whose envelope code is non-zero
        """
        url = f"{self.base_url}{spec.path}"
        payload = self._with_api_key(spec.params)

        kwargs: dict[str, Any] = {}
        if spec.encoding is Encoding.QUERY:
            kwargs["params"] = payload
        elif spec.encoding is Encoding.FORM:
            kwargs["data"] = payload
        else:
            kwargs["data"] = payload
            kwargs["files"] = spec.files

        loggable = {k: v for k, v in spec.params.items() if v is not None and k not in _SENSITIVE_PARAMS}
        logger.info(f"🔍 Emlog API {spec.method} {spec.path} ({spec.encoding.value})")
        if loggable:
            logger.debug(f"   Parameters: {loggable}")

        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                http2=True,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(spec.method, url, headers=self._get_headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"⏱️ Emlog API timeout after {self.timeout}s: {spec.path}")
            raise TransportError(f"Request timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            logger.warning(f"❌ Emlog API transport failure: {e!r}")
            raise TransportError(f"Request failed: {str(e) or type(e).__name__}") from e

        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any:
        """Strip the Emlog envelope, raising on any failure signal"""
        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = None
            if isinstance(body, dict) and body.get("msg"):
                message = str(body["msg"])
            message = message or response.reason_phrase or DEFAULT_ERROR_MESSAGE
            logger.warning(f"❌ Response: {response.status_code} {message}")
            raise TransportError(message, status=response.status_code)

        if not isinstance(body, dict):
            logger.warning(f"❌ Response: {response.status_code} is not a JSON envelope")
            raise TransportError("Unrecognized response from Emlog API (expected a JSON envelope)", status=response.status_code)

        envelope = ResponseEnvelope.model_validate(body)
        if not envelope.is_success:
            logger.info(f"⚠️ Envelope code {envelope.code}: {envelope.message}")
            raise RemoteApiError(envelope.message or DEFAULT_ERROR_MESSAGE, code=envelope.code)

        logger.info(f"✅ Response: {response.status_code}")
        return envelope.data

    # ========== Articles ==========

    async def get_article_list(
        self,
        page: int | None = None,
        count: int | None = None,
        sort_id: int | None = None,
        keyword: str | None = None,
        tag: str | None = None,
        order: str | None = None,
    ) -> dict[str, Any]:
        params = {"page": page, "count": count, "sort_id": sort_id, "keyword": keyword, "tag": tag, "order": order}
        return await self.get("article_list", params)

    async def get_article_detail(self, article_id: int, password: str | None = None) -> dict[str, Any] | None:
        data = await self.get("article_detail", {"id": article_id, "password": password or None})
        if isinstance(data, dict):
            return data.get("article")
        return data

    async def create_article(self, **fields: Any) -> dict[str, Any]:
        return await self.post(_rest("article_post"), fields)

    async def update_article(self, article_id: int, **fields: Any) -> Any:
        return await self.post(_rest("article_update"), {"id": article_id, **fields})

    async def like_article(self, gid: int, name: str | None = None, avatar: str | None = None) -> Any:
        # addlike is a front-end action that does not require api_key; it is sent as on every other write
        return await self.post(_action("addlike"), {"gid": gid, "name": name, "avatar": avatar})

    async def unlike_article(self, gid: int) -> Any:
        return await self.post(_action("unlike"), {"gid": gid})

    async def get_article_likes(self, article_id: int | None = None) -> dict[str, Any]:
        return await self.get("like_list", {"id": article_id})

    # ========== Drafts ==========

    async def get_draft_list(self, count: int | None = None) -> dict[str, Any]:
        return await self.get("draft_list", {"count": count})

    async def get_draft_detail(self, draft_id: int) -> dict[str, Any]:
        return await self.get("draft_detail", {"id": draft_id})

    # ========== Categories ==========

    async def get_sort_list(self) -> dict[str, Any]:
        return await self.get("sort_list")

    # ========== Comments ==========

    async def get_comment_list(self, article_id: int, page: int | None = None) -> dict[str, Any]:
        """Paginated comment list (needs comment pagination enabled on the blog)"""
        return await self.get("comment_list", {"id": article_id, "page": page})

    async def get_comment_list_simple(self, article_id: int) -> dict[str, Any]:
        return await self.get("comment_list_simple", {"id": article_id})

    async def add_comment(
        self,
        gid: int,
        comname: str,
        comment: str,
        commail: str | None = None,
        comurl: str | None = None,
        avatar: str | None = None,
        pid: int | None = None,
    ) -> Any:
        fields = {
            "gid": gid,
            "comname": comname,
            "comment": comment,
            "commail": commail,
            "comurl": comurl,
            "avatar": avatar,
            "pid": pid,
            "resp": "json",
        }
        return await self.post(_action("addcom"), fields)

    async def like_comment(self, cid: int) -> Any:
        return await self.post(_action("likecom"), {"cid": cid})

    # ========== Micro-notes ==========

    async def publish_note(self, content: str, private: str | None = None) -> Any:
        return await self.post(_rest("note_post"), {"t": content, "private": private or "n"})

    async def get_note_list(
        self,
        page: int | None = None,
        count: int | None = None,
        author_uid: int | None = None,
    ) -> dict[str, Any]:
        return await self.get("note_list", {"page": page, "count": count, "author_uid": author_uid})

    # ========== Users ==========

    async def get_current_user(self) -> dict[str, Any]:
        return await self.get("userinfo")

    async def get_user_detail(self, user_id: int) -> dict[str, Any]:
        return await self.get("user_detail", {"id": user_id})

    # ========== Media ==========

    async def upload_file(self, file_path: str, sid: int | None = None) -> dict[str, Any]:
        """
        Upload a local file to the media library

        Args:
            file_path: Local path of the file
            sid: Optional media category ID

        Raises:
            NotFound: The path is not an existing file (checked before any request is made)
            FileUnreadable: The file exists but reading it failed (permissions, I/O error)
        """
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise NotFound(file_path)

        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            content = path.read_bytes()
        except OSError as e:
            raise FileUnreadable(file_path, e.strerror or str(e)) from e

        files = {"file": (path.name, content, mime_type)}
        logger.info(f"📤 Uploading {path.name} ({mime_type})")
        return await self.post(_rest("upload"), {"sid": sid}, files=files)
