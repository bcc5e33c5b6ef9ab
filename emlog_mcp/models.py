"""
Pydantic models for type safety and validation
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Encoding(str, Enum):
    """How a RequestSpec's parameters are serialized"""

    QUERY = "query"
    FORM = "form"
    MULTIPART = "multipart"


class RequestSpec(BaseModel):
    """One outbound call to the Emlog API"""

    method: Literal["GET", "POST"]
    path: str
    params: dict[str, Any] = Field(default_factory=dict)
    encoding: Encoding = Encoding.QUERY
    # Multipart parts: {field: (filename, content, mime_type)}
    files: dict[str, tuple[str, bytes, str]] | None = None


class ResponseEnvelope(BaseModel):
    """Emlog's response wrapper: code 0 (or absent) is success, anything else is failure"""

    model_config = ConfigDict(extra="allow")

    code: Any = None
    msg: Any = None
    data: Any = None

    @property
    def is_success(self) -> bool:
        return self.code in (None, 0, "0")

    @property
    def message(self) -> str | None:
        return str(self.msg) if self.msg not in (None, "") else None


class ToolResponse(BaseModel):
    """Tool call response (narrated text plus failure flag)"""

    text: str
    is_error: bool = False


class ResourceResponse(BaseModel):
    """Resource read response (structured JSON text plus failure flag)"""

    uri: str
    text: str
    mime_type: str = "application/json"
    is_error: bool = False


# ----------------------------------------------------------------------------
# Remote entities. Emlog owns these; every field is optional and unknown keys
# are kept so that nothing the API sends is lost in rendering.
# ----------------------------------------------------------------------------


class _RemoteEntity(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class Article(_RemoteEntity):
    id: int | None = None
    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    cover: str | None = None
    url: str | None = None
    author_id: int | None = None
    author_name: str | None = None
    sort_id: int | None = None
    sort_name: str | None = None
    views: int | None = None
    comnum: int | None = None
    like_count: int | None = None
    date: str | None = None
    tags: Any = None
    top: str | None = None
    sortop: str | None = None
    need_pwd: str | None = None

    def tag_names(self) -> str:
        """Tags as a comma-separated string ('N/A' when there are none)"""
        if not self.tags:
            return "N/A"
        if isinstance(self.tags, str):
            return self.tags
        names = []
        for tag in self.tags:
            names.append(tag.get("name", "") if isinstance(tag, dict) else str(tag))
        return ", ".join(n for n in names if n) or "N/A"


class Comment(_RemoteEntity):
    cid: int | None = None
    gid: int | None = None
    pid: int | None = None
    poster: str | None = None
    comment: str | None = None
    mail: str | None = None
    url: str | None = None
    date: str | None = None
    hide: str | None = None
    top: str | None = None


class Note(_RemoteEntity):
    id: int | None = None
    t: str | None = None
    date: str | None = None
    author_id: int | None = None
    author_name: str | None = None
    private: str | None = None


class User(_RemoteEntity):
    uid: int | None = None
    nickname: str | None = None
    role: str | None = None
    avatar: str | None = None
    email: str | None = None
    description: str | None = None
    create_time: int | str | None = None


class Media(_RemoteEntity):
    media_id: int | None = None
    url: str | None = None
    file_info: dict[str, Any] | None = None
