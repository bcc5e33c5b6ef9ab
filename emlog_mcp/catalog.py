"""
Call catalog: the fixed table of MCP resources and tools

Every externally visible name maps to one CatalogEntry that declares its input
fields, the handler that talks to Emlog and how the result is rendered.
Resources render structured JSON; tools render a narrated summary. Failures of
any handler are caught here and rendered, never propagated to the host.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlsplit

from pydantic import ValidationError

from . import mcp_tools
from .errors import EmlogError, InvalidRequest
from .models import ResourceResponse, ToolResponse

if TYPE_CHECKING:
    from .api_client import EmlogClient

logger = logging.getLogger(__name__)

URI_SCHEME = "emlog"
ID_PLACEHOLDER = "{id}"
YES_NO = ("y", "n")

_POSITIVE_INT = re.compile(r"[1-9][0-9]*")


class RenderStrategy(str, Enum):
    STRUCTURED = "structured"
    NARRATED = "narrated"


@dataclass(frozen=True)
class FieldSpec:
    """One named input of a tool (or query parameter of a resource)"""

    name: str
    type: type
    required: bool = False
    choices: tuple[str, ...] | None = None
    description: str = ""

    def check(self, value: Any) -> None:
        if self.type is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif self.type is list:
            ok = isinstance(value, list) and all(isinstance(item, str) for item in value)
        else:
            ok = isinstance(value, self.type)
        if not ok:
            expected = "list of strings" if self.type is list else self.type.__name__
            raise InvalidRequest(f"Invalid value for '{self.name}': expected {expected}, got {type(value).__name__}")
        if self.choices is not None and value not in self.choices:
            raise InvalidRequest(f"Invalid value for '{self.name}': '{value}' is not one of {', '.join(self.choices)}")


Handler = Callable[..., Awaitable[Any]]
Narrator = Callable[[dict[str, Any], Any], str]


@dataclass(frozen=True)
class CatalogEntry:
    """A static catalog row; identifier is a tool name or a resource URI (template)"""

    identifier: str
    title: str
    description: str
    render: RenderStrategy
    handler: Handler
    fields: tuple[FieldSpec, ...] = ()
    narrate: Narrator | None = None
    default_id: int | None = None

    @property
    def is_template(self) -> bool:
        return ID_PLACEHOLDER in self.identifier

    def validate(self, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """
        Check arguments against the declared fields

        Returns:
            Only the declared fields that carry a value (None is treated as absent)

        Raises:
            InvalidRequest: missing required field, wrong type or value outside its enum
        """
        arguments = arguments or {}
        if not isinstance(arguments, dict):
            raise InvalidRequest("Arguments must be an object")

        validated: dict[str, Any] = {}
        missing = []
        for spec in self.fields:
            value = arguments.get(spec.name)
            if value is None:
                if spec.required:
                    missing.append(spec.name)
                continue
            spec.check(value)
            validated[spec.name] = value
        if missing:
            raise InvalidRequest(f"Missing required field(s) for {self.identifier}: {', '.join(missing)}")
        return validated


def _tool(
    name: str,
    title: str,
    description: str,
    fields: tuple[FieldSpec, ...],
    handler: Handler,
    narrate: Narrator,
) -> CatalogEntry:
    return CatalogEntry(
        identifier=name,
        title=title,
        description=description,
        render=RenderStrategy.NARRATED,
        handler=handler,
        fields=fields,
        narrate=narrate,
    )


def _resource(
    uri: str,
    title: str,
    description: str,
    handler: Handler,
    fields: tuple[FieldSpec, ...] = (),
    default_id: int | None = None,
) -> CatalogEntry:
    return CatalogEntry(
        identifier=uri,
        title=title,
        description=description,
        render=RenderStrategy.STRUCTURED,
        handler=handler,
        fields=fields,
        default_id=default_id,
    )


def _yes_no(name: str, description: str) -> FieldSpec:
    return FieldSpec(name, str, choices=YES_NO, description=description)


# ============================================================================
# Resources
# ============================================================================

RESOURCES: tuple[CatalogEntry, ...] = (
    _resource("emlog://articles", "Articles", "All articles from the Emlog blog", mcp_tools.read_articles),
    _resource(
        "emlog://articles/{id}",
        "Article",
        "A single article. Append ?password=... for protected articles.",
        mcp_tools.read_article,
        fields=(FieldSpec("password", str, description="Password for protected articles"),),
    ),
    _resource("emlog://categories", "Categories", "All categories from the Emlog blog", mcp_tools.read_categories),
    _resource(
        "emlog://comments/{id}",
        "Comments",
        "Comments for a specific article. Use emlog://comments/{article_id}; emlog://comments reads article 1.",
        mcp_tools.read_comments,
        default_id=1,
    ),
    _resource("emlog://notes", "Notes", "Recent micro-notes from the Emlog blog", mcp_tools.read_notes),
    _resource("emlog://users", "Current user", "The user the API key belongs to", mcp_tools.read_current_user),
    _resource("emlog://drafts", "Drafts", "Recent drafts from the Emlog blog", mcp_tools.read_drafts),
)

# ============================================================================
# Tools
# ============================================================================

_ARTICLE_ID = FieldSpec("id", int, required=True, description="The ID of the article")

TOOLS: tuple[CatalogEntry, ...] = (
    _tool(
        "create_article",
        "Create Article",
        "Create a new blog article",
        (
            FieldSpec("title", str, required=True, description="The title of the article"),
            FieldSpec("content", str, required=True, description="The content of the article"),
            FieldSpec("excerpt", str, description="The excerpt/summary of the article"),
            FieldSpec("cover", str, description="The cover image URL"),
            FieldSpec("sort_id", int, description="The category ID for the article"),
            FieldSpec("tags", str, description="Comma-separated tags for the article"),
            _yes_no("draft", "Whether to save as draft (y) or publish (n)"),
            _yes_no("top", "Whether to pin to homepage"),
            _yes_no("sortop", "Whether to pin within its category"),
            _yes_no("allow_remark", "Whether to allow comments"),
            FieldSpec("password", str, description="Password protecting the article"),
            FieldSpec("post_date", str, description="Publish time, e.g. 2024-01-31 08:00:00"),
            FieldSpec("field_keys", list, description="Custom field names"),
            FieldSpec("field_values", list, description="Custom field values, aligned with field_keys"),
            _yes_no("auto_cover", "Use the first image of the content as cover"),
        ),
        mcp_tools.execute_create_article,
        mcp_tools.narrate_create_article,
    ),
    _tool(
        "update_article",
        "Update Article",
        "Update an existing blog article. If no draft value is given the article keeps its current draft/published status.",
        (
            FieldSpec("id", int, required=True, description="The ID of the article to update"),
            FieldSpec("title", str, required=True, description="The new title of the article"),
            FieldSpec("content", str, description="The new content of the article"),
            FieldSpec("excerpt", str, description="The new excerpt/summary"),
            FieldSpec("cover", str, description="The new cover image URL"),
            FieldSpec("sort_id", int, description="The new category ID"),
            FieldSpec("tags", str, description="New comma-separated tags"),
            _yes_no("draft", "Save as draft (y) or publish (n). Omit to keep the current status."),
            FieldSpec("post_date", str, description="New publish time"),
        ),
        mcp_tools.execute_update_article,
        mcp_tools.narrate_update_article,
    ),
    _tool(
        "get_article",
        "Get Article",
        "Get a specific article by ID",
        (
            FieldSpec("id", int, required=True, description="The ID of the article to retrieve"),
            FieldSpec("password", str, description="Password for protected articles"),
        ),
        mcp_tools.execute_get_article,
        mcp_tools.narrate_get_article,
    ),
    _tool(
        "search_articles",
        "Search Articles",
        "Search articles by keyword, tag, or category",
        (
            FieldSpec("keyword", str, description="Search keyword for article titles"),
            FieldSpec("tag", str, description="Filter by tag"),
            FieldSpec("sort_id", int, description="Filter by category ID"),
            FieldSpec("page", int, description="Page number (default: 1)"),
            FieldSpec("count", int, description="Number of articles per page"),
            FieldSpec("order", str, choices=("views", "comnum"), description="Sort by view count or comment count"),
        ),
        mcp_tools.execute_search_articles,
        mcp_tools.narrate_search_articles,
    ),
    _tool(
        "like_article",
        "Like Article",
        "Like an article",
        (
            FieldSpec("gid", int, required=True, description="The ID of the article to like"),
            FieldSpec("name", str, description="Name of the person liking"),
            FieldSpec("avatar", str, description="Avatar URL of the person liking"),
        ),
        mcp_tools.execute_like_article,
        mcp_tools.narrate_like_article,
    ),
    _tool(
        "unlike_article",
        "Unlike Article",
        "Remove a like from an article",
        (FieldSpec("gid", int, required=True, description="The ID of the article"),),
        mcp_tools.execute_unlike_article,
        mcp_tools.narrate_unlike_article,
    ),
    _tool(
        "get_article_likes",
        "Get Article Likes",
        "List likes, optionally for one article",
        (FieldSpec("id", int, description="The ID of the article"),),
        mcp_tools.execute_get_article_likes,
        mcp_tools.narrate_get_article_likes,
    ),
    _tool(
        "add_comment",
        "Add Comment",
        "Add a comment to an article",
        (
            FieldSpec("gid", int, required=True, description="The ID of the article to comment on"),
            FieldSpec("comname", str, required=True, description="Name of the commenter"),
            FieldSpec("comment", str, required=True, description="The comment content"),
            FieldSpec("commail", str, description="Email of the commenter"),
            FieldSpec("comurl", str, description="Website URL of the commenter"),
            FieldSpec("avatar", str, description="Avatar URL of the commenter"),
            FieldSpec("pid", int, description="Parent comment ID for replies"),
        ),
        mcp_tools.execute_add_comment,
        mcp_tools.narrate_add_comment,
    ),
    _tool(
        "like_comment",
        "Like Comment",
        "Like a comment",
        (FieldSpec("cid", int, required=True, description="The ID of the comment"),),
        mcp_tools.execute_like_comment,
        mcp_tools.narrate_like_comment,
    ),
    _tool(
        "get_comments",
        "Get Comments",
        "Get comments for an article (with pagination support)",
        (
            _ARTICLE_ID,
            FieldSpec("page", int, description="Page number for paginated comments (requires backend pagination enabled)"),
        ),
        mcp_tools.execute_get_comments,
        mcp_tools.narrate_get_comments,
    ),
    _tool(
        "create_note",
        "Create Note",
        "Create a new micro-note",
        (
            FieldSpec("t", str, required=True, description="The content of the micro-note"),
            _yes_no("private", "Whether the note is private (y) or public (n)"),
        ),
        mcp_tools.execute_create_note,
        mcp_tools.narrate_create_note,
    ),
    _tool(
        "list_notes",
        "List Notes",
        "List micro-notes",
        (
            FieldSpec("page", int, description="Page number"),
            FieldSpec("count", int, description="Notes per page"),
            FieldSpec("author_uid", int, description="Only notes by this user"),
        ),
        mcp_tools.execute_list_notes,
        mcp_tools.narrate_list_notes,
    ),
    _tool(
        "upload_file",
        "Upload File",
        "Upload a file (image, document, etc.)",
        (
            FieldSpec("file_path", str, required=True, description="Local path to the file to upload"),
            FieldSpec("sid", int, description="Resource category ID"),
        ),
        mcp_tools.execute_upload_file,
        mcp_tools.narrate_upload_file,
    ),
    _tool(
        "get_user_info",
        "Get User Info",
        "Get current user information",
        (),
        mcp_tools.execute_get_user_info,
        mcp_tools.narrate_get_user_info,
    ),
    _tool(
        "get_user_detail",
        "Get User Detail",
        "Get information about a user by ID",
        (FieldSpec("id", int, required=True, description="The ID of the user"),),
        mcp_tools.execute_get_user_detail,
        mcp_tools.narrate_get_user_detail,
    ),
    _tool(
        "get_draft_list",
        "Get Draft List",
        "Get list of draft articles",
        (FieldSpec("count", int, description="Number of drafts to retrieve"),),
        mcp_tools.execute_get_draft_list,
        mcp_tools.narrate_get_draft_list,
    ),
    _tool(
        "get_draft_detail",
        "Get Draft Detail",
        "Get details of a specific draft",
        (FieldSpec("id", int, required=True, description="The ID of the draft to retrieve"),),
        mcp_tools.execute_get_draft_detail,
        mcp_tools.narrate_get_draft_detail,
    ),
)


# ============================================================================
# URI resolution
# ============================================================================


def _parse_id(segment: str, uri: str) -> int:
    if not segment:
        raise InvalidRequest(f"Missing article ID in URI: {uri}")
    if not _POSITIVE_INT.fullmatch(segment):
        raise InvalidRequest(f"Invalid article ID '{segment}' in URI: {uri}. Use a positive integer, e.g. emlog://comments/42")
    return int(segment)


def resolve_resource_uri(uri: str, resources: tuple[CatalogEntry, ...] = RESOURCES) -> tuple[CatalogEntry, dict[str, Any]]:
    """
    Find the resource entry for a URI and extract its arguments

    `emlog://comments/42` -> (comments entry, {"id": 42}). The untemplated form
    (`emlog://comments`) only resolves for entries that declare a default id.

    Raises:
        InvalidRequest: unknown URI, or missing/malformed identifier segment
    """
    parts = urlsplit(uri)
    if parts.scheme != URI_SCHEME or not parts.netloc:
        raise InvalidRequest(f"Unknown resource URI: {uri}")

    base = f"{URI_SCHEME}://{parts.netloc}"
    query = {key: values[-1] for key, values in parse_qs(parts.query).items()}

    if not parts.path:
        for entry in resources:
            if entry.identifier == base:
                return entry, query
        for entry in resources:
            if entry.identifier == f"{base}/{ID_PLACEHOLDER}" and entry.default_id is not None:
                return entry, {**query, "id": entry.default_id}
        raise InvalidRequest(f"Unknown resource URI: {uri}")

    for entry in resources:
        if entry.identifier == f"{base}/{ID_PLACEHOLDER}":
            return entry, {**query, "id": _parse_id(parts.path[1:], uri)}
    raise InvalidRequest(f"Unknown resource URI: {uri}")


# ============================================================================
# Catalog
# ============================================================================


class Catalog:
    """The two entry points the protocol host calls: read a resource, call a tool"""

    def __init__(
        self,
        client: EmlogClient,
        resources: tuple[CatalogEntry, ...] = RESOURCES,
        tools: tuple[CatalogEntry, ...] = TOOLS,
    ):
        self.client = client
        self.resources = resources
        self.tools = {entry.identifier: entry for entry in tools}

    async def read_resource(self, uri: str) -> ResourceResponse:
        try:
            entry, raw_args = resolve_resource_uri(uri, self.resources)
            args = entry.validate({k: v for k, v in raw_args.items() if k != "id"})
            if "id" in raw_args:
                args["id"] = raw_args["id"]
            logger.info(f"📖 Resource read: {uri}")
            payload = await entry.handler(self.client, args)
            return ResourceResponse(uri=uri, text=render(entry, args, payload))
        except (EmlogError, ValidationError) as e:
            message = _failure_message(e)
            logger.warning(f"❌ Resource {uri} failed: {message}")
            return ResourceResponse(uri=uri, text=_to_json({"error": message, "uri": uri}), is_error=True)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResponse:
        try:
            entry = self.tools.get(name)
            if entry is None:
                raise InvalidRequest(f"Unknown tool: {name}")
            args = entry.validate(arguments)
            logger.info(f"🔧 Tool call: {name}")
            payload = await entry.handler(self.client, args)
            return ToolResponse(text=render(entry, args, payload))
        except (EmlogError, ValidationError) as e:
            message = _failure_message(e)
            logger.warning(f"❌ Tool {name} failed: {message}")
            return ToolResponse(text=f"Error: {message}", is_error=True)


def render(entry: CatalogEntry, args: dict[str, Any], payload: Any) -> str:
    """Turn a handler payload into text according to the entry's render strategy"""
    if entry.render is RenderStrategy.NARRATED and entry.narrate is not None:
        return entry.narrate(args, payload)
    return _to_json(payload)


def _failure_message(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return f"Unexpected response shape from Emlog API ({error.error_count()} validation errors)"
    return str(error)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
