"""
Handlers behind every catalog entry

Each tool has an `execute_*` coroutine that performs the adapter call(s) and
returns the normalized payload, and a `narrate_*` function that turns the
validated arguments plus that payload into the short summary shown to the
model. Resource readers (`read_*`) return the payload that is rendered as JSON.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .draft_state import DraftResolution, default_probes, resolve_draft_flag
from .errors import RemoteApiError
from .models import Article, Comment, Media, Note, User

if TYPE_CHECKING:
    from .api_client import EmlogClient

logger = logging.getLogger(__name__)

NOTE_PREVIEW_CHARS = 50
RESOURCE_PAGE_SIZE = 20


def _as_dict(payload: Any) -> dict[str, Any]:
    return payload if isinstance(payload, dict) else {}


def _as_list(value: Any) -> list[Any]:
    """Emlog returns some collections as JSON objects keyed by id"""
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return value
    return []


def _bullets(lines: list[str], empty: str) -> str:
    return "\n".join(lines) if lines else empty


# ============================================================================
# Articles
# ============================================================================


async def execute_create_article(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.create_article(**args)


def narrate_create_article(args: dict[str, Any], result: Any) -> str:
    article_id = _as_dict(result).get("article_id") or "unknown"
    return f"Successfully created article: {args['title']} (ID: {article_id})"


async def execute_update_article(client: EmlogClient, args: dict[str, Any]) -> DraftResolution:
    fields = dict(args)
    article_id = fields.pop("id")
    explicit = fields.pop("draft", None)

    resolution = await resolve_draft_flag(article_id, explicit, default_probes(client))
    if resolution.flag is not None:
        fields["draft"] = resolution.flag.value

    await client.update_article(article_id, **fields)
    return resolution


def narrate_update_article(args: dict[str, Any], resolution: DraftResolution) -> str:
    text = f"Successfully updated article: {args['title']} (ID: {args['id']})"
    if resolution.flag is not None:
        text += " (saved as draft)" if resolution.flag.value == "y" else " (published)"
    if resolution.note:
        text += f"\nNote: {resolution.note}"
    return text


async def execute_get_article(client: EmlogClient, args: dict[str, Any]) -> Any:
    article = await client.get_article_detail(args["id"], args.get("password"))
    if not article:
        raise RemoteApiError(f"Article {args['id']} not found")
    return article


def narrate_get_article(args: dict[str, Any], result: Any) -> str:
    article = Article.model_validate(result)
    return (
        f"Article: {article.title}\n\n"
        f"Content: {article.content}\n\n"
        f"Excerpt: {article.excerpt or 'N/A'}\n"
        f"Category: {article.sort_name or article.sort_id or 'N/A'}\n"
        f"Tags: {article.tag_names()}\n"
        f"Views: {article.views}\n"
        f"Comments: {article.comnum}"
    )


async def execute_search_articles(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_article_list(**args)


def narrate_search_articles(args: dict[str, Any], result: Any) -> str:
    data = _as_dict(result)
    articles = [Article.model_validate(a) for a in _as_list(data.get("articles"))]
    lines = [f"- {a.title} (ID: {a.id}) - Views: {a.views}, Comments: {a.comnum}" for a in articles]
    page = data.get("page", args.get("page", 1))
    total_pages = data.get("total_pages", "?")
    return f"Found {len(articles)} articles (Page {page}/{total_pages}):\n\n{_bullets(lines, 'No articles found')}"


async def execute_like_article(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.like_article(args["gid"], args.get("name"), args.get("avatar"))


def narrate_like_article(args: dict[str, Any], result: Any) -> str:
    return f"Successfully liked article with ID: {args['gid']}"


async def execute_unlike_article(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.unlike_article(args["gid"])


def narrate_unlike_article(args: dict[str, Any], result: Any) -> str:
    return f"Successfully removed like from article with ID: {args['gid']}"


async def execute_get_article_likes(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_article_likes(args.get("id"))


def narrate_get_article_likes(args: dict[str, Any], result: Any) -> str:
    likes = _as_list(_as_dict(result).get("likes"))
    lines = [f"- {like.get('poster') or 'Anonymous'} ({like.get('date', '')})" for like in likes if isinstance(like, dict)]
    target = f" for article {args['id']}" if args.get("id") is not None else ""
    return f"Likes{target} ({len(lines)} found):\n\n{_bullets(lines, 'No likes found')}"


# ============================================================================
# Comments
# ============================================================================


async def execute_add_comment(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.add_comment(**args)


def narrate_add_comment(args: dict[str, Any], result: Any) -> str:
    text = f"Successfully added comment to article {args['gid']} by {args['comname']}"
    cid = _as_dict(result).get("cid")
    if cid:
        text += f" (Comment ID: {cid})"
    return text


async def execute_like_comment(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.like_comment(args["cid"])


def narrate_like_comment(args: dict[str, Any], result: Any) -> str:
    return f"Successfully liked comment with ID: {args['cid']}"


async def execute_get_comments(client: EmlogClient, args: dict[str, Any]) -> dict[str, Any]:
    """Paginated backend variant when a page is requested, simple variant otherwise"""
    page = args.get("page")
    if page is not None:
        result = _as_dict(await client.get_comment_list(args["id"], page))
        return {"comments": _as_list(result.get("comments")), "page_url": result.get("commentPageUrl")}
    result = _as_dict(await client.get_comment_list_simple(args["id"]))
    return {"comments": _as_list(result.get("comments"))}


def narrate_get_comments(args: dict[str, Any], result: dict[str, Any]) -> str:
    comments = [Comment.model_validate(c) for c in result["comments"]]
    lines = [f"- {c.poster}: {c.comment} ({c.date})" for c in comments]
    body = _bullets(lines, "No comments found")
    if args.get("page") is not None:
        return f"Comments for article {args['id']} (page {args['page']}):\n\n{body}\n\nPage URL: {result.get('page_url') or 'N/A'}"
    return f"Comments for article {args['id']}:\n\n{body}"


# ============================================================================
# Micro-notes
# ============================================================================


async def execute_create_note(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.publish_note(args["t"], args.get("private"))


def narrate_create_note(args: dict[str, Any], result: Any) -> str:
    content = args["t"]
    preview = content[:NOTE_PREVIEW_CHARS] + ("..." if len(content) > NOTE_PREVIEW_CHARS else "")
    return f"Successfully created micro-note: {preview}"


async def execute_list_notes(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_note_list(**args)


def narrate_list_notes(args: dict[str, Any], result: Any) -> str:
    notes = [Note.model_validate(n) for n in _as_list(_as_dict(result).get("notes"))]
    lines = [f"- [{n.date}] {n.author_name or 'Unknown'}: {n.t}" for n in notes]
    return f"Micro-notes ({len(notes)} found):\n\n{_bullets(lines, 'No notes found')}"


# ============================================================================
# Media
# ============================================================================


async def execute_upload_file(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.upload_file(args["file_path"], args.get("sid"))


def narrate_upload_file(args: dict[str, Any], result: Any) -> str:
    media = Media.model_validate(_as_dict(result))
    return f"Successfully uploaded file: {media.url}"


# ============================================================================
# Users
# ============================================================================


def _describe_user(result: Any) -> str:
    user = User.model_validate(_as_dict(_as_dict(result).get("userinfo")))
    return f"User: {user.nickname}\nEmail: {user.email or 'N/A'}\nUID: {user.uid}\nDescription: {user.description or 'N/A'}"


async def execute_get_user_info(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_current_user()


def narrate_get_user_info(args: dict[str, Any], result: Any) -> str:
    return _describe_user(result)


async def execute_get_user_detail(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_user_detail(args["id"])


def narrate_get_user_detail(args: dict[str, Any], result: Any) -> str:
    return _describe_user(result)


# ============================================================================
# Drafts
# ============================================================================


async def execute_get_draft_list(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_draft_list(args.get("count"))


def narrate_get_draft_list(args: dict[str, Any], result: Any) -> str:
    drafts = [Article.model_validate(d) for d in _as_list(_as_dict(result).get("drafts"))]
    lines = [f"- ID: {d.id}, Title: {d.title or 'Untitled'}, Date: {d.date}" for d in drafts]
    return f"Draft articles ({len(drafts)} found):\n\n{_bullets(lines, 'No drafts found')}"


async def execute_get_draft_detail(client: EmlogClient, args: dict[str, Any]) -> Any:
    result = _as_dict(await client.get_draft_detail(args["id"]))
    if not result.get("draft"):
        raise RemoteApiError(f"Draft {args['id']} not found")
    return result["draft"]


def narrate_get_draft_detail(args: dict[str, Any], result: Any) -> str:
    draft = Article.model_validate(result)
    return (
        "Draft Details:\n\n"
        f"Title: {draft.title}\n"
        f"ID: {draft.id}\n"
        f"Date: {draft.date}\n"
        f"Author: {draft.author_name}\n"
        f"Category: {draft.sort_name or 'Uncategorized'}\n"
        f"Excerpt: {draft.excerpt or 'No excerpt'}\n\n"
        f"--- Content ---\n{draft.content}"
    )


# ============================================================================
# Resources (rendered as structured JSON)
# ============================================================================


async def read_articles(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_article_list()


async def read_article(client: EmlogClient, args: dict[str, Any]) -> Any:
    article = await client.get_article_detail(args["id"], args.get("password"))
    if not article:
        raise RemoteApiError(f"Article {args['id']} not found")
    return article


async def read_categories(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_sort_list()


async def read_comments(client: EmlogClient, args: dict[str, Any]) -> dict[str, Any]:
    result = _as_dict(await client.get_comment_list_simple(args["id"]))
    comments = _as_list(result.get("comments"))
    return {"article_id": args["id"], "comments": comments, "total_comments": len(comments)}


async def read_notes(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_note_list(page=1, count=RESOURCE_PAGE_SIZE)


async def read_current_user(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_current_user()


async def read_drafts(client: EmlogClient, args: dict[str, Any]) -> Any:
    return await client.get_draft_list(count=RESOURCE_PAGE_SIZE)
