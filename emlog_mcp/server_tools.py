from typing import Any, Literal

from fastmcp.exceptions import ToolError

from .catalog import Catalog

YesNo = Literal["y", "n"]


async def _invoke(catalog: Catalog, name: str, arguments: dict[str, Any]) -> str:
    """Run a catalog tool; failures become an MCP error result (isError=true) via ToolError"""
    result = await catalog.call_tool(name, arguments)
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def register_tools(mcp, catalog: Catalog) -> None:
    def describe(name: str) -> str:
        return catalog.tools[name].description

    @mcp.tool(name="create_article", description=describe("create_article"))
    async def create_article(
        title: str,
        content: str,
        excerpt: str | None = None,
        cover: str | None = None,
        sort_id: int | None = None,
        tags: str | None = None,
        draft: YesNo | None = None,
        top: YesNo | None = None,
        sortop: YesNo | None = None,
        allow_remark: YesNo | None = None,
        password: str | None = None,
        post_date: str | None = None,
        field_keys: list[str] | None = None,
        field_values: list[str] | None = None,
        auto_cover: YesNo | None = None,
    ) -> str:
        arguments = {
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "cover": cover,
            "sort_id": sort_id,
            "tags": tags,
            "draft": draft,
            "top": top,
            "sortop": sortop,
            "allow_remark": allow_remark,
            "password": password,
            "post_date": post_date,
            "field_keys": field_keys,
            "field_values": field_values,
            "auto_cover": auto_cover,
        }
        return await _invoke(catalog, "create_article", arguments)

    @mcp.tool(name="update_article", description=describe("update_article"))
    async def update_article(
        id: int,
        title: str,
        content: str | None = None,
        excerpt: str | None = None,
        cover: str | None = None,
        sort_id: int | None = None,
        tags: str | None = None,
        draft: YesNo | None = None,
        post_date: str | None = None,
    ) -> str:
        arguments = {
            "id": id,
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "cover": cover,
            "sort_id": sort_id,
            "tags": tags,
            "draft": draft,
            "post_date": post_date,
        }
        return await _invoke(catalog, "update_article", arguments)

    @mcp.tool(name="get_article", description=describe("get_article"))
    async def get_article(id: int, password: str | None = None) -> str:
        return await _invoke(catalog, "get_article", {"id": id, "password": password})

    @mcp.tool(name="search_articles", description=describe("search_articles"))
    async def search_articles(
        keyword: str | None = None,
        tag: str | None = None,
        sort_id: int | None = None,
        page: int | None = None,
        count: int | None = None,
        order: Literal["views", "comnum"] | None = None,
    ) -> str:
        arguments = {"keyword": keyword, "tag": tag, "sort_id": sort_id, "page": page, "count": count, "order": order}
        return await _invoke(catalog, "search_articles", arguments)

    @mcp.tool(name="like_article", description=describe("like_article"))
    async def like_article(gid: int, name: str | None = None, avatar: str | None = None) -> str:
        return await _invoke(catalog, "like_article", {"gid": gid, "name": name, "avatar": avatar})

    @mcp.tool(name="unlike_article", description=describe("unlike_article"))
    async def unlike_article(gid: int) -> str:
        return await _invoke(catalog, "unlike_article", {"gid": gid})

    @mcp.tool(name="get_article_likes", description=describe("get_article_likes"))
    async def get_article_likes(id: int | None = None) -> str:
        return await _invoke(catalog, "get_article_likes", {"id": id})

    @mcp.tool(name="add_comment", description=describe("add_comment"))
    async def add_comment(
        gid: int,
        comname: str,
        comment: str,
        commail: str | None = None,
        comurl: str | None = None,
        avatar: str | None = None,
        pid: int | None = None,
    ) -> str:
        arguments = {
            "gid": gid,
            "comname": comname,
            "comment": comment,
            "commail": commail,
            "comurl": comurl,
            "avatar": avatar,
            "pid": pid,
        }
        return await _invoke(catalog, "add_comment", arguments)

    @mcp.tool(name="like_comment", description=describe("like_comment"))
    async def like_comment(cid: int) -> str:
        return await _invoke(catalog, "like_comment", {"cid": cid})

    @mcp.tool(name="get_comments", description=describe("get_comments"))
    async def get_comments(id: int, page: int | None = None) -> str:
        return await _invoke(catalog, "get_comments", {"id": id, "page": page})

    @mcp.tool(name="create_note", description=describe("create_note"))
    async def create_note(t: str, private: YesNo | None = None) -> str:
        return await _invoke(catalog, "create_note", {"t": t, "private": private})

    @mcp.tool(name="list_notes", description=describe("list_notes"))
    async def list_notes(page: int | None = None, count: int | None = None, author_uid: int | None = None) -> str:
        return await _invoke(catalog, "list_notes", {"page": page, "count": count, "author_uid": author_uid})

    @mcp.tool(name="upload_file", description=describe("upload_file"))
    async def upload_file(file_path: str, sid: int | None = None) -> str:
        return await _invoke(catalog, "upload_file", {"file_path": file_path, "sid": sid})

    @mcp.tool(name="get_user_info", description=describe("get_user_info"))
    async def get_user_info() -> str:
        return await _invoke(catalog, "get_user_info", {})

    @mcp.tool(name="get_user_detail", description=describe("get_user_detail"))
    async def get_user_detail(id: int) -> str:
        return await _invoke(catalog, "get_user_detail", {"id": id})

    @mcp.tool(name="get_draft_list", description=describe("get_draft_list"))
    async def get_draft_list(count: int | None = None) -> str:
        return await _invoke(catalog, "get_draft_list", {"count": count})

    @mcp.tool(name="get_draft_detail", description=describe("get_draft_detail"))
    async def get_draft_detail(id: int) -> str:
        return await _invoke(catalog, "get_draft_detail", {"id": id})
