#!/usr/bin/env python3
"""
MCP Server for the Emlog blog REST API

Runs on stdio by default (for Claude Desktop, Cursor and other local MCP
hosts); set MCP_TRANSPORT=http to serve streamable HTTP instead.

Requires EMLOG_API_URL and EMLOG_API_KEY; the process exits immediately when
either is missing.
"""

import logging
import sys

import httpx
from fastmcp import FastMCP

from . import __version__
from .api_client import EmlogClient
from .catalog import Catalog
from .config import Config, load_config
from .server_resources import register_resources
from .server_tools import register_tools

SERVER_NAME = "emlog-mcp"


def log(message: str) -> None:
    """Print to stderr (stdout is JSON-RPC only)"""
    print(message, file=sys.stderr, flush=True)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Suppress noisy library logs
    for noisy in ("httpx", "httpcore", "mcp.server.lowlevel.server"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def create_server(config: Config, transport: httpx.AsyncBaseTransport | None = None) -> FastMCP:
    """
    Build the MCP server for a validated configuration

    Args:
        config: Application configuration (credentials, timeout)
        transport: Optional httpx transport handed to the API client

    Returns:
        FastMCP instance with every catalog resource and tool registered
    """
    client = EmlogClient(config.credentials(), timeout=config.request_timeout, transport=transport)
    catalog = Catalog(client)

    mcp = FastMCP(SERVER_NAME, version=__version__)
    register_resources(mcp, catalog)
    register_tools(mcp, catalog)
    return mcp


def main() -> None:
    config = load_config()
    configure_logging(config.debug)

    errors = config.validate()
    if errors:
        log("❌ Configuration errors:")
        for error in errors:
            log(f"  - {error}")
        sys.exit(1)

    mcp = create_server(config)

    try:
        log("=" * 60)
        log(f"🚀 Emlog MCP Server {__version__} ({config.transport})")
        log(f"   Endpoint: {config.credentials().base_url}")
        log("=" * 60)

        if config.transport == "http":
            mcp.run(transport="http", host=config.host, port=config.port)
        else:
            mcp.run()

    except KeyboardInterrupt:
        log("\n\nShutting down server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
