"""
Emlog MCP Server
A Model Context Protocol server for the Emlog blog REST API
"""

__version__ = "1.1.0"

from .api_client import EmlogClient
from .catalog import Catalog
from .config import Config, Credentials, load_config
from .server_stdio import create_server

__all__ = [
    "Catalog",
    "Config",
    "Credentials",
    "EmlogClient",
    "create_server",
    "load_config",
]
