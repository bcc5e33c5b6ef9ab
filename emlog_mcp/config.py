import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (directory containing emlog_mcp/), so env is found regardless of cwd.
# MCP hosts often start the server from an arbitrary working directory.
_project_root = Path(__file__).resolve().parent.parent
_env_file = _project_root / ".env"


def load_environment() -> None:
    """Load .env from the project root, falling back to the current directory"""
    load_dotenv(_env_file)
    if not _env_file.exists():
        load_dotenv()


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_number(name: str, default: str, cast):
    """Parse a numeric variable; None when it is not a number (reported by Config.validate)"""
    try:
        return cast(_env(name, default))
    except ValueError:
        return None


@dataclass(frozen=True)
class Credentials:
    """Remote endpoint and API key shared by every request"""

    base_url: str
    api_key: str

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def __repr__(self) -> str:
        return f"Credentials(base_url={self.base_url!r}, api_key='***')"


@dataclass
class Config:
    """Application configuration, read from the environment at construction time"""

    # Emlog API
    emlog_api_url: str = field(default_factory=lambda: _env("EMLOG_API_URL"))
    emlog_api_key: str = field(default_factory=lambda: _env("EMLOG_API_KEY"))
    request_timeout: float | None = field(default_factory=lambda: _env_number("REQUEST_TIMEOUT", "30", float))

    # Server
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    transport: str = field(default_factory=lambda: _env("MCP_TRANSPORT", "stdio").lower())
    host: str = field(default_factory=lambda: _env("MCP_HOST", "127.0.0.1"))
    port: int | None = field(default_factory=lambda: _env_number("MCP_PORT", "8000", int))

    def validate(self) -> list[str]:
        """
        Validate configuration

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.emlog_api_url:
            errors.append("EMLOG_API_URL is not configured")

        if not self.emlog_api_key:
            errors.append("EMLOG_API_KEY is not configured")

        if self.request_timeout is None or self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be a positive number of seconds")

        if self.port is None:
            errors.append("MCP_PORT must be an integer")

        if self.transport not in ("stdio", "http"):
            errors.append(f"MCP_TRANSPORT must be 'stdio' or 'http', got '{self.transport}'")

        return errors

    def credentials(self) -> Credentials:
        return Credentials(base_url=self.emlog_api_url, api_key=self.emlog_api_key)


def load_config() -> Config:
    """Load .env files and build a Config from the resulting environment"""
    load_environment()
    return Config()
