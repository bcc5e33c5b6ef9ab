"""
Error taxonomy for the Emlog MCP server

Every failure raised by the transport adapter or the call catalog is an
EmlogError subclass, so the catalog boundary can catch a single type and
render it as a tool/resource failure.
"""


class EmlogError(Exception):
    """Base class for all errors surfaced by this package"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidRequest(EmlogError):
    """Caller input failed local validation (never reaches the network)"""


class TransportError(EmlogError):
    """The HTTP call failed or returned something that is not an Emlog envelope"""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"


class RemoteApiError(EmlogError):
    """The envelope signaled failure (non-zero code); message is the remote text verbatim"""

    def __init__(self, message: str, code: int | str | None = None):
        super().__init__(message)
        self.code = code


class NotFound(EmlogError):
    """A local file required by the call does not exist"""

    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class FileUnreadable(EmlogError):
    """A local file required by the call exists but could not be read"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read file {path}: {reason}")
        self.path = path
        self.reason = reason
