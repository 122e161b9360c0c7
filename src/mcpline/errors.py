"""Protocol error types and the JSON-RPC error codes they map to."""

from __future__ import annotations

from typing import Any

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
RESOURCE_NOT_FOUND = -32002


class McpError(Exception):
    """Base error for failures that map directly onto a JSON-RPC ``error`` object.

    Anything raised during request handling that is *not* an ``McpError`` is
    reported to the caller as a generic internal error instead.
    """

    def __init__(self, message: str, code: int = INTERNAL_ERROR, data: Any = None) -> None:
        self.message = message
        self.code = code
        self.data = data
        super().__init__(message)


class InvalidParamsError(McpError):
    """Request parameters are missing or cannot be decoded."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message, INVALID_PARAMS, data)


class MethodNotFoundError(McpError):
    """The method (or tool) named by the request does not exist."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message, METHOD_NOT_FOUND, data)


class ToolNotFoundError(MethodNotFoundError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class MissingParameterError(InvalidParamsError):
    """A required tool parameter was absent from ``arguments``."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required parameter '{name}'")


class ParameterDecodeError(InvalidParamsError):
    """A tool argument could not be converted to the parameter's type."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid parameter '{name}': {detail}")


class ResourceNotFoundError(McpError):
    """No resource exists for the requested URI."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Resource not found: {uri}", RESOURCE_NOT_FOUND)


class InternalError(McpError):
    """An unexpected failure while handling a request."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"Internal Error: {detail}", INTERNAL_ERROR)


class ConfigurationError(Exception):
    """Raised when server settings or a serve target cannot be loaded."""
