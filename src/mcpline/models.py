"""MCP models — JSON-RPC 2.0 messages and the payloads served over them.

Covers the request/response envelope plus the result shapes of
``initialize``, ``tools/list``, ``tools/call``, ``resources/list`` and
``resources/read``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

PROTOCOL_VERSION = "2024-11-05"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request or notification.

    ``id`` is opaque; ``None`` means the message carried no id.
    """

    jsonrpc: str = "2.0"
    method: str
    params: Any = None
    id: Any = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = "2.0"
    id: Any = None
    result: Any = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Return the outbound dict, omitting every absent field."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.result is not None:
            wire["result"] = self.result
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        if self.id is not None:
            wire["id"] = self.id
        return wire


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ToolInfo(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


class TextContent(BaseModel):
    """A single text block of a ``tools/call`` result."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """The ``tools/call`` result: the tool output wrapped as one text block."""

    content: list[TextContent]

    @classmethod
    def from_text(cls, text: str) -> ToolCallResult:
        return cls(content=[TextContent(text=text)])


class ResourceInfo(BaseModel):
    """One entry of a ``resources/list`` result."""

    model_config = {"populate_by_name": True}

    uri: str
    name: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    description: str | None = None


class ResourceContent(BaseModel):
    """The body of a resource returned by ``resources/read``."""

    model_config = {"populate_by_name": True}

    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResult(BaseModel):
    """The fixed handshake descriptor returned for ``initialize``."""

    model_config = {"populate_by_name": True}

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    server_info: ServerInfo = Field(alias="serverInfo")


def dump(model: BaseModel) -> dict[str, Any]:
    """Dump *model* with wire names and without ``None`` fields."""
    return model.model_dump(by_alias=True, exclude_none=True)
