"""mcpline — serve typed Python callables as MCP tools over stdio."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from mcpline.decorators import Param as Param
    from mcpline.decorators import tool as tool
    from mcpline.errors import McpError as McpError
    from mcpline.server import McpServer as McpServer

_EXPORTS = {
    "McpServer": "mcpline.server",
    "McpError": "mcpline.errors",
    "Param": "mcpline.decorators",
    "tool": "mcpline.decorators",
    "ToolRegistry": "mcpline.registry",
    "ServerSettings": "mcpline.config",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'mcpline' has no attribute {name!r}")
