"""ToolRegistry — name-to-tool map served by ``tools/list`` and ``tools/call``."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from mcpline.binding import ToolInvoker
from mcpline.decorators import tool_description, tool_name
from mcpline.models import ToolInfo
from mcpline.schema import specs_schema

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], "str | Awaitable[str]"]


@dataclass(frozen=True)
class ToolDefinition:
    """A registered tool. ``invoke`` takes the JSON ``arguments`` value."""

    name: str
    description: str
    input_schema: dict[str, Any]
    invoke: ToolHandler

    def info(self) -> ToolInfo:
        return ToolInfo(name=self.name, description=self.description, input_schema=self.input_schema)


class ToolRegistry:
    """Maintains the tool table.

    Registering a name that already exists replaces the earlier entry
    (last registration wins). Listing follows insertion order.

    Usage::

        registry = ToolRegistry()
        registry.register("echo", "Echo text", schema, lambda args: args["text"])
        registry.register_tools(scan_tools(my_tools_module))

        registry.list_all()          # [{"name": ..., "description": ..., "inputSchema": ...}]
        tool = registry.lookup("echo")
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def register(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        invoke: ToolHandler,
    ) -> ToolDefinition:
        """Store *invoke* under *name*, replacing any existing entry."""
        if name in self._tools:
            logger.debug("Tool %s re-registered; replacing previous definition", name)
        definition = ToolDefinition(name, description, input_schema, invoke)
        self._tools[name] = definition
        return definition

    def register_callable(
        self,
        func: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register *func*, deriving its schema from the signature."""
        invoker = ToolInvoker(func)
        return self.register(
            name or tool_name(func),
            description if description is not None else tool_description(func),
            specs_schema(invoker.specs),
            invoker,
        )

    def register_tools(self, callables: Iterable[Callable[..., Any]]) -> list[ToolDefinition]:
        """Bulk-register callables discovered by :func:`~mcpline.decorators.scan_tools`."""
        return [self.register_callable(func) for func in callables]

    def list_all(self) -> list[dict[str, Any]]:
        """Return ``{name, description, inputSchema}`` for every tool."""
        return [tool.info().model_dump(by_alias=True) for tool in self._tools.values()]

    def lookup(self, name: str) -> ToolDefinition | None:
        """Return the tool registered as *name*, or ``None``."""
        return self._tools.get(name)
