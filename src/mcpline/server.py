"""McpServer — tool registration plus the read-dispatch-write session loop.

Usage::

    server = McpServer("calculator", "1.0.0")
    server.register_tools(calculator_tools)       # module with @tool functions

    if __name__ == "__main__":
        server.run(sys.argv[1:])
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from rich.console import Console

from mcpline.config import ServerSettings
from mcpline.decorators import scan_tools
from mcpline.dispatcher import ListResourcesHandler, ReadResourceHandler, RequestDispatcher
from mcpline.models import ServerInfo
from mcpline.registry import ToolDefinition, ToolHandler, ToolRegistry
from mcpline.transport import LineTransport, StdioTransport
from mcpline.utils.logging_setup import configure_logging
from mcpline.utils.telemetry import configure_telemetry

logger = logging.getLogger(__name__)


class McpServer:
    """A stdio MCP server exposing registered tools and resources.

    Requests are handled strictly one at a time: each line is decoded,
    dispatched and answered before the next one is read. Asynchronous tools
    are awaited in place, so a tool that never completes blocks the server.
    """

    def __init__(
        self,
        name: str | None = None,
        version: str | None = None,
        *,
        settings: ServerSettings | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        settings = settings or ServerSettings()
        updates = {k: v for k, v in (("name", name), ("version", version)) if v is not None}
        self._settings = settings.model_copy(update=updates)
        self._registry = registry or ToolRegistry()
        self._dispatcher = RequestDispatcher(
            self._registry,
            server_info=ServerInfo(name=self._settings.name, version=self._settings.version),
            protocol_version=self._settings.protocol_version,
            advertise_resources=self._settings.resources,
        )

    @property
    def settings(self) -> ServerSettings:
        return self._settings

    @property
    def name(self) -> str:
        return self._settings.name

    @property
    def version(self) -> str:
        return self._settings.version

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    def configure(
        self,
        *,
        debug: bool | None = None,
        log_path: Path | None = None,
        telemetry: bool | None = None,
        otlp_endpoint: str | None = None,
    ) -> None:
        """Override the diagnostic settings; ``None`` keeps the current value."""
        changes = {
            "debug": debug,
            "log_path": log_path,
            "telemetry": telemetry,
            "otlp_endpoint": otlp_endpoint,
        }
        self._settings = self._settings.model_copy(
            update={k: v for k, v in changes.items() if v is not None}
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> ToolDefinition:
        """Register a tool with a hand-written schema and handler."""
        return self._registry.register(name, description, input_schema, handler)

    def add_tool(
        self,
        func: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a typed callable, deriving its schema from its signature."""
        return self._registry.register_callable(func, name, description)

    def register_tools(self, *targets: Any) -> list[ToolDefinition]:
        """Register every ``@tool`` callable found in *targets*."""
        definitions = self._registry.register_tools(scan_tools(*targets))
        logger.debug("Registered %d tool(s) from %d target(s)", len(definitions), len(targets))
        return definitions

    def register_resource_handler(
        self,
        list_handler: ListResourcesHandler,
        read_handler: ReadResourceHandler,
    ) -> None:
        """Serve ``resources/list`` and ``resources/read`` from the given callbacks.

        ``read_handler`` returns ``None`` for an unknown URI.
        """
        self._dispatcher.set_resource_handlers(list_handler, read_handler)

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    async def serve(self, transport: LineTransport | None = None) -> None:
        """Run the session loop until the transport reaches end of stream."""
        transport = transport or StdioTransport()
        await transport.connect()
        logger.info("=== %s Started (Debug: %s) ===", self.name, self._settings.debug)
        try:
            while True:
                line = await transport.receive()
                if line is None:
                    break
                response = await self._dispatcher.handle_line(line)
                if response is not None:
                    await transport.send(response)
        except Exception:
            # A broken stream ends serving; it never propagates to the caller.
            logger.exception("[CRITICAL LOOP ERROR]")
        finally:
            await transport.close()
            logger.info("=== %s Stopped ===", self.name)

    def run(self, args: Sequence[str] | None = None) -> None:
        """Entry point for a tool process.

        ``--debug`` enables the debug log file; ``--test`` as the first
        argument prints a summary and returns without serving.
        """
        args = list(args or [])
        if "--debug" in args:
            self.configure(debug=True)

        if args and args[0] == "--test":
            Console().print(
                f"[{self.name}] CLI Test Mode Active. Tools: {len(self._registry)}",
                markup=False,
                highlight=False,
            )
            return

        configure_logging(debug=self._settings.debug, log_path=self._settings.log_path)
        if self._settings.telemetry:
            configure_telemetry(
                service_name=self.name,
                export_to_console=self._settings.otlp_endpoint is None,
                otlp_endpoint=self._settings.otlp_endpoint,
            )
        asyncio.run(self.serve())
