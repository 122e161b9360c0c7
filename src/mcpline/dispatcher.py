"""RequestDispatcher — decodes one request line, routes it and packages the response.

Protocol errors (:class:`~mcpline.errors.McpError`) become ``error`` objects
with their own code; any other exception becomes an internal error carrying
only the exception message. Malformed lines produce no response at all.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mcpline.errors import (
    RESOURCE_NOT_FOUND,
    InternalError,
    InvalidParamsError,
    McpError,
    MethodNotFoundError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from mcpline.models import (
    PROTOCOL_VERSION,
    InitializeResult,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ResourceContent,
    ResourceInfo,
    ServerInfo,
    ToolCallResult,
    dump,
)
from mcpline.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    ATTR_RESOURCE_URI,
    ATTR_TOOL_NAME,
    get_tracer,
)

if TYPE_CHECKING:
    from mcpline.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

ListResourcesHandler = Callable[[], "Iterable[ResourceInfo | dict[str, Any]] | Awaitable[Any]"]
ReadResourceHandler = Callable[[str], "ResourceContent | dict[str, Any] | None | Awaitable[Any]"]

# Methods with this prefix are implementation-specific notifications.
INTERNAL_NOTIFICATION_PREFIX = "$/"

INITIALIZED_NOTIFICATIONS = frozenset({"notifications/initialized", "initialized"})


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class RequestDispatcher:
    """Routes JSON-RPC requests to the registry and the resource handlers.

    Usage::

        dispatcher = RequestDispatcher(registry, server_info=ServerInfo(name="demo", version="1.0"))
        line_out = await dispatcher.handle_line('{"jsonrpc":"2.0","method":"tools/list","id":1}')
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_info: ServerInfo,
        protocol_version: str = PROTOCOL_VERSION,
        advertise_resources: bool = True,
    ) -> None:
        self._registry = registry
        self._server_info = server_info
        self._protocol_version = protocol_version
        self._advertise_resources = advertise_resources
        self._list_resources: ListResourcesHandler | None = None
        self._read_resource: ReadResourceHandler | None = None
        self._handlers: dict[str, Callable[[Any], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
        }

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def set_resource_handlers(
        self,
        list_handler: ListResourcesHandler | None,
        read_handler: ReadResourceHandler | None,
    ) -> None:
        self._list_resources = list_handler
        self._read_resource = read_handler

    # ------------------------------------------------------------------
    # Line level
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> str | None:
        """Handle one input line; return the response line, or ``None``."""
        if not line.strip():
            return None

        logger.debug("[RECV]: %s", line)
        request = self.decode(line)
        if request is None:
            return None

        response = await self.dispatch(request)
        if response is None:
            return None

        encoded = json.dumps(response.to_wire(), ensure_ascii=False, separators=(",", ":"))
        logger.debug("[SEND]: %s", encoded)
        return encoded

    @staticmethod
    def decode(line: str) -> JsonRpcRequest | None:
        """Parse *line* into a request; malformed input is logged and dropped."""
        try:
            return JsonRpcRequest.model_validate_json(line)
        except ValidationError as exc:
            logger.warning("[JSON ERROR]: %s", exc.errors()[0]["msg"] if exc.errors() else exc)
            return None

    # ------------------------------------------------------------------
    # Request level
    # ------------------------------------------------------------------

    async def dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Route *request* and package its outcome.

        Returns ``None`` when the method produced neither a result nor an
        error (notifications). A response is produced whenever there is one,
        whether or not the request carried an ``id``.
        """
        result: Any = None
        error: JsonRpcError | None = None

        with _tracer.start_as_current_span("mcpline.request") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            if request.id is not None:
                span.set_attribute(ATTR_REQUEST_ID, str(request.id))
            try:
                result = await self.route(request)
            except McpError as exc:
                logger.warning("[MCP ERROR]: %s", exc.message)
                span.set_attribute(ATTR_ERROR_CODE, exc.code)
                error = JsonRpcError(code=exc.code, message=exc.message, data=exc.data)
            except Exception as exc:
                logger.exception("[FATAL ERROR]: %s", exc)
                internal = InternalError(str(exc))
                span.set_attribute(ATTR_ERROR_CODE, internal.code)
                error = JsonRpcError(code=internal.code, message=internal.message)

        if result is None and error is None:
            return None
        return JsonRpcResponse(id=request.id, result=result, error=error)

    async def route(self, request: JsonRpcRequest) -> Any:
        """Run the handler for ``request.method`` and return its result."""
        method = request.method
        if method in INITIALIZED_NOTIFICATIONS:
            return None

        handler = self._handlers.get(method)
        if handler is not None:
            return await handler(request.params)

        if method.startswith(INTERNAL_NOTIFICATION_PREFIX):
            logger.debug("Ignoring notification %s", method)
            return None
        msg = f"Method not found: {method}"
        raise MethodNotFoundError(msg)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _initialize(self, _params: Any) -> dict[str, Any]:
        capabilities: dict[str, Any] = {"tools": {"listChanged": True}}
        if self._advertise_resources:
            capabilities["resources"] = {"listChanged": True, "read": True}
        result = InitializeResult(
            protocol_version=self._protocol_version,
            capabilities=capabilities,
            server_info=self._server_info,
        )
        return dump(result)

    async def _tools_list(self, _params: Any) -> dict[str, Any]:
        return {"tools": self._registry.list_all()}

    async def _tools_call(self, params: Any) -> dict[str, Any]:
        if not isinstance(params, dict):
            msg = "Params must be a JSON object"
            raise InvalidParamsError(msg)
        if "name" not in params:
            msg = "Missing 'name' in tool call params"
            raise InvalidParamsError(msg)
        if "arguments" not in params:
            msg = "Missing 'arguments' in tool call params"
            raise InvalidParamsError(msg)

        name = params["name"]
        if not isinstance(name, str):
            msg = "Tool name must be a string"
            raise InvalidParamsError(msg)

        tool = self._registry.lookup(name)
        if tool is None:
            raise ToolNotFoundError(name)

        with _tracer.start_as_current_span("mcpline.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            output = await _resolve(tool.invoke(params["arguments"]))

        return dump(ToolCallResult.from_text(output))

    async def _resources_list(self, _params: Any) -> dict[str, Any]:
        items: Iterable[Any] = []
        if self._list_resources is not None:
            items = await _resolve(self._list_resources()) or []
        resources = [dump(ResourceInfo.model_validate(item)) for item in items]
        return {"resources": resources}

    async def _resources_read(self, params: Any) -> dict[str, Any]:
        if not isinstance(params, dict) or "uri" not in params:
            msg = "Missing 'uri' in resources/read params"
            raise InvalidParamsError(msg)

        uri = str(params["uri"])
        if self._read_resource is None:
            msg = "No resource handler registered"
            raise McpError(msg, RESOURCE_NOT_FOUND)

        with _tracer.start_as_current_span("mcpline.resource.read") as span:
            span.set_attribute(ATTR_RESOURCE_URI, uri)
            content = await _resolve(self._read_resource(uri))

        if content is None:
            raise ResourceNotFoundError(uri)
        return {"contents": [dump(ResourceContent.model_validate(content))]}
