"""Tests for RequestDispatcher."""

from __future__ import annotations

import json
from typing import Any

import pytest

from mcpline.dispatcher import RequestDispatcher
from mcpline.models import JsonRpcRequest, ResourceContent, ResourceInfo, ServerInfo
from mcpline.registry import ToolRegistry


def add(a: int, b: int) -> int:
    return a + b


def boom() -> str:
    raise RuntimeError("kaput")


def _request(method: str, params: Any = None, id: Any = 1) -> str:  # noqa: A002
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        message["params"] = params
    if id is not None:
        message["id"] = id
    return json.dumps(message)


@pytest.fixture
def dispatcher() -> RequestDispatcher:
    registry = ToolRegistry()
    registry.register_callable(add, description="Add two integers")
    registry.register_callable(boom)
    return RequestDispatcher(registry, server_info=ServerInfo(name="test-server", version="1.2.3"))


async def _call(dispatcher: RequestDispatcher, line: str) -> dict[str, Any]:
    out = await dispatcher.handle_line(line)
    assert out is not None
    return json.loads(out)


class TestToolsCall:
    async def test_exact_wire_output(self, dispatcher: RequestDispatcher) -> None:
        line = '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"add","arguments":{"a":2,"b":3}}}'
        out = await dispatcher.handle_line(line)
        assert out == '{"jsonrpc":"2.0","result":{"content":[{"type":"text","text":"5"}]},"id":1}'

    async def test_string_id_echoed(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "add", "arguments": {"a": 1, "b": 1}}, id="req-9"))
        assert resp["id"] == "req-9"

    async def test_missing_arguments(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "missing"}))
        assert resp["error"] == {"code": -32602, "message": "Missing 'arguments' in tool call params"}
        assert "result" not in resp

    async def test_missing_name(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"arguments": {}}))
        assert resp["error"]["code"] == -32602
        assert resp["error"]["message"] == "Missing 'name' in tool call params"

    async def test_params_not_object(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", [1, 2]))
        assert resp["error"]["code"] == -32602

    async def test_unknown_tool(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "nope", "arguments": {}}))
        assert resp["error"] == {"code": -32601, "message": "Unknown tool: nope"}

    async def test_missing_required_parameter(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "add", "arguments": {"a": 1}}))
        assert resp["error"] == {"code": -32602, "message": "Missing required parameter 'b'"}

    async def test_null_arguments(self, dispatcher: RequestDispatcher) -> None:
        line = '{"jsonrpc":"2.0","id":3,"method":"tools/call","params":{"name":"add","arguments":null}}'
        resp = await _call(dispatcher, line)
        assert resp["error"]["message"] == "Missing required parameter 'a'"

    async def test_undecodable_argument(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "add", "arguments": {"a": "x", "b": 1}}))
        assert resp["error"]["code"] == -32602
        assert resp["error"]["message"].startswith("Invalid parameter 'a'")

    async def test_tool_exception_is_internal_error(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/call", {"name": "boom", "arguments": {}}))
        assert resp["error"] == {"code": -32603, "message": "Internal Error: kaput"}


class TestLifecycle:
    async def test_initialize(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("initialize", {"protocolVersion": "2024-11-05"}))
        result = resp["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"] == {"name": "test-server", "version": "1.2.3"}
        assert result["capabilities"]["tools"] == {"listChanged": True}
        assert result["capabilities"]["resources"] == {"listChanged": True, "read": True}

    async def test_initialize_without_resources(self) -> None:
        dispatcher = RequestDispatcher(
            ToolRegistry(),
            server_info=ServerInfo(name="s", version="0"),
            advertise_resources=False,
        )
        resp = await _call(dispatcher, _request("initialize"))
        assert "resources" not in resp["result"]["capabilities"]

    async def test_tools_list(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("tools/list"))
        tools = resp["result"]["tools"]
        assert [t["name"] for t in tools] == ["add", "boom"]
        assert tools[0]["description"] == "Add two integers"
        assert tools[0]["inputSchema"]["required"] == ["a", "b"]

    async def test_initialized_notification(self, dispatcher: RequestDispatcher) -> None:
        assert await dispatcher.handle_line(_request("notifications/initialized", id=None)) is None

    async def test_dollar_notifications_ignored(self, dispatcher: RequestDispatcher) -> None:
        assert await dispatcher.handle_line(_request("$/cancelRequest", {"id": 4}, id=None)) is None
        assert await dispatcher.handle_line(_request("$/progress")) is None

    async def test_unknown_method(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("foo/bar"))
        assert resp["error"] == {"code": -32601, "message": "Method not found: foo/bar"}

    async def test_error_for_notification_has_no_id(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("foo/bar", id=None))
        assert resp["error"]["code"] == -32601
        assert "id" not in resp


class TestMalformedInput:
    @pytest.mark.parametrize("line", ["", "   ", "{not json", '{"id": 1}', "[1, 2]", '"text"'])
    async def test_dropped(self, dispatcher: RequestDispatcher, line: str) -> None:
        assert await dispatcher.handle_line(line) is None


class TestDispatch:
    async def test_dispatch_returns_response_model(self, dispatcher: RequestDispatcher) -> None:
        response = await dispatcher.dispatch(JsonRpcRequest(method="tools/list", id=5))
        assert response is not None
        assert response.id == 5
        assert response.error is None

    async def test_dispatch_notification_returns_none(self, dispatcher: RequestDispatcher) -> None:
        assert await dispatcher.dispatch(JsonRpcRequest(method="initialized")) is None


class TestResources:
    async def test_list_without_handler(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("resources/list"))
        assert resp["result"] == {"resources": []}

    async def test_read_without_handler(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("resources/read", {"uri": "mem://a"}))
        assert resp["error"] == {"code": -32002, "message": "No resource handler registered"}

    async def test_read_missing_uri(self, dispatcher: RequestDispatcher) -> None:
        resp = await _call(dispatcher, _request("resources/read", {}))
        assert resp["error"] == {"code": -32602, "message": "Missing 'uri' in resources/read params"}

    async def test_list_and_read(self, dispatcher: RequestDispatcher) -> None:
        docs = {"mem://readme": "# Hello"}

        def list_resources() -> list[ResourceInfo]:
            return [ResourceInfo(uri=uri, name="README", mime_type="text/markdown") for uri in docs]

        def read_resource(uri: str) -> ResourceContent | None:
            if uri not in docs:
                return None
            return ResourceContent(uri=uri, mime_type="text/markdown", text=docs[uri])

        dispatcher.set_resource_handlers(list_resources, read_resource)

        listed = await _call(dispatcher, _request("resources/list"))
        assert listed["result"] == {
            "resources": [{"uri": "mem://readme", "name": "README", "mimeType": "text/markdown"}]
        }

        read = await _call(dispatcher, _request("resources/read", {"uri": "mem://readme"}))
        assert read["result"] == {
            "contents": [{"uri": "mem://readme", "mimeType": "text/markdown", "text": "# Hello"}]
        }

        missing = await _call(dispatcher, _request("resources/read", {"uri": "mem://zzz"}))
        assert missing["error"] == {"code": -32002, "message": "Resource not found: mem://zzz"}

    async def test_async_handlers_and_dicts(self, dispatcher: RequestDispatcher) -> None:
        async def list_resources() -> list[dict[str, Any]]:
            return [{"uri": "mem://a", "name": "A"}]

        async def read_resource(uri: str) -> dict[str, Any]:
            return {"uri": uri, "text": "body"}

        dispatcher.set_resource_handlers(list_resources, read_resource)

        listed = await _call(dispatcher, _request("resources/list"))
        assert listed["result"]["resources"] == [{"uri": "mem://a", "name": "A"}]
        read = await _call(dispatcher, _request("resources/read", {"uri": "mem://a"}))
        assert read["result"]["contents"] == [{"uri": "mem://a", "text": "body"}]

    async def test_handler_failure_is_internal_error(self, dispatcher: RequestDispatcher) -> None:
        def read_resource(uri: str) -> None:
            raise OSError("disk gone")

        dispatcher.set_resource_handlers(None, read_resource)
        resp = await _call(dispatcher, _request("resources/read", {"uri": "mem://a"}))
        assert resp["error"] == {"code": -32603, "message": "Internal Error: disk gone"}
