"""Tests for the bundled example tools."""

from __future__ import annotations

from mcpline.decorators import scan_tools
from mcpline.demo import Reading, Unit, convert_temperature, summarize_readings
from mcpline.registry import ToolRegistry


def _registry() -> ToolRegistry:
    import mcpline.demo

    registry = ToolRegistry()
    registry.register_tools(scan_tools(mcpline.demo))
    return registry


class TestDemoTools:
    def test_convert_temperature(self) -> None:
        assert convert_temperature(100) == 212.0
        assert convert_temperature(212, Unit.CELSIUS) == 100.0

    def test_summarize_readings(self) -> None:
        readings = [Reading("a", 1.0), Reading("a", 2.0), Reading("b", 4.0)]
        assert summarize_readings(readings) == {"a": 1.5, "b": 4.0}

    def test_schemas(self) -> None:
        registry = _registry()
        convert = registry.lookup("convert_temperature")
        assert convert is not None
        assert convert.input_schema["required"] == ["value"]
        assert convert.input_schema["properties"]["to"] == {
            "type": "string",
            "description": "Target unit",
            "enum": ["CELSIUS", "FAHRENHEIT"],
        }
        sleep = registry.lookup("sleep")
        assert sleep is not None
        assert "required" not in sleep.input_schema

    async def test_enum_argument_by_name(self) -> None:
        convert = _registry().lookup("convert_temperature")
        assert convert is not None
        assert await convert.invoke({"value": 32, "to": "CELSIUS"}) == "0.0"

    async def test_missing_text_binds_none(self) -> None:
        echo = _registry().lookup("echo")
        assert echo is not None
        assert await echo.invoke({}) == "null"
