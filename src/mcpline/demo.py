"""Example tools — ``mcpline serve mcpline.demo`` serves these."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated

from mcpline.decorators import Param, tool


class Unit(Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"


@dataclass
class Reading:
    sensor_id: str
    value: float
    unit: Unit = Unit.CELSIUS
    tags: list[str] = field(default_factory=list)


@tool("add", "Add two integers")
def add(a: int, b: int) -> int:
    return a + b


@tool("echo", "Return the given text unchanged")
def echo(text: Annotated[str, Param("Text to echo back")]) -> str:
    return text


@tool("convert_temperature", "Convert a temperature between Celsius and Fahrenheit")
def convert_temperature(
    value: float,
    to: Annotated[Unit, Param("Target unit")] = Unit.FAHRENHEIT,
) -> float:
    if to is Unit.FAHRENHEIT:
        return round(value * 9 / 5 + 32, 2)
    return round((value - 32) * 5 / 9, 2)


@tool("summarize_readings", "Average sensor readings per sensor")
def summarize_readings(readings: list[Reading]) -> dict[str, float]:
    totals: dict[str, list[float]] = {}
    for reading in readings:
        totals.setdefault(reading.sensor_id, []).append(reading.value)
    return {sensor: sum(values) / len(values) for sensor, values in totals.items()}


@tool("sleep", "Wait for the given number of seconds")
async def sleep(seconds: Annotated[float, Param("Delay in seconds", required=False)] = 0.0) -> None:
    await asyncio.sleep(seconds)
