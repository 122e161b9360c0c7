"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# stdout carries the protocol while serving.
err_console = Console(stderr=True)


def print_tools_table(tools: list[dict[str, Any]], *, title: str = "Registered Tools") -> None:
    """Pretty-print ``tools/list`` entries as a table."""
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters")

    for tool in tools:
        schema = tool.get("inputSchema", {})
        required = set(schema.get("required", []))
        params = ", ".join(
            name if name in required else f"{name}?" for name in schema.get("properties", {})
        )
        table.add_row(
            escape(tool.get("name", "?")),
            escape(_truncate(tool.get("description", ""))),
            params or "-",
        )

    console.print(table)


def print_tools_json(tools: list[dict[str, Any]]) -> None:
    console.print_json(json.dumps({"tools": tools}))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
