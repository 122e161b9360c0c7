"""``mcpline tools`` — list the tools a serve target exposes."""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from mcpline.cli_commands._output import console, print_tools_json, print_tools_table


@click.command()
@click.argument("target")
@click.option("--json", "as_json", is_flag=True, help="Print the raw tools/list payload.")
def tools(target: str, as_json: bool) -> None:
    """List the tools exposed by TARGET.

    TARGET is ``package.module``, ``package.module:attr`` or a ``.py`` file.
    """
    from mcpline.loader import load_server

    try:
        server = load_server(target)
    except Exception as exc:
        console.print(f"[red]Load error:[/red] {escape(str(exc))}")
        sys.exit(1)

    listed = server.registry.list_all()
    if as_json:
        print_tools_json(listed)
        return

    if not listed:
        console.print("[yellow]No tools registered.[/yellow]")
        return

    print_tools_table(listed, title=f"{server.name} {server.version}")
