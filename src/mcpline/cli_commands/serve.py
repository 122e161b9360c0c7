"""``mcpline serve`` — run a tool server on stdin/stdout."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape

from mcpline.cli_commands._output import err_console


@click.command()
@click.argument("target")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with server settings.",
)
@click.option("--debug", is_flag=True, help="Write a debug log file.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Debug log location (default: ./mcp_debug_log.txt).",
)
@click.option("--telemetry", is_flag=True, help="Enable tracing.")
@click.option("--test", "test_mode", is_flag=True, help="Print a summary and exit without serving.")
def serve(
    target: str,
    config_path: Path | None,
    debug: bool,
    log_file: Path | None,
    telemetry: bool,
    test_mode: bool,
) -> None:
    """Serve the tools of TARGET over stdio.

    TARGET is ``package.module``, ``package.module:attr`` or a ``.py`` file.
    """
    from mcpline.config import load_settings
    from mcpline.loader import load_server

    try:
        settings = load_settings(config_path) if config_path is not None else None
        server = load_server(target, settings)
    except Exception as exc:
        err_console.print(f"[red]Load error:[/red] {escape(str(exc))}")
        sys.exit(1)

    # Flags only ever switch diagnostics on; unset flags keep the configured values.
    server.configure(debug=debug or None, log_path=log_file, telemetry=telemetry or None)
    server.run(["--test"] if test_mode else [])
