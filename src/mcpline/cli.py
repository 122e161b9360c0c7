"""mcpline CLI entrypoint."""

from __future__ import annotations

import click

from mcpline import __version__


@click.group()
@click.version_option(version=__version__, prog_name="mcpline")
def main() -> None:
    """mcpline — serve Python tools over stdio MCP."""


# Register subcommands
from mcpline.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
