"""Serve targets — resolve ``module[:attr]`` strings into an :class:`McpServer`.

Accepted forms:

* ``package.module:attr`` — ``attr`` is an ``McpServer`` or a zero-argument
  factory returning one;
* ``package.module`` or ``path/to/tools.py`` — the module's own ``McpServer``
  instance if it defines one, otherwise a new server exposing every ``@tool``
  callable in the module.
"""

from __future__ import annotations

import importlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from mcpline.config import ServerSettings
from mcpline.errors import ConfigurationError
from mcpline.server import McpServer


def import_target_module(spec: str) -> ModuleType:
    """Import a dotted module name or a ``.py`` file path."""
    if spec.endswith(".py"):
        path = Path(spec).resolve()
        if not path.is_file():
            raise ConfigurationError(f"No such file: {spec}")
        module_name = path.stem
        file_spec = importlib.util.spec_from_file_location(module_name, path)
        if file_spec is None or file_spec.loader is None:
            raise ConfigurationError(f"Cannot import {spec}")
        module = importlib.util.module_from_spec(file_spec)
        sys.modules[module_name] = module
        file_spec.loader.exec_module(module)
        return module

    try:
        return importlib.import_module(spec)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import {spec}: {exc}") from exc


def load_server(target: str, settings: ServerSettings | None = None) -> McpServer:
    """Resolve *target* to a server.

    *settings* only applies to servers built here from a scanned module;
    servers defined by the target keep their own settings.
    """
    module_spec, _, attr = target.partition(":")
    module = import_target_module(module_spec)

    if attr:
        try:
            obj = getattr(module, attr)
        except AttributeError as exc:
            raise ConfigurationError(f"{module_spec} has no attribute {attr!r}") from exc
        if not isinstance(obj, McpServer) and callable(obj):
            obj = obj()
        if not isinstance(obj, McpServer):
            raise ConfigurationError(f"{target} is not an McpServer (got {type(obj).__name__})")
        return obj

    for value in vars(module).values():
        if isinstance(value, McpServer):
            return value

    settings = settings or ServerSettings(name=module.__name__.rsplit(".", 1)[-1])
    server = McpServer(settings=settings)
    server.register_tools(module)
    return server
