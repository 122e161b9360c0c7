"""Server configuration — identity, protocol version and diagnostics."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from mcpline.errors import ConfigurationError
from mcpline.models import PROTOCOL_VERSION


class ServerSettings(BaseModel):
    """Configuration for an :class:`~mcpline.server.McpServer`.

    ``resources`` controls whether ``initialize`` advertises the resources
    capability; it is on by default even when no resource handler is
    registered.
    """

    name: str = "mcpline"
    version: str = "0.1.0"
    protocol_version: str = PROTOCOL_VERSION
    resources: bool = True
    debug: bool = False
    log_path: Path | None = None
    telemetry: bool = False
    otlp_endpoint: str | None = None


def load_settings(path: Path, **overrides: Any) -> ServerSettings:
    """Read a YAML settings file, interpolate env vars, and validate.

    Non-``None`` *overrides* replace values from the file.

    Raises:
        ConfigurationError: On read, YAML parse or validation failures.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw)) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"YAML parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Settings YAML must be a mapping")

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ServerSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
