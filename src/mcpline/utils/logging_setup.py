"""Logging setup for the server process.

stdout carries the protocol, so nothing is ever logged there. With debug
enabled every event goes to a log file as ``[HH:MM:SS] message`` lines;
otherwise the ``mcpline`` logger is silenced.
"""

from __future__ import annotations

import logging
from pathlib import Path

DEFAULT_LOG_FILE = "mcp_debug_log.txt"

_HANDLER_NAME = "mcpline-debug-file"


def configure_logging(*, debug: bool = False, log_path: Path | str | None = None) -> Path | None:
    """Route ``mcpline`` log records to the debug file.

    Returns the log file path when debug logging was enabled. Calling this
    again replaces the handler installed by a previous call.
    """
    logger = logging.getLogger("mcpline")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    if not debug:
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return None

    path = Path(log_path) if log_path is not None else Path.cwd() / DEFAULT_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8", delay=True)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%H:%M:%S"))

    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.propagate = False
    return path
