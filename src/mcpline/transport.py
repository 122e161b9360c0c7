"""Line transports — the byte/line layer under the session loop.

Each transport satisfies the :class:`LineTransport` protocol, providing
``connect``, ``receive``, ``send`` and ``close``. ``receive`` returns one
line without its terminator, or ``None`` at end of stream; ``send`` writes
one line and flushes it.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import IO, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Upper bound on a single request line read from a pipe.
_LINE_LIMIT = 16 * 1024 * 1024


@runtime_checkable
class LineTransport(Protocol):
    """Abstract newline-delimited transport."""

    async def connect(self) -> None: ...
    async def receive(self) -> str | None: ...
    async def send(self, line: str) -> None: ...
    async def close(self) -> None: ...


class StreamTransport:
    """Reads and writes lines on already-open text streams.

    Reads block the event loop; the session loop never has other work to
    run while it waits for the next request.
    """

    def __init__(self, reader: IO[str], writer: IO[str]) -> None:
        self._reader = reader
        self._writer = writer

    async def connect(self) -> None:
        """Nothing to open; the streams are owned by the caller."""

    async def receive(self) -> str | None:
        line = self._reader.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    async def send(self, line: str) -> None:
        self._writer.write(line + "\n")
        self._writer.flush()

    async def close(self) -> None:
        """Leave the caller's streams open."""


class StdioTransport:
    """Serves the process's own stdin/stdout as UTF-8 without a BOM.

    stdin is attached to the event loop as a pipe; when that is not possible
    (a regular file redirected to stdin, or a platform without pipe support)
    lines are read with a blocking call instead.
    """

    def __init__(
        self,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
        *,
        line_limit: int = _LINE_LIMIT,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._line_limit = line_limit
        self._reader: asyncio.StreamReader | None = None
        self._pipe: asyncio.BaseTransport | None = None

    async def connect(self) -> None:
        """Switch the streams to lenient UTF-8 and attach stdin to the event loop."""
        for stream in (self._stdin, self._stdout):
            reconfigure = getattr(stream, "reconfigure", None)
            if reconfigure is not None:
                reconfigure(encoding="utf-8", errors="replace")

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=self._line_limit)
        try:
            self._stdin.fileno()
            self._pipe, _ = await loop.connect_read_pipe(
                lambda: asyncio.StreamReaderProtocol(reader), self._stdin
            )
        except (ValueError, OSError, NotImplementedError) as exc:
            logger.debug("stdin is not a pipe (%s); using blocking reads", exc)
            return
        self._reader = reader

    async def receive(self) -> str | None:
        if self._reader is not None:
            while True:
                try:
                    raw = await self._reader.readline()
                except ValueError:
                    # StreamReader has already discarded the oversized line.
                    logger.warning("[READ ERROR]: line exceeds %d bytes; dropped", self._line_limit)
                    continue
                break
            if not raw:
                return None
            return raw.decode("utf-8-sig", errors="replace").rstrip("\r\n")
        line = self._stdin.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    async def send(self, line: str) -> None:
        self._stdout.write(line + "\n")
        self._stdout.flush()

    async def close(self) -> None:
        """Detach stdin from the event loop."""
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None
        self._reader = None
