"""Interactive remote shell with a scrollback buffer."""

import asyncio
import logging
from collections.abc import Callable

import asyncssh

from multiconnect_mcp.errors import ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_TERM_SIZE = (120, 40)
READ_CHUNK = 4096


class RemoteTerminal:
    """PTY shell on a live SSH connection.

    A background task drains shell output into a bounded buffer. When the
    remote side ends the shell (or the channel fails) the close callback
    fires once. Closing the terminal locally never fires it.
    """

    def __init__(
        self,
        alias: str,
        process: asyncssh.SSHClientProcess,
        scrollback: int = 65536,
        on_closed: Callable[["RemoteTerminal"], None] | None = None,
    ):
        self.alias = alias
        self._process = process
        self._scrollback = scrollback
        self._on_closed = on_closed
        self._buffer = ""
        self._closed = False
        self._pump_task: asyncio.Task[None] | None = None

    @classmethod
    async def open(
        cls,
        alias: str,
        conn: asyncssh.SSHClientConnection,
        term_type: str = "xterm-256color",
        term_size: tuple[int, int] = DEFAULT_TERM_SIZE,
        scrollback: int = 65536,
        on_closed: Callable[["RemoteTerminal"], None] | None = None,
    ) -> "RemoteTerminal":
        """Start an interactive shell and its output pump.

        Raises:
            ProtocolError: If the shell channel cannot be opened
        """
        try:
            process = await conn.create_process(
                None,
                term_type=term_type,
                term_size=term_size,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, asyncssh.Error) as e:
            raise ProtocolError(f"Cannot open terminal for {alias}: {e}") from e

        terminal = cls(alias, process, scrollback=scrollback, on_closed=on_closed)
        terminal.start()
        logger.debug("Terminal opened for %s (%s %dx%d)", alias, term_type, *term_size)
        return terminal

    @property
    def is_closed(self) -> bool:
        """Whether the shell has ended or was closed."""
        return self._closed

    def start(self) -> None:
        """Start draining shell output."""
        if self._pump_task is None:
            self._pump_task = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        try:
            while True:
                data = await self._process.stdout.read(READ_CHUNK)
                if not data:
                    break
                self._append(data)
        except (OSError, asyncssh.Error) as e:
            logger.debug("Terminal output for %s ended: %s", self.alias, e)
        finally:
            self._mark_closed()

    def _append(self, data: str) -> None:
        self._buffer += data
        if len(self._buffer) > self._scrollback:
            self._buffer = self._buffer[-self._scrollback :]

    def _mark_closed(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Terminal for %s closed by remote", self.alias)
        if self._on_closed is not None:
            self._on_closed(self)

    def write(self, data: str) -> None:
        """Send raw input to the shell.

        Raises:
            ProtocolError: If the terminal is closed or the write fails
        """
        if self._closed:
            raise ProtocolError(f"Terminal for {self.alias} is closed")
        try:
            self._process.stdin.write(data)
        except (OSError, asyncssh.Error) as e:
            raise ProtocolError(f"Cannot write to terminal for {self.alias}: {e}") from e

    def send_line(self, command: str) -> None:
        """Type a command followed by a newline."""
        self.write(command + "\n")

    def read_output(self, clear: bool = True) -> str:
        """Return buffered output.

        Args:
            clear: Drop the returned output from the buffer

        Returns:
            Output received since the last clearing read
        """
        output = self._buffer
        if clear:
            self._buffer = ""
        return output

    def close(self) -> None:
        """Close the shell without firing the close callback."""
        if self._closed and self._pump_task is None:
            return
        self._closed = True
        try:
            self._process.close()
        except (OSError, asyncssh.Error) as e:
            logger.debug("Error closing terminal for %s: %s", self.alias, e)
        if self._pump_task is not None and not self._pump_task.done():
            self._pump_task.cancel()
        self._pump_task = None
