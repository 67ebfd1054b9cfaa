"""SSH config file watcher.

Hand edits to the config file (or edits by other SSH tooling) trigger a
registry reload. watchdog delivers events on its own thread; they are
handed to the event loop and debounced there.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class _ConfigFileHandler(FileSystemEventHandler):
    """Forwards events touching one file to a thread-safe callback."""

    def __init__(self, path: Path, on_change: Callable[[], None]):
        self.path = path
        self.on_change = on_change

    def _matches(self, raw: str | bytes) -> bool:
        if not raw:
            return False
        if isinstance(raw, bytes):
            raw = raw.decode(errors="replace")
        return Path(raw) == self.path

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._matches(event.src_path) or self._matches(getattr(event, "dest_path", "")):
            logger.debug("Config file event: %s %s", event.event_type, event.src_path)
            self.on_change()


class ConfigWatcher:
    """Runs a coroutine whenever the watched config file changes."""

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], Awaitable[None]],
        loop: asyncio.AbstractEventLoop | None = None,
        debounce: float = 0.5,
    ):
        """Initialize watcher.

        Args:
            path: Config file to watch (its directory must exist)
            on_change: Coroutine function run after a burst of changes
            loop: Event loop to run on_change in (default: running loop)
            debounce: Quiet period in seconds before on_change runs
        """
        self.path = Path(path).expanduser()
        self.on_change = on_change
        self.loop = loop
        self.debounce = debounce
        self._observer: Observer | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        """Whether the observer thread is active."""
        return self._observer is not None

    def start(self) -> None:
        """Start watching the config file's directory."""
        if self._observer is not None:
            return
        if self.loop is None:
            self.loop = asyncio.get_running_loop()

        handler = _ConfigFileHandler(self.path, self._notify)
        observer = Observer()
        observer.schedule(handler, str(self.path.parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes", self.path)

    def stop(self) -> None:
        """Stop the observer and drop any pending reload."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.debug("Stopped watching %s", self.path)

    def _notify(self) -> None:
        # Called from the watchdog thread
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._schedule)

    def _schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        assert self.loop is not None
        self._timer = self.loop.call_later(self.debounce, self._fire)

    def _fire(self) -> None:
        self._timer = None
        assert self.loop is not None
        task = self.loop.create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        logger.info("SSH config changed, reloading connections")
        try:
            await self.on_change()
        except Exception:
            logger.exception("Reload after config change failed")
