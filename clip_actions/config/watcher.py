"""File watching for action config hot reload."""

import asyncio
import os
from pathlib import Path
from typing import Optional

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .store import ActionConfigStore

logger = structlog.get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Forwards completed writes of the config file to the event loop."""

    def __init__(self, watcher: "ConfigWatcher") -> None:
        super().__init__()
        self.watcher = watcher

    def _is_config(self, path: "str | bytes") -> bool:
        return Path(os.fsdecode(path)).resolve() == self.watcher.path

    def on_closed(self, event: FileSystemEvent) -> None:
        """Handle the end of a write sequence."""
        if event.is_directory or not self._is_config(event.src_path):
            return
        self.watcher.notify()

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle editors that save through a rename onto the config file."""
        if event.is_directory or not self._is_config(event.dest_path):
            return
        self.watcher.notify()


class ConfigWatcher:
    """Reloads an ActionConfigStore when its file has been rewritten."""

    def __init__(
        self,
        store: ActionConfigStore,
        loop: asyncio.AbstractEventLoop,
        debounce_seconds: float = 0.2,
    ) -> None:
        """Initialize config watcher.

        Args:
            store: Store to reload
            loop: Event loop the reload runs on
            debounce_seconds: Quiet period after the last write before reloading
        """
        self.store = store
        self.path = store.path.resolve()
        self.loop = loop
        self.debounce_seconds = debounce_seconds
        self.observer: Optional[Observer] = None
        self._pending: Optional[asyncio.TimerHandle] = None

    def start(self) -> None:
        """Start watching the config directory."""
        if self.observer is not None:
            logger.warning("Config watcher already running")
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)

        self.observer = Observer()
        self.observer.schedule(
            ConfigFileHandler(self),
            str(self.path.parent),
            recursive=False
        )
        self.observer.start()

        logger.info("Config watcher started", path=str(self.path))

    def stop(self) -> None:
        """Stop watching."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        if self.observer is None:
            return

        self.observer.stop()
        self.observer.join(timeout=5)
        self.observer = None

        logger.info("Config watcher stopped")

    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()

    def notify(self) -> None:
        """Request a reload; safe to call from any thread."""
        self.loop.call_soon_threadsafe(self._schedule_reload)

    def _schedule_reload(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self.loop.call_later(self.debounce_seconds, self._reload)

    def _reload(self) -> None:
        self._pending = None
        self.store.reload()
