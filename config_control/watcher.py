"""
File watch resource for configuration files.

Wraps a watchdog observer and hands its events to asyncio queues that the
notifier's watch loop consumes.
"""

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

logger = logging.getLogger(__name__)


class WatchOp(str, Enum):
    """Kind of file system change."""
    WRITE = "write"
    REMOVE = "remove"
    CREATE = "create"
    RENAME = "rename"


@dataclass(frozen=True)
class WatchEvent:
    """A change to a watched file."""
    path: str
    op: WatchOp


class ConfigFileHandler(FileSystemEventHandler):
    """Translates watchdog events for the owning FileWatch."""

    def __init__(self, watch: "FileWatch"):
        super().__init__()
        self.watch = watch

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification event."""
        if not event.is_directory:
            self.watch.dispatch(event.src_path, WatchOp.WRITE)

    def on_created(self, event: FileSystemEvent):
        """Handle file creation event."""
        if not event.is_directory:
            self.watch.dispatch(event.src_path, WatchOp.CREATE)

    def on_deleted(self, event: FileSystemEvent):
        """Handle file deletion event."""
        if not event.is_directory:
            self.watch.dispatch(event.src_path, WatchOp.REMOVE)

    def on_moved(self, event: FileSystemEvent):
        """
        Handle file moved event.

        Moving the watched file away is reported as a rename of the source.
        Atomic saves (temp file + rename) replace the watched file, which
        is reported as a removal of the destination.
        """
        if event.is_directory:
            return
        self.watch.dispatch(event.src_path, WatchOp.RENAME)
        self.watch.dispatch(event.dest_path, WatchOp.REMOVE)


class FileWatch:
    """
    Watches individual files for changes.

    Each file is watched through its parent directory. A removed or
    renamed file stops being reported until add() is called for it again.
    Closed streams are signalled with a None item on both queues.
    """

    def __init__(self):
        """Initialize and start the observer. Must be called from a running event loop."""
        self._loop = asyncio.get_running_loop()
        self.events: "asyncio.Queue[Optional[WatchEvent]]" = asyncio.Queue()
        self.errors: "asyncio.Queue[Optional[BaseException]]" = asyncio.Queue()

        self.handler = ConfigFileHandler(self)
        self.observer = Observer()
        self._directories: Dict[str, ObservedWatch] = {}
        self._files: Set[str] = set()
        self._closed = False

        self.observer.start()

    def add(self, path: str) -> None:
        """
        Start reporting changes to a file.

        Args:
            path: File to watch

        Raises:
            FileNotFoundError: If the file does not exist
            RuntimeError: If the watcher is closed
        """
        if self._closed:
            raise RuntimeError("file watcher is closed")

        file_path = os.path.abspath(path)
        if not os.path.isfile(file_path):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)

        directory = os.path.dirname(file_path)
        if directory not in self._directories:
            self._directories[directory] = self.observer.schedule(
                self.handler, directory, recursive=False
            )
            logger.debug(f"Watching directory {directory}")

        self._files.add(file_path)
        logger.debug(f"Watching {file_path}")

    def dispatch(self, path, op: WatchOp) -> None:
        """Hand an event from the observer thread to the event loop."""
        if self._closed or self._loop.is_closed():
            return
        try:
            file_path = os.path.abspath(os.fsdecode(path))
        except (TypeError, ValueError) as e:
            self._call_soon(self._deliver_error, e)
            return
        self._call_soon(self._deliver, file_path, op)

    def _call_soon(self, callback, *args) -> None:
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop closed after the check in dispatch
            logger.debug(f"Event loop closed, dropping {callback.__name__}")

    def _deliver(self, file_path: str, op: WatchOp) -> None:
        if self._closed or file_path not in self._files:
            return
        if op in (WatchOp.REMOVE, WatchOp.RENAME):
            self._files.discard(file_path)
        self.events.put_nowait(WatchEvent(file_path, op))

    def _deliver_error(self, error: BaseException) -> None:
        if not self._closed:
            self.errors.put_nowait(error)

    def close(self) -> None:
        """Stop the observer and close both streams."""
        if self._closed:
            return
        self._closed = True

        self.observer.stop()
        self.observer.join(timeout=5.0)
        self._directories.clear()
        self._files.clear()

        self.events.put_nowait(None)
        self.errors.put_nowait(None)
        logger.debug("File watcher closed")
