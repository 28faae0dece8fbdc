"""
ReloadWatcher: credential file change notifications -> reload signals.

Responsibilities:
    - Establish a watchdog observer on the credential file's directory
    - Filter events down to the credential file itself
    - Put one reload signal on the bounded queue per relevant event
    - Release the observer when the stop event fires

Design notes:
    - watchdog delivers events on its own thread; signals cross into the
      event loop with ``asyncio.run_coroutine_threadsafe``.
    - The queue is bounded. A full queue blocks the observer thread
      (backpressure) until the coordinator catches up or shutdown begins.
    - Reload triggers: in-place writes, creation of the file, and a rename
      onto the file path (atomic replace). Deletions are ignored; the last
      good mapping stays in effect.
"""

import asyncio
import concurrent.futures
import logging
import os
import threading
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger("frp_multiuser.reload")

RELOAD_SIGNAL = object()

SUPERVISE_INTERVAL = 1.0
PUT_POLL_INTERVAL = 0.5


class WatchError(Exception):
    """The credential file watch could not be established or has died."""


def _same_path(raw, path: str) -> bool:
    if isinstance(raw, bytes):
        raw = os.fsdecode(raw)
    return os.path.abspath(raw) == path


class CredentialFileHandler(FileSystemEventHandler):
    """Calls ``notify`` for events that may have changed the credential file."""

    def __init__(self, path: str, notify: Callable[[], None]):
        super().__init__()
        self.path = os.path.abspath(path)
        self.notify = notify

    def _changed(self, event: FileSystemEvent, raw) -> None:
        if event.is_directory or not _same_path(raw, self.path):
            return
        log.info("auth file changed, read again...")
        self.notify()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._changed(event, event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._changed(event, event.dest_path)


class ReloadWatcher:
    """
    Owns the watchdog observer for one credential file.

    Usage:
        watcher = ReloadWatcher(path, queue)
        watcher.start()            # inside the event loop; raises WatchError
        await watcher.run(stop)    # returns once ``stop`` is set
    """

    def __init__(
        self,
        path: str,
        queue: "asyncio.Queue[object]",
        observer_factory: Optional[Callable[[], object]] = None,
    ):
        self.path = os.path.abspath(path)
        self.queue = queue
        self._observer_factory = observer_factory or Observer
        self._observer = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closing = threading.Event()

    def start(self) -> None:
        """
        Establish the watch. Must be called from the running event loop.

        Raises:
            WatchError: If the file does not exist or cannot be watched.
        """
        if not os.path.isfile(self.path):
            raise WatchError(f"{self.path}: no such file")
        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        handler = CredentialFileHandler(self.path, self._enqueue)
        try:
            observer.schedule(handler, os.path.dirname(self.path), recursive=False)
            observer.start()
        except OSError as exc:
            raise WatchError(f"{self.path}: {exc}") from exc
        self._observer = observer
        log.info("watching %s for changes", self.path)

    async def run(self, stop: asyncio.Event) -> None:
        """
        Supervise the observer until ``stop`` is set.

        Raises:
            WatchError: If the observer thread exits on its own.
        """
        if self._observer is None:
            raise WatchError(f"{self.path}: watch not established")
        try:
            while not stop.is_set():
                if not self._observer.is_alive():
                    raise WatchError(f"{self.path}: file watcher stopped unexpectedly")
                try:
                    await asyncio.wait_for(stop.wait(), timeout=SUPERVISE_INTERVAL)
                except asyncio.TimeoutError:
                    pass
        finally:
            await asyncio.to_thread(self.close)

    def close(self) -> None:
        """Stop and join the observer. Safe to call more than once."""
        self._closing.set()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()

    def _enqueue(self) -> None:
        # Runs on the observer thread.
        loop = self._loop
        if loop is None or self._closing.is_set():
            return
        future = asyncio.run_coroutine_threadsafe(self.queue.put(RELOAD_SIGNAL), loop)
        while True:
            try:
                future.result(timeout=PUT_POLL_INTERVAL)
                return
            except concurrent.futures.TimeoutError:
                if self._closing.is_set():
                    future.cancel()
                    return
            except concurrent.futures.CancelledError:
                return
