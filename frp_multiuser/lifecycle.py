"""
ServiceLifecycle: owns the live-reload background tasks.

Responsibilities:
    - Build the bounded reload queue and the shared stop event
    - Establish the file watch (failure is fatal and propagates)
    - Run ReloadWatcher and ReloadCoordinator as two asyncio tasks
    - Escalate a crashed background task via ``on_fatal``
    - On stop, signal both tasks and wait for them to exit

When live reload is disabled, start/stop are no-ops and the store keeps the
initial mapping for the life of the process.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .config import Config
from .credentials.base import BaseCredentialStore
from .reload.coordinator import ReloadCoordinator
from .reload.watcher import ReloadWatcher

log = logging.getLogger("frp_multiuser")


class ServiceLifecycle:
    def __init__(
        self,
        config: Config,
        store: BaseCredentialStore,
        on_fatal: Optional[Callable[[BaseException], None]] = None,
        observer_factory: Optional[Callable[[], object]] = None,
    ):
        self.config = config
        self.store = store
        self.on_fatal = on_fatal
        self._observer_factory = observer_factory
        self.stop_event: Optional[asyncio.Event] = None
        self.queue: Optional["asyncio.Queue[object]"] = None
        self.watcher: Optional[ReloadWatcher] = None
        self.coordinator: Optional[ReloadCoordinator] = None
        self._tasks: List["asyncio.Task[None]"] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    async def start(self) -> None:
        """
        Start background reloading if enabled.

        Raises:
            WatchError: If the credential file cannot be watched.
        """
        if not self.config.inotify:
            return
        self.stop_event = asyncio.Event()
        self.queue = asyncio.Queue(maxsize=self.config.reload_queue_size)
        self.watcher = ReloadWatcher(
            self.config.auth_file, self.queue, observer_factory=self._observer_factory
        )
        self.watcher.start()
        self.coordinator = ReloadCoordinator(self.config.auth_file, self.store, self.queue)

        self._tasks = [
            asyncio.create_task(self.watcher.run(self.stop_event), name="reload-watcher"),
            asyncio.create_task(self.coordinator.run(self.stop_event), name="reload-coordinator"),
        ]
        for task in self._tasks:
            task.add_done_callback(self._on_task_done)

    async def stop(self) -> None:
        """Signal both background tasks and wait until they have exited."""
        if not self._tasks:
            return
        self.stop_event.set()
        # failures were already reported by _on_task_done
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def _on_task_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        log.critical("%s failed: %s", task.get_name(), exc)
        if self.stop_event is not None:
            self.stop_event.set()
        if self.on_fatal is not None:
            self.on_fatal(exc)
