"""
ReloadCoordinator: reload signals -> fresh credential mapping in the store.

Each signal triggers exactly one reload cycle: read and parse the credential
file off the event loop, then swap the result into the store. A failed read
is logged and the previous mapping stays authoritative; the loop only ends
when the stop event fires.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from ..credentials.base import BaseCredentialStore
from ..credentials.loader import CredentialFileError, load_credentials

log = logging.getLogger("frp_multiuser.reload")

Loader = Callable[[str], Dict[str, str]]


async def next_signal(queue: "asyncio.Queue[object]", stop: asyncio.Event) -> Optional[object]:
    """
    Wait for the next queued signal or for ``stop``, whichever comes first.

    Returns:
        The dequeued signal, or None once ``stop`` is set.
    """
    if stop.is_set():
        return None
    getter = asyncio.ensure_future(queue.get())
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (getter, stopper):
            if not task.done():
                task.cancel()
    if stop.is_set():
        return None
    return getter.result()


class ReloadCoordinator:
    def __init__(
        self,
        path: str,
        store: BaseCredentialStore,
        queue: "asyncio.Queue[object]",
        loader: Loader = load_credentials,
    ):
        self.path = path
        self.store = store
        self.queue = queue
        self.loader = loader

    async def reload_once(self) -> bool:
        """
        Run one reload cycle.

        Returns:
            bool: True if the store now holds the freshly loaded mapping,
            False if the read failed and the previous mapping was kept.
        """
        try:
            mapping = await asyncio.to_thread(self.loader, self.path)
        except CredentialFileError as exc:
            log.error("read auth file error: %s", exc)
            return False
        self.store.replace(mapping)
        log.info("auth file reloaded: %d users", len(mapping))
        return True

    async def run(self, stop: asyncio.Event) -> None:
        while True:
            signal = await next_signal(self.queue, stop)
            if signal is None:
                return
            await self.reload_once()
