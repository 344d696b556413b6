"""Background triggers: drain on reconnect, full sync on sign-in, pending-count polling."""

import asyncio
from typing import Callable, Optional

import structlog

from .queue import SyncService
from .session import Connectivity

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 30.0


class SyncListeners:
    """Wire connectivity/auth transitions to the sync service.

    Each offline->online transition schedules exactly one drain. Polling only
    refreshes ``pending_count`` for display; it never drains.
    """

    def __init__(
        self,
        service: SyncService,
        connectivity: Connectivity,
        auth=None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_pending_count: Optional[Callable[[int], None]] = None,
    ):
        self.service = service
        self.connectivity = connectivity
        self.auth = auth
        self.poll_interval = poll_interval
        self.on_pending_count = on_pending_count
        self.pending_count = 0
        self.syncing = False
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribers: list[Callable[[], None]] = []
        self._poller: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Subscribe to transitions and start the poller. Needs a running loop."""
        self._unsubscribers.append(self.connectivity.subscribe(self._on_connectivity))
        if self.auth is not None and hasattr(self.auth, "on_change"):
            self._unsubscribers.append(self.auth.on_change(self._on_auth))
        self.refresh_count()
        self._poller = asyncio.get_running_loop().create_task(self._poll())

    async def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        if self._poller:
            self._poller.cancel()
        tasks = list(self._tasks) + ([self._poller] if self._poller else [])
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._poller = None

    async def wait_idle(self) -> None:
        """Wait for scheduled drains/syncs to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def refresh_count(self) -> int:
        self.pending_count = self.service.pending_count()
        if self.on_pending_count:
            self.on_pending_count(self.pending_count)
        return self.pending_count

    def _schedule(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("sync.background_task_failed", error=repr(task.exception()))

    def _on_connectivity(self, online: bool) -> None:
        if online:
            logger.info("sync.back_online")
            self._schedule(self._drain())
        else:
            logger.info("sync.offline", note="changes will be queued")

    def _on_auth(self, signed_in: bool) -> None:
        if signed_in:
            self._schedule(self._sync_all())
        self.refresh_count()

    async def _drain(self) -> None:
        self.syncing = True
        try:
            result = await self.service.process_pending_syncs()
            if result.errors:
                logger.error("sync.drain_errors", errors=result.errors)
        finally:
            self.syncing = False
            self.refresh_count()

    async def _sync_all(self) -> None:
        self.syncing = True
        try:
            await self.service.sync_all()
        finally:
            self.syncing = False

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            self.refresh_count()
