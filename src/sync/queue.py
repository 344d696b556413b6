"""Durable offline sync queue and the connectivity-aware processor that drains it."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import structlog
from tenacity import AsyncRetrying

from db import parse_ts, to_iso, utcnow, wal_connect
from observability import metrics
from shared_types import SYNC_ORDER, SyncType

from .base import EntitySyncer, SyncContext, SyncResult
from .favorites import FavoritesSyncer
from .history import HistorySyncer
from .journal import JournalSyncer
from .preferences import PreferencesSyncer
from .retry import sync_retrying
from .session import Connectivity

logger = structlog.get_logger()

DEFAULT_ATTEMPT_TIMEOUT = 30.0


@dataclass(frozen=True)
class PendingSync:
    id: int
    type: SyncType
    created_at: datetime


class SyncQueue:
    """One outstanding row per sync type; survives restarts."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS pending_syncs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT NOT NULL UNIQUE
                        CHECK(type IN ('preferences','journal','favorites','history')),
                    created_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_pending_created ON pending_syncs(created_at)")

    def enqueue(self, sync_type: SyncType | str) -> bool:
        """Queue a sync unless one of this type is already pending. True if added."""
        sync_type = SyncType(sync_type)
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO pending_syncs (type, created_at) VALUES (?, ?)",
                (str(sync_type), to_iso(utcnow())),
            )
            added = cursor.rowcount > 0
        if added:
            metrics.counter("sync.queued")
            logger.info("sync.queued", type=str(sync_type))
        return added

    def pending(self) -> list[PendingSync]:
        """FIFO by creation time."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM pending_syncs ORDER BY created_at, id").fetchall()
        return [
            PendingSync(id=r["id"], type=SyncType(r["type"]), created_at=parse_ts(r["created_at"]))
            for r in rows
        ]

    def count(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM pending_syncs").fetchone()[0]

    def remove(self, entry_id: int) -> None:
        with wal_connect(self.db_path) as conn:
            conn.execute("DELETE FROM pending_syncs WHERE id = ?", (entry_id,))


@dataclass
class DrainResult:
    processed: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncOrQueueResult:
    queued: bool
    success: Optional[bool] = None
    error: Optional[str] = None


@dataclass
class SyncAllResult:
    success: bool
    results: dict[SyncType, SyncResult]


class SyncService:
    """Entry point for sync-aware code: immediate sync, queueing and draining."""

    def __init__(
        self,
        ctx: SyncContext,
        queue: SyncQueue,
        connectivity: Connectivity,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        retrying: Optional[Callable[[], AsyncRetrying]] = None,
    ):
        self.ctx = ctx
        self.queue = queue
        self.connectivity = connectivity
        self.attempt_timeout = attempt_timeout
        self._retrying = retrying or sync_retrying
        self.syncers: dict[SyncType, EntitySyncer] = {
            SyncType.PREFERENCES: PreferencesSyncer(ctx),
            SyncType.JOURNAL: JournalSyncer(ctx),
            SyncType.FAVORITES: FavoritesSyncer(ctx),
            SyncType.HISTORY: HistorySyncer(ctx),
        }

    async def _attempt(self, sync_type: SyncType | str) -> SyncResult:
        """One full sync of a type, bounded by the attempt timeout."""
        try:
            syncer = self.syncers[SyncType(sync_type)]
        except (KeyError, ValueError):
            return SyncResult.failure(f"Unknown sync type: {sync_type}")
        try:
            return await asyncio.wait_for(syncer.sync(), timeout=self.attempt_timeout)
        except asyncio.TimeoutError:
            logger.warning("sync.timeout", type=str(sync_type), timeout=self.attempt_timeout)
            return SyncResult.failure(f"Timed out after {self.attempt_timeout:g}s")

    async def _attempt_with_backoff(self, sync_type: SyncType) -> SyncResult:
        return await self._retrying()(self._attempt, sync_type)

    def _can_sync(self) -> bool:
        return self.connectivity.online and self.ctx.signed_in

    async def process_pending_syncs(self) -> DrainResult:
        """Drain the queue in creation order.

        A no-op (not an error) when offline or signed out. A failing type keeps
        its row and never blocks the types after it.
        """
        result = DrainResult()
        if not self._can_sync():
            return result

        for pending in self.queue.pending():
            outcome = await self._attempt_with_backoff(pending.type)
            if outcome.success:
                self.queue.remove(pending.id)
                result.processed += 1
                metrics.counter("sync.processed")
            else:
                result.failed += 1
                metrics.counter("sync.failed")
                if outcome.error:
                    result.errors.append(f"{pending.type}: {outcome.error}")

        if result.processed or result.failed:
            logger.info("sync.drained", processed=result.processed, failed=result.failed, errors=result.errors)
        return result

    async def sync_or_queue(self, sync_type: SyncType | str) -> SyncOrQueueResult:
        """Call after every local write.

        Local-only mode and signed-out sessions count as success. Offline
        writes are queued whenever a session is held, even one that can't be
        validated until the network is back. Online failures are reported,
        not requeued.
        """
        sync_type = SyncType(sync_type)
        if not self.ctx.signed_in:
            return SyncOrQueueResult(queued=False, success=True)

        if not self.connectivity.online:
            self.queue.enqueue(sync_type)
            return SyncOrQueueResult(queued=True)

        result = await self._attempt(sync_type)
        metrics.counter("sync.processed" if result.success else "sync.failed")
        return SyncOrQueueResult(queued=False, success=result.success, error=result.error)

    async def sync_all(self) -> SyncAllResult:
        """Full sync of every type, one after another (e.g. right after sign-in)."""
        results: dict[SyncType, SyncResult] = {}
        for sync_type in SYNC_ORDER:
            results[sync_type] = await self._attempt(sync_type)
        success = all(r.success for r in results.values())
        logger.info("sync.all", success=success, failed=[str(t) for t, r in results.items() if not r.success])
        return SyncAllResult(success=success, results=results)

    def pending_count(self) -> int:
        return self.queue.count()
