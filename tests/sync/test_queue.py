"""Tests for the sync queue, queue processor and sync-or-queue entry point."""

import asyncio

import httpx
import pytest

from fakes import FakeSession
from shared_types import SyncType
from sync import MagicLinkAuth, SyncContext, SyncQueue, SyncResult, SyncService
from sync.retry import sync_retrying


class RecordingSyncer:
    """Stands in for an EntitySyncer; scripted results, shared call log."""

    def __init__(self, name, calls, results=None, delay=0.0):
        self.name = name
        self.calls = calls
        self.results = list(results or [SyncResult.ok(1)])
        self.delay = delay

    async def sync(self):
        self.calls.append(self.name)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.results.pop(0) if len(self.results) > 1 else self.results[0]


def _install(service, calls, **scripted):
    for sync_type in SyncType:
        service.syncers[sync_type] = RecordingSyncer(str(sync_type), calls, scripted.get(str(sync_type)))


class TestSyncQueue:
    def test_enqueue_dedups_by_type(self, db_path):
        queue = SyncQueue(db_path)
        assert queue.enqueue("journal") is True
        assert queue.enqueue(SyncType.JOURNAL) is False

        pending = queue.pending()
        assert len(pending) == 1
        assert pending[0].type == SyncType.JOURNAL

    def test_pending_is_fifo(self, db_path):
        queue = SyncQueue(db_path)
        queue.enqueue("history")
        queue.enqueue("preferences")
        queue.enqueue("favorites")
        assert [p.type for p in queue.pending()] == ["history", "preferences", "favorites"]

    def test_survives_reopen(self, db_path):
        SyncQueue(db_path).enqueue("favorites")
        assert SyncQueue(db_path).count() == 1

    def test_remove_allows_requeue(self, db_path):
        queue = SyncQueue(db_path)
        queue.enqueue("journal")
        queue.remove(queue.pending()[0].id)
        assert queue.count() == 0
        assert queue.enqueue("journal") is True

    def test_rejects_unknown_type(self, db_path):
        with pytest.raises(ValueError):
            SyncQueue(db_path).enqueue("signals")


class TestProcessPendingSyncs:
    @pytest.mark.asyncio
    async def test_drains_in_creation_order(self, service):
        calls = []
        _install(service, calls)
        service.queue.enqueue("favorites")
        service.queue.enqueue("journal")

        result = await service.process_pending_syncs()

        assert calls == ["favorites", "journal"]
        assert result.processed == 2
        assert result.failed == 0
        assert service.pending_count() == 0

    @pytest.mark.asyncio
    async def test_failure_keeps_row_and_continues(self, service):
        calls = []
        _install(service, calls, journal=[SyncResult.failure("boom")])
        service.queue.enqueue("journal")
        service.queue.enqueue("history")

        result = await service.process_pending_syncs()

        assert calls == ["journal", "history"]
        assert result.processed == 1
        assert result.failed == 1
        assert result.errors == ["journal: boom"]
        assert [p.type for p in service.queue.pending()] == ["journal"]

    @pytest.mark.asyncio
    async def test_offline_is_noop(self, service, connectivity):
        calls = []
        _install(service, calls)
        service.queue.enqueue("journal")
        connectivity.set_online(False)

        result = await service.process_pending_syncs()

        assert (result.processed, result.failed, result.errors) == (0, 0, [])
        assert calls == []
        assert service.pending_count() == 1

    @pytest.mark.asyncio
    async def test_signed_out_is_noop(self, local, remote, db_path, connectivity):
        ctx = SyncContext(local, remote=remote, session=FakeSession(None))
        service = SyncService(ctx, SyncQueue(db_path), connectivity)
        service.queue.enqueue("journal")

        result = await service.process_pending_syncs()

        assert result.processed == 0 and result.failed == 0
        assert service.pending_count() == 1

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, service):
        calls = []
        _install(service, calls)
        service.syncers[SyncType.JOURNAL] = RecordingSyncer("journal", calls, delay=1.0)
        service.attempt_timeout = 0.05
        service.queue.enqueue("journal")

        result = await service.process_pending_syncs()

        assert result.failed == 1
        assert "Timed out" in result.errors[0]
        assert service.pending_count() == 1

    @pytest.mark.asyncio
    async def test_backoff_retries_failed_attempts(self, service):
        calls = []
        _install(service, calls, history=[SyncResult.failure("flaky"), SyncResult.ok(3)])
        service._retrying = lambda: sync_retrying(max_attempts=3, min_wait=0, max_wait=0)
        service.queue.enqueue("history")

        result = await service.process_pending_syncs()

        assert calls == ["history", "history"]
        assert result.processed == 1
        assert service.pending_count() == 0

    @pytest.mark.asyncio
    async def test_backoff_gives_up_with_last_result(self, service):
        calls = []
        _install(service, calls, history=[SyncResult.failure("down")])
        service._retrying = lambda: sync_retrying(max_attempts=3, min_wait=0, max_wait=0)
        service.queue.enqueue("history")

        result = await service.process_pending_syncs()

        assert calls == ["history"] * 3
        assert result.errors == ["history: down"]
        assert service.pending_count() == 1


class TestQueuedFavoritesPartialFailure:
    @pytest.mark.asyncio
    async def test_row_failure_still_clears_queue(self, service, local, remote):
        for qid in ("q1", "q2", "q3"):
            local.favorites.add(qid)
        remote.fail_when = lambda op, table, row: op == "insert" and row.get("quote_id") == "q2"
        service.queue.enqueue("favorites")

        result = await service.process_pending_syncs()

        assert result.processed == 1
        assert service.pending_count() == 0
        assert {r["quote_id"] for r in remote.rows("favorites")} == {"q1", "q3"}

    @pytest.mark.asyncio
    async def test_syncer_failure_keeps_queue_entry(self, service, local, remote):
        local.favorites.add("q1")
        remote.fail_when = lambda op, table, payload: op == "select"
        service.queue.enqueue("favorites")

        result = await service.process_pending_syncs()

        assert result.failed == 1
        assert service.pending_count() == 1


class TestSyncOrQueue:
    @pytest.mark.asyncio
    async def test_unconfigured_is_silent_success(self, local, db_path, connectivity):
        service = SyncService(SyncContext(local), SyncQueue(db_path), connectivity)
        result = await service.sync_or_queue("journal")
        assert result.queued is False and result.success is True
        assert service.pending_count() == 0

    @pytest.mark.asyncio
    async def test_signed_out_is_silent_success(self, local, remote, db_path, connectivity):
        ctx = SyncContext(local, remote=remote, session=FakeSession(None))
        service = SyncService(ctx, SyncQueue(db_path), connectivity)
        connectivity.set_online(False)

        result = await service.sync_or_queue("favorites")

        assert result.queued is False and result.success is True
        assert service.pending_count() == 0

    @pytest.mark.asyncio
    async def test_offline_with_unverified_session_queues(self, local, remote, db_path, connectivity):
        def unreachable(request):
            raise httpx.ConnectError("no route to host", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(unreachable))
        auth = MagicLinkAuth("https://x.supabase.co", "anon", access_token="jwt", client=client)
        service = SyncService(SyncContext(local, remote=remote, session=auth), SyncQueue(db_path), connectivity)
        connectivity.set_online(False)

        result = await service.sync_or_queue("journal")

        assert result.queued is True
        assert service.pending_count() == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unresolvable_user_keeps_queue_entry(self, local, remote, db_path, connectivity):
        def unreachable(request):
            raise httpx.ConnectError("no route to host", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(unreachable))
        auth = MagicLinkAuth("https://x.supabase.co", "anon", access_token="jwt", client=client)
        service = SyncService(
            SyncContext(local, remote=remote, session=auth),
            SyncQueue(db_path),
            connectivity,
            retrying=lambda: sync_retrying(max_attempts=1, min_wait=0, max_wait=0),
        )
        service.queue.enqueue("journal")

        result = await service.process_pending_syncs()

        assert result.failed == 1
        assert "signed-in user" in result.errors[0]
        assert service.pending_count() == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_offline_queues_once(self, service, connectivity):
        connectivity.set_online(False)
        first = await service.sync_or_queue("journal")
        second = await service.sync_or_queue("journal")
        assert first.queued and second.queued
        assert service.pending_count() == 1

    @pytest.mark.asyncio
    async def test_online_syncs_immediately(self, service, local, remote):
        local.journal.save("q1", "hello")
        result = await service.sync_or_queue("journal")
        assert result.queued is False and result.success is True
        assert remote.rows("journal_entries")[0]["content"] == "hello"

    @pytest.mark.asyncio
    async def test_online_failure_is_not_requeued(self, service, local, remote):
        local.journal.save("q1", "hello")
        remote.fail_when = lambda op, table, payload: op == "select"

        result = await service.sync_or_queue("journal")

        assert result.queued is False
        assert result.success is False
        assert result.error
        assert service.pending_count() == 0


@pytest.mark.asyncio
async def test_sync_all_runs_every_type(service):
    calls = []
    _install(service, calls, favorites=[SyncResult.failure("nope")])

    result = await service.sync_all()

    assert calls == ["preferences", "journal", "favorites", "history"]
    assert result.success is False
    assert result.results[SyncType.JOURNAL].success
    assert result.results[SyncType.FAVORITES].error == "nope"
