"""Tests for append-only history sync."""

from collections import Counter
from datetime import timedelta

import pytest

from db import to_iso, utcnow
from storage import ViewRecord
from sync import HistorySyncer
from sync.history import history_key


def _remote_keys(remote):
    return Counter(history_key(r["quote_id"], r["shown_at"]) for r in remote.rows("quote_history"))


def _local_keys(local):
    return Counter(history_key(r.quote_id, r.shown_at) for r in local.history.all())


def test_history_key_normalizes_precision_and_zone():
    assert history_key("q1", "2025-03-01T10:00:00.123456+00:00") == history_key("q1", "2025-03-01T10:00:00.123Z")
    assert history_key("q1", "2025-03-01T12:00:00.000+02:00") == history_key("q1", "2025-03-01T10:00:00Z")


@pytest.mark.asyncio
async def test_pull_adds_remote_only_rows(ctx, local, remote):
    shown = utcnow() - timedelta(days=2)
    remote.seed("quote_history", {"user_id": "user-1", "quote_id": "q1", "shown_at": to_iso(shown), "fresh_pull": True})

    result = await HistorySyncer(ctx).pull()

    assert result.count == 1
    [record] = local.history.all()
    assert record.quote_id == "q1"
    assert record.shown_at == shown
    assert record.fresh_pull is True


@pytest.mark.asyncio
async def test_push_adds_local_only_rows(ctx, local, remote):
    local.history.record_shown("q1")
    local.history.insert(ViewRecord(quote_id="q2", shown_at=utcnow() - timedelta(hours=1), fresh_pull=True))

    result = await HistorySyncer(ctx).push()

    assert result.count == 2
    rows = {r["quote_id"]: r for r in remote.rows("quote_history")}
    assert rows["q2"]["fresh_pull"] is True
    assert rows["q1"]["user_id"] == "user-1"


@pytest.mark.asyncio
async def test_repeated_sync_never_duplicates(ctx, local, remote):
    base = utcnow() - timedelta(days=1)
    local.history.insert(ViewRecord(quote_id="q1", shown_at=base))
    local.history.insert(ViewRecord(quote_id="q1", shown_at=base + timedelta(hours=1)))
    remote.seed("quote_history", {"user_id": "user-1", "quote_id": "q2", "shown_at": to_iso(base), "fresh_pull": False})
    # same key as a local row, different string precision
    remote.seed(
        "quote_history",
        {"user_id": "user-1", "quote_id": "q1", "shown_at": base.isoformat(), "fresh_pull": False},
    )

    syncer = HistorySyncer(ctx)
    await syncer.pull()
    await syncer.push()
    await syncer.pull()
    await syncer.sync()

    assert max(_local_keys(local).values()) == 1
    assert max(_remote_keys(remote).values()) == 1
    assert set(_local_keys(local)) == set(_remote_keys(remote))
    assert len(_local_keys(local)) == 3


@pytest.mark.asyncio
async def test_sync_never_updates_or_deletes(ctx, local, remote):
    local.history.record_shown("q1")
    remote.seed("quote_history", {"user_id": "user-1", "quote_id": "q2", "shown_at": to_iso(utcnow()), "fresh_pull": False})

    await HistorySyncer(ctx).sync()

    ops = {op for op, _ in remote.calls}
    assert ops <= {"select", "insert"}


@pytest.mark.asyncio
async def test_malformed_remote_row_is_skipped(ctx, local, remote):
    remote.seed("quote_history", {"user_id": "user-1", "quote_id": "q1", "shown_at": "not a time"})
    remote.seed("quote_history", {"user_id": "user-1", "shown_at": to_iso(utcnow())})
    local.history.record_shown("q2")

    result = await HistorySyncer(ctx).sync()

    assert result.success
    assert [r.quote_id for r in local.history.all()] == ["q2"]
    assert "q2" in {r.get("quote_id") for r in remote.rows("quote_history")}
