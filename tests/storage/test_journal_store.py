"""Tests for journal storage."""

from datetime import datetime, timezone

import pytest

from storage import JournalEntry
from storage.journal import MAX_CONTENT_LENGTH


class TestJournalStore:
    def test_save_creates_then_updates(self, local):
        assert local.journal.save("q1", "first") is True
        created = local.journal.get("q1")

        assert local.journal.save("q1", "second") is False
        updated = local.journal.get("q1")

        assert local.journal.count() == 1
        assert updated.content == "second"
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    def test_content_limit(self, local):
        with pytest.raises(ValueError, match="max length"):
            local.journal.save("q1", "x" * (MAX_CONTENT_LENGTH + 1))

    def test_get_missing(self, local):
        assert local.journal.get("nope") is None

    def test_recent_orders_by_updated(self, local):
        old = datetime(2025, 1, 1, tzinfo=timezone.utc)
        new = datetime(2025, 6, 1, tzinfo=timezone.utc)
        local.journal.insert(JournalEntry(quote_id="q1", content="old", created_at=old, updated_at=old))
        local.journal.insert(JournalEntry(quote_id="q2", content="new", created_at=new, updated_at=new))

        assert [e.quote_id for e in local.journal.recent(limit=5)] == ["q2", "q1"]
        assert [e.quote_id for e in local.journal.recent(limit=1)] == ["q2"]

    def test_insert_preserves_timestamps(self, local):
        created = datetime(2024, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)
        local.journal.insert(JournalEntry(quote_id="q1", content="pulled", created_at=created, updated_at=created))

        entry = local.journal.get("q1")
        assert entry.created_at == created
        assert entry.updated_at == created

    def test_update_does_not_bump_to_now(self, local):
        local.journal.save("q1", "draft")
        entry = local.journal.get("q1")
        stamp = datetime(2020, 5, 5, tzinfo=timezone.utc)

        local.journal.update(entry.id, "from remote", updated_at=stamp)

        entry = local.journal.get("q1")
        assert entry.content == "from remote"
        assert entry.updated_at == stamp

    def test_update_can_overwrite_created_at(self, local):
        local.journal.save("q1", "draft")
        entry = local.journal.get("q1")
        stamp = datetime(2020, 5, 5, tzinfo=timezone.utc)

        local.journal.update(entry.id, "x", updated_at=stamp, created_at=stamp)

        assert local.journal.get("q1").created_at == stamp
