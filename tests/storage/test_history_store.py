"""Tests for the append-only view history."""

from datetime import datetime, timedelta, timezone

from db import utcnow
from storage import ViewRecord
from storage.history import MAX_FRESH_PULLS_PER_DAY


class TestHistoryStore:
    def test_record_shown(self, local):
        record = local.history.record_shown("q1")
        assert record.id is not None
        assert local.history.count() == 1
        assert local.history.all()[0].quote_id == "q1"

    def test_duplicate_key_is_ignored(self, local):
        shown = datetime(2025, 4, 1, 8, tzinfo=timezone.utc)
        assert local.history.insert(ViewRecord("q1", shown_at=shown)) is not None
        assert local.history.insert(ViewRecord("q1", shown_at=shown)) is None
        assert local.history.count() == 1

    def test_same_quote_different_times(self, local):
        shown = datetime(2025, 4, 1, 8, tzinfo=timezone.utc)
        local.history.insert(ViewRecord("q1", shown_at=shown))
        local.history.insert(ViewRecord("q1", shown_at=shown + timedelta(days=1)))
        assert local.history.count() == 2

    def test_all_newest_first(self, local):
        base = datetime(2025, 4, 1, tzinfo=timezone.utc)
        local.history.insert(ViewRecord("q1", shown_at=base))
        local.history.insert(ViewRecord("q2", shown_at=base + timedelta(hours=1)))
        assert [r.quote_id for r in local.history.all()] == ["q2", "q1"]

    def test_shown_since(self, local):
        now = utcnow()
        local.history.insert(ViewRecord("q1", shown_at=now - timedelta(days=40)))
        local.history.insert(ViewRecord("q2", shown_at=now - timedelta(days=5)))
        local.history.insert(ViewRecord("q2", shown_at=now - timedelta(days=1)))

        assert local.history.shown_since(now - timedelta(days=30)) == {"q2"}
        assert local.history.shown_since(now - timedelta(days=60)) == {"q1", "q2"}

    def test_fresh_pull_limit(self, local):
        local.history.record_shown("q1")
        for qid in ("q2", "q3"):
            local.history.record_shown(qid, fresh_pull=True)
        assert local.history.fresh_pulls_today() == 2
        assert local.history.can_get_another()

        local.history.record_shown("q4", fresh_pull=True)
        assert local.history.fresh_pulls_today() == MAX_FRESH_PULLS_PER_DAY
        assert not local.history.can_get_another()

    def test_yesterdays_pulls_do_not_count(self, local):
        yesterday = datetime.now().astimezone() - timedelta(days=1)
        for minute in range(3):
            local.history.insert(
                ViewRecord("q1", shown_at=yesterday.replace(hour=12, minute=minute), fresh_pull=True)
            )
        assert local.history.fresh_pulls_today() == 0
