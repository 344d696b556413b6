"""Tests for behavioral signal recording."""

import sqlite3
from unittest.mock import MagicMock

import pytest

from observability import metrics
from selection import signal_weight
from shared_types import LONG_REFLECTION_CHARS, SignalKind
from storage import SignalRecorder, reflection_signal


@pytest.fixture
def recorder(local, catalog):
    return SignalRecorder(local.signals, catalog)


class TestReflectionSignal:
    def test_short(self):
        assert reflection_signal("brief") == SignalKind.REFLECTED

    def test_boundary_is_short(self):
        assert reflection_signal("x" * LONG_REFLECTION_CHARS) == SignalKind.REFLECTED

    def test_long(self):
        assert reflection_signal("x" * (LONG_REFLECTION_CHARS + 1)) == SignalKind.REFLECTED_LONG


class TestSignalRecorder:
    def test_snapshots_themes(self, recorder, local):
        recorder.record("q1", SignalKind.FAVORITE)

        signal = local.signals.all()[0]
        assert signal.quote_id == "q1"
        assert signal.signal == "favorite"
        assert signal.themes == ("wisdom", "self-knowledge")
        assert metrics.get("signals.recorded") == 1

    def test_unknown_quote_has_no_themes(self, recorder, local):
        recorder.record("missing", SignalKind.VIEWED)
        assert local.signals.all()[0].themes == ()

    def test_invalid_kind_is_swallowed(self, recorder, local):
        assert recorder.record("q1", "shared") is None
        assert local.signals.count() == 0

    def test_storage_failure_is_not_raised(self, catalog):
        store = MagicMock()
        store.add.side_effect = sqlite3.OperationalError("disk I/O error")
        recorder = SignalRecorder(store, catalog)

        assert recorder.record("q1", SignalKind.FAVORITE) is None
        assert metrics.get("signals.recorded") == 0

    def test_record_reflection_picks_weight(self, recorder, local):
        recorder.record_reflection("q1", "short")
        recorder.record_reflection("q2", "y" * 600)
        assert [s.signal for s in local.signals.all()] == ["reflected", "reflected_long"]

    def test_favorite_plus_reflection_sums_to_five(self, recorder, local):
        recorder.record("q1", SignalKind.FAVORITE)
        recorder.record_reflection("q1", "thoughts")

        total = sum(signal_weight(s.signal) for s in local.signals.for_quote("q1"))
        assert total == 5
