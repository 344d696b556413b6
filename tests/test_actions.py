"""Tests for user actions: local write first, then signal and sync."""

import pytest

from actions import PERSONALIZATION_MIN_SIGNALS, ReflectionApp
from catalog import JourneyDefinition
from storage.history import MAX_FRESH_PULLS_PER_DAY
from sync import SyncContext, SyncQueue, SyncService


@pytest.fixture
def app(local, catalog, service):
    return ReflectionApp(local, catalog, service)


@pytest.fixture
def local_app(local, catalog, db_path, connectivity):
    """No remote configured: every write stays on device."""
    return ReflectionApp(local, catalog, SyncService(SyncContext(local), SyncQueue(db_path), connectivity))


@pytest.mark.asyncio
async def test_open_today_records_view(app, local, remote):
    quote = await app.open_today()

    assert local.history.all()[0].quote_id == quote.id
    assert local.history.all()[0].fresh_pull is False
    assert [s.signal for s in local.signals.all()] == ["viewed"]
    assert len(local.engagement.all()) == 1
    assert remote.rows("quote_history")[0]["quote_id"] == quote.id


@pytest.mark.asyncio
async def test_another_respects_daily_limit(app, local):
    current = "q1"
    for _ in range(MAX_FRESH_PULLS_PER_DAY):
        quote = await app.another(current)
        assert quote is not None
        assert quote.id != current
        current = quote.id

    assert await app.another(current) is None
    assert local.history.fresh_pulls_today() == MAX_FRESH_PULLS_PER_DAY
    assert sum(1 for s in local.signals.all() if s.signal == "another") == MAX_FRESH_PULLS_PER_DAY


@pytest.mark.asyncio
async def test_favorite_writes_signal_and_engagement(local_app, local):
    assert await local_app.favorite("q2") is True
    assert await local_app.favorite("q2") is False

    assert local.favorites.is_favorite("q2")
    assert [s.signal for s in local.signals.all()] == ["favorite"]
    assert local.engagement.all()[0].engaged_at is not None


@pytest.mark.asyncio
async def test_favorite_already_on_remote_stays(app, local, remote):
    remote.seed("favorites", {"user_id": "user-1", "quote_id": "q2", "saved_at": "2025-01-01T00:00:00.000+00:00"})

    await app.favorite("q2")

    assert local.favorites.is_favorite("q2")
    assert [r["quote_id"] for r in remote.rows("favorites")] == ["q2"]


@pytest.mark.asyncio
async def test_new_online_favorite_is_read_as_remote_unfavorite(app, local, remote):
    # no tombstones: pull runs first and treats the missing remote row as an unfavorite
    await app.favorite("q2")

    assert not local.favorites.is_favorite("q2")
    assert remote.rows("favorites") == []
    assert [s.signal for s in local.signals.all()] == ["favorite"]


@pytest.mark.asyncio
async def test_unfavorite(local_app, local):
    await local_app.favorite("q2")
    assert await local_app.unfavorite("q2") is True
    assert await local_app.unfavorite("q2") is False

    assert not local.favorites.is_favorite("q2")
    assert [s.signal for s in local.signals.all()] == ["favorite", "unfavorited"]


@pytest.mark.asyncio
async def test_reflect(app, local, remote):
    assert await app.reflect("q1", "short") is True
    assert await app.reflect("q1", "x" * 600) is False

    assert local.journal.get("q1").content == "x" * 600
    assert [s.signal for s in local.signals.all()] == ["reflected", "reflected_long"]
    assert len(remote.rows("journal_entries")) == 1


@pytest.mark.asyncio
async def test_offline_writes_are_queued(app, local, connectivity, remote):
    connectivity.set_online(False)

    await app.favorite("q1")
    await app.reflect("q1", "thoughts")
    await app.favorite("q2")

    assert local.favorites.count() == 2
    assert app.sync.pending_count() == 2
    assert remote.calls == []


@pytest.mark.asyncio
async def test_remote_failure_never_blocks_local_write(app, local, remote):
    remote.fail_when = lambda op, table, payload: True

    assert await app.reflect("q3", "still saved") is True
    assert local.journal.get("q3").content == "still saved"
    assert app.sync.pending_count() == 0


@pytest.mark.asyncio
async def test_save_preferences_pushes(app, remote):
    prefs = await app.save_preferences("Ada", "07:30")

    assert prefs.name == "Ada"
    assert remote.rows("preferences")[0]["notification_time"] == "07:30"


@pytest.mark.asyncio
async def test_personalization_unlocks_after_enough_signals(local_app, local):
    local.preferences.save("Ada", "08:00")
    assert local_app.personalization_enabled() is False

    for _ in range(PERSONALIZATION_MIN_SIGNALS - 1):
        local_app.recorder.record("q1", "viewed")
    await local_app.favorite("q2")

    assert local_app.personalization_enabled() is True
    assert local.preferences.get().algorithm_enabled_at is not None


@pytest.fixture
def journey_app(local, catalog, db_path, connectivity):
    journeys = {
        "wise": JourneyDefinition(id="wise", title="Wise", description="", duration=2, themes=("wisdom", "meaning")),
    }
    service = SyncService(SyncContext(local), SyncQueue(db_path), connectivity)
    return ReflectionApp(local, catalog, service, journeys=journeys)


@pytest.mark.asyncio
async def test_journey_shows_one_on_theme_quote_per_day(journey_app, local):
    journey_app.start_journey("wise")

    first = await journey_app.journey_quote()
    again = await journey_app.journey_quote()

    assert first.id == "q1"
    assert again.id == "q1"
    assert local.journeys.active().quotes_shown == ["q1"]
    assert [r.quote_id for r in local.history.all()] == ["q1"]

    journey_app.advance_journey()
    second = await journey_app.journey_quote()
    assert second.id == "q4"


@pytest.mark.asyncio
async def test_journey_completes_after_last_day(journey_app, local):
    journey_app.start_journey("wise")
    await journey_app.journey_quote()
    assert journey_app.advance_journey().day == 2
    await journey_app.journey_quote()

    finished = journey_app.advance_journey()

    assert finished.completed_at is not None
    assert finished.quotes_shown == ["q1", "q4"]
    assert local.journeys.active() is None
    assert await journey_app.journey_quote() is None


def test_start_unknown_journey(journey_app):
    with pytest.raises(ValueError):
        journey_app.start_journey("nope")


def test_exit_journey(journey_app, local):
    journey_app.start_journey("wise")
    assert journey_app.exit_journey() is True
    assert journey_app.exit_journey() is False
    assert local.journeys.completed() == []
