"""User actions: local write, signal, then sync-or-queue."""

from typing import Optional

import structlog

from catalog import JourneyDefinition, Quote, QuoteCatalog, load_journeys
from selection import ContentScorer
from shared_types import SignalKind, SyncType
from storage import LocalStore, SignalRecorder, UserJourney, UserPreferences
from sync import SyncOrQueueResult, SyncService

logger = structlog.get_logger()

# Signals needed before selection switches from random to scored
PERSONALIZATION_MIN_SIGNALS = 10


class ReflectionApp:
    """Facade the UI layer calls. Local writes always complete first; sync is best-effort."""

    def __init__(
        self,
        local: LocalStore,
        catalog: QuoteCatalog,
        sync: SyncService,
        scorer: Optional[ContentScorer] = None,
        journeys: Optional[dict[str, JourneyDefinition]] = None,
    ):
        self.local = local
        self.catalog = catalog
        self.sync = sync
        self.recorder = SignalRecorder(local.signals, catalog)
        self.scorer = scorer or ContentScorer(catalog, local)
        self.journeys = journeys if journeys is not None else load_journeys()

    async def _after_write(self, sync_type: SyncType) -> SyncOrQueueResult:
        result = await self.sync.sync_or_queue(sync_type)
        if result.success is False:
            logger.warning("action.sync_failed", type=str(sync_type), error=result.error)
        return result

    def personalization_enabled(self) -> bool:
        prefs = self.local.preferences.get()
        return bool(prefs and prefs.algorithm_enabled_at)

    def _maybe_enable_personalization(self) -> bool:
        """Switch on scored selection once enough signals exist. True on the switch."""
        if self.personalization_enabled():
            return False
        if self.local.signals.count() < PERSONALIZATION_MIN_SIGNALS:
            return False
        enabled = self.local.preferences.set_algorithm_enabled()
        if enabled:
            logger.info("personalization.enabled")
        return enabled

    async def _show(self, quote: Quote, fresh_pull: bool) -> Quote:
        self.local.history.record_shown(quote.id, fresh_pull=fresh_pull)
        self.recorder.record(quote.id, SignalKind.VIEWED)
        await self._after_write(SyncType.HISTORY)
        return quote

    async def open_today(self) -> Quote:
        """Record the app open and show the day's quote."""
        self.local.engagement.record_app_open()
        return await self._show(self.catalog.todays_quote(), fresh_pull=False)

    async def another(self, current_id: Optional[str] = None) -> Optional[Quote]:
        """Skip to a new quote. None once today's fresh pulls are used up."""
        if not self.local.history.can_get_another():
            return None
        if current_id:
            self.recorder.record(current_id, SignalKind.ANOTHER)
        if self.personalization_enabled():
            quote = self.scorer.select_next()
        else:
            quote = self.catalog.random_quote(exclude_id=current_id)
        return await self._show(quote, fresh_pull=True)

    async def favorite(self, quote_id: str) -> bool:
        added = self.local.favorites.add(quote_id)
        if added:
            self.recorder.record(quote_id, SignalKind.FAVORITE)
            self.local.engagement.record_engagement()
            self._maybe_enable_personalization()
            await self._after_write(SyncType.FAVORITES)
        return added

    async def unfavorite(self, quote_id: str) -> bool:
        removed = self.local.favorites.remove(quote_id)
        if removed:
            self.recorder.record(quote_id, SignalKind.UNFAVORITED)
            await self._after_write(SyncType.FAVORITES)
        return removed

    async def reflect(self, quote_id: str, content: str) -> bool:
        """Save a reflection. Returns True for a new entry."""
        is_new = self.local.journal.save(quote_id, content)
        self.recorder.record_reflection(quote_id, content)
        self.local.engagement.record_engagement()
        self._maybe_enable_personalization()
        await self._after_write(SyncType.JOURNAL)
        return is_new

    async def save_preferences(self, name: str, notification_time: str) -> UserPreferences:
        prefs = self.local.preferences.save(name, notification_time)
        await self._after_write(SyncType.PREFERENCES)
        return prefs

    def _journey_definition(self, journey_id: str) -> JourneyDefinition:
        definition = self.journeys.get(journey_id)
        if definition is None:
            raise ValueError(f"Unknown journey: {journey_id}")
        return definition

    def start_journey(self, journey_id: str) -> UserJourney:
        """Raises ValueError for an unknown id or while another journey is active."""
        self._journey_definition(journey_id)
        return self.local.journeys.start(journey_id)

    def _pick_journey_quote(self, journey: UserJourney) -> Quote:
        definition = self.journeys.get(journey.journey_id)
        themes = set(definition.themes) if definition else set()
        unseen = [q for q in self.catalog.all() if q.id not in journey.quotes_shown]
        on_theme = [q for q in unseen if themes.intersection(q.themes)]
        return (on_theme or unseen or self.catalog.all())[0]

    async def journey_quote(self) -> Optional[Quote]:
        """The active journey's quote for its current day, picked once per day."""
        journey = self.local.journeys.active()
        if journey is None:
            return None
        if len(journey.quotes_shown) >= journey.day:
            return self.catalog.get(journey.quotes_shown[-1])
        quote = self._pick_journey_quote(journey)
        self.local.journeys.add_quote(quote.id)
        return await self._show(quote, fresh_pull=False)

    def advance_journey(self) -> Optional[UserJourney]:
        """Move to the next day, completing the journey after its last day."""
        journey = self.local.journeys.active()
        if journey is None:
            return None
        definition = self.journeys.get(journey.journey_id)
        if definition is None or journey.day >= definition.duration:
            return self.local.journeys.complete_active()
        self.local.journeys.advance_day()
        return self.local.journeys.active()

    def exit_journey(self) -> bool:
        return self.local.journeys.delete_active()
