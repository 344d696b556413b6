"""Local on-device store: one SQLite file, one class per table."""

from pathlib import Path

from .engagement import EngagementStore
from .favorites import FavoritesStore
from .history import HistoryStore
from .journal import JournalStore
from .journeys import JourneyStore
from .models import (
    Engagement,
    FavoriteMark,
    JournalEntry,
    Signal,
    UserJourney,
    UserPreferences,
    ViewRecord,
)
from .preferences import PreferencesStore
from .signals import SignalRecorder, SignalStore, reflection_signal


class LocalStore:
    """Bundle of table stores sharing one database file. Owns no network knowledge."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.preferences = PreferencesStore(self.db_path)
        self.journal = JournalStore(self.db_path)
        self.favorites = FavoritesStore(self.db_path)
        self.history = HistoryStore(self.db_path)
        self.signals = SignalStore(self.db_path)
        self.engagement = EngagementStore(self.db_path)
        self.journeys = JourneyStore(self.db_path)


__all__ = [
    "LocalStore",
    "PreferencesStore",
    "JournalStore",
    "FavoritesStore",
    "HistoryStore",
    "SignalStore",
    "SignalRecorder",
    "EngagementStore",
    "JourneyStore",
    "reflection_signal",
    "UserPreferences",
    "JournalEntry",
    "FavoriteMark",
    "ViewRecord",
    "Signal",
    "Engagement",
    "UserJourney",
]
