"""Shared enums and types for quotidian."""

from enum import StrEnum


class SyncType(StrEnum):
    PREFERENCES = "preferences"
    JOURNAL = "journal"
    FAVORITES = "favorites"
    HISTORY = "history"


class SignalKind(StrEnum):
    FAVORITE = "favorite"
    UNFAVORITED = "unfavorited"
    REFLECTED = "reflected"
    REFLECTED_LONG = "reflected_long"
    ANOTHER = "another"
    VIEWED = "viewed"


# Positive = engagement, negative = disengagement
SIGNAL_WEIGHTS: dict[SignalKind, int] = {
    SignalKind.FAVORITE: 3,
    SignalKind.UNFAVORITED: -2,
    SignalKind.REFLECTED: 2,
    SignalKind.REFLECTED_LONG: 3,
    SignalKind.ANOTHER: -1,
    SignalKind.VIEWED: 0,
}

# Reflections longer than this count as reflected_long
LONG_REFLECTION_CHARS = 500

# Order used by sync_all and the CLI
SYNC_ORDER: tuple[SyncType, ...] = (
    SyncType.PREFERENCES,
    SyncType.JOURNAL,
    SyncType.FAVORITES,
    SyncType.HISTORY,
)
