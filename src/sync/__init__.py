from .base import EntitySyncer, SyncContext, SyncResult
from .conflicts import ConflictLog, ConflictRecord, ConflictResolver
from .favorites import FavoritesSyncer
from .history import HistorySyncer
from .journal import JournalSyncer
from .listeners import SyncListeners
from .preferences import PreferencesSyncer
from .queue import DrainResult, PendingSync, SyncAllResult, SyncOrQueueResult, SyncQueue, SyncService
from .remote import PostgrestRemoteStore, RemoteError, RemoteNotFoundError, RemoteStore
from .session import AuthSession, Connectivity, MagicLinkAuth

__all__ = [
    "AuthSession",
    "ConflictLog",
    "ConflictRecord",
    "ConflictResolver",
    "Connectivity",
    "DrainResult",
    "EntitySyncer",
    "FavoritesSyncer",
    "HistorySyncer",
    "JournalSyncer",
    "MagicLinkAuth",
    "PendingSync",
    "PostgrestRemoteStore",
    "PreferencesSyncer",
    "RemoteError",
    "RemoteNotFoundError",
    "RemoteStore",
    "SyncAllResult",
    "SyncContext",
    "SyncListeners",
    "SyncOrQueueResult",
    "SyncQueue",
    "SyncResult",
    "SyncService",
]
