"""Shared plumbing for per-entity syncers: results, context, pull-then-push."""

import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import structlog

from observability import metrics
from shared_types import SyncType
from storage import LocalStore

from .conflicts import ConflictResolver
from .remote import RemoteError, RemoteStore
from .session import AuthSession

logger = structlog.get_logger()

# what a remote row that doesn't match the expected shape raises while decoding
MALFORMED_ROW_ERRORS = (KeyError, TypeError, ValueError)


@dataclass(frozen=True)
class SyncResult:
    """Tagged outcome of a pull, push or full sync. Never raised, always returned."""

    success: bool
    count: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, count: int = 0) -> "SyncResult":
        return cls(success=True, count=count)

    @classmethod
    def failure(cls, error: str) -> "SyncResult":
        return cls(success=False, error=error)


class SyncContext:
    """Explicitly constructed handle shared by every syncer.

    ``remote`` and ``session`` are None when no remote backend is configured;
    the engine then runs local-only.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: Optional[RemoteStore] = None,
        session: Optional[AuthSession] = None,
        resolver: Optional[ConflictResolver] = None,
    ):
        self.local = local
        self.remote = remote
        self.session = session
        self.resolver = resolver or ConflictResolver()

    @property
    def configured(self) -> bool:
        return self.remote is not None and self.session is not None

    @property
    def signed_in(self) -> bool:
        """A session is held locally; says nothing about whether it still validates."""
        return self.configured and self.session.has_session()

    async def user_id(self) -> Optional[str]:
        if not self.configured:
            return None
        return await self.session.user_id()


class EntitySyncer(ABC):
    """Bidirectional sync for one entity type.

    Subclasses implement ``_pull``/``_push`` and may raise RemoteError,
    sqlite3.Error or a row decode error; the public methods turn those into
    failure results.
    """

    sync_type: SyncType

    def __init__(self, ctx: SyncContext):
        self.ctx = ctx
        self.log = logger.bind(type=str(self.sync_type))

    @property
    def local(self) -> LocalStore:
        return self.ctx.local

    @property
    def remote(self) -> RemoteStore:
        return self.ctx.remote

    @property
    def resolver(self) -> ConflictResolver:
        return self.ctx.resolver

    async def _require_user(self) -> tuple[Optional[str], Optional[SyncResult]]:
        if not self.ctx.configured:
            return None, SyncResult.failure("Remote store not configured")
        user_id = await self.ctx.user_id()
        if not user_id:
            if self.ctx.signed_in:
                return None, SyncResult.failure("Could not resolve the signed-in user")
            return None, SyncResult.failure("Not signed in")
        return user_id, None

    async def _guarded(self, direction: str, operation) -> SyncResult:
        user_id, failure = await self._require_user()
        if failure:
            return failure
        try:
            count = await operation(user_id)
        except RemoteError as e:
            self.log.warning(f"sync.{direction}_failed", error=e.message, code=e.code)
            return SyncResult.failure(e.message)
        except sqlite3.Error as e:
            self.log.error(f"sync.{direction}_local_error", error=str(e))
            return SyncResult.failure(f"Local store error: {e}")
        except MALFORMED_ROW_ERRORS as e:
            self.log.error(f"sync.{direction}_malformed", error=repr(e))
            return SyncResult.failure(f"Malformed remote data: {e!r}")
        self.log.info(f"sync.{direction}", count=count)
        return SyncResult.ok(count)

    async def pull(self) -> SyncResult:
        """Remote -> local."""
        return await self._guarded("pull", self._pull)

    async def push(self) -> SyncResult:
        """Local -> remote."""
        return await self._guarded("push", self._push)

    async def sync(self) -> SyncResult:
        """Pull first so a push can't re-create what the pull just removed."""
        with metrics.timer(f"sync.{self.sync_type}"):
            pulled = await self.pull()
            if not pulled.success:
                return pulled
            pushed = await self.push()
        if not pushed.success:
            return pushed
        return SyncResult.ok((pulled.count or 0) + (pushed.count or 0))

    def _row_failed(self, action: str, key: str, error: RemoteError) -> None:
        self.log.warning("sync.row_failed", action=action, key=key, error=error.message)

    def _row_malformed(self, key, error: Exception) -> None:
        self.log.warning("sync.row_malformed", key=key, error=repr(error))

    @abstractmethod
    async def _pull(self, user_id: str) -> int: ...

    @abstractmethod
    async def _push(self, user_id: str) -> int: ...
