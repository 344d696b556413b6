"""Journal sync: per-quote rows, last-write-wins on updated_at."""

from db import parse_ts, to_iso
from shared_types import SyncType
from storage import JournalEntry

from .base import MALFORMED_ROW_ERRORS, EntitySyncer
from .remote import RemoteError

TABLE = "journal_entries"


def to_remote(local: JournalEntry, user_id: str) -> dict:
    return {
        "user_id": user_id,
        "quote_id": local.quote_id,
        "content": local.content,
        "created_at": to_iso(local.created_at),
        "updated_at": to_iso(local.updated_at),
    }


def to_local(remote: dict) -> JournalEntry:
    return JournalEntry(
        quote_id=remote["quote_id"],
        content=remote["content"],
        created_at=parse_ts(remote["created_at"]),
        updated_at=parse_ts(remote["updated_at"]),
    )


class JournalSyncer(EntitySyncer):
    sync_type = SyncType.JOURNAL

    async def _pull(self, user_id: str) -> int:
        remote_entries = await self.remote.select(TABLE, {"user_id": user_id})
        if not remote_entries:
            return 0

        local_map = {e.quote_id: e for e in self.local.journal.all()}
        pulled = 0
        for remote in remote_entries:
            try:
                incoming = to_local(remote)
            except MALFORMED_ROW_ERRORS as e:
                self._row_malformed(remote.get("quote_id"), e)
                continue
            local = local_map.get(incoming.quote_id)
            if local is None:
                self.local.journal.insert(incoming)
                pulled += 1
                continue
            winner = self.resolver.resolve(
                self.sync_type, incoming.quote_id, local.updated_at, incoming.updated_at
            )
            if winner == "remote":
                self.local.journal.update(
                    local.id,
                    content=incoming.content,
                    updated_at=incoming.updated_at,
                    created_at=incoming.created_at,
                )
                pulled += 1
        return pulled

    async def _push(self, user_id: str) -> int:
        local_entries = self.local.journal.all()
        if not local_entries:
            return 0

        remote_entries = await self.remote.select(
            TABLE, {"user_id": user_id}, columns="id,quote_id,updated_at"
        )
        remote_map = {r["quote_id"]: r for r in remote_entries}

        pushed = 0
        for local in local_entries:
            remote = remote_map.get(local.quote_id)
            try:
                if remote is None:
                    await self.remote.insert(TABLE, to_remote(local, user_id))
                    pushed += 1
                    continue
                remote_updated_at = parse_ts(remote["updated_at"])
                winner = self.resolver.resolve(
                    self.sync_type, local.quote_id, local.updated_at, remote_updated_at
                )
                # equal timestamps mean both sides already converged
                if winner == "local" and local.updated_at != remote_updated_at:
                    await self.remote.update(
                        TABLE,
                        {"content": local.content, "updated_at": to_iso(local.updated_at)},
                        {"id": remote["id"]},
                    )
                    pushed += 1
            except RemoteError as e:
                self._row_failed("upsert", local.quote_id, e)
            except MALFORMED_ROW_ERRORS as e:
                self._row_malformed(local.quote_id, e)
        return pushed
