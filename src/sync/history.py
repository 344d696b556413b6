"""History sync: append-only union keyed by (quote_id, shown_at)."""

from datetime import datetime

from db import parse_ts, to_iso
from shared_types import SyncType
from storage import ViewRecord

from .base import MALFORMED_ROW_ERRORS, EntitySyncer
from .remote import RemoteError

TABLE = "quote_history"


def history_key(quote_id: str, shown_at: datetime | str) -> str:
    """Composite key with shown_at normalized to UTC milliseconds."""
    return f"{quote_id}:{to_iso(parse_ts(shown_at))}"


def to_remote(local: ViewRecord, user_id: str) -> dict:
    return {
        "user_id": user_id,
        "quote_id": local.quote_id,
        "shown_at": to_iso(local.shown_at),
        "fresh_pull": bool(local.fresh_pull),
    }


def to_local(remote: dict) -> ViewRecord:
    return ViewRecord(
        quote_id=remote["quote_id"],
        shown_at=parse_ts(remote["shown_at"]),
        fresh_pull=bool(remote.get("fresh_pull")),
    )


class HistorySyncer(EntitySyncer):
    """Only ever adds rows; nothing is updated or deleted on either side."""

    sync_type = SyncType.HISTORY

    async def _pull(self, user_id: str) -> int:
        remote_history = await self.remote.select(TABLE, {"user_id": user_id})
        local_keys = {history_key(r.quote_id, r.shown_at) for r in self.local.history.all()}

        pulled = 0
        for remote in remote_history:
            try:
                incoming = to_local(remote)
            except MALFORMED_ROW_ERRORS as e:
                self._row_malformed(remote.get("quote_id"), e)
                continue
            key = history_key(incoming.quote_id, incoming.shown_at)
            if key in local_keys:
                continue
            if self.local.history.insert(incoming) is not None:
                pulled += 1
            local_keys.add(key)
        return pulled

    async def _push(self, user_id: str) -> int:
        local_history = self.local.history.all()
        remote_history = await self.remote.select(
            TABLE, {"user_id": user_id}, columns="quote_id,shown_at"
        )
        remote_keys = set()
        for remote in remote_history:
            try:
                remote_keys.add(history_key(remote["quote_id"], remote["shown_at"]))
            except MALFORMED_ROW_ERRORS as e:
                self._row_malformed(remote.get("quote_id"), e)

        pushed = 0
        for local in local_history:
            key = history_key(local.quote_id, local.shown_at)
            if key in remote_keys:
                continue
            try:
                await self.remote.insert(TABLE, to_remote(local, user_id))
            except RemoteError as e:
                self._row_failed("insert", key, e)
                continue
            remote_keys.add(key)
            pushed += 1
        return pushed
