"""Favorites sync by set reconciliation.

Favorites have no updated_at and deletions leave no tombstone, so a quote
missing on one side can mean "never favorited there" or "unfavorited there".
Pull treats remote as truth for removals, push treats local as truth; running
pull then push approximates two-way sync. Concurrent favorite/unfavorite of the
same quote on two devices has no defined outcome.
"""

from db import parse_ts, to_iso
from shared_types import SyncType
from storage import FavoriteMark

from .base import EntitySyncer
from .remote import RemoteError

TABLE = "favorites"


def to_remote(local: FavoriteMark, user_id: str) -> dict:
    return {"user_id": user_id, "quote_id": local.quote_id, "saved_at": to_iso(local.saved_at)}


def to_local(remote: dict) -> FavoriteMark:
    return FavoriteMark(quote_id=remote["quote_id"], saved_at=parse_ts(remote["saved_at"]))


class FavoritesSyncer(EntitySyncer):
    sync_type = SyncType.FAVORITES

    async def _pull(self, user_id: str) -> int:
        remote_favorites = await self.remote.select(TABLE, {"user_id": user_id})
        remote_ids = {r["quote_id"] for r in remote_favorites}

        local_favorites = self.local.favorites.all()
        local_ids = {f.quote_id for f in local_favorites}

        pulled = 0
        for remote in remote_favorites:
            if remote["quote_id"] not in local_ids:
                self.local.favorites.insert(to_local(remote))
                local_ids.add(remote["quote_id"])
                pulled += 1

        # absent remotely: unfavorited on another device
        for local in local_favorites:
            if local.quote_id not in remote_ids:
                self.local.favorites.delete(local.id)
                pulled += 1
        return pulled

    async def _push(self, user_id: str) -> int:
        local_favorites = self.local.favorites.all()
        local_ids = {f.quote_id for f in local_favorites}

        remote_favorites = await self.remote.select(TABLE, {"user_id": user_id}, columns="id,quote_id")
        remote_ids = {r["quote_id"] for r in remote_favorites}

        pushed = 0
        for local in local_favorites:
            if local.quote_id in remote_ids:
                continue
            try:
                await self.remote.insert(TABLE, to_remote(local, user_id))
            except RemoteError as e:
                self._row_failed("insert", local.quote_id, e)
                continue
            pushed += 1

        # absent locally: user unfavorited here
        for remote in remote_favorites:
            if remote["quote_id"] in local_ids:
                continue
            try:
                await self.remote.delete(TABLE, {"id": remote["id"]})
            except RemoteError as e:
                self._row_failed("delete", remote["quote_id"], e)
                continue
            pushed += 1
        return pushed
