"""Preferences sync: one row per user, upserted on user_id."""

from db import parse_ts, to_iso
from shared_types import SyncType
from storage import UserPreferences

from .base import EntitySyncer
from .remote import RemoteNotFoundError

TABLE = "preferences"


def to_remote(local: UserPreferences, user_id: str, digest_enabled: bool = False) -> dict:
    return {
        "user_id": user_id,
        "name": local.name,
        "notification_time": local.notification_time,
        "onboarded_at": to_iso(local.onboarded_at),
        "algorithm_enabled_at": to_iso(local.algorithm_enabled_at),
        "personalization_celebrated": bool(local.personalization_celebrated),
        "last_timing_calculation_date": local.last_timing_calculation_date,
        "digest_enabled": digest_enabled,
    }


def to_local(remote: dict) -> UserPreferences:
    return UserPreferences(
        name=remote["name"],
        notification_time=remote["notification_time"],
        onboarded_at=parse_ts(remote["onboarded_at"]),
        algorithm_enabled_at=parse_ts(remote.get("algorithm_enabled_at")),
        personalization_celebrated=bool(remote.get("personalization_celebrated")),
        last_timing_calculation_date=remote.get("last_timing_calculation_date"),
    )


class PreferencesSyncer(EntitySyncer):
    """Local preferences carry no updated_at, so onboarded_at stands in for it."""

    sync_type = SyncType.PREFERENCES

    async def _pull(self, user_id: str) -> int:
        try:
            remote = await self.remote.select_one(TABLE, {"user_id": user_id})
        except RemoteNotFoundError:
            return 0

        local = self.local.preferences.get()
        winner = self.resolver.resolve(
            self.sync_type,
            user_id,
            local.onboarded_at if local else None,
            remote.get("updated_at"),
        )
        if winner == "local":
            return 0
        self.local.preferences.replace(to_local(remote))
        return 1

    async def _push(self, user_id: str) -> int:
        local = self.local.preferences.get()
        if not local:
            self.log.debug("sync.nothing_to_push")
            return 0

        # digest_enabled only exists remotely; carry it over instead of resetting it
        digest_enabled = False
        try:
            existing = await self.remote.select_one(TABLE, {"user_id": user_id}, columns="digest_enabled")
            digest_enabled = bool(existing.get("digest_enabled"))
        except RemoteNotFoundError:
            pass

        await self.remote.upsert(TABLE, to_remote(local, user_id, digest_enabled), on_conflict="user_id")
        return 1
