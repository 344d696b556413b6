"""Last-write-wins conflict resolution with a bounded diagnostic log."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

import structlog

from db import parse_ts, to_iso, utcnow
from observability import metrics

logger = structlog.get_logger()

Winner = Literal["local", "remote"]

MAX_CONFLICT_LOG_SIZE = 100


@dataclass(frozen=True)
class ConflictRecord:
    type: str
    key: str
    local_updated_at: Optional[datetime]
    remote_updated_at: Optional[datetime]
    winner: Winner
    timestamp: datetime


class ConflictLog:
    """Fixed-capacity ring buffer; the oldest record is overwritten first."""

    def __init__(self, capacity: int = MAX_CONFLICT_LOG_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._slots: list[Optional[ConflictRecord]] = [None] * capacity
        self._next = 0
        self._size = 0

    def append(self, record: ConflictRecord) -> None:
        self._slots[self._next] = record
        self._next = (self._next + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def records(self) -> list[ConflictRecord]:
        """Oldest to newest copy of the buffer."""
        start = (self._next - self._size) % self.capacity
        return [self._slots[(start + i) % self.capacity] for i in range(self._size)]

    def clear(self) -> None:
        self._slots = [None] * self.capacity
        self._next = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size


class ConflictResolver:
    """Decide which side of a sync pair wins.

    Rules, in order: missing local timestamp -> remote; missing remote
    timestamp -> local; remote strictly newer -> remote; otherwise local
    (ties go to local). Every decision is appended to the log; the log never
    influences the outcome.
    """

    def __init__(self, log_size: int = MAX_CONFLICT_LOG_SIZE):
        self.log = ConflictLog(log_size)

    def resolve(
        self,
        entity_type: str,
        key: str,
        local_updated_at,
        remote_updated_at,
    ) -> Winner:
        local_ts = parse_ts(local_updated_at)
        remote_ts = parse_ts(remote_updated_at)

        if local_ts is None:
            winner: Winner = "remote"
        elif remote_ts is None:
            winner = "local"
        elif remote_ts > local_ts:
            winner = "remote"
        else:
            winner = "local"

        self.log.append(
            ConflictRecord(
                type=str(entity_type),
                key=key,
                local_updated_at=local_ts,
                remote_updated_at=remote_ts,
                winner=winner,
                timestamp=utcnow(),
            )
        )
        metrics.counter("conflicts.resolved")
        logger.debug(
            "sync.conflict",
            type=str(entity_type),
            key=key,
            winner=winner,
            local_updated_at=to_iso(local_ts) or "null",
            remote_updated_at=to_iso(remote_ts) or "null",
        )
        return winner

    def records(self) -> list[ConflictRecord]:
        return self.log.records()

    def clear(self) -> None:
        self.log.clear()

    def summary(self) -> dict:
        """Totals by entity type and by winner."""
        by_type: dict[str, int] = {}
        by_winner = {"local": 0, "remote": 0}
        records = self.log.records()
        for record in records:
            by_type[record.type] = by_type.get(record.type, 0) + 1
            by_winner[record.winner] += 1
        return {"total": len(records), "by_type": by_type, "by_winner": by_winner}
