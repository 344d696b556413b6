"""Journey progress: at most one active journey, completed ones kept for history."""

import json
from pathlib import Path
from typing import Optional

import structlog

from db import to_iso, utcnow, wal_connect

from .models import UserJourney

logger = structlog.get_logger()


class JourneyStore:
    """SQLite storage for journey runs. Local only; never synced."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS journeys (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    journey_id TEXT NOT NULL,
                    started_at TIMESTAMP NOT NULL,
                    day INTEGER NOT NULL DEFAULT 1,
                    quotes_shown TEXT NOT NULL DEFAULT '[]',
                    completed_at TIMESTAMP
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_journeys_completed ON journeys(completed_at)")

    def active(self) -> Optional[UserJourney]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM journeys WHERE completed_at IS NULL ORDER BY id LIMIT 1"
            ).fetchone()
        return UserJourney.from_row(row) if row else None

    def has_active(self) -> bool:
        return self.active() is not None

    def start(self, journey_id: str) -> UserJourney:
        """Begin a journey on day 1. Raises ValueError while another is active."""
        current = self.active()
        if current:
            raise ValueError(f"Journey {current.journey_id} is still in progress")
        journey = UserJourney(journey_id=journey_id)
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT INTO journeys (journey_id, started_at, day, quotes_shown) VALUES (?, ?, 1, '[]')",
                (journey_id, to_iso(journey.started_at)),
            )
            journey.id = cursor.lastrowid
        logger.info("journey.started", journey_id=journey_id)
        return journey

    def advance_day(self) -> Optional[int]:
        """Move the active journey to its next day. Returns the new day."""
        current = self.active()
        if not current:
            return None
        with wal_connect(self.db_path) as conn:
            conn.execute("UPDATE journeys SET day = ? WHERE id = ?", (current.day + 1, current.id))
        return current.day + 1

    def add_quote(self, quote_id: str) -> bool:
        current = self.active()
        if not current:
            return False
        shown = current.quotes_shown + [quote_id]
        with wal_connect(self.db_path) as conn:
            conn.execute("UPDATE journeys SET quotes_shown = ? WHERE id = ?", (json.dumps(shown), current.id))
        return True

    def complete_active(self) -> Optional[UserJourney]:
        current = self.active()
        if not current:
            return None
        current.completed_at = utcnow()
        with wal_connect(self.db_path) as conn:
            conn.execute(
                "UPDATE journeys SET completed_at = ? WHERE id = ?",
                (to_iso(current.completed_at), current.id),
            )
        logger.info("journey.completed", journey_id=current.journey_id, days=current.day)
        return current

    def delete_active(self) -> bool:
        """Abandon the active journey. Nothing of it is kept."""
        current = self.active()
        if not current:
            return False
        with wal_connect(self.db_path) as conn:
            conn.execute("DELETE FROM journeys WHERE id = ?", (current.id,))
        logger.info("journey.exited", journey_id=current.journey_id, day=current.day)
        return True

    def completed(self) -> list[UserJourney]:
        """Most recently completed first."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM journeys WHERE completed_at IS NOT NULL ORDER BY completed_at DESC, id DESC"
            ).fetchall()
        return [UserJourney.from_row(r) for r in rows]
