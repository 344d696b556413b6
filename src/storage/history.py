"""Append-only log of quotes shown to the user."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from db import to_iso, utcnow, wal_connect

from .models import ViewRecord

MAX_FRESH_PULLS_PER_DAY = 3


class HistoryStore:
    """View records are never updated or deleted once written."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS quote_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quote_id TEXT NOT NULL,
                    shown_at TIMESTAMP NOT NULL,
                    fresh_pull INTEGER DEFAULT 0,
                    UNIQUE (quote_id, shown_at)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_history_shown ON quote_history(shown_at)")

    def record_shown(self, quote_id: str, fresh_pull: bool = False) -> ViewRecord:
        record = ViewRecord(quote_id=quote_id, shown_at=utcnow(), fresh_pull=fresh_pull)
        record.id = self.insert(record)
        return record

    def insert(self, record: ViewRecord) -> Optional[int]:
        """Append a record. Returns None when the (quote_id, shown_at) key already exists."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                """INSERT OR IGNORE INTO quote_history (quote_id, shown_at, fresh_pull)
                VALUES (?, ?, ?)""",
                (record.quote_id, to_iso(record.shown_at), int(record.fresh_pull)),
            )
            return cursor.lastrowid if cursor.rowcount else None

    def all(self) -> list[ViewRecord]:
        """Newest first."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM quote_history ORDER BY shown_at DESC").fetchall()
        return [ViewRecord.from_row(r) for r in rows]

    def count(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM quote_history").fetchone()[0]

    def shown_since(self, cutoff: datetime) -> set[str]:
        """Distinct quote ids shown at or after cutoff."""
        with wal_connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT DISTINCT quote_id FROM quote_history WHERE shown_at >= ?",
                (to_iso(cutoff),),
            ).fetchall()
        return {r[0] for r in rows}

    def fresh_pulls_today(self, now: Optional[datetime] = None) -> int:
        """Count "another quote" pulls since local midnight."""
        local_now = (now or datetime.now().astimezone()).astimezone()
        midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        with wal_connect(self.db_path) as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM quote_history WHERE fresh_pull = 1 AND shown_at >= ?",
                (to_iso(midnight),),
            ).fetchone()[0]

    def can_get_another(self, now: Optional[datetime] = None) -> bool:
        return self.fresh_pulls_today(now) < MAX_FRESH_PULLS_PER_DAY
