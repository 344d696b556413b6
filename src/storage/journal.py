"""Journal reflections, at most one per quote."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from db import to_iso, utcnow, wal_connect

from .models import JournalEntry

logger = structlog.get_logger()

MAX_CONTENT_LENGTH = 100_000


class JournalStore:
    """SQLite storage for journal entries keyed by quote id."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS journal_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quote_id TEXT NOT NULL UNIQUE,
                    content TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_journal_updated ON journal_entries(updated_at)"
            )

    def save(self, quote_id: str, content: str) -> bool:
        """Create or update the reflection for a quote.

        Returns:
            True if a new entry was created, False if an existing one was updated.

        Raises:
            ValueError: If content exceeds MAX_CONTENT_LENGTH.
        """
        if len(content) > MAX_CONTENT_LENGTH:
            raise ValueError(f"Content exceeds max length ({MAX_CONTENT_LENGTH} chars)")
        now = to_iso(utcnow())
        existing = self.get(quote_id)
        with wal_connect(self.db_path) as conn:
            if existing:
                conn.execute(
                    "UPDATE journal_entries SET content = ?, updated_at = ? WHERE id = ?",
                    (content, now, existing.id),
                )
                return False
            conn.execute(
                """INSERT INTO journal_entries (quote_id, content, created_at, updated_at)
                VALUES (?, ?, ?, ?)""",
                (quote_id, content, now, now),
            )
            return True

    def get(self, quote_id: str) -> Optional[JournalEntry]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM journal_entries WHERE quote_id = ?", (quote_id,)
            ).fetchone()
        return JournalEntry.from_row(row) if row else None

    def all(self) -> list[JournalEntry]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM journal_entries ORDER BY id").fetchall()
        return [JournalEntry.from_row(r) for r in rows]

    def recent(self, limit: int = 10) -> list[JournalEntry]:
        """Newest-updated first."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM journal_entries ORDER BY updated_at DESC LIMIT ?", (limit,)
            ).fetchall()
        return [JournalEntry.from_row(r) for r in rows]

    def count(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM journal_entries").fetchone()[0]

    def insert(self, entry: JournalEntry) -> int:
        """Insert a fully-formed entry (used when pulling from remote)."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                """INSERT INTO journal_entries (quote_id, content, created_at, updated_at)
                VALUES (?, ?, ?, ?)""",
                (entry.quote_id, entry.content, to_iso(entry.created_at), to_iso(entry.updated_at)),
            )
            return cursor.lastrowid

    def update(
        self,
        entry_id: int,
        content: str,
        updated_at: datetime,
        created_at: Optional[datetime] = None,
    ) -> None:
        """Overwrite content and timestamps without bumping updated_at to now."""
        with wal_connect(self.db_path) as conn:
            if created_at is not None:
                conn.execute(
                    """UPDATE journal_entries SET content = ?, updated_at = ?, created_at = ?
                    WHERE id = ?""",
                    (content, to_iso(updated_at), to_iso(created_at), entry_id),
                )
            else:
                conn.execute(
                    "UPDATE journal_entries SET content = ?, updated_at = ? WHERE id = ?",
                    (content, to_iso(updated_at), entry_id),
                )
