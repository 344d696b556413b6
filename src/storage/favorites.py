"""Favorite marks: binary existence per quote, insert/delete only."""

from pathlib import Path

from db import to_iso, utcnow, wal_connect

from .models import FavoriteMark


class FavoritesStore:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS favorites (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quote_id TEXT NOT NULL UNIQUE,
                    saved_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_favorites_saved ON favorites(saved_at)")

    def add(self, quote_id: str) -> bool:
        """Favorite a quote. Returns False if it was already a favorite."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO favorites (quote_id, saved_at) VALUES (?, ?)",
                (quote_id, to_iso(utcnow())),
            )
            return cursor.rowcount > 0

    def remove(self, quote_id: str) -> bool:
        """Unfavorite. Destructive: no tombstone is kept."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM favorites WHERE quote_id = ?", (quote_id,))
            return cursor.rowcount > 0

    def is_favorite(self, quote_id: str) -> bool:
        with wal_connect(self.db_path) as conn:
            row = conn.execute("SELECT 1 FROM favorites WHERE quote_id = ?", (quote_id,)).fetchone()
        return row is not None

    def all(self) -> list[FavoriteMark]:
        """Newest first."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM favorites ORDER BY saved_at DESC, id DESC").fetchall()
        return [FavoriteMark.from_row(r) for r in rows]

    def quote_ids(self) -> set[str]:
        with wal_connect(self.db_path) as conn:
            return {r[0] for r in conn.execute("SELECT quote_id FROM favorites")}

    def count(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM favorites").fetchone()[0]

    def insert(self, mark: FavoriteMark) -> bool:
        """Insert a pulled mark, keeping its original saved_at."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO favorites (quote_id, saved_at) VALUES (?, ?)",
                (mark.quote_id, to_iso(mark.saved_at)),
            )
            return cursor.rowcount > 0

    def delete(self, favorite_id: int) -> None:
        with wal_connect(self.db_path) as conn:
            conn.execute("DELETE FROM favorites WHERE id = ?", (favorite_id,))
