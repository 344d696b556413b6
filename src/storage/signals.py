"""Behavioral signal log used to learn topical affinity."""

import json
import sqlite3
from pathlib import Path
from typing import Optional

import structlog

from db import parse_ts, to_iso, utcnow, wal_connect
from observability import metrics
from shared_types import LONG_REFLECTION_CHARS, SignalKind

from .models import Signal

logger = structlog.get_logger()


def reflection_signal(content: str) -> SignalKind:
    """Long reflections carry more weight than short ones."""
    return SignalKind.REFLECTED_LONG if len(content) > LONG_REFLECTION_CHARS else SignalKind.REFLECTED


class SignalStore:
    """Immutable signal rows; themes are snapshotted at event time."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS signals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    quote_id TEXT NOT NULL,
                    signal TEXT NOT NULL,
                    timestamp TIMESTAMP NOT NULL,
                    themes_json TEXT NOT NULL DEFAULT '[]'
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_signals_quote ON signals(quote_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_signals_ts ON signals(timestamp)")

    def add(self, signal: Signal) -> int:
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT INTO signals (quote_id, signal, timestamp, themes_json) VALUES (?, ?, ?, ?)",
                (
                    signal.quote_id,
                    str(signal.signal),
                    to_iso(signal.timestamp),
                    json.dumps(list(signal.themes)),
                ),
            )
            return cursor.lastrowid

    def all(self) -> list[Signal]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM signals ORDER BY id").fetchall()
        return [self._row_to_signal(r) for r in rows]

    def for_quote(self, quote_id: str) -> list[Signal]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM signals WHERE quote_id = ? ORDER BY id", (quote_id,)
            ).fetchall()
        return [self._row_to_signal(r) for r in rows]

    def count(self) -> int:
        """Total signals (cold start detection)."""
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM signals").fetchone()[0]

    @staticmethod
    def _row_to_signal(row) -> Signal:
        return Signal(
            id=row["id"],
            quote_id=row["quote_id"],
            signal=row["signal"],
            timestamp=parse_ts(row["timestamp"]),
            themes=tuple(json.loads(row["themes_json"] or "[]")),
        )


class SignalRecorder:
    """Best-effort telemetry: a failed insert is logged, never raised."""

    def __init__(self, store: SignalStore, catalog):
        self.store = store
        self.catalog = catalog

    def record(self, quote_id: str, kind: SignalKind | str) -> Optional[int]:
        try:
            kind = SignalKind(kind)
            themes = tuple(self.catalog.themes_for(quote_id))
            row_id = self.store.add(
                Signal(quote_id=quote_id, signal=kind, timestamp=utcnow(), themes=themes)
            )
        except (sqlite3.Error, ValueError) as e:
            logger.error("signal_record_error", quote_id=quote_id, signal=str(kind), error=str(e))
            return None
        metrics.counter("signals.recorded")
        logger.debug("signal.recorded", quote_id=quote_id, signal=str(kind), themes=list(themes))
        return row_id

    def record_reflection(self, quote_id: str, content: str) -> Optional[int]:
        return self.record(quote_id, reflection_signal(content))
