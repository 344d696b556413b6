"""Shared SQLite helpers: WAL mode, row_factory defaults, timestamp encoding."""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def wal_connect(db_path: str | Path, row_factory: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


def utcnow() -> datetime:
    """Current UTC time truncated to milliseconds (the precision stored remotely)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Encode a datetime as an ISO-8601 UTC string with millisecond precision."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_ts(value) -> Optional[datetime]:
    """Decode a stored or remote timestamp into an aware UTC datetime.

    Accepts datetimes, ISO strings (including a trailing ``Z``) and None.
    Naive values are assumed to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
