"""Singleton user preferences row."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from db import to_iso, utcnow, wal_connect

from .models import UserPreferences

logger = structlog.get_logger()

_TIME_FORMAT = "%H:%M"


def validate_notification_time(value: str) -> str:
    """Ensure HH:MM 24h format."""
    try:
        datetime.strptime(value, _TIME_FORMAT)
    except ValueError:
        raise ValueError(f"Notification time must be HH:MM, got {value!r}")
    return value


class PreferencesStore:
    """Exactly one preferences row per local database."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    notification_time TEXT NOT NULL,
                    onboarded_at TIMESTAMP NOT NULL,
                    algorithm_enabled_at TIMESTAMP,
                    personalization_celebrated INTEGER DEFAULT 0,
                    last_timing_calculation_date TEXT
                )
            """)

    def get(self) -> Optional[UserPreferences]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM preferences ORDER BY id LIMIT 1").fetchone()
        return UserPreferences.from_row(row) if row else None

    def is_onboarded(self) -> bool:
        return self.get() is not None

    def save(self, name: str, notification_time: str) -> UserPreferences:
        """Create on first save (stamping onboarded_at), else update name/time."""
        validate_notification_time(notification_time)
        existing = self.get()
        with wal_connect(self.db_path) as conn:
            if existing:
                conn.execute(
                    "UPDATE preferences SET name = ?, notification_time = ? WHERE id = ?",
                    (name, notification_time, existing.id),
                )
            else:
                conn.execute(
                    "INSERT INTO preferences (name, notification_time, onboarded_at) VALUES (?, ?, ?)",
                    (name, notification_time, to_iso(utcnow())),
                )
        return self.get()

    def replace(self, prefs: UserPreferences) -> UserPreferences:
        """Overwrite every field of the singleton row (insert if missing)."""
        existing = self.get()
        values = (
            prefs.name,
            prefs.notification_time,
            to_iso(prefs.onboarded_at),
            to_iso(prefs.algorithm_enabled_at),
            int(prefs.personalization_celebrated),
            prefs.last_timing_calculation_date,
        )
        with wal_connect(self.db_path) as conn:
            if existing:
                conn.execute(
                    """UPDATE preferences SET name = ?, notification_time = ?, onboarded_at = ?,
                    algorithm_enabled_at = ?, personalization_celebrated = ?,
                    last_timing_calculation_date = ? WHERE id = ?""",
                    (*values, existing.id),
                )
            else:
                conn.execute(
                    """INSERT INTO preferences
                    (name, notification_time, onboarded_at, algorithm_enabled_at,
                     personalization_celebrated, last_timing_calculation_date)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    values,
                )
        return self.get()

    def _update_field(self, column: str, value) -> bool:
        existing = self.get()
        if not existing:
            return False
        try:
            with wal_connect(self.db_path) as conn:
                conn.execute(f"UPDATE preferences SET {column} = ? WHERE id = ?", (value, existing.id))
            return True
        except sqlite3.Error as e:
            logger.error("preferences_update_error", column=column, error=str(e))
            return False

    def set_algorithm_enabled(self, when: Optional[datetime] = None) -> bool:
        """Stamp when personalized selection was switched on (first time only)."""
        existing = self.get()
        if not existing or existing.algorithm_enabled_at:
            return False
        return self._update_field("algorithm_enabled_at", to_iso(when or utcnow()))

    def mark_personalization_celebrated(self) -> bool:
        return self._update_field("personalization_celebrated", 1)

    def save_timing_calculation_date(self, day: str) -> bool:
        return self._update_field("last_timing_calculation_date", day)

    def last_timing_calculation_date(self) -> Optional[str]:
        prefs = self.get()
        return prefs.last_timing_calculation_date if prefs else None
