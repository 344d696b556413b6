"""Daily engagement tracking and notification-time suggestions."""

import statistics
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from db import to_iso, utcnow, wal_connect

from .models import Engagement, today_string

# Suggestions need at least this many engaged days in the window
MIN_ENGAGED_DAYS = 5
TIMING_WINDOW_DAYS = 14
TIMING_ROUND_MINUTES = 15
SIGNIFICANT_DIFFERENCE_MINUTES = 30


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def is_significant_time_difference(a: str, b: str) -> bool:
    """True when two HH:MM times are more than 30 minutes apart (wrapping midnight)."""
    diff = abs(_minutes(a) - _minutes(b))
    diff = min(diff, 24 * 60 - diff)
    return diff > SIGNIFICANT_DIFFERENCE_MINUTES


def should_recalculate_timing(last_calculation_date: Optional[str], today: Optional[date] = None) -> bool:
    """Weekly recalculation: on Sundays, once per day."""
    today = today or date.today()
    if today.weekday() != 6:
        return False
    return last_calculation_date != today.isoformat()


class EngagementStore:
    """One row per local calendar day: first open and first engagement."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS engagements (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL UNIQUE,
                    opened_at TIMESTAMP NOT NULL,
                    engaged_at TIMESTAMP
                )
            """)

    def record_app_open(self, today: Optional[date] = None) -> bool:
        """Keep the first open of the day. Returns True if a row was created."""
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO engagements (date, opened_at) VALUES (?, ?)",
                (today_string(today), to_iso(utcnow())),
            )
            return cursor.rowcount > 0

    def record_engagement(self, today: Optional[date] = None) -> None:
        """Stamp the first favorite/reflection of the day."""
        now = to_iso(utcnow())
        day = today_string(today)
        with wal_connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO engagements (date, opened_at, engaged_at) VALUES (?, ?, ?)",
                (day, now, now),
            )
            conn.execute(
                "UPDATE engagements SET engaged_at = ? WHERE date = ? AND engaged_at IS NULL",
                (now, day),
            )

    def all(self) -> list[Engagement]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM engagements ORDER BY date").fetchall()
        return [Engagement.from_row(r) for r in rows]

    def recent(self, days: int, today: Optional[date] = None) -> list[Engagement]:
        cutoff = ((today or date.today()) - timedelta(days=days)).isoformat()
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM engagements WHERE date >= ? ORDER BY date", (cutoff,)
            ).fetchall()
        return [Engagement.from_row(r) for r in rows]

    def calculate_optimal_time(self, today: Optional[date] = None) -> Optional[str]:
        """Suggest a notification time from when the user actually engages.

        Median local minute-of-day of first engagement over the last two weeks,
        rounded to the nearest quarter hour. None until enough data exists.
        """
        engaged = [e.engaged_at for e in self.recent(TIMING_WINDOW_DAYS, today) if e.engaged_at]
        if len(engaged) < MIN_ENGAGED_DAYS:
            return None
        minutes = [self._local_minute(ts) for ts in engaged]
        median = statistics.median(minutes)
        rounded = int(round(median / TIMING_ROUND_MINUTES) * TIMING_ROUND_MINUTES) % (24 * 60)
        return f"{rounded // 60:02d}:{rounded % 60:02d}"

    @staticmethod
    def _local_minute(ts: datetime) -> int:
        local = ts.astimezone()
        return local.hour * 60 + local.minute
