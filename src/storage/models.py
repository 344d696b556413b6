"""Row types for the local on-device store."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from db import parse_ts, utcnow


@dataclass
class UserPreferences:
    name: str
    notification_time: str  # HH:MM
    onboarded_at: datetime = field(default_factory=utcnow)
    algorithm_enabled_at: Optional[datetime] = None
    personalization_celebrated: bool = False
    last_timing_calculation_date: Optional[str] = None  # YYYY-MM-DD
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "UserPreferences":
        return cls(
            id=row["id"],
            name=row["name"],
            notification_time=row["notification_time"],
            onboarded_at=parse_ts(row["onboarded_at"]),
            algorithm_enabled_at=parse_ts(row["algorithm_enabled_at"]),
            personalization_celebrated=bool(row["personalization_celebrated"]),
            last_timing_calculation_date=row["last_timing_calculation_date"],
        )


@dataclass
class JournalEntry:
    quote_id: str
    content: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "JournalEntry":
        return cls(
            id=row["id"],
            quote_id=row["quote_id"],
            content=row["content"],
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
        )


@dataclass
class FavoriteMark:
    quote_id: str
    saved_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "FavoriteMark":
        return cls(id=row["id"], quote_id=row["quote_id"], saved_at=parse_ts(row["saved_at"]))


@dataclass
class ViewRecord:
    quote_id: str
    shown_at: datetime = field(default_factory=utcnow)
    fresh_pull: bool = False  # user asked for "another quote"
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "ViewRecord":
        return cls(
            id=row["id"],
            quote_id=row["quote_id"],
            shown_at=parse_ts(row["shown_at"]),
            fresh_pull=bool(row["fresh_pull"]),
        )


@dataclass(frozen=True)
class Signal:
    quote_id: str
    signal: str
    timestamp: datetime
    themes: tuple[str, ...] = ()
    id: Optional[int] = None


@dataclass
class Engagement:
    date: str  # YYYY-MM-DD, local calendar day
    opened_at: datetime
    engaged_at: Optional[datetime] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "Engagement":
        return cls(
            id=row["id"],
            date=row["date"],
            opened_at=parse_ts(row["opened_at"]),
            engaged_at=parse_ts(row["engaged_at"]),
        )


@dataclass
class UserJourney:
    journey_id: str
    started_at: datetime = field(default_factory=utcnow)
    day: int = 1
    quotes_shown: list[str] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.completed_at is None

    @classmethod
    def from_row(cls, row) -> "UserJourney":
        return cls(
            id=row["id"],
            journey_id=row["journey_id"],
            started_at=parse_ts(row["started_at"]),
            day=row["day"],
            quotes_shown=json.loads(row["quotes_shown"] or "[]"),
            completed_at=parse_ts(row["completed_at"]),
        )


def today_string(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()
