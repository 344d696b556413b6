"""Read-only quote catalog loaded once from a static JSON dataset."""

import json
import random
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()

BUNDLED_CATALOG = Path(__file__).parent / "data" / "quotes.json"


@dataclass(frozen=True)
class Quote:
    id: str
    text: str
    author: str
    source: Optional[str] = None
    context: Optional[str] = None
    themes: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> "Quote":
        return cls(
            id=str(data["id"]),
            text=data["text"],
            author=data["author"],
            source=data.get("source"),
            context=data.get("context"),
            themes=tuple(data.get("themes") or ()),
        )


class QuoteCatalog:
    """In-memory catalog keyed by quote id. Order is the dataset order."""

    def __init__(self, quotes: list[Quote]):
        if not quotes:
            raise ValueError("Quote catalog is empty")
        self._quotes = list(quotes)
        self._by_id = {q.id: q for q in self._quotes}

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "QuoteCatalog":
        """Load catalog from JSON file (defaults to the bundled dataset)."""
        catalog_path = Path(path).expanduser() if path else BUNDLED_CATALOG
        with open(catalog_path, encoding="utf-8") as f:
            raw = json.load(f)
        quotes = [Quote.from_dict(item) for item in raw]
        logger.debug("catalog.loaded", path=str(catalog_path), count=len(quotes))
        return cls(quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def __contains__(self, quote_id: str) -> bool:
        return quote_id in self._by_id

    def all(self) -> list[Quote]:
        return list(self._quotes)

    def get(self, quote_id: str) -> Optional[Quote]:
        return self._by_id.get(quote_id)

    def themes_for(self, quote_id: str) -> list[str]:
        """Topic labels for a quote, empty when the id is unknown."""
        quote = self._by_id.get(quote_id)
        return list(quote.themes) if quote else []

    def todays_quote(self, today: Optional[date] = None) -> Quote:
        """Deterministic pick for a calendar day (sum of date-string char codes)."""
        today = today or date.today()
        # month is zero-based to keep picks stable with existing installs
        date_string = f"{today.year}-{today.month - 1}-{today.day}"
        index = sum(ord(c) for c in date_string) % len(self._quotes)
        return self._quotes[index]

    def random_quote(self, exclude_id: Optional[str] = None, rng: Optional[random.Random] = None) -> Quote:
        """Uniform random quote, optionally excluding one id."""
        rng = rng or random.Random()
        available = [q for q in self._quotes if q.id != exclude_id] if exclude_id else self._quotes
        if not available:
            return rng.choice(self._quotes)
        return rng.choice(available)
