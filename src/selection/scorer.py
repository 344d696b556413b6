"""Pick the next quote from accumulated behavioral signals."""

import random
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from catalog import Quote, QuoteCatalog
from db import utcnow
from shared_types import SIGNAL_WEIGHTS, SignalKind
from storage import LocalStore

logger = structlog.get_logger()

# Hard exclusion window for recently shown quotes
RECENT_DAYS = 30
# Wider window that only costs a soft penalty
PENALTY_DAYS = 60
TOPIC_BONUS = 0.5
AUTHOR_BONUS = 0.3
RECENT_PENALTY = 0.2


def signal_weight(kind: str) -> int:
    """Weight for a stored signal kind; unknown kinds count as zero."""
    try:
        return SIGNAL_WEIGHTS[SignalKind(kind)]
    except ValueError:
        return 0


class ContentScorer:
    """Rank not-recently-shown quotes and return the best one.

    score = random base in [0, 1)
            + TOPIC_BONUS per high-affinity theme
            + AUTHOR_BONUS if the author was ever favorited
            - RECENT_PENALTY if shown within PENALTY_DAYS

    The random base keeps cold-start picks varied; bonuses take over as
    signals accrue.
    """

    def __init__(
        self,
        catalog: QuoteCatalog,
        local: LocalStore,
        rng: Optional[Callable[[], float]] = None,
        now: Optional[Callable[[], datetime]] = None,
        recent_days: int = RECENT_DAYS,
        penalty_days: int = PENALTY_DAYS,
        topic_bonus: float = TOPIC_BONUS,
        author_bonus: float = AUTHOR_BONUS,
        recent_penalty: float = RECENT_PENALTY,
    ):
        self.catalog = catalog
        self.local = local
        self._random = random.Random()
        self.rng = rng or self._random.random
        self.now = now or utcnow
        self.recent_days = recent_days
        self.penalty_days = penalty_days
        self.topic_bonus = topic_bonus
        self.author_bonus = author_bonus
        self.recent_penalty = recent_penalty

    def affinity_scores(self) -> dict[str, int]:
        """Sum of signal weights per theme, using themes snapshotted at signal time."""
        scores: dict[str, int] = defaultdict(int)
        for signal in self.local.signals.all():
            weight = signal_weight(signal.signal)
            for theme in signal.themes:
                scores[theme] += weight
        return dict(scores)

    def high_affinity_topics(self) -> set[str]:
        return {theme for theme, score in self.affinity_scores().items() if score > 0}

    def favorited_authors(self) -> set[str]:
        authors = set()
        for quote_id in self.local.favorites.quote_ids():
            quote = self.catalog.get(quote_id)
            if quote:
                authors.add(quote.author)
        return authors

    def score(
        self,
        quote: Quote,
        topics: set[str],
        authors: set[str],
        penalized: set[str],
    ) -> float:
        value = self.rng()
        value += self.topic_bonus * sum(1 for theme in quote.themes if theme in topics)
        if quote.author in authors:
            value += self.author_bonus
        if quote.id in penalized:
            value -= self.recent_penalty
        return value

    def select_next(self) -> Quote:
        """Never fails while the catalog is non-empty; an empty one raises ValueError."""
        now = self.now()
        quotes = self.catalog.all()
        if not quotes:
            raise ValueError("Cannot select from an empty catalog")
        recent = self.local.history.shown_since(now - timedelta(days=self.recent_days))
        candidates = [q for q in quotes if q.id not in recent]
        if not candidates:
            logger.debug("selection.all_recent_fallback", catalog_size=len(quotes))
            return quotes[int(self.rng() * len(quotes)) % len(quotes)]

        topics = self.high_affinity_topics()
        authors = self.favorited_authors()
        penalized = self.local.history.shown_since(now - timedelta(days=self.penalty_days))

        best: Optional[Quote] = None
        best_score = float("-inf")
        for quote in candidates:
            value = self.score(quote, topics, authors, penalized)
            # strict > keeps the first-seen candidate on ties
            if value > best_score:
                best, best_score = quote, value

        logger.debug(
            "selection.picked",
            quote_id=best.id,
            score=round(best_score, 3),
            candidates=len(candidates),
            topics=sorted(topics),
        )
        return best
