"""Guided multi-day journeys: a themed run of quotes, one per day."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()

BUNDLED_JOURNEYS = Path(__file__).parent / "data" / "journeys.json"


@dataclass(frozen=True)
class JourneyDefinition:
    id: str
    title: str
    description: str
    duration: int  # days
    emoji: str = ""
    themes: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> "JourneyDefinition":
        duration = int(data["duration"])
        if duration < 1:
            raise ValueError(f"Journey {data['id']} must last at least one day")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            duration=duration,
            emoji=data.get("emoji", ""),
            themes=tuple(data.get("themes") or ()),
        )


def load_journeys(path: Optional[str | Path] = None) -> dict[str, JourneyDefinition]:
    """Journey definitions keyed by id, in file order."""
    journeys_path = Path(path).expanduser() if path else BUNDLED_JOURNEYS
    with open(journeys_path, encoding="utf-8") as f:
        raw = json.load(f)
    journeys = {j.id: j for j in (JourneyDefinition.from_dict(item) for item in raw)}
    logger.debug("journeys.loaded", path=str(journeys_path), count=len(journeys))
    return journeys
