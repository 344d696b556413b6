"""Structured logging configuration using structlog."""

import logging
import re
import sys
from pathlib import Path
from typing import Optional

import structlog

# Patterns to redact from log output
_REDACT_PATTERNS = [
    # Supabase anon keys and access tokens are JWTs
    (re.compile(r"eyJ[a-zA-Z0-9_-]{8,}\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"), "REDACTED.jwt"),
    (re.compile(r"(Bearer\s+)[a-zA-Z0-9_.-]{20,}"), r"\1REDACTED"),
    (re.compile(r"(api[_-]?key['\"]?\s*[:=]\s*['\"]?)[a-zA-Z0-9_.-]{10,}", re.IGNORECASE), r"\1REDACTED"),
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "REDACTED@email"),
]


def _redact_sensitive(_, __, event_dict: dict) -> dict:
    """Structlog processor to scrub tokens, keys and email addresses."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            for pattern, replacement in _REDACT_PATTERNS:
                value = pattern.sub(replacement, value)
            event_dict[key] = value
    return event_dict


def setup_logging(
    json_mode: bool = False,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    file_level: str = "DEBUG",
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        json_mode: JSON renderer (machine consumption) instead of the console renderer.
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file that always receives JSON lines.
        file_level: Level for the file handler.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer()
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console_handler)
    root.setLevel(log_level)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(file_handler)
        root.setLevel(min(log_level, file_handler.level))
