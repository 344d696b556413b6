"""Pydantic configuration models for quotidian."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _expand_env(value: Optional[str]) -> Optional[str]:
    """Expand a ``${VAR}`` placeholder; empty expansions become None."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1]) or None
    return value


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.quotidian/quotidian.db")
    catalog_path: Optional[Path] = None  # None = bundled quotes
    journeys_path: Optional[Path] = None  # None = bundled journeys
    log_file: Optional[Path] = Path("~/.quotidian/quotidian.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        if self.catalog_path:
            self.catalog_path = self.catalog_path.expanduser()
        if self.journeys_path:
            self.journeys_path = self.journeys_path.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class RemoteConfig(BaseModel):
    """Remote (Supabase) backend. Leave url/anon_key unset for local-only mode."""

    url: Optional[str] = None
    anon_key: Optional[str] = None
    access_token: Optional[str] = None
    redirect_to: Optional[str] = None
    timeout_seconds: float = 15.0

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        v = _expand_env(v)
        if v and not v.startswith(("http://", "https://")):
            raise ValueError(f"Remote url must be http(s), got {v}")
        return v

    @field_validator("anon_key", "access_token")
    @classmethod
    def expand_secret(cls, v: Optional[str]) -> Optional[str]:
        return _expand_env(v)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)


class SyncConfig(BaseModel):
    """Sync engine timing."""

    attempt_timeout_seconds: float = 30.0
    poll_interval_seconds: float = 30.0
    conflict_log_size: int = 100

    @field_validator("attempt_timeout_seconds", "poll_interval_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v

    @field_validator("conflict_log_size")
    @classmethod
    def validate_log_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"conflict_log_size must be >= 1, got {v}")
        return v


class RetryConfig(BaseModel):
    """Backoff for queued syncs."""

    max_attempts: int = 3
    min_wait: float = 0.5
    max_wait: float = 8.0


class ScoringConfig(BaseModel):
    """Next-quote scoring weights."""

    recent_days: int = 30
    penalty_days: int = 60
    topic_bonus: float = 0.5
    author_bonus: float = 0.3
    recent_penalty: float = 0.2

    @model_validator(mode="after")
    def validate_windows(self):
        """Penalty window must be at least as wide as the exclusion window."""
        if self.penalty_days < self.recent_days:
            raise ValueError(
                f"penalty_days ({self.penalty_days}) must be >= recent_days ({self.recent_days})"
            )
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file_level: str = "DEBUG"
    json_mode: bool = False

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class QuotidianConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "QuotidianConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
