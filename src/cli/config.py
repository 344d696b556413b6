"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import QuotidianConfig

DEFAULT_CONFIG = QuotidianConfig().to_dict()


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "config.yaml",
        Path.home() / ".quotidian" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> QuotidianConfig:
    """Load configuration as Pydantic model with validation.

    Raises:
        ValueError: On malformed YAML or failed validation.
    """
    base_config = {}

    path = config_path or find_config()
    if path and Path(path).exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return QuotidianConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict."""
    return load_config_model(config_path).to_dict()
