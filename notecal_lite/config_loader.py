"""notecal_lite.config_loader

Lightweight config loader for notecal_lite.

- Reads YAML (PyYAML); JSON files parse too since JSON is a YAML subset.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override (or the NOTECAL_CONFIG environment variable).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from notecal_lite.calendar.lite_rrule_expander import DEFAULT_EXPANSION_DAYS, DEFAULT_MAX_OCCURRENCES

logger = logging.getLogger(__name__)

CONFIG_ENV = "NOTECAL_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "notecal" / "config.yaml"
DEFAULT_STORE_PATH = str(Path.home() / ".local" / "share" / "notecal" / "schedule.json")


@dataclass
class Config:
    """Typed configuration for notecal_lite.

    Fields:
        store_path: JSON file backing the schedule store
        expansion_days: horizon for recurrence expansion (at most 60)
        max_occurrences: per-series occurrence ceiling (at most 500)
        default_duration_minutes: duration of events without DTEND
        prune_interval_seconds: how often `watch` prunes (5..3600)
        fetch_timeout_seconds: HTTP timeout for URL imports
        log_level: logging level name
    """

    store_path: str = DEFAULT_STORE_PATH
    expansion_days: int = DEFAULT_EXPANSION_DAYS
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES
    default_duration_minutes: int = 60
    prune_interval_seconds: int = 60
    fetch_timeout_seconds: int = 30
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int; values that cannot be coerced or
        are not positive fall back to the default with a warning.
        """
        if data is None:
            data = {}
        defaults = cls()

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < 1:
                logger.warning("Config %s=%d must be positive; using default %d", key, value, default)
                return default
            return value

        def _capped_int(key: str, default: int, ceiling: int) -> int:
            value = _coerce_int(key, default)
            if value > ceiling:
                logger.warning("Config %s=%d above maximum; coercing to %d", key, value, ceiling)
                return ceiling
            return value

        prune = _coerce_int("prune_interval_seconds", defaults.prune_interval_seconds)
        if prune < 5:
            logger.warning("prune_interval_seconds %d below minimum; coercing to 5", prune)
            prune = 5
        elif prune > 3600:
            logger.warning("prune_interval_seconds %d above maximum; coercing to 3600", prune)
            prune = 3600

        store_path = data.get("store_path") or defaults.store_path
        log_level = data.get("log_level") or defaults.log_level

        return cls(
            store_path=str(store_path),
            expansion_days=_capped_int(
                "expansion_days", defaults.expansion_days, DEFAULT_EXPANSION_DAYS
            ),
            max_occurrences=_capped_int(
                "max_occurrences", defaults.max_occurrences, DEFAULT_MAX_OCCURRENCES
            ),
            default_duration_minutes=_coerce_int(
                "default_duration_minutes", defaults.default_duration_minutes
            ),
            prune_interval_seconds=prune,
            fetch_timeout_seconds=_coerce_int(
                "fetch_timeout_seconds", defaults.fetch_timeout_seconds
            ),
            log_level=str(log_level).upper(),
        )


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file and return a Config instance.

    Args:
        path: Optional path to the config file. Falls back to $NOTECAL_CONFIG,
              then ~/.config/notecal/config.yaml.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns Config() with defaults.
    - If file exists but top-level is not a mapping: raises ValueError.
    """
    p = Path(path or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH).expanduser()
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.debug("Config file %s not found; using defaults", p)
        return Config()

    loaded = yaml.safe_load(p.read_text(encoding="utf-8"))
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, loaded)
        raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
    cfg = Config.from_dict(loaded)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
