"""Aggregator runtime configuration.

All settings are read from the environment (and an optional ``.env`` file)
exactly once, when :func:`load_settings` is first called.  Changing a value
requires a process restart.

Usage::

    from app.config import get_settings

    settings = get_settings()
    timeout = settings.fetch_timeout_seconds
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_CRON = "0 */6 * * *"  # every 6 hours, on the hour
DEFAULT_FETCH_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_ITEMS_PER_SOURCE = 50
DEFAULT_API_MAX_RETRIES = 2


def _truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using %s", name, raw, default)
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r, using %s", name, raw, default)
        return default


def _get_cron_env(name: str, default: str) -> str:
    """Return the cron expression from *name*, or *default* if it does not parse."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        CronTrigger.from_crontab(raw)
    except ValueError as exc:
        logger.warning("Invalid cron expression %s=%r (%s), using %r", name, raw, exc, default)
        return default
    return raw


@dataclass(frozen=True)
class AggregatorSettings:
    """Immutable snapshot of the aggregator configuration."""

    database_url: str | None = None
    enable_scheduler: bool = False
    cron: str = DEFAULT_CRON
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_items_per_source: int = DEFAULT_MAX_ITEMS_PER_SOURCE
    api_max_retries: int = DEFAULT_API_MAX_RETRIES
    run_on_startup: bool = False


def load_settings() -> AggregatorSettings:
    """Build settings from the current environment."""
    return AggregatorSettings(
        database_url=os.getenv("DATABASE_URL") or None,
        enable_scheduler=_truthy(os.getenv("AGGREGATOR_ENABLE_SCHEDULER", "false")),
        cron=_get_cron_env("AGGREGATOR_CRON", DEFAULT_CRON),
        fetch_timeout_seconds=max(
            1.0,
            _get_float_env(
                "AGGREGATOR_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
        ),
        max_items_per_source=max(
            1,
            _get_int_env("AGGREGATOR_MAX_ITEMS_PER_SOURCE", DEFAULT_MAX_ITEMS_PER_SOURCE),
        ),
        api_max_retries=max(
            1, _get_int_env("AGGREGATOR_API_MAX_RETRIES", DEFAULT_API_MAX_RETRIES)
        ),
        run_on_startup=_truthy(os.getenv("AGGREGATOR_RUN_ON_STARTUP", "false")),
    )


@lru_cache(maxsize=1)
def get_settings() -> AggregatorSettings:
    """Process-wide settings, loaded on first use."""
    return load_settings()
