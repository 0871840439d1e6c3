"""
Unit Tests for Aggregator Configuration

Usage:
    cd backend && pytest tests/test_config.py -v
"""

import os
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config import DEFAULT_CRON, load_settings

ENV_VARS = [
    "AGGREGATOR_ENABLE_SCHEDULER",
    "AGGREGATOR_CRON",
    "AGGREGATOR_FETCH_TIMEOUT_SECONDS",
    "AGGREGATOR_MAX_ITEMS_PER_SOURCE",
    "AGGREGATOR_API_MAX_RETRIES",
    "AGGREGATOR_RUN_ON_STARTUP",
    "DATABASE_URL",
]


def _clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        _clear_env(monkeypatch)
        settings = load_settings()
        assert settings.enable_scheduler is False
        assert settings.cron == DEFAULT_CRON
        assert settings.fetch_timeout_seconds == 20.0
        assert settings.max_items_per_source == 50
        assert settings.api_max_retries == 2
        assert settings.run_on_startup is False
        assert settings.database_url is None

    def test_overrides(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("AGGREGATOR_ENABLE_SCHEDULER", "true")
        monkeypatch.setenv("AGGREGATOR_CRON", "*/30 * * * *")
        monkeypatch.setenv("AGGREGATOR_FETCH_TIMEOUT_SECONDS", "7.5")
        monkeypatch.setenv("AGGREGATOR_MAX_ITEMS_PER_SOURCE", "10")
        monkeypatch.setenv("AGGREGATOR_RUN_ON_STARTUP", "yes")
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/db")

        settings = load_settings()
        assert settings.enable_scheduler is True
        assert settings.cron == "*/30 * * * *"
        assert settings.fetch_timeout_seconds == 7.5
        assert settings.max_items_per_source == 10
        assert settings.run_on_startup is True
        assert settings.database_url == "postgresql+asyncpg://u:p@localhost/db"

    def test_invalid_cron_falls_back(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("AGGREGATOR_CRON", "every six hours")
        assert load_settings().cron == DEFAULT_CRON

    def test_invalid_numbers_fall_back(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("AGGREGATOR_FETCH_TIMEOUT_SECONDS", "soon")
        monkeypatch.setenv("AGGREGATOR_MAX_ITEMS_PER_SOURCE", "many")
        settings = load_settings()
        assert settings.fetch_timeout_seconds == 20.0
        assert settings.max_items_per_source == 50

    def test_lower_bounds(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("AGGREGATOR_FETCH_TIMEOUT_SECONDS", "0")
        monkeypatch.setenv("AGGREGATOR_MAX_ITEMS_PER_SOURCE", "-5")
        monkeypatch.setenv("AGGREGATOR_API_MAX_RETRIES", "0")
        settings = load_settings()
        assert settings.fetch_timeout_seconds == 1.0
        assert settings.max_items_per_source == 1
        assert settings.api_max_retries == 1

    def test_database_url_read(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/app")
        assert load_settings().database_url == "postgresql+asyncpg://u:p@db:5432/app"


class TestDatabaseModule:
    """The engine is configured from the shared settings object."""

    def test_engine_url_comes_from_settings(self):
        from app import database
        from app.config import get_settings

        assert database.DATABASE_URL == get_settings().database_url
        assert (database.engine is None) == (get_settings().database_url is None)
