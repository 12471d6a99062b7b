"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from table_orders.core.config import EnvironmentMode, Settings, setup_logging
from table_orders.services import orders


def test_defaults(monkeypatch):
    for name in ("ENV_MODE", "API_PORT", "DATABASE_URL", "DEFAULT_ORDER_LIMIT", "MAX_ORDER_LIMIT", "MAX_BODY_BYTES"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.env_mode == EnvironmentMode.DEVELOPMENT
    assert settings.api_port == 3000
    assert settings.default_order_limit == 200
    assert settings.max_order_limit == 1000
    assert settings.max_body_bytes == 1024 * 1024
    assert not settings.is_sqlite


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "PRODUCTION")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///orders.db")
    monkeypatch.setenv("MAX_ORDER_LIMIT", "500")

    settings = Settings(_env_file=None)

    assert settings.is_production
    assert settings.is_sqlite
    assert settings.max_order_limit == 500


def test_rejects_unknown_env_mode(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "moon")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_cors_origins_list():
    settings = Settings(cors_origins="https://a.example, https://b.example ,", _env_file=None)

    assert settings.cors_origins_list == ["https://a.example", "https://b.example"]


def test_module_loggers_sit_under_the_package_logger():
    logger = setup_logging(Settings(_env_file=None))

    assert logger.name == "table_orders"
    assert orders.logger.name.startswith(f"{logger.name}.")
