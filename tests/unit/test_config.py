"""Unit tests for configuration loading."""

from decimal import Decimal

import pytest

from rentledger.services.config import Settings, get_settings, reset_settings


class TestSettings:
    """Tests for Settings and the lazy loader."""

    def test_defaults(self, monkeypatch):
        for name in ("BASE_CURRENCY", "LOCALE", "AMOUNT_TOLERANCE", "DEFAULT_RATE_SOURCE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.base_currency == "USD"
        assert settings.locale == "es_AR"
        assert settings.amount_tolerance == Decimal("0.01")
        assert settings.default_rate_source == "oficial"
        assert settings.default_rate_direction == "sell"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("AMOUNT_TOLERANCE", "0.05")
        monkeypatch.setenv("DEFAULT_RATE_SOURCE", "blue")

        settings = get_settings()

        assert settings.amount_tolerance == Decimal("0.05")
        assert settings.default_rate_source == "blue"

    def test_settings_are_cached_until_reset(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("LOCALE", "en_US")

        assert get_settings() is first

        reset_settings()
        assert get_settings().locale == "en_US"

    def test_invalid_base_currency(self, monkeypatch):
        monkeypatch.setenv("BASE_CURRENCY", "DOLLAR")

        with pytest.raises(ValueError, match="BASE_CURRENCY must be a 3-letter ISO code"):
            get_settings()

    def test_database_url_from_environment(self):
        # conftest points every test run at an in-memory database
        assert get_settings().database_url == "sqlite:///:memory:"
