"""Tests for application settings."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from household_ledger.config import Environment, LogLevel, Settings, get_settings
from household_ledger.domain.value_objects import Currency


class TestSettings:
    def test_defaults(self):
        settings = Settings(environment=Environment.TESTING)

        assert settings.default_currency == Currency.GBP
        assert settings.distribution_limit_value == Decimal("3000")
        assert settings.distribution_limit_rate == Decimal("0.05")
        assert (settings.tax_year_start_month, settings.tax_year_start_day) == (4, 6)
        assert settings.log_level == LogLevel.INFO
        assert settings.log_format == "console"
        assert not settings.is_production

    def test_environment_variables_override_defaults(self, monkeypatch):
        monkeypatch.setenv("HHL_DISTRIBUTION_LIMIT_VALUE", "5000")
        monkeypatch.setenv("HHL_DEFAULT_CURRENCY", "USD")

        settings = Settings()

        assert settings.distribution_limit_value == Decimal("5000")
        assert settings.default_currency == Currency.USD

    @pytest.mark.parametrize("rate", ["0", "1", "1.5", "-0.05"])
    def test_distribution_rate_must_be_a_fraction(self, rate):
        with pytest.raises(ValidationError):
            Settings(distribution_limit_rate=Decimal(rate))

    def test_distribution_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(distribution_limit_value=Decimal("0"))

    def test_production_helpers(self):
        settings = Settings(environment=Environment.PRODUCTION)

        assert settings.is_production


class TestGetSettings:
    def test_settings_are_cached(self):
        get_settings.cache_clear()

        assert get_settings() is get_settings()

        get_settings.cache_clear()
