from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import Settings, get_settings


def test_defaults():
    settings = Settings()

    assert settings.financial_month_start_day == 1
    assert settings.merchant_match_threshold == pytest.approx(0.7)
    assert settings.subscription_lookback_months == 12
    assert not settings.uses_financial_month


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("POCKETLEDGER_FINANCIAL_MONTH_START_DAY", "25")
    monkeypatch.setenv("POCKETLEDGER_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.financial_month_start_day == 25
    assert settings.uses_financial_month
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"financial_month_start_day": 0},
        {"financial_month_start_day": 32},
        {"merchant_match_threshold": 1.5},
        {"subscription_min_transactions": 1},
        {"log_level": "verbose"},
    ],
)
def test_invalid_values_fail_fast(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
