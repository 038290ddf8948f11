"""Tests for settings"""

import pytest
from pydantic import ValidationError

from bbucks.config import LedgerSettings, LoggingSettings, get_settings, validate_all_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in (
        "BBUCKS_LEDGER_PATH",
        "BBUCKS_AUDIT_LOG_PATH",
        "BBUCKS_TREASURY_USER",
        "BBUCKS_DAYS_TO_MATURE",
        "BBUCKS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:

    def test_defaults(self):
        settings = LedgerSettings()

        assert settings.ledger_path is None
        assert settings.treasury_user == "universe"
        assert settings.days_to_mature == 1

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BBUCKS_TREASURY_USER", "bank")
        monkeypatch.setenv("BBUCKS_DAYS_TO_MATURE", "3")

        settings = LedgerSettings()

        assert settings.treasury_user == "bank"
        assert settings.days_to_mature == 3

    def test_treasury_cannot_contain_whitespace(self):
        with pytest.raises(ValidationError):
            LedgerSettings(treasury_user="the bank")

    def test_days_to_mature_bounds(self):
        with pytest.raises(ValidationError):
            LedgerSettings(days_to_mature=-1)


class TestLoggingSettings:

    def test_invalid_level(self, monkeypatch):
        monkeypatch.setenv("BBUCKS_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            LoggingSettings()


class TestValidateAllSettings:

    def test_unconfigured_storage(self):
        results = validate_all_settings()

        assert results["ledger"] is True
        assert results["ledger_storage"] is False
        assert results["logging"] is True

    def test_reports_invalid_settings(self, monkeypatch):
        monkeypatch.setenv("BBUCKS_TREASURY_USER", "two words")

        results = validate_all_settings()

        assert results["ledger"] is False
        assert "ledger_error" in results
