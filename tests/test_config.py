"""Tests for configuration loading and validation."""

import dataclasses

import pytest

from medibook.config import (
    AppConfig,
    GuardrailConfig,
    StorageConfig,
    _safe_int,
    _validate_config,
)


def _with_guardrails(**overrides) -> AppConfig:
    return dataclasses.replace(AppConfig(), guardrails=dataclasses.replace(GuardrailConfig(), **overrides))


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        _validate_config(AppConfig())  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.guardrails.max_slot_retries == 3
        assert config.guardrails.max_confirmation_attempts == 2
        assert config.guardrails.booking_horizon_months == 3

    def test_zero_retries_rejected(self):
        with pytest.raises(ValueError, match="MAX_SLOT_RETRIES"):
            _validate_config(_with_guardrails(max_slot_retries=0))

    def test_zero_confirmation_attempts_rejected(self):
        with pytest.raises(ValueError, match="MAX_CONFIRMATION_ATTEMPTS"):
            _validate_config(_with_guardrails(max_confirmation_attempts=0))

    def test_tolerance_out_of_range(self):
        with pytest.raises(ValueError, match="TIME_MATCH_TOLERANCE_MINUTES"):
            _validate_config(_with_guardrails(time_match_tolerance_minutes=500))

    def test_zero_horizon_rejected(self):
        with pytest.raises(ValueError, match="BOOKING_HORIZON_MONTHS"):
            _validate_config(_with_guardrails(booking_horizon_months=0))

    def test_empty_database_url_rejected(self):
        config = dataclasses.replace(AppConfig(), storage=dataclasses.replace(StorageConfig(), database_url=""))
        with pytest.raises(ValueError, match="DATABASE_URL"):
            _validate_config(config)

    def test_config_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            AppConfig().log_level = "DEBUG"  # type: ignore[misc]


class TestSafeInt:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("MEDIBOOK_TEST_INT", "7")
        assert _safe_int("MEDIBOOK_TEST_INT", "1") == 7

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("MEDIBOOK_TEST_INT", raising=False)
        assert _safe_int("MEDIBOOK_TEST_INT", "4") == 4

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("MEDIBOOK_TEST_INT", "three")
        with pytest.raises(ValueError, match="MEDIBOOK_TEST_INT"):
            _safe_int("MEDIBOOK_TEST_INT", "1")
