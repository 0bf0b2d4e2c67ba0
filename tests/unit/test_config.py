"""Unit tests for TenderCalc configuration management.

Tests AppConfig loading from environment variables and defaults.
"""

from __future__ import annotations

import pytest

import tendercalc.config as config_module
from tendercalc.config import AppConfig, AssessmentConfig, MatchingConfig, NormalizerConfig

OPTIONAL_VARS = [
    "LOG_LEVEL",
    "DEFAULT_CURRENCY",
    "UNKNOWN_CONTRACTOR_NAME",
    "MIN_SUGGESTION_CONFIDENCE",
    "CURRENCY_CODES",
    "DB_POOL_SIZE",
    "DB_ECHO",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in OPTIONAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
    return monkeypatch


class TestAppConfig:
    """Test AppConfig creation and validation."""

    def test_from_env_requires_database_url(self, monkeypatch):
        """Test DATABASE_URL is required."""
        monkeypatch.delenv("DATABASE_URL", raising=False)

        with pytest.raises(KeyError) as exc_info:
            AppConfig.from_env()

        assert "DATABASE_URL" in str(exc_info.value)

    def test_from_env_with_minimal_config(self, clean_env):
        """Test loading with only required env vars."""
        config = AppConfig.from_env()

        assert config.db.url == "sqlite+aiosqlite:///./test.db"
        assert config.log_level == "INFO"
        assert config.matching == MatchingConfig()
        assert config.assessment == AssessmentConfig()
        assert config.normalizer == NormalizerConfig()

    def test_from_env_with_overrides(self, clean_env):
        clean_env.setenv("DEFAULT_CURRENCY", "NZD")
        clean_env.setenv("UNKNOWN_CONTRACTOR_NAME", "(unnamed)")
        clean_env.setenv("MIN_SUGGESTION_CONFIDENCE", "0.35")
        clean_env.setenv("CURRENCY_CODES", "nzd, aud,")
        clean_env.setenv("DB_POOL_SIZE", "4")
        clean_env.setenv("DB_ECHO", "true")

        config = AppConfig.from_env()

        assert config.assessment.currency == "NZD"
        assert config.assessment.unknown_contractor_name == "(unnamed)"
        assert config.matching.min_suggestion_confidence == 0.35
        assert config.normalizer.currency_codes == ("NZD", "AUD")
        assert config.db.pool_size == 4
        assert config.db.echo is True

    def test_get_config_is_singleton(self, clean_env):
        clean_env.setattr(config_module, "_config", None)

        first = config_module.get_config()
        second = config_module.get_config()

        assert first is second


def test_assessment_defaults():
    config = AssessmentConfig()

    assert config.other_section_id == "__OTHER__"
    assert config.other_section_name == "Other / Unclassified"
    assert config.unknown_contractor_name == "Unknown"
