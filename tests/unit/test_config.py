"""Unit tests for configuration."""

from openhqm_rm.config.settings import JQSettings, Settings, ValidationSettings


def test_default_settings():
    """Test default settings values."""
    settings = Settings()

    assert settings.jq.max_execution_time_ms == 5000
    assert settings.storage.type == "file"
    assert settings.simulation.history_size == 10
    assert settings.validation.max_conditions == 20
    assert settings.validation.max_priority == 1000


def test_jq_settings():
    jq_settings = JQSettings(max_execution_time_ms=250, cache_size=0)

    assert jq_settings.max_execution_time_ms == 250
    assert jq_settings.cache_size == 0


def test_validation_settings():
    limits = ValidationSettings(max_conditions=3, max_rule_name_length=10)

    assert limits.max_conditions == 3
    assert limits.max_rule_name_length == 10


def test_settings_from_env(monkeypatch):
    """Test settings loaded from environment variables."""
    monkeypatch.setenv("OPENHQM_RM_JQ__MAX_EXECUTION_TIME_MS", "1000")
    monkeypatch.setenv("OPENHQM_RM_STORAGE__TYPE", "memory")
    monkeypatch.setenv("OPENHQM_RM_SIMULATION__HISTORY_SIZE", "3")

    settings = Settings()

    assert settings.jq.max_execution_time_ms == 1000
    assert settings.storage.type == "memory"
    assert settings.simulation.history_size == 3
