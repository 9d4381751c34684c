"""
Tests for environment-based settings.
"""

import logging

import pytest
from pydantic import ValidationError

from blockpoly.settings import EngineSettings, configure_logging, get_settings


def test_defaults_match_game_config():
    config = EngineSettings().to_game_config()
    assert config.starting_balance == 1500
    assert config.genesis_salary == 200
    assert config.max_players == 8
    assert not config.monopoly_doubles_base_rent


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BLOCKPOLY_STARTING_BALANCE", "2000")
    monkeypatch.setenv("BLOCKPOLY_MONOPOLY_DOUBLES_BASE_RENT", "true")
    config = EngineSettings().to_game_config()
    assert config.starting_balance == 2000
    assert config.monopoly_doubles_base_rent


def test_log_level_normalized(monkeypatch):
    monkeypatch.setenv("BLOCKPOLY_LOG_LEVEL", "debug")
    assert EngineSettings().log_level == "DEBUG"


def test_bad_values_rejected(monkeypatch):
    monkeypatch.setenv("BLOCKPOLY_LOG_LEVEL", "loud")
    with pytest.raises(ValidationError):
        EngineSettings()
    monkeypatch.setenv("BLOCKPOLY_LOG_LEVEL", "INFO")
    monkeypatch.setenv("BLOCKPOLY_MAX_PLAYERS", "12")
    with pytest.raises(ValidationError):
        EngineSettings()


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()


def test_configure_logging(monkeypatch):
    monkeypatch.setenv("BLOCKPOLY_LOG_LEVEL", "WARNING")
    configure_logging(EngineSettings())
    assert logging.getLogger("blockpoly").level == logging.WARNING
