"""Tests for settings models and the settings loader."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from choresync.config import Settings, load_settings
from choresync.config.models import APISettings, LoggingSettings
from choresync.shared.errors import ApplicationError, ErrorCode


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with no config files, no .env and no CHORESYNC_ variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in list(os.environ):
        if name.startswith("CHORESYNC_"):
            monkeypatch.delenv(name)
    return tmp_path


class TestDefaults:
    def test_defaults(self, isolated):
        settings = Settings()

        assert settings.api.timeout == 15
        assert settings.api.retry_attempts == 3
        assert settings.api.retry_delay == 2
        assert settings.api.slow_connection_threshold == 5
        assert settings.cache.ttl == 300
        assert settings.cache.ranking_max_age == 30
        assert settings.queue.storage_key == "offline_queue"
        assert settings.queue.replay_debounce == 1
        assert settings.queue.store_path == Path(isolated) / ".choresync" / "store.json"

    def test_environment_override(self, isolated, monkeypatch):
        monkeypatch.setenv("CHORESYNC_API__TIMEOUT", "3.5")
        monkeypatch.setenv("CHORESYNC_CACHE__ENABLED", "false")

        settings = Settings()

        assert settings.api.timeout == 3.5
        assert settings.cache.enabled is False


class TestValidation:
    @pytest.mark.parametrize(
        "values",
        [{"timeout": 0}, {"retry_attempts": 0}, {"retry_delay": -1}, {"slow_connection_threshold": 0}],
    )
    def test_api_bounds(self, values):
        with pytest.raises(ValidationError):
            APISettings(**values)

    def test_log_level_is_normalized(self):
        assert LoggingSettings(level="debug").level == "DEBUG"

        with pytest.raises(ValidationError):
            LoggingSettings(level="chatty")


class TestTomlFiles:
    def test_partial_file_keeps_other_defaults(self, isolated):
        config_file = isolated / "config.toml"
        config_file.write_text('[api]\nbase_url = "https://chores.example/api"\n', encoding="utf-8")

        settings = Settings.from_toml_file(config_file)

        assert settings.api.base_url == "https://chores.example/api"
        assert settings.api.retry_attempts == 3

    def test_file_is_layered_over_environment(self, isolated, monkeypatch):
        monkeypatch.setenv("CHORESYNC_API__RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("CHORESYNC_API__TIMEOUT", "9")
        config_file = isolated / "config.toml"
        config_file.write_text(
            '[api]\nbase_url = "https://chores.example/api"\ntimeout = 4\n',
            encoding="utf-8",
        )

        settings = Settings.from_toml_file(config_file)

        assert settings.api.base_url == "https://chores.example/api"
        assert settings.api.retry_attempts == 5
        assert settings.api.timeout == 4

    def test_missing_file(self, isolated):
        with pytest.raises(FileNotFoundError):
            Settings.from_toml_file(isolated / "absent.toml")


class TestLoadSettings:
    def test_explicit_missing_file_is_config_error(self, isolated):
        with pytest.raises(ApplicationError) as exc_info:
            load_settings(isolated / "absent.toml")

        assert exc_info.value.code == ErrorCode.CONFIG_ERROR
        assert isinstance(exc_info.value.original_error, FileNotFoundError)

    def test_invalid_value_is_config_error(self, isolated):
        config_file = isolated / "config.toml"
        config_file.write_text("[api]\ntimeout = 0\n", encoding="utf-8")

        with pytest.raises(ApplicationError) as exc_info:
            load_settings(config_file)

        assert exc_info.value.code == ErrorCode.CONFIG_ERROR

    def test_broken_toml_is_config_error(self, isolated):
        config_file = isolated / "config.toml"
        config_file.write_text("[api\n", encoding="utf-8")

        with pytest.raises(ApplicationError):
            load_settings(config_file)

    def test_default_location_is_searched(self, isolated):
        (isolated / "config").mkdir()
        (isolated / "config" / "config.toml").write_text("[app]\nlanguage = \"pt\"\n", encoding="utf-8")

        assert load_settings().app.language == "pt"

    def test_env_file_is_loaded(self, isolated, monkeypatch):
        # Registered so the value written by load_dotenv is removed afterwards
        monkeypatch.setenv("CHORESYNC_CACHE__TTL", "0")
        monkeypatch.delenv("CHORESYNC_CACHE__TTL")
        (isolated / ".env").write_text("CHORESYNC_CACHE__TTL=60\n", encoding="utf-8")

        settings = load_settings()

        assert settings.cache.ttl == 60

    def test_no_file_falls_back_to_defaults(self, isolated):
        assert load_settings().api.retry_attempts == 3

