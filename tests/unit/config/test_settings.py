"""
Tests for Settings Configuration

These tests verify environment handling and validation of the settings that
control time resolution and the HTTP surface.
"""

import os
import pytest

from time_server.config.settings import Settings, clear_settings_cache, get_settings


class TestTimezoneSetting:
    """Test default_timezone validation"""

    def setup_method(self):
        """Clear settings cache before each test"""
        clear_settings_cache()
        self._original_env = os.environ.copy()

    def teardown_method(self):
        """Restore original environment after each test"""
        os.environ.clear()
        os.environ.update(self._original_env)
        clear_settings_cache()

    def test_defaults_to_utc(self):
        os.environ.pop('DEFAULT_TIMEZONE', None)

        assert Settings().default_timezone == "UTC"

    def test_reads_environment(self):
        os.environ['DEFAULT_TIMEZONE'] = 'Europe/Berlin'

        assert Settings().default_timezone == "Europe/Berlin"

    def test_unknown_timezone_fails(self):
        """Test that an unknown timezone is rejected at startup"""
        os.environ['DEFAULT_TIMEZONE'] = 'Mars/Olympus_Mons'

        with pytest.raises(ValueError) as exc_info:
            Settings()

        assert "Unknown timezone" in str(exc_info.value)


class TestLogLevel:
    """Test log_level validation"""

    def test_lowercase_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_level_fails(self):
        with pytest.raises(ValueError):
            Settings(log_level="chatty")


class TestAllowedOrigins:
    """Test allowed_origins parsing"""

    def test_json_list(self):
        settings = Settings(allowed_origins_str='["https://a.example","https://b.example"]')

        assert settings.allowed_origins == ["https://a.example", "https://b.example"]

    def test_comma_separated(self):
        settings = Settings(allowed_origins_str="https://a.example, https://b.example")

        assert settings.allowed_origins == ["https://a.example", "https://b.example"]

    def test_single_value(self):
        assert Settings(allowed_origins_str="https://a.example").allowed_origins == ["https://a.example"]

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example")

        assert Settings().allowed_origins == ["https://a.example"]


class TestSettingsCache:
    """Test get_settings caching"""

    def test_cached_until_cleared(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("ENVIRONMENT", "production")
        clear_settings_cache()

        second = get_settings()
        assert second is not first
        assert second.is_production
