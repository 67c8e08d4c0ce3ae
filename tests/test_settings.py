"""
Test suite for the shared settings base.

System role: Verification of configuration loading
"""

import pytest
from pydantic import ValidationError

from course_assistant.configs import Settings
from course_assistant.configs.usage_limits import UsageLimitSettings


class TestSharedSettings:
    """Test suite for fields every config section inherits."""

    def test_log_level_should_be_normalized(self) -> None:
        """Test lowercase and padded levels are accepted."""
        # Act
        settings = Settings(log_level=" debug ")

        # Assert
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_should_be_rejected(self) -> None:
        # Act & Assert
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_unknown_environment_should_be_rejected(self) -> None:
        # Act & Assert
        with pytest.raises(ValidationError):
            Settings(environment="qa")

    def test_production_flag_should_follow_environment(self) -> None:
        """Test is_production is derived from the environment name."""
        # Act
        production = Settings(environment="production")
        development = Settings()

        # Assert
        assert production.is_production is True
        assert development.is_production is False

    def test_sections_should_read_environment_variables(self, monkeypatch) -> None:
        """Test sections read prefixed variables and the root settings read unprefixed ones."""
        # Arrange
        monkeypatch.setenv("USAGE_LIMIT_MAX_MESSAGES_PER_WINDOW", "12")
        monkeypatch.setenv("ENVIRONMENT", "staging")

        # Act
        limits = UsageLimitSettings()
        settings = Settings()

        # Assert
        assert limits.max_messages_per_window == 12
        assert settings.environment == "staging"
