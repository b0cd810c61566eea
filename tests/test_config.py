"""Tests for Settings configuration model."""

import pytest

from liftoff.config import Settings


class TestDefaults:
    def test_default_log_level(self):
        s = Settings()
        assert s.log_level == "INFO"

    def test_default_max_retries(self):
        s = Settings()
        assert s.startup_max_retries == 3

    def test_default_backoff(self):
        s = Settings()
        assert s.startup_backoff_strategy == "linear"
        assert s.startup_backoff_base_seconds == 1.0
        assert s.startup_backoff_max_seconds == 30.0

    def test_sequential_by_default(self):
        s = Settings()
        assert s.startup_concurrent is False

    def test_error_reporting_enabled_default(self):
        s = Settings()
        assert s.error_reporting_enabled is True


class TestValidation:
    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError, match="greater_than_equal"):
            Settings(startup_max_retries=-1)

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError, match="literal_error"):
            Settings(startup_backoff_strategy="random")

    def test_exponential_accepted(self):
        s = Settings(startup_backoff_strategy="exponential")
        assert s.startup_backoff_strategy == "exponential"


class TestExtraForbidden:
    def test_unknown_env_var_raises(self):
        with pytest.raises(ValueError, match="extra_forbidden"):
            Settings(**{"nonexistent_field": "value"})
