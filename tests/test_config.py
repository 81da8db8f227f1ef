"""
Unit tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from src.campus_client.config import DEFAULT_WEEK_DAYS, ClientConfig


class TestClientConfig:
    """Test cases for ClientConfig."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = ClientConfig()

        assert config.api_base_url == "http://localhost:8080/api"
        assert config.attempts_per_strategy == 1
        assert config.week_days == DEFAULT_WEEK_DAYS
        assert config.uid_domain == "campusroom.edu"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CAMPUS_API_BASE_URL", "https://rooms.example.edu/api")
        monkeypatch.setenv("CAMPUS_USER_ID", "u-7")
        monkeypatch.setenv("CAMPUS_ATTEMPTS_PER_STRATEGY", "3")
        monkeypatch.setenv("CAMPUS_WEEK_DAYS", '["Monday", "Saturday"]')

        config = ClientConfig()

        assert config.api_base_url == "https://rooms.example.edu/api"
        assert config.user_id == "u-7"
        assert config.attempts_per_strategy == 3
        assert config.week_days == ["Monday", "Saturday"]

    def test_attempts_must_be_positive(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CAMPUS_ATTEMPTS_PER_STRATEGY", "0")

        with pytest.raises(ValidationError):
            ClientConfig()
