"""
Tests for environment-driven settings.
"""

import pytest

from ..config import DEFAULT_NETWORK_ID, GAME_TTL_LEDGERS, Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.network_id == DEFAULT_NETWORK_ID
        assert settings.retention_ledgers == GAME_TTL_LEDGERS
        assert settings.ttl_ledgers == 60
        assert settings.ttl_extended_ledgers == 720

    def test_extended_ttl_is_longer(self):
        settings = Settings()
        assert settings.ttl_extended_ledgers > settings.ttl_ledgers

    def test_ttl_rounds_up(self):
        settings = Settings(ledger_close_seconds=7, auth_ttl_minutes=1, multisig_auth_ttl_minutes=1)
        assert settings.ttl_ledgers == 9

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TACTICA_ENV", "production")
        monkeypatch.setenv("TACTICA_NETWORK_ID", "Test Net")
        monkeypatch.setenv("TACTICA_LEDGER_CLOSE_SECONDS", "6")
        monkeypatch.setenv("TACTICA_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("TACTICA_LOG_LEVEL", "debug")

        settings = Settings.from_env()
        assert settings.env == "production"
        assert settings.network_id == "Test Net"
        assert settings.ledger_close_seconds == 6
        assert settings.allowed_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"

    def test_blank_env_uses_default(self, monkeypatch):
        monkeypatch.setenv("TACTICA_FINALIZE_MAX_ATTEMPTS", " ")
        assert Settings.from_env().finalize_max_attempts == 3

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("TACTICA_RETENTION_LEDGERS", "lots")
        with pytest.raises(ValueError, match="TACTICA_RETENTION_LEDGERS"):
            Settings.from_env()

    @pytest.mark.parametrize("kwargs", [
        {"ledger_close_seconds": 0},
        {"auth_ttl_minutes": 10, "multisig_auth_ttl_minutes": 5},
        {"finalize_max_attempts": 0},
    ])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            Settings(**kwargs)
