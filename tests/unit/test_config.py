"""Tests for relay config — env-driven settings."""

from __future__ import annotations

from ctrelay.config import RelayConfig


class TestRelayConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CTRELAY_API_ENDPOINT", raising=False)
        config = RelayConfig(_env_file=None)
        assert config.api_endpoint == "https://api.certwatch.app"
        assert config.delivery_timeout_seconds == 10.0
        assert config.session_timeout_seconds == 15.0
        assert config.max_line_bytes == 1024 * 1024
        assert config.user_agent == "CertWatch-Webhook/1.0"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CTRELAY_API_ENDPOINT", "http://localhost:8787")
        monkeypatch.setenv("CTRELAY_NO_COLOR", "true")
        monkeypatch.setenv("CTRELAY_DELIVERY_TIMEOUT_SECONDS", "2.5")
        config = RelayConfig(_env_file=None)
        assert config.api_endpoint == "http://localhost:8787"
        assert config.no_color is True
        assert config.delivery_timeout_seconds == 2.5
