"""Tests for config/settings.py — environment-driven settings."""

from config.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PROVIDER_TIMEOUT_SECONDS", raising=False)
        s = Settings()
        assert s.provider_timeout_seconds == 10.0
        assert s.eps_history_limit == 16
        assert s.revenue_history_limit == 12
        assert (s.quote_chunk_size, s.quote_max_concurrency, s.quote_max_chunks) == (50, 3, 10)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("QUOTE_MAX_CONCURRENCY", "5")
        monkeypatch.setenv("CALENDAR_WEEKS_BACK", "4")
        s = Settings()
        assert s.quote_max_concurrency == 5
        assert s.calendar_weeks_back == 4

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("FINNHUB_API_KEY", "abc")
        assert Settings().finnhub_api_key == "abc"
