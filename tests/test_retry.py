"""Tests for utils/retry.py — backoff and secret redaction."""

import pytest
from unittest.mock import AsyncMock, patch
from utils.retry import async_retry, sanitize_error


class TestSanitizeError:
    def test_redacts_tokens(self):
        message = "GET https://finnhub.io/api/v1/stock/earnings?symbol=AAPL&token=abc123 failed"
        assert sanitize_error(message) == (
            "GET https://finnhub.io/api/v1/stock/earnings?symbol=AAPL&token=[REDACTED] failed"
        )

    def test_redacts_crumb_and_apikey(self):
        assert "xyz" not in sanitize_error("crumb=xyz&api_key=xyz")

    def test_plain_message_untouched(self):
        assert sanitize_error("connection reset") == "connection reset"


class TestAsyncRetry:
    async def test_retries_then_succeeds(self):
        calls = AsyncMock(side_effect=[ConnectionError("reset"), "ok"])

        @async_retry(max_retries=2, base_delay=0.5, exceptions=(ConnectionError,))
        async def fetch():
            return await calls()

        with patch("utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await fetch() == "ok"
        sleep.assert_awaited_once_with(0.5)

    async def test_gives_up_after_max_retries(self):
        @async_retry(max_retries=2, base_delay=1.0, exceptions=(ConnectionError,))
        async def fetch():
            raise ConnectionError("down")

        with patch("utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ConnectionError):
                await fetch()
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_other_exceptions_not_retried(self):
        calls = AsyncMock(side_effect=ValueError("bad"))

        @async_retry(max_retries=3, exceptions=(ConnectionError,))
        async def fetch():
            return await calls()

        with pytest.raises(ValueError):
            await fetch()
        assert calls.await_count == 1

    async def test_delay_capped(self):
        @async_retry(max_retries=3, base_delay=4.0, max_delay=5.0, exceptions=(ConnectionError,))
        async def fetch():
            raise ConnectionError("down")

        with patch("utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ConnectionError):
                await fetch()
        assert [c.args[0] for c in sleep.await_args_list] == [4.0, 5.0, 5.0]
