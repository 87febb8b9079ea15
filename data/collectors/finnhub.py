"""Finnhub collector — EPS surprises, analyst recommendations, earnings calendar."""

from typing import Any
import structlog
from data.collectors.base import BaseCollector, NonRetryableError
from data.rate_limiter import RateLimiter
from config.settings import settings

log = structlog.get_logger(__name__)

BASE_URL = "https://finnhub.io/api/v1"


class FinnhubCollector(BaseCollector):
    api_name = "finnhub"

    def __init__(self, rate_limiter: RateLimiter, api_key: str | None = None) -> None:
        super().__init__(rate_limiter)
        self._api_key = settings.finnhub_api_key if api_key is None else api_key

    def _params(self, **kwargs: Any) -> dict[str, Any]:
        if not self._api_key:
            raise NonRetryableError(401, "FINNHUB_API_KEY not configured")
        return {"token": self._api_key, **kwargs}

    async def health_check(self) -> bool:
        try:
            data = await self._request(f"{BASE_URL}/stock/symbol", params=self._params(exchange="US"))
            return isinstance(data, list) and len(data) > 0
        except Exception:
            return False

    async def get_earnings(self, symbol: str, limit: int = 20) -> list[dict[str, Any]]:
        """Historical EPS surprises keyed by period-end date."""
        data = await self._request(
            f"{BASE_URL}/stock/earnings", params=self._params(symbol=symbol, limit=limit)
        )
        return data if isinstance(data, list) else []

    async def get_analyst_recommendations(self, symbol: str) -> list[dict[str, Any]]:
        """Monthly analyst recommendation trends."""
        data = await self._request(
            f"{BASE_URL}/stock/recommendation", params=self._params(symbol=symbol)
        )
        return data if isinstance(data, list) else []

    async def get_earnings_calendar(
        self, from_date: str, to_date: str, symbol: str | None = None
    ) -> list[dict[str, Any]]:
        """Earnings announcements between two dates, optionally for one symbol."""
        params = {"from": from_date, "to": to_date}
        if symbol:
            params["symbol"] = symbol
        data = await self._request(f"{BASE_URL}/calendar/earnings", params=self._params(**params))
        calendar = data.get("earningsCalendar") if isinstance(data, dict) else None
        return calendar if isinstance(calendar, list) else []
