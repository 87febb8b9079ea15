"""Yahoo Finance collector — quote summaries, predefined screeners, batch quotes."""

from typing import Any
import structlog
from data.collectors.base import BaseCollector

log = structlog.get_logger(__name__)

SUMMARY_URL = "https://query2.finance.yahoo.com/v10/finance/quoteSummary"
SCREENER_URL = "https://query1.finance.yahoo.com/v1/finance/screener/predefined/saved"
QUOTE_URL = "https://query1.finance.yahoo.com/v7/finance/quote"


class YahooCollector(BaseCollector):
    api_name = "yahoo"
    user_agent = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    async def health_check(self) -> bool:
        try:
            return len(await self.get_quotes(["AAPL"])) > 0
        except Exception:
            return False

    async def get_quote_summary(self, symbol: str, modules: tuple[str, ...] | list[str]) -> dict[str, Any]:
        """quoteSummary modules for one symbol, as a module-name → data mapping."""
        data = await self._request(f"{SUMMARY_URL}/{symbol}", params={"modules": ",".join(modules)})
        result = (data.get("quoteSummary") or {}).get("result") if isinstance(data, dict) else None
        if isinstance(result, list) and result and isinstance(result[0], dict):
            return result[0]
        return {}

    async def get_screener(self, scr_id: str, count: int = 100) -> list[dict[str, Any]]:
        """Quotes from a predefined screener."""
        data = await self._request(SCREENER_URL, params={"scrIds": scr_id, "count": count})
        result = (data.get("finance") or {}).get("result") if isinstance(data, dict) else None
        if isinstance(result, list) and result and isinstance(result[0], dict):
            quotes = result[0].get("quotes")
            return quotes if isinstance(quotes, list) else []
        return []

    async def get_quotes(self, symbols: list[str]) -> list[dict[str, Any]]:
        """Batch quotes for a list of symbols."""
        if not symbols:
            return []
        data = await self._request(QUOTE_URL, params={"symbols": ",".join(symbols)})
        result = (data.get("quoteResponse") or {}).get("result") if isinstance(data, dict) else None
        return result if isinstance(result, list) else []
