"""Data manager — fans out provider calls and feeds the reconciliation engine."""

import asyncio
from collections.abc import Awaitable
from datetime import date, timedelta
from typing import Any
import structlog
from config.constants import API_RATE_LIMITS, CACHE_TTL, CALENDAR_SCREENERS, EARNINGS_SUMMARY_MODULES
from config.settings import Settings, settings as default_settings
from data.cache import TTLCache, cached
from data.collectors.finnhub import FinnhubCollector
from data.collectors.yahoo import YahooCollector
from data.rate_limiter import RateLimiter
from earnings.calendar import BatchPolicy, DateWindow, backfill_calendar
from earnings.engine import CalendarPayloads, build_calendar, reconcile_earnings
from earnings.errors import InvalidSymbolError
from earnings.models import CalendarEntry, EarningsPayloads, EarningsReport
from utils.formatting import validate_ticker
from utils.retry import sanitize_error
from utils.time_utils import shift_year, today_utc

log = structlog.get_logger(__name__)

# Symbol lookups span three years back to six months forward
LOOKUP_YEARS_BACK = 3
LOOKUP_DAYS_FORWARD = 182


class EarningsDataManager:
    """Orchestrates the Finnhub and Yahoo collectors for earnings lookups and the calendar."""

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config if config is not None else default_settings
        self.cache = TTLCache()
        self.rate_limiter = RateLimiter()

        for api_name, limit in API_RATE_LIMITS.items():
            self.rate_limiter.configure(api_name, limit)

        self.finnhub = FinnhubCollector(self.rate_limiter, api_key=self.settings.finnhub_api_key)
        self.yahoo = YahooCollector(self.rate_limiter)

    @property
    def batch_policy(self) -> BatchPolicy:
        return BatchPolicy(
            chunk_size=self.settings.quote_chunk_size,
            max_concurrency=self.settings.quote_max_concurrency,
            max_chunks=self.settings.quote_max_chunks,
        )

    async def close(self) -> None:
        for collector in (self.finnhub, self.yahoo):
            await collector.close()
        log.info("data_manager_closed")

    async def health_check(self) -> dict[str, bool]:
        results = {}
        for name, collector in (("finnhub", self.finnhub), ("yahoo", self.yahoo)):
            try:
                results[name] = await collector.health_check()
            except Exception:
                results[name] = False
        return results

    async def _settle(self, source: str, call: Awaitable[Any]) -> Any:
        """Await one provider call under its own timeout; failure becomes None."""
        try:
            return await asyncio.wait_for(call, timeout=self.settings.provider_timeout_seconds)
        except asyncio.TimeoutError:
            log.warning("provider_unavailable", source=source, error="timeout")
        except Exception as e:
            log.warning("provider_unavailable", source=source, error=sanitize_error(str(e)) or type(e).__name__)
        return None

    async def fetch_earnings_payloads(self, symbol: str, today: date | None = None) -> EarningsPayloads:
        """Fetch every per-symbol payload concurrently; results are matched by position, not completion."""
        today = today or today_utc()
        from_date = shift_year(today, -LOOKUP_YEARS_BACK).isoformat()
        to_date = (today + timedelta(days=LOOKUP_DAYS_FORWARD)).isoformat()

        earnings, recommendations, calendar, summary = await asyncio.gather(
            self._settle("finnhub_earnings", self.finnhub.get_earnings(symbol)),
            self._settle("finnhub_recommendations", self.finnhub.get_analyst_recommendations(symbol)),
            self._settle("finnhub_calendar", self.finnhub.get_earnings_calendar(from_date, to_date, symbol=symbol)),
            self._settle("yahoo_summary", self.yahoo.get_quote_summary(symbol, EARNINGS_SUMMARY_MODULES)),
        )
        return EarningsPayloads(
            finnhub_earnings=earnings,
            finnhub_recommendations=recommendations,
            finnhub_calendar=calendar,
            yahoo_summary=summary,
        )

    async def get_earnings_report(self, symbol: str) -> EarningsReport:
        """Reconciled earnings history and analytics for one symbol.

        Raises:
            InvalidSymbolError: the symbol failed validation.
            NoProviderDataError: every provider was unavailable.
        """
        normalized = validate_ticker(symbol)
        if normalized is None:
            raise InvalidSymbolError(symbol)
        return await self._earnings_report(normalized)

    @cached("earnings_report", CACHE_TTL["earnings_report"])
    async def _earnings_report(self, symbol: str) -> EarningsReport:
        today = today_utc()
        payloads = await self.fetch_earnings_payloads(symbol, today)
        return reconcile_earnings(
            symbol,
            payloads,
            today=today,
            eps_limit=self.settings.eps_history_limit,
            revenue_limit=self.settings.revenue_history_limit,
        )

    async def fetch_calendar_payloads(self, window: DateWindow) -> CalendarPayloads:
        screener_calls = [
            self._settle(f"yahoo_screener:{scr_id}", self.yahoo.get_screener(scr_id, count))
            for scr_id, count in CALENDAR_SCREENERS
        ]
        *screeners, finnhub_calendar = await asyncio.gather(
            *screener_calls,
            self._settle(
                "finnhub_calendar",
                self.finnhub.get_earnings_calendar(window.start.isoformat(), window.end.isoformat()),
            ),
        )
        return CalendarPayloads(
            screeners={scr_id: quotes for (scr_id, _), quotes in zip(CALENDAR_SCREENERS, screeners)},
            finnhub_calendar=finnhub_calendar,
        )

    @cached("earnings_calendar", CACHE_TTL["earnings_calendar"])
    async def get_earnings_calendar(self) -> dict[str, list[CalendarEntry]]:
        """Upcoming and recent earnings grouped by date, backfilled with batch quotes."""
        window = DateWindow.around(
            today_utc(),
            weeks_back=self.settings.calendar_weeks_back,
            weeks_forward=self.settings.calendar_weeks_forward,
        )
        payloads = await self.fetch_calendar_payloads(window)
        buckets = build_calendar(payloads, window)
        return await backfill_calendar(buckets, self.yahoo.get_quotes, self.batch_policy)
