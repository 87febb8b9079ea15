"""Request-scoped entry points: per-symbol reconciliation and the calendar build."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, TypeVar
import structlog
from config.constants import CALENDAR_SCREENERS, SYMBOL_SECTORS
from earnings import adapters
from earnings.calendar import CalendarFeed, DateWindow, aggregate_calendar
from earnings.eps import eps_sources, reconcile_eps
from earnings.errors import NoProviderDataError
from earnings.highlights import generate_highlights
from earnings.models import CalendarEntry, EarningsPayloads, EarningsReport
from earnings.revenue import reconcile_revenue, revenue_sources
from earnings.streak import compute_streak
from utils.time_utils import today_utc

log = structlog.get_logger(__name__)

T = TypeVar("T")

# Shape errors a malformed payload can still raise past the adapters' own checks
_PAYLOAD_ERRORS = (TypeError, ValueError, KeyError, AttributeError, IndexError)


def _adapt(source: str, default: T, adapter: Callable[..., T], *args: Any) -> T:
    """Run one adapter so a malformed payload only costs that source's records."""
    try:
        return adapter(*args)
    except _PAYLOAD_ERRORS as e:
        log.warning("provider_payload_malformed", source=source, adapter=adapter.__name__, error=str(e))
        return default


def reconcile_earnings(
    symbol: str,
    payloads: EarningsPayloads,
    today: date | None = None,
    eps_limit: int = 16,
    revenue_limit: int = 12,
) -> EarningsReport:
    """Build one consistent earnings report for ``symbol`` from raw provider payloads.

    Raises:
        NoProviderDataError: every provider was unavailable.
    """
    if payloads.all_unavailable():
        raise NoProviderDataError(symbol, payloads.unavailable())
    today = today or today_utc()

    summary, calendar = payloads.yahoo_summary, payloads.finnhub_calendar
    eps = reconcile_eps(
        eps_sources(
            _adapt("finnhub_earnings", [], adapters.finnhub_eps_records, payloads.finnhub_earnings),
            _adapt("yahoo_summary", [], adapters.yahoo_eps_records, summary),
            _adapt("finnhub_calendar", [], adapters.finnhub_calendar_eps_records, calendar, symbol),
        ),
        limit=eps_limit,
    )
    revenue = reconcile_revenue(
        revenue_sources(
            _adapt("yahoo_summary", [], adapters.yahoo_revenue_records, summary),
            _adapt("finnhub_calendar", [], adapters.finnhub_calendar_revenue_records, calendar, symbol),
        ),
        projections=_adapt("yahoo_summary", [], adapters.yahoo_revenue_projections, summary),
        limit=revenue_limit,
    )
    recommendation = _adapt(
        "finnhub_recommendations", None, adapters.latest_recommendation, payloads.finnhub_recommendations
    )
    financials = _adapt("yahoo_summary", None, adapters.supplementary_financials, summary)
    streak = compute_streak(eps.full)

    report = EarningsReport(
        symbol=symbol,
        eps_history=eps.display,
        revenue_history=revenue.display,
        streak=streak,
        highlights=generate_highlights(eps.full, revenue.full, recommendation, streak, financials),
        next_earnings_date=_adapt("finnhub_calendar", None, adapters.next_earnings_date, calendar, summary, today, symbol),
        recommendation=recommendation,
        unavailable_sources=payloads.unavailable(),
    )
    log.info(
        "earnings_reconciled",
        symbol=symbol,
        eps_quarters=len(report.eps_history),
        revenue_quarters=len(report.revenue_history),
        streak=streak.type.value,
        unavailable=report.unavailable_sources,
    )
    return report


@dataclass
class CalendarPayloads:
    """Raw calendar feeds. ``screeners`` maps a Yahoo screener id to its quotes (or None)."""
    screeners: dict[str, Any] = field(default_factory=dict)
    finnhub_calendar: Any = None


def calendar_feeds(payloads: CalendarPayloads, sector_lookup: Mapping[str, str]) -> list[CalendarFeed]:
    """Feeds in priority order: screeners (carry market data) before the Finnhub calendar."""
    names = [name for name, _ in CALENDAR_SCREENERS]
    names += [name for name in payloads.screeners if name not in names]
    feeds = []
    for name in names:
        if name not in payloads.screeners:
            continue
        quotes = payloads.screeners[name]
        rows = None if quotes is None else _adapt(name, [], adapters.yahoo_screener_rows, quotes, sector_lookup)
        feeds.append(CalendarFeed(f"yahoo_screener:{name}", rows))
    calendar = payloads.finnhub_calendar
    rows = None if calendar is None else _adapt("finnhub_calendar", [], adapters.finnhub_calendar_rows, calendar, sector_lookup)
    feeds.append(CalendarFeed("finnhub_calendar", rows))
    return feeds


def build_calendar(
    payloads: CalendarPayloads,
    window: DateWindow,
    sector_lookup: Mapping[str, str] = SYMBOL_SECTORS,
) -> dict[str, list[CalendarEntry]]:
    """Date → entries sorted by market cap, from every available calendar feed."""
    feeds = calendar_feeds(payloads, sector_lookup)
    buckets = aggregate_calendar(feeds, window)
    log.info(
        "calendar_built",
        feeds=len(feeds),
        unavailable=[f.name for f in feeds if f.rows is None],
        dates=len(buckets),
        symbols=sum(len(v) for v in buckets.values()),
    )
    return buckets
