"""Provider adapters — raw Finnhub/Yahoo JSON into normalized records.

Every adapter accepts whatever the provider returned (including ``None`` or a
payload of the wrong shape) and yields zero records rather than raising.
Records with neither a usable date nor a quarter/year are dropped.
"""

import math
from datetime import date
from typing import Any, Mapping
from config.constants import DEFAULT_SECTOR
from earnings.eps import surprise_percent
from earnings.models import (
    CalendarEntry,
    CalendarRow,
    QuarterEPSRecord,
    QuarterRevenueRecord,
    Recommendation,
    RevenueProjection,
    SupplementaryFinancials,
)
from utils.time_utils import normalize_date_key, parse_date, quarter_of

PROJECTION_PERIODS = ("0q", "+1q")


def to_float(value: Any) -> float | None:
    """Numeric value of a provider field; unwraps Yahoo ``{"raw": ...}`` objects."""
    if isinstance(value, dict):
        value = value.get("raw")
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def to_int(value: Any) -> int:
    number = to_float(value)
    return int(number) if number is not None else 0


def _rows(payload: Any, key: str | None = None) -> list[dict[str, Any]]:
    if key and isinstance(payload, dict):
        payload = payload.get(key)
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


def _module(summary: Any, name: str) -> dict[str, Any]:
    if not isinstance(summary, dict):
        return {}
    module = summary.get(name)
    return module if isinstance(module, dict) else {}


def _identified(period: str, quarter: int, year: int) -> bool:
    return bool(period) or bool(quarter and year)


# ── EPS ──


def finnhub_eps_records(payload: Any) -> list[QuarterEPSRecord]:
    """Finnhub ``/stock/earnings``: period-end keyed surprises with fiscal quarter/year."""
    records = []
    for row in _rows(payload):
        period = normalize_date_key(row.get("period"))
        quarter, year = to_int(row.get("quarter")), to_int(row.get("year"))
        if not _identified(period, quarter, year):
            continue
        records.append(
            QuarterEPSRecord(
                period=period,
                quarter=quarter,
                year=year,
                actual=to_float(row.get("actual")),
                estimate=to_float(row.get("estimate")),
                surprise_percent=to_float(row.get("surprisePercent")),
                source="finnhub_earnings",
            )
        )
    return records


def yahoo_eps_records(summary: Any) -> list[QuarterEPSRecord]:
    """Yahoo ``earningsHistory``: period-end dates; surprise is a fraction, stored as percent."""
    records = []
    for row in _rows(_module(summary, "earningsHistory"), "history"):
        period = normalize_date_key(row.get("quarter") or row.get("periodEndDate"))
        if not period:
            continue
        actual = to_float(row.get("epsActual", row.get("actual")))
        estimate = to_float(row.get("epsEstimate", row.get("estimate")))
        surprise = to_float(row.get("surprisePercent"))
        records.append(
            QuarterEPSRecord(
                period=period,
                actual=actual,
                estimate=estimate,
                surprise_percent=surprise * 100 if surprise is not None else None,
                source="yahoo_earnings_history",
            )
        )
    return records


def _calendar_rows(payload: Any, symbol: str | None) -> list[dict[str, Any]]:
    rows = _rows(payload, "earningsCalendar") if isinstance(payload, dict) else _rows(payload)
    if symbol is None:
        return rows
    return [r for r in rows if not r.get("symbol") or str(r["symbol"]).upper() == symbol.upper()]


def finnhub_calendar_eps_records(payload: Any, symbol: str | None = None) -> list[QuarterEPSRecord]:
    """Finnhub ``/calendar/earnings``: announcement-date keyed EPS actuals/estimates."""
    records = []
    for row in _calendar_rows(payload, symbol):
        actual, estimate = to_float(row.get("epsActual")), to_float(row.get("epsEstimate"))
        if actual is None and estimate is None:
            continue
        period = normalize_date_key(row.get("date"))
        quarter, year = to_int(row.get("quarter")), to_int(row.get("year"))
        if not _identified(period, quarter, year):
            continue
        records.append(
            QuarterEPSRecord(
                period=period,
                quarter=quarter,
                year=year,
                actual=actual,
                estimate=estimate,
                surprise_percent=surprise_percent(actual, estimate),
                source="finnhub_calendar",
            )
        )
    return records


# ── Revenue ──


def yahoo_revenue_records(summary: Any) -> list[QuarterRevenueRecord]:
    """Yahoo quarterly income statements; quarter derived from the end-date month."""
    module = _module(summary, "incomeStatementHistoryQuarterly")
    records = []
    for row in _rows(module, "incomeStatementHistory"):
        revenue = to_float(row.get("totalRevenue"))
        end = parse_date(row.get("endDate"))
        if revenue is None or end is None:
            continue
        records.append(
            QuarterRevenueRecord(
                date=end.isoformat(),
                quarter=quarter_of(end),
                year=end.year,
                revenue_actual=revenue,
                source="yahoo_income",
            )
        )
    return records


def finnhub_calendar_revenue_records(payload: Any, symbol: str | None = None) -> list[QuarterRevenueRecord]:
    records = []
    for row in _calendar_rows(payload, symbol):
        actual, estimate = to_float(row.get("revenueActual")), to_float(row.get("revenueEstimate"))
        if actual is None and estimate is None:
            continue
        announced = normalize_date_key(row.get("date"))
        quarter, year = to_int(row.get("quarter")), to_int(row.get("year"))
        if not _identified(announced, quarter, year):
            continue
        records.append(
            QuarterRevenueRecord(
                date=announced,
                quarter=quarter,
                year=year,
                revenue_actual=actual,
                revenue_estimate=estimate,
                source="finnhub_calendar",
            )
        )
    return records


def yahoo_revenue_projections(summary: Any) -> list[RevenueProjection]:
    """Yahoo ``earningsTrend`` revenue estimates for the current and next quarter."""
    projections = []
    for row in _rows(_module(summary, "earningsTrend"), "trend"):
        if row.get("period") not in PROJECTION_PERIODS:
            continue
        revenue = row.get("revenueEstimate")
        if not isinstance(revenue, dict):
            continue
        estimate, year_ago = to_float(revenue.get("avg")), to_float(revenue.get("yearAgoRevenue"))
        if estimate is None or year_ago is None:
            continue
        projections.append(RevenueProjection(period=row["period"], estimate=estimate, year_ago_revenue=year_ago))
    return projections


# ── Analyst and supplementary data ──


def latest_recommendation(payload: Any) -> Recommendation | None:
    rows = _rows(payload)
    if not rows:
        return None
    latest = max(rows, key=lambda r: str(r.get("period") or ""))
    return Recommendation(
        period=str(latest.get("period") or ""),
        strong_buy=to_int(latest.get("strongBuy")),
        buy=to_int(latest.get("buy")),
        hold=to_int(latest.get("hold")),
        sell=to_int(latest.get("sell")),
        strong_sell=to_int(latest.get("strongSell")),
    )


def supplementary_financials(summary: Any) -> SupplementaryFinancials | None:
    data = _module(summary, "financialData")
    if not data:
        return None
    return SupplementaryFinancials(
        profit_margin=to_float(data.get("profitMargins")),
        operating_margin=to_float(data.get("operatingMargins")),
        gross_margin=to_float(data.get("grossMargins")),
        revenue_growth=to_float(data.get("revenueGrowth")),
        earnings_growth=to_float(data.get("earningsGrowth")),
        target_mean_price=to_float(data.get("targetMeanPrice")),
        current_price=to_float(data.get("currentPrice")),
    )


def next_earnings_date(calendar_payload: Any, summary: Any, today: date, symbol: str | None = None) -> str | None:
    """Earliest announcement strictly after ``today``; Yahoo calendarEvents as fallback."""
    upcoming = sorted(
        d for d in (parse_date(r.get("date")) for r in _calendar_rows(calendar_payload, symbol))
        if d is not None and d > today
    )
    if upcoming:
        return upcoming[0].isoformat()

    earnings = _module(_module(summary, "calendarEvents"), "earnings")
    dates = earnings.get("earningsDate")
    if not isinstance(dates, list):
        dates = [dates]
    fallback = sorted(d for d in (parse_date(v) for v in dates) if d is not None and d > today)
    return fallback[0].isoformat() if fallback else None


# ── Calendar feeds ──


def _earnings_timestamp(value: Any) -> float | None:
    if isinstance(value, list):
        value = value[0] if value else None
    return to_float(value)


def quote_entry(quote: Mapping[str, Any], sector_lookup: Mapping[str, str]) -> CalendarEntry:
    """Calendar entry fields carried by a Yahoo quote (screener row or batch quote)."""
    symbol = str(quote.get("symbol") or "")
    eps_estimate = to_float(quote.get("epsCurrentYear"))
    if eps_estimate is None:
        eps_estimate = to_float(quote.get("epsForward"))
    return CalendarEntry(
        symbol=symbol,
        name=str(quote.get("shortName") or quote.get("longName") or ""),
        price=to_float(quote.get("regularMarketPrice")),
        change_percent=to_float(quote.get("regularMarketChangePercent")),
        market_cap=to_float(quote.get("marketCap")),
        sector=sector_lookup.get(symbol) or str(quote.get("sector") or ""),
        eps_estimate=eps_estimate,
        eps_ttm=to_float(quote.get("epsTrailingTwelveMonths")),
    )


def yahoo_screener_rows(quotes: Any, sector_lookup: Mapping[str, str]) -> list[CalendarRow]:
    """Screener quotes carrying an earnings timestamp (number or list of numbers)."""
    rows = []
    for quote in _rows(quotes):
        if not quote.get("symbol"):
            continue
        ts = _earnings_timestamp(quote.get("earningsTimestamp"))
        if ts is None:
            ts = _earnings_timestamp(quote.get("earningsTimestampStart"))
        announced = normalize_date_key(ts) if ts is not None else ""
        if not announced:
            continue
        rows.append(CalendarRow(date=announced, entry=quote_entry(quote, sector_lookup)))
    return rows


def finnhub_calendar_rows(payload: Any, sector_lookup: Mapping[str, str]) -> list[CalendarRow]:
    """Finnhub calendar events: symbol and date with an EPS estimate, no market data."""
    rows = []
    for row in _calendar_rows(payload, None):
        symbol = str(row.get("symbol") or "").upper()
        announced = normalize_date_key(row.get("date"))
        if not symbol or not announced:
            continue
        rows.append(
            CalendarRow(
                date=announced,
                entry=CalendarEntry(
                    symbol=symbol,
                    sector=sector_lookup.get(symbol, ""),
                    eps_estimate=to_float(row.get("epsEstimate")),
                ),
            )
        )
    return rows


def finalize_entry(entry: CalendarEntry) -> CalendarEntry:
    if not entry.name:
        entry.name = entry.symbol
    if not entry.sector:
        entry.sector = DEFAULT_SECTOR
    return entry
