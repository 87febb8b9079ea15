"""Shared test fixtures for the earnings reconciler test suite."""

import os
import pytest
import structlog
from datetime import date
from unittest.mock import AsyncMock, MagicMock

# Ensure settings can be imported without real env vars
os.environ.setdefault("FINNHUB_API_KEY", "test-key")

# Keep log events off stdout, which the CLI tests parse as JSON
structlog.configure(
    processors=[structlog.stdlib.add_log_level, structlog.processors.KeyValueRenderer()],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
)


@pytest.fixture
def restore_structlog():
    config = structlog.get_config()
    yield
    structlog.configure(**config)


# ── Provider payloads ──


@pytest.fixture
def finnhub_earnings_payload():
    """Finnhub /stock/earnings: fiscal quarters keyed by period end."""
    return [
        {"period": "2023-12-31", "quarter": 1, "year": 2024, "actual": 2.18, "estimate": 2.10,
         "surprisePercent": 3.81, "symbol": "AAPL"},
        {"period": "2023-09-30", "quarter": 4, "year": 2023, "actual": 1.46, "estimate": 1.39,
         "surprisePercent": 5.04, "symbol": "AAPL"},
        {"period": "2023-06-30", "quarter": 3, "year": 2023, "actual": 1.26, "estimate": 1.19,
         "surprisePercent": 5.88, "symbol": "AAPL"},
    ]


@pytest.fixture
def finnhub_recommendation_payload():
    return [
        {"period": "2024-01-01", "strongBuy": 12, "buy": 22, "hold": 8, "sell": 1, "strongSell": 0},
        {"period": "2023-12-01", "strongBuy": 11, "buy": 21, "hold": 9, "sell": 2, "strongSell": 0},
    ]


@pytest.fixture
def finnhub_calendar_payload():
    """Finnhub /calendar/earnings: announcement dates with EPS and revenue."""
    return {
        "earningsCalendar": [
            {"date": "2024-02-01", "symbol": "AAPL", "quarter": 1, "year": 2024,
             "epsActual": 2.18, "epsEstimate": 2.10,
             "revenueActual": 119_575_000_000, "revenueEstimate": 117_900_000_000},
            {"date": "2024-05-02", "symbol": "AAPL", "quarter": 2, "year": 2024,
             "epsActual": None, "epsEstimate": 1.50,
             "revenueActual": None, "revenueEstimate": 90_000_000_000},
        ]
    }


@pytest.fixture
def yahoo_summary_payload():
    """Yahoo quoteSummary result with every module used for a lookup."""
    return {
        "earningsHistory": {
            "history": [
                {"quarter": {"raw": 1703980800, "fmt": "2023-12-31"},
                 "epsActual": {"raw": 2.18}, "epsEstimate": {"raw": 2.11}, "surprisePercent": {"raw": 0.033}},
                {"quarter": {"raw": 1696032000, "fmt": "2023-09-30"},
                 "epsActual": {"raw": 1.46}, "epsEstimate": {"raw": 1.39}, "surprisePercent": {"raw": 0.05}},
            ]
        },
        "incomeStatementHistoryQuarterly": {
            "incomeStatementHistory": [
                {"endDate": {"raw": 1703980800, "fmt": "2023-12-31"}, "totalRevenue": {"raw": 119_575_000_000}},
                {"endDate": {"raw": 1696032000, "fmt": "2023-09-30"}, "totalRevenue": {"raw": 89_498_000_000}},
                {"endDate": {"raw": 1688083200, "fmt": "2023-06-30"}, "totalRevenue": {"raw": 81_797_000_000}},
                {"endDate": {"raw": 1680220800, "fmt": "2023-03-31"}, "totalRevenue": {"raw": 94_836_000_000}},
            ]
        },
        "earningsTrend": {
            "trend": [
                {"period": "0q", "revenueEstimate": {"avg": {"raw": 90_300_000_000},
                                                      "yearAgoRevenue": {"raw": 94_836_000_000}}},
                {"period": "+1y", "revenueEstimate": {"avg": {"raw": 400_000_000_000},
                                                      "yearAgoRevenue": {"raw": 383_000_000_000}}},
            ]
        },
        "financialData": {
            "profitMargins": {"raw": 0.2616},
            "operatingMargins": {"raw": 0.3376},
            "grossMargins": {"raw": 0.4556},
            "revenueGrowth": {"raw": 0.021},
            "earningsGrowth": {"raw": 0.16},
            "targetMeanPrice": {"raw": 200.0},
            "currentPrice": {"raw": 181.82},
        },
        "calendarEvents": {
            "earnings": {"earningsDate": [{"raw": 1714680000, "fmt": "2024-05-02"}]},
        },
    }


@pytest.fixture
def today():
    return date(2024, 3, 1)


# ── Calendar payloads ──


@pytest.fixture
def screener_quotes():
    """Yahoo screener rows carrying earnings timestamps and market data."""
    return [
        {"symbol": "AAPL", "shortName": "Apple Inc.", "regularMarketPrice": 181.82,
         "regularMarketChangePercent": 1.2, "marketCap": 2_800_000_000_000,
         "earningsTimestamp": 1706817600, "epsCurrentYear": 6.6, "epsTrailingTwelveMonths": 6.43},
        {"symbol": "MSFT", "shortName": "Microsoft Corporation", "regularMarketPrice": 404.0,
         "regularMarketChangePercent": -0.4, "marketCap": 3_000_000_000_000,
         "earningsTimestamp": 1706644800, "epsForward": 12.5},
        {"symbol": "SMCI", "shortName": "Super Micro Computer", "regularMarketPrice": 800.0,
         "marketCap": 45_000_000_000, "earningsTimestampStart": [1706644800]},
    ]


@pytest.fixture
def finnhub_range_calendar():
    return [
        {"date": "2024-01-30", "symbol": "MSFT", "epsEstimate": 2.78},
        {"date": "2024-01-30", "symbol": "XYZ", "epsEstimate": 0.15},
        {"date": "2024-02-01", "symbol": "AAPL", "epsEstimate": 2.10},
    ]


# ── Collector mocks ──


@pytest.fixture
def mock_rate_limiter():
    rate_limiter = MagicMock()
    rate_limiter.acquire = AsyncMock()
    rate_limiter.configure = MagicMock()
    return rate_limiter
