"""Constants used across the application."""

from enum import Enum


class StreakType(str, Enum):
    BEAT = "beat"
    MISS = "miss"
    MET = "met"
    NONE = "none"


# Rate limits per API (requests per minute)
API_RATE_LIMITS = {
    "finnhub": 55,        # Free tier allows 60/min
    "yahoo": 120,
}

# Cache TTLs (seconds)
CACHE_TTL = {
    "earnings_report": 300,   # 5 min
    "earnings_calendar": 120, # 2 min
}

# Period matching tolerances (days)
PERIOD_END_TOLERANCE_DAYS = 45
ANNOUNCEMENT_LAG_MAX_DAYS = 100
VALUE_DEDUP_MAX_DAYS = 90
VALUE_DEDUP_EPSILON = 0.015

# Consensus buckets on bullish (strong buy + buy) ratio
CONSENSUS_THRESHOLDS = (
    (0.70, "Strong Buy"),
    (0.50, "Buy"),
    (0.30, "Hold"),
)
CONSENSUS_FLOOR_LABEL = "Sell"

MAX_HIGHLIGHTS = 6

# Yahoo predefined screeners used as calendar feeds, with result counts
CALENDAR_SCREENERS = (
    ("most_actives", 200),
    ("day_gainers", 100),
    ("day_losers", 100),
    ("growth_technology_stocks", 100),
    ("undervalued_large_caps", 100),
)

# Yahoo quoteSummary modules for a single-symbol earnings lookup
EARNINGS_SUMMARY_MODULES = (
    "incomeStatementHistoryQuarterly",
    "earningsHistory",
    "earningsTrend",
    "financialData",
    "calendarEvents",
)

DEFAULT_SECTOR = "Other"

# Static symbol → sector lookup for calendar entries
SYMBOL_SECTORS = {
    "AAPL": "Technology",
    "MSFT": "Technology",
    "NVDA": "Technology",
    "AVGO": "Technology",
    "ORCL": "Technology",
    "CRM": "Technology",
    "AMD": "Technology",
    "ADBE": "Technology",
    "INTC": "Technology",
    "CSCO": "Technology",
    "GOOGL": "Communication Services",
    "GOOG": "Communication Services",
    "META": "Communication Services",
    "NFLX": "Communication Services",
    "DIS": "Communication Services",
    "T": "Communication Services",
    "VZ": "Communication Services",
    "AMZN": "Consumer Cyclical",
    "TSLA": "Consumer Cyclical",
    "HD": "Consumer Cyclical",
    "MCD": "Consumer Cyclical",
    "NKE": "Consumer Cyclical",
    "SBUX": "Consumer Cyclical",
    "WMT": "Consumer Defensive",
    "COST": "Consumer Defensive",
    "PG": "Consumer Defensive",
    "KO": "Consumer Defensive",
    "PEP": "Consumer Defensive",
    "JPM": "Financial Services",
    "BAC": "Financial Services",
    "WFC": "Financial Services",
    "GS": "Financial Services",
    "MS": "Financial Services",
    "V": "Financial Services",
    "MA": "Financial Services",
    "UNH": "Healthcare",
    "JNJ": "Healthcare",
    "LLY": "Healthcare",
    "PFE": "Healthcare",
    "ABBV": "Healthcare",
    "MRK": "Healthcare",
    "XOM": "Energy",
    "CVX": "Energy",
    "COP": "Energy",
    "CAT": "Industrials",
    "BA": "Industrials",
    "GE": "Industrials",
    "UPS": "Industrials",
    "NEE": "Utilities",
    "DUK": "Utilities",
    "PLD": "Real Estate",
    "AMT": "Real Estate",
    "LIN": "Basic Materials",
}
