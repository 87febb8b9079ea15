"""Number/currency formatting and ticker validation."""

import re

_TICKER_PATTERN = re.compile(r"^[A-Z0-9.\-]{1,10}$")


def validate_ticker(symbol: str) -> str | None:
    """Validate and normalize a stock ticker symbol. Returns None if invalid."""
    symbol = symbol.upper().strip()
    if _TICKER_PATTERN.match(symbol):
        return symbol
    return None


def format_revenue(value: float | None) -> str:
    """Abbreviate revenue: $X.XXB, $XM, or the literal dollar amount."""
    if value is None:
        return "N/A"
    sign = "-" if value < 0 else ""
    amount = abs(value)
    if amount >= 1e9:
        return f"{sign}${amount / 1e9:.2f}B"
    if amount >= 1e6:
        return f"{sign}${amount / 1e6:.0f}M"
    return f"{sign}${amount:,.0f}"


def format_eps(value: float | None) -> str:
    """Format EPS signed to two decimals, e.g. +$1.20 or -$0.35."""
    if value is None:
        return "N/A"
    sign = "-" if value < 0 else "+"
    return f"{sign}${abs(value):.2f}"


def format_percent(value: float | None, decimals: int = 1, signed: bool = False) -> str:
    """Format a number as a percentage."""
    if value is None:
        return "N/A"
    sign = "+" if signed and value > 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_price(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"${value:,.2f}"


def quarter_label(quarter: int, year: int, period: str = "") -> str:
    """Short quarter label like Q4 '23, derived from the period date when needed."""
    if quarter and year:
        return f"Q{quarter} '{str(year)[-2:]}"
    parts = period.split("-")
    if len(parts) >= 2 and parts[0].isdigit() and parts[1].isdigit():
        q = (int(parts[1]) + 2) // 3
        return f"Q{q} '{parts[0][-2:]}"
    return period or "?"
