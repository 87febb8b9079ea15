"""Record types shared by the reconcilers, analyzers and calendar."""

from dataclasses import asdict, dataclass, field
from typing import Any
from config.constants import CONSENSUS_FLOOR_LABEL, CONSENSUS_THRESHOLDS, StreakType


@dataclass
class QuarterEPSRecord:
    """One provider's view of a quarter's EPS. Mutable so merges can fill gaps."""
    period: str = ""
    quarter: int = 0
    year: int = 0
    actual: float | None = None
    estimate: float | None = None
    surprise_percent: float | None = None
    source: str = ""

    @property
    def period_date(self) -> str:
        return self.period

    @property
    def beat(self) -> bool | None:
        if self.actual is None or self.estimate is None:
            return None
        return self.actual > self.estimate

    def has_values(self) -> bool:
        return self.actual is not None or self.estimate is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["beat"] = self.beat
        return data


@dataclass
class QuarterRevenueRecord:
    """One provider's view of a quarter's revenue."""
    date: str = ""
    quarter: int = 0
    year: int = 0
    revenue_actual: float | None = None
    revenue_estimate: float | None = None
    source: str = ""

    @property
    def period_date(self) -> str:
        return self.date

    @property
    def beat(self) -> bool | None:
        if self.revenue_actual is None or self.revenue_estimate is None:
            return None
        return self.revenue_actual > self.revenue_estimate

    def has_values(self) -> bool:
        return self.revenue_actual is not None or self.revenue_estimate is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["beat"] = self.beat
        return data


@dataclass(frozen=True)
class RevenueProjection:
    """Forward consensus revenue estimate keyed by the year-ago actual."""
    period: str
    estimate: float
    year_ago_revenue: float


@dataclass(frozen=True)
class StreakResult:
    type: StreakType = StreakType.NONE
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "count": self.count}


@dataclass(frozen=True)
class Highlight:
    title: str
    detail: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "detail": self.detail}


@dataclass(frozen=True)
class Recommendation:
    """Analyst recommendation counts for one period, taken as-is from the provider."""
    period: str = ""
    strong_buy: int = 0
    buy: int = 0
    hold: int = 0
    sell: int = 0
    strong_sell: int = 0

    @property
    def total(self) -> int:
        return self.strong_buy + self.buy + self.hold + self.sell + self.strong_sell

    @property
    def bullish(self) -> int:
        return self.strong_buy + self.buy

    @property
    def bullish_ratio(self) -> float | None:
        if self.total <= 0:
            return None
        return self.bullish / self.total

    @property
    def consensus(self) -> str | None:
        ratio = self.bullish_ratio
        if ratio is None:
            return None
        for threshold, label in CONSENSUS_THRESHOLDS:
            if ratio >= threshold:
                return label
        return CONSENSUS_FLOOR_LABEL

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        data["consensus"] = self.consensus
        return data


@dataclass(frozen=True)
class SupplementaryFinancials:
    """Profitability and price-target figures. Margins and growth are fractions."""
    profit_margin: float | None = None
    operating_margin: float | None = None
    gross_margin: float | None = None
    revenue_growth: float | None = None
    earnings_growth: float | None = None
    target_mean_price: float | None = None
    current_price: float | None = None


@dataclass
class CalendarEntry:
    symbol: str
    name: str = ""
    price: float | None = None
    change_percent: float | None = None
    market_cap: float | None = None
    sector: str = ""
    eps_estimate: float | None = None
    eps_ttm: float | None = None

    def is_enriched(self) -> bool:
        return self.price is not None or self.market_cap is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CalendarRow:
    """A calendar feed event before it is placed in a date bucket."""
    date: str
    entry: CalendarEntry


@dataclass
class EarningsPayloads:
    """Raw provider payloads for one symbol. ``None`` means the source was unavailable."""
    finnhub_earnings: Any = None
    finnhub_recommendations: Any = None
    finnhub_calendar: Any = None
    yahoo_summary: Any = None

    def unavailable(self) -> list[str]:
        return [name for name, value in self.__dict__.items() if value is None]

    def all_unavailable(self) -> bool:
        return all(value is None for value in self.__dict__.values())


@dataclass
class EarningsReport:
    symbol: str
    eps_history: list[QuarterEPSRecord] = field(default_factory=list)
    revenue_history: list[QuarterRevenueRecord] = field(default_factory=list)
    streak: StreakResult = field(default_factory=StreakResult)
    highlights: list[Highlight] = field(default_factory=list)
    next_earnings_date: str | None = None
    recommendation: Recommendation | None = None
    unavailable_sources: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when providers answered but had no quarters for this symbol."""
        return not self.eps_history and not self.revenue_history

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "is_empty": self.is_empty,
            "eps_history": [q.to_dict() for q in self.eps_history],
            "revenue_history": [r.to_dict() for r in self.revenue_history],
            "streak": self.streak.to_dict(),
            "highlights": [h.to_dict() for h in self.highlights],
            "next_earnings_date": self.next_earnings_date,
            "recommendation": self.recommendation.to_dict() if self.recommendation else None,
            "unavailable_sources": list(self.unavailable_sources),
        }
