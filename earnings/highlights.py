"""Narrative highlights derived from reconciled earnings data.

Every highlight is computed independently and only appended when its inputs
are present, so the result holds anywhere from zero to six entries, always
in the same relative order.
"""

from typing import Sequence
from config.constants import MAX_HIGHLIGHTS, StreakType
from earnings.models import (
    Highlight,
    QuarterEPSRecord,
    QuarterRevenueRecord,
    Recommendation,
    StreakResult,
    SupplementaryFinancials,
)
from earnings.streak import classify
from utils.formatting import format_eps, format_percent, format_price, format_revenue, quarter_label

_EPS_VERBS = {StreakType.BEAT: "beat", StreakType.MISS: "missed", StreakType.MET: "met"}
_STREAK_VERBS = {StreakType.BEAT: "beaten", StreakType.MISS: "missed", StreakType.MET: "met"}


def _comparison(actual: float, estimate: float | None, formatter) -> str:
    if estimate is None:
        return formatter(actual)
    verb = _EPS_VERBS[classify(actual, estimate)]
    return f"{formatter(actual)}, which {verb} the {formatter(estimate)} estimate"


def latest_quarter(
    eps_history: Sequence[QuarterEPSRecord],
    revenue_history: Sequence[QuarterRevenueRecord],
) -> Highlight | None:
    eps = next((q for q in reversed(eps_history) if q.actual is not None), None)
    revenue = next((r for r in reversed(revenue_history) if r.revenue_actual is not None), None)
    if eps is None and revenue is None:
        return None

    sentences = []
    if eps is not None:
        label = quarter_label(eps.quarter, eps.year, eps.period)
        sentences.append(f"{label} EPS came in at {_comparison(eps.actual, eps.estimate, format_eps)}.")
    if revenue is not None:
        label = quarter_label(revenue.quarter, revenue.year, revenue.date)
        sentences.append(
            f"{label} revenue was {_comparison(revenue.revenue_actual, revenue.revenue_estimate, format_revenue)}."
        )
    return Highlight("Latest Quarter", " ".join(sentences))


def revenue_growth(revenue_history: Sequence[QuarterRevenueRecord]) -> Highlight | None:
    actuals = [r for r in revenue_history if r.revenue_actual is not None]
    if len(actuals) < 4:
        return None
    latest = actuals[-1]
    if not (latest.quarter and latest.year):
        return None
    prior = next(
        (r for r in actuals if r.quarter == latest.quarter and r.year == latest.year - 1),
        None,
    )
    if prior is None or not prior.revenue_actual:
        return None

    growth = (latest.revenue_actual - prior.revenue_actual) / abs(prior.revenue_actual) * 100
    direction = "grew" if growth >= 0 else "declined"
    label = quarter_label(latest.quarter, latest.year, latest.date)
    return Highlight(
        "Revenue Growth",
        f"Revenue {direction} {format_percent(abs(growth))} year-over-year to "
        f"{format_revenue(latest.revenue_actual)} in {label}.",
    )


def profitability(financials: SupplementaryFinancials | None) -> Highlight | None:
    if financials is None:
        return None
    parts = []
    for label, value, signed in (
        ("net margin", financials.profit_margin, False),
        ("operating margin", financials.operating_margin, False),
        ("gross margin", financials.gross_margin, False),
        ("revenue growth", financials.revenue_growth, True),
        ("earnings growth", financials.earnings_growth, True),
    ):
        if value is not None:
            parts.append(f"{label} {format_percent(value * 100, signed=signed)}")
    if not parts:
        return None
    summary = ", ".join(parts)
    return Highlight("Profitability", summary[0].upper() + summary[1:] + ".")


def consistency(streak: StreakResult) -> Highlight | None:
    if streak.count < 2 or streak.type == StreakType.NONE:
        return None
    return Highlight(
        "Earnings Consistency",
        f"Has {_STREAK_VERBS[streak.type]} EPS estimates {streak.count} quarters in a row.",
    )


def analyst_consensus(recommendation: Recommendation | None) -> Highlight | None:
    if recommendation is None or recommendation.total <= 0:
        return None
    ratio = recommendation.bullish_ratio * 100
    return Highlight(
        "Analyst Consensus",
        f"{recommendation.consensus} consensus: {recommendation.bullish} of "
        f"{recommendation.total} analysts rate it a buy ({format_percent(ratio)} bullish).",
    )


def price_target(financials: SupplementaryFinancials | None) -> Highlight | None:
    if financials is None:
        return None
    target, price = financials.target_mean_price, financials.current_price
    if target is None or not price:
        return None
    change = (target - price) / price * 100
    direction = "upside" if change >= 0 else "downside"
    return Highlight(
        "Price Target",
        f"Mean analyst target of {format_price(target)} implies {format_percent(abs(change))} "
        f"{direction} from {format_price(price)}.",
    )


def generate_highlights(
    eps_history: Sequence[QuarterEPSRecord],
    revenue_history: Sequence[QuarterRevenueRecord],
    recommendation: Recommendation | None,
    streak: StreakResult,
    financials: SupplementaryFinancials | None = None,
) -> list[Highlight]:
    candidates = (
        latest_quarter(eps_history, revenue_history),
        revenue_growth(revenue_history),
        profitability(financials),
        consistency(streak),
        analyst_consensus(recommendation),
        price_target(financials),
    )
    return [h for h in candidates if h is not None][:MAX_HIGHLIGHTS]
