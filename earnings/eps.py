"""EPS reconciler — merges per-provider EPS quarters into one history."""

from dataclasses import dataclass, field
import structlog
from config.constants import ANNOUNCEMENT_LAG_MAX_DAYS, PERIOD_END_TOLERANCE_DAYS
from earnings.merge import NamedSource, collapse_duplicates, merge_sources
from earnings.models import QuarterEPSRecord
from earnings.periods import ExactPeriodMatch, ProximityMatch, QuarterYearMatch, sort_date

log = structlog.get_logger(__name__)

EPS_FIELDS = ("period", "quarter", "year", "actual", "estimate", "surprise_percent")

# Sources keyed by period-end date
PERIOD_END_TIERS = (
    ExactPeriodMatch(),
    QuarterYearMatch(),
    ProximityMatch(-PERIOD_END_TOLERANCE_DAYS, PERIOD_END_TOLERANCE_DAYS),
)

# Sources keyed by announcement date, which trails the period end
ANNOUNCEMENT_TIERS = (
    ExactPeriodMatch(),
    QuarterYearMatch(),
    ProximityMatch(0, ANNOUNCEMENT_LAG_MAX_DAYS),
)


@dataclass
class EpsHistory:
    display: list[QuarterEPSRecord] = field(default_factory=list)
    full: list[QuarterEPSRecord] = field(default_factory=list)


def surprise_percent(actual: float | None, estimate: float | None) -> float | None:
    if actual is None or estimate is None or estimate == 0:
        return None
    return (actual - estimate) / abs(estimate) * 100


def eps_sources(
    finnhub_earnings: list[QuarterEPSRecord],
    yahoo_history: list[QuarterEPSRecord],
    finnhub_calendar: list[QuarterEPSRecord],
) -> list[NamedSource[QuarterEPSRecord]]:
    """EPS sources in merge priority order."""
    return [
        NamedSource("finnhub_earnings", finnhub_earnings, PERIOD_END_TIERS),
        NamedSource("yahoo_earnings_history", yahoo_history, PERIOD_END_TIERS),
        NamedSource("finnhub_calendar", finnhub_calendar, ANNOUNCEMENT_TIERS),
    ]


def reconcile_eps(sources: list[NamedSource[QuarterEPSRecord]], limit: int = 16) -> EpsHistory:
    """Merge EPS sources, dedup by value proximity, and order oldest-first.

    ``full`` keeps every reconciled quarter for streak computation; ``display``
    is the most recent ``limit`` of them.
    """
    merged = merge_sources(sources, EPS_FIELDS)
    merged = collapse_duplicates(merged, EPS_FIELDS)

    history = []
    for record in merged:
        if not record.has_values():
            continue
        if record.surprise_percent is None:
            record.surprise_percent = surprise_percent(record.actual, record.estimate)
        history.append(record)

    history.sort(key=lambda r: (sort_date(r), r.period))
    log.info(
        "eps_reconciled",
        sources={s.name: len(s.records) for s in sources},
        quarters=len(history),
    )
    return EpsHistory(display=history[-limit:] if limit > 0 else [], full=history)
