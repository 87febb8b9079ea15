"""Revenue reconciler — quarterly revenue actuals, estimates and forward projections."""

import math
from dataclasses import dataclass, field
import structlog
from config.constants import ANNOUNCEMENT_LAG_MAX_DAYS, PERIOD_END_TOLERANCE_DAYS
from earnings.merge import NamedSource, merge_sources
from earnings.models import QuarterRevenueRecord, RevenueProjection
from earnings.periods import ProximityMatch, QuarterYearMatch, sort_date
from utils.time_utils import parse_date, quarter_of, shift_year

log = structlog.get_logger(__name__)

REVENUE_FIELDS = ("date", "quarter", "year", "revenue_actual", "revenue_estimate")

# Finnhub uses fiscal quarters while Yahoo keys derive from the calendar
# month, so a dated row joins by announcement date only. The quarter key is
# the fallback for rows without a date.
ANNOUNCEMENT_TIERS = (
    ProximityMatch(0, ANNOUNCEMENT_LAG_MAX_DAYS),
    QuarterYearMatch(undated_only=True),
)


@dataclass
class RevenueHistory:
    display: list[QuarterRevenueRecord] = field(default_factory=list)
    full: list[QuarterRevenueRecord] = field(default_factory=list)


def revenue_sources(
    yahoo_income: list[QuarterRevenueRecord],
    finnhub_calendar: list[QuarterRevenueRecord],
) -> list[NamedSource[QuarterRevenueRecord]]:
    """Revenue sources in merge priority order."""
    return [
        NamedSource("yahoo_income", yahoo_income),
        NamedSource("finnhub_calendar", finnhub_calendar, ANNOUNCEMENT_TIERS),
    ]


def _find_by_key(records: list[QuarterRevenueRecord], quarter: int, year: int) -> QuarterRevenueRecord | None:
    return next((r for r in records if r.quarter == quarter and r.year == year), None)


def apply_forward_projections(
    records: list[QuarterRevenueRecord],
    projections: list[RevenueProjection],
) -> list[QuarterRevenueRecord]:
    """Attach forward revenue estimates to the quarter one year after their year-ago actual.

    The historical record whose actual equals ``year_ago_revenue`` anchors the
    projection; the target is the same quarter a year later, found by quarter
    key or else by date proximity. A placeholder record is created when the
    target quarter does not exist yet. Existing estimates are kept.
    """
    for projection in projections:
        anchor = next(
            (
                r for r in records
                if r.revenue_actual is not None
                and r.date
                and math.isclose(r.revenue_actual, projection.year_ago_revenue, rel_tol=1e-9)
            ),
            None,
        )
        anchor_date = parse_date(anchor.date) if anchor else None
        if anchor is None or anchor_date is None:
            log.debug("revenue_projection_unanchored", period=projection.period)
            continue

        target_date = shift_year(anchor_date)
        target_quarter = anchor.quarter or quarter_of(anchor_date)
        target_year = (anchor.year or anchor_date.year) + 1

        target = _find_by_key(records, target_quarter, target_year)
        if target is None:
            nearby = ProximityMatch(-PERIOD_END_TOLERANCE_DAYS, PERIOD_END_TOLERANCE_DAYS)
            probe = QuarterRevenueRecord(date=target_date.isoformat())
            index = nearby.find(probe, records, set())
            target = records[index] if index is not None else None

        if target is None:
            records.append(
                QuarterRevenueRecord(
                    date=target_date.isoformat(),
                    quarter=target_quarter,
                    year=target_year,
                    revenue_estimate=projection.estimate,
                    source="yahoo_trend",
                )
            )
            log.debug("revenue_projection_created", period=projection.period, target=target_date.isoformat())
        elif target.revenue_estimate is None:
            target.revenue_estimate = projection.estimate
    return records


def _period_order(record: QuarterRevenueRecord) -> tuple[int, int, object]:
    when = sort_date(record)
    if record.year and record.quarter:
        return (record.year, record.quarter, when)
    return (when.year, quarter_of(when), when)


def reconcile_revenue(
    sources: list[NamedSource[QuarterRevenueRecord]],
    projections: list[RevenueProjection] | None = None,
    limit: int = 12,
) -> RevenueHistory:
    """Merge revenue sources, apply forward projections, and order by (year, quarter)."""
    merged = merge_sources(sources, REVENUE_FIELDS)
    merged = apply_forward_projections(merged, projections or [])

    history = [r for r in merged if r.has_values()]
    history.sort(key=_period_order)
    log.info(
        "revenue_reconciled",
        sources={s.name: len(s.records) for s in sources},
        projections=len(projections or []),
        quarters=len(history),
    )
    return RevenueHistory(display=history[-limit:] if limit > 0 else [], full=history)
