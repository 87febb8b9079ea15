"""Period key resolution: deciding whether two quarter records describe the same quarter.

Records are compared through a chain of match tiers, tried in order:

* ``ExactPeriodMatch``   same normalized period-end date
* ``QuarterYearMatch``   same non-zero fiscal quarter and year
* ``ProximityMatch``     closest canonical date inside a signed day window

``values_match`` is the last-resort check used by the dedup pass once every
source has been merged.

Matching is a linear scan of the canonical set per incoming record (O(n*m)).
Histories hold a few dozen quarters, so this is fine here; it is not meant
for bulk reconciliation of thousands of periods.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol, Sequence
from config.constants import VALUE_DEDUP_EPSILON, VALUE_DEDUP_MAX_DAYS
from utils.time_utils import days_between, normalize_date_key, parse_date, quarter_end


class PeriodRecord(Protocol):
    quarter: int
    year: int

    @property
    def period_date(self) -> str: ...


class MatchTier(Protocol):
    name: str
    claims: bool

    def find(self, record: PeriodRecord, canonical: Sequence[PeriodRecord], claimed: set[int]) -> int | None: ...


@dataclass(frozen=True)
class ExactPeriodMatch:
    name: str = "exact"
    claims = False

    def find(self, record: PeriodRecord, canonical: Sequence[PeriodRecord], claimed: set[int]) -> int | None:
        key = normalize_date_key(record.period_date)
        if not key:
            return None
        for index, existing in enumerate(canonical):
            if normalize_date_key(existing.period_date) == key:
                return index
        return None


@dataclass(frozen=True)
class QuarterYearMatch:
    """Same non-zero fiscal quarter and year.

    With ``undated_only`` the tier only applies to records without a usable
    date, for feeds whose quarter labels follow a different fiscal calendar.
    """
    undated_only: bool = False
    name: str = "quarter_year"
    claims = False

    def find(self, record: PeriodRecord, canonical: Sequence[PeriodRecord], claimed: set[int]) -> int | None:
        if not (record.quarter and record.year):
            return None
        if self.undated_only and parse_date(record.period_date) is not None:
            return None
        for index, existing in enumerate(canonical):
            if existing.quarter == record.quarter and existing.year == record.year:
                return index
        return None


@dataclass(frozen=True)
class ProximityMatch:
    """Closest canonical record whose date lies in ``[min_days, max_days]`` of the record's.

    The offset is ``record_date - canonical_date``: a symmetric window suits two
    period-end feeds, while ``(0, 100)`` aligns an announcement date with the
    period it reports. Ties go to the earliest canonical record, which is the
    higher-priority source. Canonical records already claimed by the same
    source are skipped, and a match claims its record.
    """
    min_days: int
    max_days: int
    name: str = "proximity"
    claims = True

    def find(self, record: PeriodRecord, canonical: Sequence[PeriodRecord], claimed: set[int]) -> int | None:
        target = parse_date(record.period_date)
        if target is None:
            return None
        best_index: int | None = None
        best_diff: int | None = None
        for index, existing in enumerate(canonical):
            if index in claimed:
                continue
            existing_date = parse_date(existing.period_date)
            if existing_date is None:
                continue
            diff = days_between(target, existing_date)
            if diff < self.min_days or diff > self.max_days:
                continue
            if best_diff is None or abs(diff) < best_diff:
                best_index, best_diff = index, abs(diff)
        return best_index


def resolve(
    record: PeriodRecord,
    canonical: Sequence[PeriodRecord],
    tiers: Sequence[MatchTier],
    claimed: set[int] | None = None,
) -> tuple[int | None, str | None]:
    """Index of the canonical record matching ``record`` and the tier that matched."""
    claimed = claimed if claimed is not None else set()
    for tier in tiers:
        index = tier.find(record, canonical, claimed)
        if index is not None:
            return index, tier.name
    return None, None


def sort_date(record: PeriodRecord) -> date:
    """Best-available date for ordering: the period date, else the quarter end."""
    parsed = parse_date(record.period_date)
    if parsed is not None:
        return parsed
    if record.quarter and record.year and 1 <= record.quarter <= 4:
        return quarter_end(record.year, record.quarter)
    return date.min


def values_match(
    a: Any,
    b: Any,
    epsilon: float = VALUE_DEDUP_EPSILON,
    max_days: int = VALUE_DEDUP_MAX_DAYS,
) -> bool:
    """Whether two EPS records are the same quarter by value and date closeness.

    Quarter/year labels are ignored: feeds disagree on fiscal calendars.
    """
    if a.actual is None or b.actual is None:
        return False
    if abs(a.actual - b.actual) >= epsilon:
        return False
    a_date, b_date = parse_date(a.period_date), parse_date(b.period_date)
    if a_date is None or b_date is None:
        return False
    return abs(days_between(a_date, b_date)) < max_days


PERIOD_IDENTITY_TIERS: tuple[MatchTier, ...] = (ExactPeriodMatch(), QuarterYearMatch())
