"""Consecutive beat/miss/met streak from an EPS history."""

from typing import Iterable
from config.constants import StreakType
from earnings.models import QuarterEPSRecord, StreakResult


def classify(actual: float, estimate: float) -> StreakType:
    if actual > estimate:
        return StreakType.BEAT
    if actual < estimate:
        return StreakType.MISS
    return StreakType.MET


def compute_streak(quarters: Iterable[QuarterEPSRecord]) -> StreakResult:
    """Run of identical classifications starting from the newest quarter.

    Quarters without an actual are excluded up front; quarters with an actual
    but no estimate are skipped without breaking the run.
    """
    reported = [q for q in quarters if q.actual is not None]
    reported.sort(key=lambda q: q.period or "", reverse=True)

    streak_type: StreakType | None = None
    count = 0
    for q in reported:
        if q.estimate is None:
            continue
        current = classify(q.actual, q.estimate)
        if streak_type is None:
            streak_type, count = current, 1
        elif current == streak_type:
            count += 1
        else:
            break

    if streak_type is None:
        return StreakResult()
    return StreakResult(type=streak_type, count=count)
