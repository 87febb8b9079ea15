"""Generic first-writer-wins merge over an ordered list of named sources."""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Sequence, TypeVar
import structlog
from earnings.periods import PERIOD_IDENTITY_TIERS, MatchTier, resolve, values_match

log = structlog.get_logger(__name__)

R = TypeVar("R")


@dataclass
class NamedSource(Generic[R]):
    """Records from one provider plus the tiers used to join them to the canonical set."""
    name: str
    records: list[R] = field(default_factory=list)
    tiers: tuple[MatchTier, ...] = PERIOD_IDENTITY_TIERS


def _is_missing(value: Any) -> bool:
    # 0 and "" are "unknown" for quarter/year/date; float values keep 0.0
    if value is None:
        return True
    if isinstance(value, float):
        return False
    return not value


def fill_missing(target: Any, other: Any, fields: Sequence[str]) -> list[str]:
    """Copy fields from ``other`` into ``target`` only where ``target`` has none."""
    filled = []
    for name in fields:
        incoming = getattr(other, name)
        if _is_missing(getattr(target, name)) and not _is_missing(incoming):
            setattr(target, name, incoming)
            filled.append(name)
    return filled


def merge_sources(sources: Sequence[NamedSource[R]], fields: Sequence[str]) -> list[R]:
    """Merge sources in priority order into one canonical list.

    The first non-empty source seeds the canonical set (collapsing only exact
    duplicates within it). Every later record is resolved through its source's
    tiers: a match fills the canonical record's missing fields, a miss inserts
    a copy. Records inserted or matched by proximity are claimed for the rest
    of the source; key matches are not. Input records are never mutated.
    """
    canonical: list[R] = []
    for position, source in enumerate(sources):
        if not source.records:
            log.debug("merge_source_empty", source=source.name)
            continue
        tiers = PERIOD_IDENTITY_TIERS if not canonical else source.tiers
        claiming = {tier.name for tier in tiers if tier.claims}
        claimed: set[int] = set()
        matched = inserted = 0
        for record in source.records:
            index, tier = resolve(record, canonical, tiers, claimed)
            if index is None:
                canonical.append(replace(record))
                claimed.add(len(canonical) - 1)
                inserted += 1
            else:
                fill_missing(canonical[index], record, fields)
                if tier in claiming:
                    claimed.add(index)
                matched += 1
        log.debug(
            "merge_source_applied",
            source=source.name,
            priority=position,
            matched=matched,
            inserted=inserted,
        )
    return canonical


def collapse_duplicates(
    records: list[R],
    fields: Sequence[str],
    is_duplicate: Callable[[Any, Any], bool] = values_match,
) -> list[R]:
    """Fold each record into the first earlier record it duplicates.

    Earlier records come from higher-priority sources, so they keep their
    values and only gain fields they were missing.
    """
    kept: list[R] = []
    for record in records:
        duplicate_of = next((k for k in kept if is_duplicate(k, record)), None)
        if duplicate_of is None:
            kept.append(record)
            continue
        fill_missing(duplicate_of, record, fields)
        log.debug(
            "value_duplicate_collapsed",
            kept=getattr(duplicate_of, "period_date", ""),
            dropped=getattr(record, "period_date", ""),
        )
    return kept
