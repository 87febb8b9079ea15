"""Cross-symbol earnings calendar: date buckets merged from several feeds."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Mapping
import structlog
from config.constants import DEFAULT_SECTOR, SYMBOL_SECTORS
from earnings.adapters import finalize_entry, quote_entry
from earnings.merge import fill_missing
from earnings.models import CalendarEntry, CalendarRow
from utils.retry import sanitize_error
from utils.time_utils import parse_date

log = structlog.get_logger(__name__)

CALENDAR_FILL_FIELDS = ("name", "price", "change_percent", "market_cap", "sector", "eps_estimate", "eps_ttm")

QuoteFetcher = Callable[[list[str]], Awaitable[list[dict[str, Any]]]]


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    @classmethod
    def around(cls, today: date, weeks_back: int = 12, weeks_forward: int = 12) -> "DateWindow":
        return cls(today - timedelta(weeks=weeks_back), today + timedelta(weeks=weeks_forward))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class BatchPolicy:
    """How the quote backfill shares a downstream API.

    Symbols are split into chunks of ``chunk_size``; at most ``max_chunks``
    chunks are requested per build, with ``max_concurrency`` in flight.
    """
    chunk_size: int = 50
    max_concurrency: int = 3
    max_chunks: int = 10

    def __post_init__(self) -> None:
        if self.chunk_size < 1 or self.max_concurrency < 1 or self.max_chunks < 0:
            raise ValueError(f"Invalid batch policy: {self}")

    def chunks(self, symbols: list[str]) -> list[list[str]]:
        size = self.chunk_size
        return [symbols[i:i + size] for i in range(0, len(symbols), size)][: self.max_chunks]


@dataclass
class CalendarFeed:
    """One calendar source in priority order. ``rows`` is None when the source failed."""
    name: str
    rows: list[CalendarRow] | None = field(default=None)


def _sort_bucket(entries: list[CalendarEntry]) -> None:
    entries.sort(key=lambda e: (e.market_cap is None, -(e.market_cap or 0.0)))


def aggregate_calendar(feeds: list[CalendarFeed], window: DateWindow) -> dict[str, list[CalendarEntry]]:
    """Group feed rows into date buckets, deduplicated by symbol and date.

    The first feed to place a symbol decides its date; later rows for the same
    symbol and date only fill fields the first left empty, and rows for the
    same symbol on another date are ignored.
    """
    placed: dict[str, tuple[str, CalendarEntry]] = {}
    for feed in feeds:
        if feed.rows is None:
            log.debug("calendar_feed_unavailable", feed=feed.name)
            continue
        for row in feed.rows:
            day = parse_date(row.date)
            if day is None or not window.contains(day):
                continue
            key = day.isoformat()
            symbol = row.entry.symbol
            existing = placed.get(symbol)
            if existing is None:
                placed[symbol] = (key, replace(row.entry))
            elif existing[0] == key:
                fill_missing(existing[1], row.entry, CALENDAR_FILL_FIELDS)
            else:
                log.debug("calendar_date_conflict", symbol=symbol, kept=existing[0], ignored=key, feed=feed.name)

    buckets: dict[str, list[CalendarEntry]] = {}
    for key, entry in placed.values():
        buckets.setdefault(key, []).append(finalize_entry(entry))
    for entries in buckets.values():
        _sort_bucket(entries)
    return dict(sorted(buckets.items()))


def unenriched_symbols(buckets: Mapping[str, list[CalendarEntry]]) -> list[str]:
    """Symbols with a date but neither price nor market cap, in bucket order."""
    return [e.symbol for entries in buckets.values() for e in entries if not e.is_enriched()]


async def fetch_quotes_bounded(
    symbols: list[str],
    fetch_quotes: QuoteFetcher,
    policy: BatchPolicy,
) -> dict[str, dict[str, Any]]:
    """Fetch quotes chunk by chunk with at most ``policy.max_concurrency`` chunks in flight.

    A failed chunk contributes nothing; other chunks are unaffected.
    """
    semaphore = asyncio.Semaphore(policy.max_concurrency)

    async def run(chunk: list[str]) -> list[dict[str, Any]]:
        async with semaphore:
            try:
                return await fetch_quotes(chunk)
            except Exception as e:
                log.warning("quote_backfill_chunk_failed", symbols=len(chunk), error=sanitize_error(str(e)))
                return []

    chunks = policy.chunks(symbols)
    results = await asyncio.gather(*(run(chunk) for chunk in chunks))

    quotes: dict[str, dict[str, Any]] = {}
    for result in results:
        for quote in result or []:
            symbol = quote.get("symbol") if isinstance(quote, dict) else None
            if symbol and symbol not in quotes:
                quotes[symbol] = quote
    log.info("quote_backfill_fetched", requested=len(symbols), chunks=len(chunks), received=len(quotes))
    return quotes


def apply_quotes(
    buckets: dict[str, list[CalendarEntry]],
    quotes: Mapping[str, Mapping[str, Any]],
    sector_lookup: Mapping[str, str] = SYMBOL_SECTORS,
) -> dict[str, list[CalendarEntry]]:
    """Fill unenriched entries from quotes, then re-sort every touched bucket."""
    for entries in buckets.values():
        touched = False
        for entry in entries:
            quote = quotes.get(entry.symbol)
            if quote is None or entry.is_enriched():
                continue
            backfill = quote_entry(quote, sector_lookup)
            # finalize_entry placeholders count as missing
            if entry.name == entry.symbol and backfill.name:
                entry.name = backfill.name
            if entry.sector == DEFAULT_SECTOR and backfill.sector:
                entry.sector = backfill.sector
            fill_missing(entry, backfill, CALENDAR_FILL_FIELDS)
            touched = True
        if touched:
            _sort_bucket(entries)
    return buckets


async def backfill_calendar(
    buckets: dict[str, list[CalendarEntry]],
    fetch_quotes: QuoteFetcher,
    policy: BatchPolicy,
    sector_lookup: Mapping[str, str] = SYMBOL_SECTORS,
) -> dict[str, list[CalendarEntry]]:
    symbols = unenriched_symbols(buckets)
    if not symbols:
        return buckets
    quotes = await fetch_quotes_bounded(symbols, fetch_quotes, policy)
    return apply_quotes(buckets, quotes, sector_lookup)
