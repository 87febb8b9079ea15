"""Tests for earnings/eps.py — EPS reconciliation across providers."""

from earnings.eps import eps_sources, reconcile_eps, surprise_percent
from earnings.models import QuarterEPSRecord


def eps(period="", quarter=0, year=0, actual=None, estimate=None, source=""):
    return QuarterEPSRecord(
        period=period, quarter=quarter, year=year, actual=actual, estimate=estimate, source=source,
    )


class TestSurprisePercent:
    def test_positive(self):
        assert round(surprise_percent(1.2, 1.0), 6) == 20.0

    def test_negative_estimate_uses_magnitude(self):
        assert round(surprise_percent(-0.5, -1.0), 6) == 50.0

    def test_zero_or_missing_estimate(self):
        assert surprise_percent(1.0, 0) is None
        assert surprise_percent(None, 1.0) is None


class TestReconcileEps:
    def test_announcement_date_joins_period_end(self):
        """Finnhub calendar row dated after quarter end merges into Yahoo's period record."""
        history = reconcile_eps(eps_sources(
            [],
            [eps("2023-12-31", actual=1.2, estimate=1.05, source="yahoo_earnings_history")],
            [eps("2024-02-01", actual=1.2, estimate=1.0, source="finnhub_calendar")],
        ))
        assert len(history.full) == 1
        record = history.full[0]
        assert record.period == "2023-12-31"
        assert record.actual == 1.2
        assert record.estimate == 1.05
        assert record.beat is True

    def test_finnhub_earnings_take_priority(self):
        history = reconcile_eps(eps_sources(
            [eps("2023-12-31", 1, 2024, actual=2.18, estimate=2.10)],
            [eps("2023-12-31", actual=2.18, estimate=2.11)],
            [],
        ))
        assert history.full[0].estimate == 2.10
        assert (history.full[0].quarter, history.full[0].year) == (1, 2024)

    def test_value_dedup_ten_days_apart(self):
        history = reconcile_eps(eps_sources(
            [eps("2023-12-31", 4, 2023, actual=1.50, estimate=1.40)],
            [],
            [eps("2023-12-21", actual=1.512, estimate=1.45)],
        ))
        assert len(history.full) == 1
        assert history.full[0].estimate == 1.40

    def test_no_value_dedup_120_days_apart(self):
        history = reconcile_eps(eps_sources(
            [eps("2023-12-31", 4, 2023, actual=1.50, estimate=1.40)],
            [],
            [eps("2023-09-02", actual=1.512, estimate=1.45)],
        ))
        assert len(history.full) == 2

    def test_empty_shells_dropped(self):
        history = reconcile_eps(eps_sources([eps("2023-12-31", 4, 2023)], [], []))
        assert history.full == []

    def test_surprise_filled_when_missing(self):
        history = reconcile_eps(eps_sources([], [eps("2023-12-31", actual=1.1, estimate=1.0)], []))
        assert round(history.full[0].surprise_percent, 6) == 10.0

    def test_sorted_oldest_first(self):
        history = reconcile_eps(eps_sources(
            [eps("2023-12-31", actual=1.2), eps("2023-06-30", actual=1.0)],
            [eps("2023-09-30", actual=1.1)],
            [eps(quarter=1, year=2024, estimate=1.3)],
        ))
        assert [r.period or f"Q{r.quarter}" for r in history.full] == [
            "2023-06-30", "2023-09-30", "2023-12-31", "Q1",
        ]

    def test_display_truncated_full_retained(self):
        records = [
            eps(f"{2019 + i // 4}-{(i % 4) * 3 + 3:02d}-{30 if (i % 4) in (1, 2) else 31}",
                actual=1.0 + i * 0.1, estimate=1.0)
            for i in range(20)
        ]
        history = reconcile_eps(eps_sources(records, [], []), limit=16)
        assert len(history.full) == 20
        assert len(history.display) == 16
        assert history.display[-1] is history.full[-1]
        assert history.display[0] is history.full[4]

    def test_calendar_only_history(self):
        history = reconcile_eps(eps_sources([], [], [eps("2024-02-01", actual=1.0, estimate=0.9)]))
        assert len(history.full) == 1
