"""Tests for earnings/engine.py — per-symbol reconciliation and calendar build."""

import pytest
from datetime import date
from config.constants import StreakType
from earnings import engine
from earnings.calendar import DateWindow
from earnings.engine import CalendarPayloads, build_calendar, reconcile_earnings
from earnings.errors import NoProviderDataError
from earnings.models import EarningsPayloads


@pytest.fixture
def payloads(finnhub_earnings_payload, finnhub_recommendation_payload, finnhub_calendar_payload,
             yahoo_summary_payload):
    return EarningsPayloads(
        finnhub_earnings=finnhub_earnings_payload,
        finnhub_recommendations=finnhub_recommendation_payload,
        finnhub_calendar=finnhub_calendar_payload,
        yahoo_summary=yahoo_summary_payload,
    )


class TestReconcileEarnings:
    def test_full_report(self, payloads, today):
        report = reconcile_earnings("AAPL", payloads, today=today)

        assert [q.period for q in report.eps_history] == [
            "2023-06-30", "2023-09-30", "2023-12-31", "2024-05-02",
        ]
        latest = report.eps_history[2]
        assert (latest.actual, latest.estimate) == (2.18, 2.10)
        assert report.streak.type == StreakType.BEAT
        assert report.streak.count == 3

        assert [(r.year, r.quarter) for r in report.revenue_history] == [
            (2023, 1), (2023, 2), (2023, 3), (2023, 4), (2024, 2),
        ]
        assert report.revenue_history[3].revenue_estimate == 117_900_000_000

        assert report.next_earnings_date == "2024-05-02"
        assert report.recommendation.consensus == "Strong Buy"
        assert [h.title for h in report.highlights] == [
            "Latest Quarter", "Profitability", "Earnings Consistency", "Analyst Consensus", "Price Target",
        ]
        assert report.unavailable_sources == []
        assert not report.is_empty

    def test_finnhub_announcement_joins_yahoo_period(self, today):
        payloads = EarningsPayloads(
            finnhub_calendar={"earningsCalendar": [
                {"symbol": "X", "date": "2024-02-01", "epsActual": 1.2, "epsEstimate": 1.0},
            ]},
            yahoo_summary={"earningsHistory": {"history": [
                {"periodEndDate": "2023-12-31", "actual": 1.2, "estimate": 1.05},
            ]}},
        )
        report = reconcile_earnings("X", payloads, today=today)
        assert len(report.eps_history) == 1
        record = report.eps_history[0].to_dict()
        assert record["period"] == "2023-12-31"
        assert record["actual"] == 1.2
        assert record["estimate"] == 1.05
        assert record["beat"] is True
        assert report.unavailable_sources == ["finnhub_earnings", "finnhub_recommendations"]

    def test_every_source_unavailable(self):
        with pytest.raises(NoProviderDataError) as exc:
            reconcile_earnings("AAPL", EarningsPayloads())
        assert exc.value.symbol == "AAPL"
        assert len(exc.value.sources) == 4

    def test_empty_but_answered(self, today):
        payloads = EarningsPayloads(
            finnhub_earnings=[], finnhub_recommendations=[], finnhub_calendar={"earningsCalendar": []},
            yahoo_summary={},
        )
        report = reconcile_earnings("NEWCO", payloads, today=today)
        assert report.is_empty
        assert report.streak.type == StreakType.NONE
        assert report.highlights == []
        assert report.next_earnings_date is None

    def test_malformed_payload_does_not_block_others(self, finnhub_earnings_payload, today):
        payloads = EarningsPayloads(
            finnhub_earnings=finnhub_earnings_payload,
            finnhub_recommendations="<html>502</html>",
            finnhub_calendar={"earningsCalendar": "nope"},
            yahoo_summary={"earningsHistory": [1, 2], "incomeStatementHistoryQuarterly": None},
        )
        report = reconcile_earnings("AAPL", payloads, today=today)
        assert len(report.eps_history) == 3
        assert report.recommendation is None

    def test_adapter_exception_contained(self):
        def explode(payload):
            raise KeyError("period")

        assert engine._adapt("finnhub_earnings", [], explode, {}) == []

    def test_to_dict(self, payloads, today):
        data = reconcile_earnings("AAPL", payloads, today=today).to_dict()
        assert data["symbol"] == "AAPL"
        assert data["is_empty"] is False
        assert data["streak"] == {"type": "beat", "count": 3}
        assert data["recommendation"]["total"] == 43


class TestBuildCalendar:
    @pytest.fixture
    def window(self):
        return DateWindow(date(2024, 1, 1), date(2024, 3, 31))

    def test_screeners_before_finnhub(self, screener_quotes, finnhub_range_calendar, window):
        payloads = CalendarPayloads(
            screeners={"most_actives": screener_quotes, "day_gainers": []},
            finnhub_calendar=finnhub_range_calendar,
        )
        buckets = build_calendar(payloads, window, {"AAPL": "Technology"})
        assert list(buckets) == ["2024-01-30", "2024-02-01"]
        assert [e.symbol for e in buckets["2024-01-30"]] == ["MSFT", "SMCI", "XYZ"]
        msft = buckets["2024-01-30"][0]
        assert msft.eps_estimate == 12.5
        assert msft.sector == "Other"
        [aapl] = buckets["2024-02-01"]
        assert aapl.sector == "Technology"
        assert aapl.market_cap == 2_800_000_000_000

    def test_unavailable_feeds(self, finnhub_range_calendar, window):
        payloads = CalendarPayloads(screeners={"most_actives": None}, finnhub_calendar=finnhub_range_calendar)
        buckets = build_calendar(payloads, window, {})
        assert sum(len(v) for v in buckets.values()) == 3

    def test_idempotent(self, screener_quotes, finnhub_range_calendar, window):
        payloads = CalendarPayloads(screeners={"most_actives": screener_quotes}, finnhub_calendar=finnhub_range_calendar)
        assert build_calendar(payloads, window) == build_calendar(payloads, window)

    def test_feed_order(self):
        feeds = engine.calendar_feeds(
            CalendarPayloads(screeners={"day_losers": [], "most_actives": [], "custom": []}), {},
        )
        assert [f.name for f in feeds] == [
            "yahoo_screener:most_actives",
            "yahoo_screener:day_losers",
            "yahoo_screener:custom",
            "finnhub_calendar",
        ]
        assert feeds[-1].rows is None
