"""Tests for the derived portfolio views."""

import math

import pytest

from folio.portfolio.aggregator import (
    HistoryWindow,
    compute_portfolio_history,
    compute_sector_breakdown,
    compute_stats,
    compute_top_performers,
    position_metrics,
    slice_history,
)
from folio.portfolio.models import PortfolioStats, Sector


@pytest.mark.smoke
class TestComputeStats:
    def test_empty_portfolio_is_all_zero(self):
        stats = compute_stats([])
        assert stats == PortfolioStats()
        assert all(math.isfinite(v) for v in vars(stats).values())

    def test_totals(self, position_factory):
        positions = [
            position_factory("AAPL", shares=10, avg_price=100, current_price=120, open_price=110),
            position_factory("XOM", shares=5, avg_price=50, current_price=40, open_price=40),
        ]
        stats = compute_stats(positions)
        assert stats.total_value == pytest.approx(1400.0)
        assert stats.total_invested == pytest.approx(1250.0)
        assert stats.total_profit == pytest.approx(150.0)
        assert stats.total_profit_percent == pytest.approx(12.0)
        assert stats.day_change == pytest.approx(100.0)
        assert stats.day_change_percent == pytest.approx(100.0 / 1300.0 * 100)

    def test_zero_invested_gives_zero_percent(self, position_factory):
        stats = compute_stats([position_factory(shares=0)])
        assert stats.total_profit_percent == 0.0
        assert stats.day_change_percent == 0.0


class TestPositionMetrics:
    def test_values(self, position_factory):
        m = position_metrics(position_factory(shares=2, avg_price=50, current_price=60, open_price=55))
        assert m.value == 120
        assert m.invested == 100
        assert m.profit == 20
        assert m.profit_percent == pytest.approx(20.0)
        assert m.day_change == pytest.approx(10.0)
        assert m.day_change_percent == pytest.approx(5 / 55 * 100)

    def test_zero_open_price(self, position_factory):
        m = position_metrics(position_factory(open_price=0))
        assert m.day_change_percent == 0.0


class TestSectorBreakdown:
    def test_one_slice_per_present_sector(self, position_factory):
        positions = [
            position_factory("AAPL", shares=1, current_price=100, sector=Sector.TECHNOLOGY),
            position_factory("MSFT", shares=2, current_price=50, sector=Sector.TECHNOLOGY),
            position_factory("JNJ", shares=1, current_price=30, sector=Sector.HEALTHCARE),
        ]
        slices = {s.sector: s.value for s in compute_sector_breakdown(positions)}
        assert slices == {Sector.TECHNOLOGY: 200.0, Sector.HEALTHCARE: 30.0}

    def test_empty(self):
        assert compute_sector_breakdown([]) == []


class TestPortfolioHistory:
    def test_truncates_to_shortest_history(self, position_factory, series):
        positions = [
            position_factory("A", history=series([1.0] * 10)),
            position_factory("B", history=series([1.0] * 5)),
            position_factory("C", history=series([1.0] * 20)),
        ]
        assert len(compute_portfolio_history(positions, series([100.0] * 30))) == 5

    def test_values_invested_and_benchmark(self, position_factory, series):
        positions = [
            position_factory("A", shares=2, avg_price=10, current_price=12, history=series([10.0, 11.0, 12.0])),
            position_factory("B", shares=1, avg_price=5, current_price=6, history=series([4.0, 5.0, 6.0])),
        ]
        bench = series([4000.0, 4400.0, 3600.0])
        history = compute_portfolio_history(positions, bench)

        assert [h.value for h in history] == [24.0, 27.0, 30.0]
        assert all(h.invested == 25.0 for h in history)
        assert [h.sp500 for h in history] == [24.0, 26.4, 21.6]
        assert history[0].date == positions[0].price_history[0].date

    def test_short_benchmark_leaves_gaps(self, position_factory, series):
        positions = [position_factory(history=series([1.0, 2.0, 3.0]))]
        history = compute_portfolio_history(positions, series([10.0]))
        assert [h.sp500 for h in history] == [10.0 / 10.0 * 10.0, None, None]

    def test_rounds_to_cents(self, position_factory, series):
        positions = [position_factory(shares=3, avg_price=0.333, history=series([0.333]))]
        point = compute_portfolio_history(positions)[0]
        assert point.value == 1.0
        assert point.invested == 1.0
        assert point.sp500 is None

    def test_empty_inputs(self, position_factory):
        assert compute_portfolio_history([], []) == []
        assert compute_portfolio_history([position_factory(history=[])], []) == []


class TestTopPerformers:
    def test_rankings(self, position_factory):
        positions = [
            position_factory("UP1", shares=1, avg_price=100, current_price=150),
            position_factory("UP2", shares=10, avg_price=100, current_price=110),
            position_factory("DN1", shares=1, avg_price=100, current_price=50),
            position_factory("DN2", shares=1, avg_price=100, current_price=90),
            position_factory("FLAT", shares=1, avg_price=100, current_price=100),
        ]
        top = compute_top_performers(positions)
        assert [m.ticker for m in top.gainers] == ["UP1", "UP2", "FLAT"]
        assert [m.ticker for m in top.losers] == ["DN1", "DN2"]
        assert [m.ticker for m in top.biggest] == ["UP2", "UP1", "FLAT"]

    def test_no_losers_when_all_positive(self, position_factory):
        top = compute_top_performers([position_factory(current_price=200)])
        assert top.losers == []


class TestSliceHistory:
    @pytest.mark.parametrize(
        "window,expected",
        [("1M", 30), ("3M", 90), ("6M", 180), ("ALL", 200), (HistoryWindow.THREE_MONTHS, 90)],
    )
    def test_windows(self, window, expected):
        series = list(range(200))
        sliced = slice_history(series, window)
        assert len(sliced) == expected
        assert sliced[-1] == 199

    def test_shorter_than_window(self):
        assert slice_history([1, 2, 3], "6M") == [1, 2, 3]

    def test_unknown_window(self):
        with pytest.raises(ValueError):
            slice_history([1], "5Y")
