"""Derived portfolio views.

Stateless functions over a list of positions; nothing here mutates its
input or is persisted. Callers recompute on every read.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import TypeVar

from folio.market.quotes import PricePoint
from folio.portfolio.models import (
    HistoryPoint,
    PortfolioStats,
    Position,
    PositionMetrics,
    Sector,
    SectorSlice,
    TopPerformers,
)

_T = TypeVar("_T")


def _percent(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def position_metrics(position: Position) -> PositionMetrics:
    """Value, cost basis and daily move of a single position."""
    value = position.shares * position.current_price
    invested = position.shares * position.avg_price
    profit = value - invested
    day_change = position.shares * (position.current_price - position.open_price)
    return PositionMetrics(
        position_id=position.id,
        ticker=position.ticker,
        value=value,
        invested=invested,
        profit=profit,
        profit_percent=_percent(profit, invested),
        day_change=day_change,
        day_change_percent=_percent(position.current_price - position.open_price, position.open_price),
    )


def compute_stats(positions: Sequence[Position]) -> PortfolioStats:
    """Portfolio totals. An empty portfolio yields all zeros."""
    total_value = 0.0
    total_invested = 0.0
    day_change = 0.0
    open_value = 0.0
    for p in positions:
        total_value += p.shares * p.current_price
        total_invested += p.shares * p.avg_price
        day_change += p.shares * (p.current_price - p.open_price)
        open_value += p.shares * p.open_price

    total_profit = total_value - total_invested
    return PortfolioStats(
        total_value=total_value,
        total_invested=total_invested,
        total_profit=total_profit,
        total_profit_percent=_percent(total_profit, total_invested),
        day_change=day_change,
        day_change_percent=_percent(day_change, open_value),
    )


def compute_sector_breakdown(positions: Sequence[Position]) -> list[SectorSlice]:
    """Market value per sector, one slice for each sector that is present."""
    totals: dict[Sector, float] = {}
    for p in positions:
        totals[p.sector] = totals.get(p.sector, 0.0) + p.shares * p.current_price
    return [SectorSlice(sector=sector, value=value) for sector, value in totals.items()]


def compute_portfolio_history(
    positions: Sequence[Position], benchmark: Sequence[PricePoint] = ()
) -> list[HistoryPoint]:
    """Aggregate per-position histories into one value/invested/benchmark series.

    Histories are aligned by index from their start and truncated to the
    shortest one; dates come from the first position. ``invested`` uses
    the current share count and average cost at every index, so it is a
    flat line. The benchmark is rescaled to start at the portfolio's first
    value.
    """
    if not positions:
        return []
    length = min(len(p.price_history) for p in positions)
    if length == 0:
        return []

    invested = round(sum(p.shares * p.avg_price for p in positions), 2)
    base_value: float | None = None
    bench_base = benchmark[0].price if benchmark else 0.0

    history = []
    for i in range(length):
        value = round(sum(p.shares * p.price_history[i].price for p in positions), 2)
        if base_value is None:
            base_value = value
        sp500 = None
        if i < len(benchmark) and bench_base > 0:
            sp500 = round(benchmark[i].price / bench_base * base_value, 2)
        history.append(
            HistoryPoint(date=positions[0].price_history[i].date, value=value, invested=invested, sp500=sp500)
        )
    return history


def compute_top_performers(positions: Sequence[Position], limit: int = 3) -> TopPerformers:
    """Best and worst positions by return, plus the largest holdings.

    Only positions with a negative return qualify as losers.
    """
    metrics = [position_metrics(p) for p in positions]
    gainers = sorted(metrics, key=lambda m: m.profit_percent, reverse=True)[:limit]
    losers = sorted((m for m in metrics if m.profit_percent < 0), key=lambda m: m.profit_percent)[:limit]
    biggest = sorted(metrics, key=lambda m: m.value, reverse=True)[:limit]
    return TopPerformers(gainers=gainers, losers=losers, biggest=biggest)


class HistoryWindow(StrEnum):
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ALL = "ALL"

    @property
    def points(self) -> int | None:
        return _WINDOW_POINTS[self]


_WINDOW_POINTS: dict[HistoryWindow, int | None] = {
    HistoryWindow.ONE_MONTH: 30,
    HistoryWindow.THREE_MONTHS: 90,
    HistoryWindow.SIX_MONTHS: 180,
    HistoryWindow.ALL: None,
}


def slice_history(series: Sequence[_T], window: HistoryWindow | str = HistoryWindow.ALL) -> list[_T]:
    """Trailing points of ``series`` for a chart window (``ALL`` keeps everything)."""
    points = HistoryWindow(window).points
    if points is None:
        return list(series)
    return list(series[-points:])
