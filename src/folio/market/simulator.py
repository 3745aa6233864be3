"""Synthetic price paths for instruments without a live feed.

Two scales of bounded random walk with a slight upward drift:

- tick scale: the few-second "heartbeat" applied to live simulated
  prices, roughly ±0.15% per step;
- day scale: used to backfill a daily history (and the benchmark index),
  roughly ±0.8% per day.

Pure math over an injectable ``random.Random`` so runs are reproducible
in tests.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import date, timedelta

from folio.market.quotes import PricePoint

TICK_DRIFT = 0.00005
TICK_VOLATILITY = 0.0015

DAY_DRIFT = 0.0003
DAY_VOLATILITY = 0.008

HISTORY_START_SPREAD = 0.08  # history starts within ±8% of the current price
MIN_PRICE = 0.01

DEFAULT_HISTORY_DAYS = 90
BENCHMARK_START_LEVEL = 4500.0

Clock = Callable[[], date]


class PriceSimulator:
    """Random-walk price generator.

    Args:
        rng: Random source. Defaults to a fresh unseeded ``random.Random``;
            pass ``random.Random(seed)`` for deterministic output.
        clock: Returns "today"; history always ends on this date.
        benchmark_start: Nominal starting level of the benchmark index.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Clock = date.today,
        benchmark_start: float = BENCHMARK_START_LEVEL,
    ):
        if benchmark_start <= 0:
            raise ValueError(f"benchmark_start must be positive, got {benchmark_start}")
        self.rng = rng or random.Random()
        self.clock = clock
        self.benchmark_start = benchmark_start

    @classmethod
    def seeded(cls, seed: int | None, **kwargs) -> PriceSimulator:
        return cls(rng=random.Random(seed), **kwargs)

    def _shock(self) -> float:
        return self.rng.uniform(-1.0, 1.0)

    def simulate_tick(self, price: float) -> float:
        """Apply one tick-scale step to ``price``. Never returns less than 0.01."""
        if price <= 0:
            raise ValueError(f"price must be positive, got {price}")
        change = TICK_DRIFT + TICK_VOLATILITY * self._shock()
        return max(MIN_PRICE, price * (1 + change))

    def generate_history(self, current_price: float, days: int = DEFAULT_HISTORY_DAYS) -> list[PricePoint]:
        """Backfill ``days + 1`` daily points ending today at exactly ``current_price``."""
        if current_price <= 0:
            raise ValueError(f"current_price must be positive, got {current_price}")
        start = current_price * (1 - HISTORY_START_SPREAD + self.rng.random() * 2 * HISTORY_START_SPREAD)
        history = self._day_walk(start, days)
        history[-1] = PricePoint(date=history[-1].date, price=current_price)
        return history

    def generate_benchmark_history(self, days: int = DEFAULT_HISTORY_DAYS) -> list[PricePoint]:
        """Daily benchmark index path starting from the nominal level."""
        return self._day_walk(self.benchmark_start, days)

    def _day_walk(self, start: float, days: int) -> list[PricePoint]:
        if days < 0:
            raise ValueError(f"days must be >= 0, got {days}")
        today = self.clock()
        price = start
        history: list[PricePoint] = []
        for offset in range(days, -1, -1):
            price = price * (1 + DAY_DRIFT + DAY_VOLATILITY * self._shock())
            history.append(PricePoint(date=today - timedelta(days=offset), price=max(MIN_PRICE, round(price, 2))))
        return history
