"""Shared test fixtures for folio."""

import os
import random
from datetime import date, timedelta

import pytest

from folio.core.exceptions import GatewayTransportError, QuoteNotFoundError
from folio.market.quotes import PricePoint, Quote
from folio.market.simulator import PriceSimulator
from folio.portfolio.ledger import PositionLedger
from folio.portfolio.models import Position, Sector, Transaction, TransactionType

TODAY = date(2025, 3, 14)


class FakeGateway:
    """In-memory quote gateway.

    Tickers in ``quotes`` succeed; anything else (or anything listed in
    ``failing``) raises like a real gateway would.
    """

    def __init__(self, quotes=None, histories=None, failing=()):
        self.quotes: dict[str, Quote] = dict(quotes or {})
        self.histories: dict[str, list[PricePoint]] = dict(histories or {})
        self.failing = set(failing)
        self.calls: list[str] = []

    async def fetch_quote(self, ticker):
        self.calls.append(ticker)
        if ticker in self.failing:
            raise GatewayTransportError(ticker, "connection refused")
        if ticker not in self.quotes:
            raise QuoteNotFoundError(ticker, "unknown ticker")
        return self.quotes[ticker]

    async def fetch_history(self, ticker, period="6mo", interval="1d"):
        if ticker in self.failing:
            raise GatewayTransportError(ticker, "connection refused")
        return list(self.histories.get(ticker, []))


def daily_series(prices, end=TODAY):
    """PricePoints for consecutive days ending on ``end``."""
    start = end - timedelta(days=len(prices) - 1)
    return [PricePoint(date=start + timedelta(days=i), price=p) for i, p in enumerate(prices)]


def make_position(
    ticker="AAPL",
    shares=10.0,
    avg_price=100.0,
    current_price=120.0,
    open_price=None,
    sector=Sector.TECHNOLOGY,
    history=None,
    is_real_data=False,
    position_id=None,
):
    buy = Transaction(id=f"tx-{ticker}", type=TransactionType.BUY, date=TODAY, shares=shares, price=avg_price)
    return Position(
        id=position_id or f"pos-{ticker}",
        ticker=ticker,
        name=f"{ticker} Inc.",
        sector=sector,
        currency="USD",
        shares=shares,
        avg_price=avg_price,
        current_price=current_price,
        open_price=current_price if open_price is None else open_price,
        previous_close=current_price if open_price is None else open_price,
        date_added=TODAY,
        price_history=history if history is not None else daily_series([current_price]),
        transactions=[buy],
        is_real_data=is_real_data,
    )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep FOLIO_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("FOLIO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def simulator(clock):
    return PriceSimulator(rng=random.Random(42), clock=clock)


@pytest.fixture
def gateway_factory():
    return FakeGateway


@pytest.fixture
def series():
    return daily_series


@pytest.fixture
def position_factory():
    return make_position


@pytest.fixture
def offline_ledger(simulator, clock):
    """Ledger whose gateway knows no tickers."""
    return PositionLedger(gateway=FakeGateway(), simulator=simulator, clock=clock, history_days=30, benchmark_days=30)


@pytest.fixture
def tmp_config_file(tmp_path):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {"data_dir": str(tmp_path / "data")},
        "scheduler": {"tick_seconds": 2, "refresh_seconds": 60},
        "simulator": {"seed": 7, "history_days": 10},
        "gateway": {"enabled": False},
    }
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return str(config_path)
