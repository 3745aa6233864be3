"""Tests for the position ledger."""

import asyncio

import pytest

from folio.core.exceptions import InputValidationError
from folio.market.quotes import PricePoint, Quote
from folio.portfolio.demo import DEMO_HOLDINGS
from folio.portfolio.ledger import PositionLedger
from folio.portfolio.models import LedgerState, Sector, TransactionType

AAPL_INPUT = {
    "ticker": "AAPL",
    "name": "Apple",
    "shares": 10,
    "avg_price": 100,
    "current_price": 120,
    "sector": "technology",
}


def _quote(ticker, price, open_price=None, previous_close=None, name=None):
    return Quote(
        ticker=ticker,
        name=name or f"{ticker} Corp",
        current_price=price,
        open_price=open_price or price,
        previous_close=previous_close or price,
    )


@pytest.fixture
def make_ledger(simulator, clock):
    def factory(gateway):
        return PositionLedger(gateway=gateway, simulator=simulator, clock=clock, history_days=30, benchmark_days=30)

    return factory


@pytest.mark.smoke
class TestAddPosition:
    async def test_gateway_failure_uses_input_values(self, offline_ledger, today):
        used_real = await offline_ledger.add_position(AAPL_INPUT)

        assert used_real is False
        [p] = offline_ledger.positions
        assert p.is_real_data is False
        assert p.shares == 10
        assert p.avg_price == 100
        assert p.current_price == 120
        assert p.open_price == 120
        assert p.previous_close == 120
        assert p.sector is Sector.TECHNOLOGY
        assert len(p.transactions) == 1
        tx = p.transactions[0]
        assert (tx.type, tx.shares, tx.price, tx.date) == (TransactionType.BUY, 10, 100, today)
        assert len(p.price_history) == 31
        assert p.price_history[-1] == PricePoint(today, 120)

    async def test_real_quote_and_history(self, make_ledger, gateway_factory, series, today):
        history = series([180.0, 185.0, 190.0])
        gateway = gateway_factory(
            quotes={"AAPL": _quote("AAPL", 195.2, 194.8, 193.0, name="Apple Inc.")},
            histories={"AAPL": history},
        )
        ledger = make_ledger(gateway)

        assert await ledger.add_position(AAPL_INPUT) is True
        [p] = ledger.positions
        assert p.is_real_data is True
        assert p.name == "Apple Inc."
        assert (p.current_price, p.open_price, p.previous_close) == (195.2, 194.8, 193.0)
        assert p.avg_price == 100
        assert [pt.price for pt in p.price_history] == [180.0, 185.0, 195.2]
        assert p.price_history[-1].date == today
        assert gateway.calls == ["AAPL"]

    async def test_real_quote_without_history_simulates(self, make_ledger, gateway_factory):
        ledger = make_ledger(gateway_factory(quotes={"AAPL": _quote("AAPL", 50.0)}))
        assert await ledger.add_position(AAPL_INPUT) is True
        [p] = ledger.positions
        assert len(p.price_history) == 31
        assert p.price_history[-1].price == 50.0

    async def test_invalid_input_touches_nothing(self, offline_ledger):
        with pytest.raises(InputValidationError) as exc:
            await offline_ledger.add_position({**AAPL_INPUT, "shares": 0, "name": ""})
        assert set(exc.value.errors) == {"shares", "name"}
        assert offline_ledger.positions == []
        assert offline_ledger.gateway.calls == []


class TestTransactions:
    async def test_sell_keeps_average(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions

        tx = offline_ledger.add_transaction(p.id, {"type": "sell", "shares": 4, "price": 130})

        assert tx is not None and tx.id
        assert p.shares == 6
        assert p.avg_price == 100

    async def test_buy_recomputes_average(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions
        offline_ledger.add_transaction(p.id, {"type": "buy", "shares": 10, "price": 140})
        assert p.shares == 20
        assert p.avg_price == pytest.approx(120.0)

    def test_unknown_id_is_noop(self, offline_ledger):
        assert offline_ledger.add_transaction("missing", {"type": "buy", "shares": 1, "price": 1}) is None

    def test_invalid_transaction_raises_first(self, offline_ledger):
        with pytest.raises(InputValidationError):
            offline_ledger.add_transaction("missing", {"type": "buy", "shares": -1, "price": 1})


class TestUpdateAndDelete:
    async def test_update_merges_fields(self, offline_ledger, today):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions

        updated = offline_ledger.update_position(p.id, {"name": "Apple Inc.", "current_price": 130})

        assert updated is p
        assert p.name == "Apple Inc."
        assert p.current_price == 130
        assert p.price_history[-1] == PricePoint(today, 130)
        assert p.ticker == "AAPL"

    async def test_update_refuses_derived_fields(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions
        with pytest.raises(InputValidationError) as exc:
            offline_ledger.update_position(p.id, {"shares": 3})
        assert "shares" in exc.value.errors
        assert p.shares == 10

    def test_update_unknown_id(self, offline_ledger):
        assert offline_ledger.update_position("missing", {"name": "x"}) is None

    async def test_delete(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions
        assert offline_ledger.delete_position("missing") is False
        assert offline_ledger.delete_position(p.id) is True
        assert offline_ledger.positions == []


class TestTick:
    async def test_two_ticks_same_day_leave_one_point(self, offline_ledger, today):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions
        length = len(p.price_history)

        offline_ledger.tick()
        offline_ledger.tick()

        assert len(p.price_history) == length
        todays = [pt for pt in p.price_history if pt.date == today]
        assert todays == [PricePoint(today, p.current_price)]
        assert round(p.current_price, 2) == p.current_price

    async def test_tick_skips_real_positions(self, make_ledger, gateway_factory):
        ledger = make_ledger(gateway_factory(quotes={"AAPL": _quote("AAPL", 200.0)}))
        await ledger.add_position(AAPL_INPUT)
        await ledger.add_position({**AAPL_INPUT, "ticker": "SIM"})

        assert ledger.tick() == 1
        real = next(p for p in ledger.positions if p.ticker == "AAPL")
        assert real.current_price == 200.0

    async def test_tick_leaves_open_price(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        [p] = offline_ledger.positions
        for _ in range(10):
            offline_ledger.tick()
        assert p.open_price == 120


class TestRefreshReal:
    async def test_partial_failure(self, make_ledger, gateway_factory, series, today):
        gateway = gateway_factory(quotes={"AAPL": _quote("AAPL", 100.0), "MSFT": _quote("MSFT", 300.0)})
        ledger = make_ledger(gateway)
        await ledger.add_position(AAPL_INPUT)
        await ledger.add_position({**AAPL_INPUT, "ticker": "MSFT"})
        aapl, msft = ledger.positions
        msft_before = (msft.current_price, msft.open_price, msft.previous_close, list(msft.price_history))

        gateway.quotes["AAPL"] = _quote("AAPL", 110.0, 105.0, 104.0)
        gateway.histories["AAPL"] = series([90.0, 95.0, 110.0])
        gateway.failing.add("MSFT")

        result = await ledger.refresh_real()

        assert result.refreshed == ["AAPL"]
        assert result.failed == ["MSFT"]
        assert (aapl.current_price, aapl.open_price, aapl.previous_close) == (110.0, 105.0, 104.0)
        assert aapl.price_history == series([90.0, 95.0, 110.0])
        assert (msft.current_price, msft.open_price, msft.previous_close, msft.price_history) == msft_before

    async def test_lookups_run_concurrently(self, make_ledger, gateway_factory):
        in_flight = 0
        peak = 0

        class SlowGateway(gateway_factory):
            async def fetch_quote(self, ticker):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return await super().fetch_quote(ticker)

        gateway = SlowGateway(quotes={t: _quote(t, 10.0) for t in ("A", "B", "C")})
        ledger = make_ledger(gateway)
        for t in ("A", "B", "C"):
            await ledger.add_position({**AAPL_INPUT, "ticker": t})
        peak = 0

        result = await ledger.refresh_real()
        assert sorted(result.refreshed) == ["A", "B", "C"]
        assert peak == 3

    async def test_position_deleted_during_refresh_is_skipped(self, make_ledger, gateway_factory):
        release = asyncio.Event()

        class BlockingGateway(gateway_factory):
            async def fetch_quote(self, ticker):
                if self.calls:
                    await release.wait()
                return await super().fetch_quote(ticker)

        gateway = BlockingGateway(quotes={"AAPL": _quote("AAPL", 10.0)})
        ledger = make_ledger(gateway)
        await ledger.add_position(AAPL_INPUT)
        [p] = ledger.positions

        task = asyncio.create_task(ledger.refresh_real())
        await asyncio.sleep(0)
        ledger.delete_position(p.id)
        release.set()
        result = await task

        assert result.refreshed == []
        assert result.failed == []
        assert ledger.positions == []

    async def test_no_real_positions(self, offline_ledger):
        await offline_ledger.add_position(AAPL_INPUT)
        result = await offline_ledger.refresh_real()
        assert result.refreshed == [] and result.failed == []


class TestLifecycle:
    def test_missing_state_seeds_demo(self, offline_ledger):
        assert offline_ledger.load_state(None) is True
        assert [p.ticker for p in offline_ledger.positions] == [h.ticker for h in DEMO_HOLDINGS]
        assert len(offline_ledger.benchmark_history) == 31

    def test_empty_state_seeds_demo(self, offline_ledger):
        assert offline_ledger.load_state(LedgerState()) is True
        assert len(offline_ledger.positions) == len(DEMO_HOLDINGS)

    def test_loaded_state_regenerates_missing_benchmark(self, offline_ledger, position_factory):
        assert offline_ledger.load_state(LedgerState(positions=[position_factory()])) is False
        assert [p.ticker for p in offline_ledger.positions] == ["AAPL"]
        assert len(offline_ledger.benchmark_history) == 31

    def test_reset_to_demo(self, offline_ledger, today):
        offline_ledger.reset_to_demo()
        positions = offline_ledger.positions
        nvda = next(p for p in positions if p.ticker == "NVDA")
        assert (nvda.shares, nvda.avg_price, nvda.current_price, nvda.open_price) == (8, 480.0, 875.3, 873.5)
        for p in positions:
            assert len(p.transactions) == 1
            assert p.price_history[-1] == PricePoint(today, p.current_price)
            assert not p.is_real_data
