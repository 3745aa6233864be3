"""Position ledger: the single owner of mutable portfolio state.

All mutations go through :class:`PositionLedger`. Inputs are validated
before anything is touched; lookups against the quote gateway never
raise out of the ledger, a failed lookup simply means "use simulated
values" (on add) or "keep what we have" (on refresh).
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from loguru import logger

from folio.core.exceptions import InputValidationError
from folio.market.gateway import QuoteGateway
from folio.market.quotes import PricePoint, Quote
from folio.market.simulator import DEFAULT_HISTORY_DAYS, Clock, PriceSimulator
from folio.portfolio.demo import build_demo_positions
from folio.portfolio.models import LedgerState, Position, Transaction, TransactionType, new_id
from folio.portfolio.validation import PositionInput, PositionUpdate, TransactionInput, validate_input

_DERIVED_FIELDS = ("shares", "avg_price")
_DERIVED_MESSAGE = "derived from transactions, add a transaction instead"


@dataclass
class RefreshResult:
    """Outcome of one real-quote refresh pass, as lists of tickers."""

    refreshed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass
class _Lookup:
    quote: Quote
    history: list[PricePoint]


class PositionLedger:
    """Owns the positions, their transaction logs and the benchmark series.

    Args:
        gateway: Source of real quotes and history.
        simulator: Random-walk generator for synthetic prices.
        clock: Returns "today".
        history_days: Length of simulated histories (in days, plus today).
        benchmark_days: Length of the simulated benchmark series.
    """

    def __init__(
        self,
        gateway: QuoteGateway,
        simulator: PriceSimulator | None = None,
        clock: Clock = date.today,
        history_days: int = DEFAULT_HISTORY_DAYS,
        benchmark_days: int = DEFAULT_HISTORY_DAYS,
    ):
        self.gateway = gateway
        self.simulator = simulator or PriceSimulator(clock=clock)
        self.clock = clock
        self.history_days = history_days
        self.benchmark_days = benchmark_days
        self._positions: list[Position] = []
        self._benchmark: list[PricePoint] = []

    # ── Read access ────────────────────────────────────────────────

    @property
    def positions(self) -> list[Position]:
        return list(self._positions)

    @property
    def benchmark_history(self) -> list[PricePoint]:
        return list(self._benchmark)

    def get(self, position_id: str) -> Position | None:
        for position in self._positions:
            if position.id == position_id:
                return position
        return None

    # ── State lifecycle ────────────────────────────────────────────

    def load_state(self, state: LedgerState | None) -> bool:
        """Adopt persisted state, or seed the demo portfolio.

        Returns:
            True when the demo portfolio was seeded because ``state`` was
            missing or held no positions.
        """
        if state is None or not state.positions:
            logger.info("No saved portfolio, seeding demo positions")
            self.reset_to_demo()
            return True

        self._positions = list(state.positions)
        self._benchmark = list(state.benchmark_history)
        if not self._benchmark:
            self._benchmark = self.simulator.generate_benchmark_history(self.benchmark_days)
        logger.info(f"Loaded {len(self._positions)} positions")
        return False

    def to_state(self) -> LedgerState:
        return LedgerState(positions=list(self._positions), benchmark_history=list(self._benchmark))

    def reset_to_demo(self) -> None:
        """Replace every position with the demo set and regenerate the benchmark."""
        self._positions = build_demo_positions(self.simulator, self.history_days)
        self._benchmark = self.simulator.generate_benchmark_history(self.benchmark_days)

    # ── Commands ───────────────────────────────────────────────────

    async def _lookup(self, ticker: str) -> _Lookup | None:
        try:
            quote = await self.gateway.fetch_quote(ticker)
        except Exception as e:
            logger.warning(f"Quote lookup failed for {ticker}: {e}")
            return None
        try:
            history = await self.gateway.fetch_history(ticker)
        except Exception as e:
            logger.warning(f"History lookup failed for {ticker}: {e}")
            history = []
        return _Lookup(quote=quote, history=history)

    async def add_position(self, data: PositionInput | Mapping[str, Any]) -> bool:
        """Open a new position, enriched by a real quote when one is available.

        Returns:
            True when the position was built from real gateway data.

        Raises:
            InputValidationError: If ``data`` is invalid. Nothing is added.
        """
        entry = validate_input(PositionInput, data)
        today = self.clock()
        lookup = await self._lookup(entry.ticker)

        buy = Transaction(
            id=new_id(),
            type=TransactionType.BUY,
            date=today,
            shares=entry.shares,
            price=entry.avg_price,
        )
        position = Position(
            id=new_id(),
            ticker=entry.ticker,
            name=entry.name,
            sector=entry.sector,
            currency=entry.currency,
            shares=entry.shares,
            avg_price=entry.avg_price,
            current_price=entry.current_price,
            open_price=entry.current_price,
            previous_close=entry.current_price,
            date_added=today,
            transactions=[buy],
        )

        if lookup is None:
            position.price_history = self.simulator.generate_history(entry.current_price, self.history_days)
        else:
            quote = lookup.quote
            position.name = quote.name or entry.name
            position.currency = quote.currency or entry.currency
            position.current_price = quote.current_price
            position.open_price = quote.open_price
            position.previous_close = quote.previous_close
            position.is_real_data = True
            if lookup.history:
                position.price_history = list(lookup.history)
                position.anchor_history(today)
            else:
                position.price_history = self.simulator.generate_history(quote.current_price, self.history_days)

        position.apply_transactions()
        self._positions.append(position)
        source = "real" if position.is_real_data else "simulated"
        logger.info(f"Added {position.ticker} ({source}): {position.shares} @ {position.avg_price}")
        return position.is_real_data

    def update_position(self, position_id: str, data: PositionUpdate | Mapping[str, Any]) -> Position | None:
        """Shallow-merge the provided fields into a position.

        ``shares`` and ``avg_price`` are refused once the position has a
        transaction log, since both are derived from it. Changing the
        current price re-anchors today's history point.

        Returns:
            The updated position, or None for an unknown id.

        Raises:
            InputValidationError: If ``data`` is invalid.
        """
        update = validate_input(PositionUpdate, data)
        position = self.get(position_id)
        if position is None:
            return None

        changes = update.changes()
        if position.transactions:
            derived = {name: _DERIVED_MESSAGE for name in _DERIVED_FIELDS if name in changes}
            if derived:
                raise InputValidationError(derived)

        for name, value in changes.items():
            setattr(position, name, value)
        if "current_price" in changes:
            position.anchor_history(self.clock())
        return position

    def delete_position(self, position_id: str) -> bool:
        before = len(self._positions)
        self._positions = [p for p in self._positions if p.id != position_id]
        return len(self._positions) != before

    def add_transaction(
        self, position_id: str, data: TransactionInput | Mapping[str, Any]
    ) -> Transaction | None:
        """Append a buy or sell and recompute shares and average cost.

        Returns:
            The stored transaction, or None for an unknown id.

        Raises:
            InputValidationError: If ``data`` is invalid.
        """
        entry = validate_input(TransactionInput, data)
        position = self.get(position_id)
        if position is None:
            return None
        tx = Transaction(id=new_id(), type=entry.type, date=entry.date, shares=entry.shares, price=entry.price)
        position.append_transaction(tx)
        logger.debug(f"{position.ticker}: {tx.type} {tx.shares} @ {tx.price} -> {position.shares} shares")
        return tx

    def tick(self) -> int:
        """Move every simulated position by one tick. Returns how many moved."""
        today = self.clock()
        moved = 0
        for position in self._positions:
            if position.is_real_data:
                continue
            position.current_price = round(self.simulator.simulate_tick(position.current_price), 2)
            position.anchor_history(today)
            moved += 1
        return moved

    async def refresh_real(self) -> RefreshResult:
        """Re-query every real position and commit the results in one pass.

        Lookups run concurrently. Positions whose lookup failed, or that
        were deleted while lookups were in flight, are left alone.
        """
        result = RefreshResult()
        targets = [p for p in self._positions if p.is_real_data]
        if not targets:
            return result

        lookups = await asyncio.gather(*(self._lookup(p.ticker) for p in targets))

        today = self.clock()
        for position, lookup in zip(targets, lookups, strict=True):
            if self.get(position.id) is None:
                continue
            if lookup is None:
                result.failed.append(position.ticker)
                continue
            quote = lookup.quote
            position.current_price = quote.current_price
            position.open_price = quote.open_price
            position.previous_close = quote.previous_close
            if lookup.history:
                position.price_history = list(lookup.history)
            position.anchor_history(today)
            result.refreshed.append(position.ticker)

        logger.info(f"Refreshed {len(result.refreshed)} real positions, {len(result.failed)} failed")
        return result
