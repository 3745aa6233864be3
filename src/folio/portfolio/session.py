"""Portfolio session: the composition root the presentation layer talks to.

A session wires the ledger to its persistence and scheduler, guards the
real refresh against re-entry, and exposes the read accessors. Every
mutating command schedules a snapshot; snapshots are serialised at the
moment of the mutation and written by a single background writer, so
bursts of ticks collapse into one write of the latest state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from loguru import logger

from folio.core.exceptions import StorageError
from folio.core.storage import LocalStorage, StorageBackend
from folio.market.gateway import OfflineQuoteGateway, QuoteGateway, YahooQuoteGateway
from folio.market.quotes import PricePoint
from folio.market.simulator import PriceSimulator
from folio.portfolio.aggregator import (
    HistoryWindow,
    compute_portfolio_history,
    compute_sector_breakdown,
    compute_stats,
    compute_top_performers,
    position_metrics,
    slice_history,
)
from folio.portfolio.ledger import PositionLedger, RefreshResult
from folio.portfolio.models import (
    HistoryPoint,
    PortfolioStats,
    Position,
    PositionMetrics,
    SectorSlice,
    TopPerformers,
    Transaction,
)
from folio.portfolio.persistence import LedgerRepository
from folio.portfolio.validation import PositionInput, PositionUpdate, TransactionInput
from folio.scheduler import RefreshScheduler


class PortfolioSession:
    """One user's portfolio, loaded from and saved to a storage backend.

    Args:
        ledger: The position ledger holding in-memory state.
        repository: Snapshot persistence for the ledger.
        tick_seconds: Interval of the simulated price tick.
        refresh_seconds: Interval of the periodic real refresh, 0 to
            disable (refreshes can still be requested on demand).
    """

    def __init__(
        self,
        ledger: PositionLedger,
        repository: LedgerRepository,
        tick_seconds: float = 5.0,
        refresh_seconds: float = 0.0,
    ):
        self.ledger = ledger
        self.repository = repository
        self.scheduler = RefreshScheduler(
            tick_fn=self.tick,
            refresh_fn=self.refresh_real,
            tick_seconds=tick_seconds,
            refresh_seconds=refresh_seconds,
        )
        self._loaded = False
        self._refreshing = False
        self._pending: bytes | None = None
        self._writer: asyncio.Task | None = None

    @classmethod
    def from_config(
        cls,
        config: Any,
        gateway: QuoteGateway | None = None,
        storage: StorageBackend | None = None,
    ) -> PortfolioSession:
        """Build a session from a :class:`~folio.core.config.Config`.

        ``gateway`` and ``storage`` override the configured ones.
        """
        settings = config.validated()

        if gateway is None:
            if settings.gateway.enabled:
                gateway = YahooQuoteGateway(
                    base_url=settings.gateway.base_url,
                    timeout=settings.gateway.timeout,
                    user_agent=settings.gateway.user_agent,
                )
            else:
                gateway = OfflineQuoteGateway()
        if storage is None:
            storage = LocalStorage(base_path=str(settings.paths.data_dir))

        simulator = PriceSimulator.seeded(settings.simulator.seed, benchmark_start=settings.simulator.benchmark_start)
        ledger = PositionLedger(
            gateway=gateway,
            simulator=simulator,
            history_days=settings.simulator.history_days,
            benchmark_days=settings.simulator.benchmark_days,
        )
        repository = LedgerRepository(storage, key=settings.storage.key, compress=settings.storage.compress)
        return cls(
            ledger,
            repository,
            tick_seconds=settings.scheduler.tick_seconds,
            refresh_seconds=settings.scheduler.refresh_seconds,
        )

    # ── Lifecycle ──────────────────────────────────────────────────

    async def load(self) -> None:
        """Restore the last snapshot, or seed (and save) the demo portfolio."""
        state = await self.repository.load()
        if self.ledger.load_state(state):
            self._persist()
        self._loaded = True

    def start(self) -> None:
        """Start the tick loop (and periodic refresh, if configured)."""
        self.scheduler.start()

    async def stop(self) -> None:
        """Stop the scheduler, write any pending snapshot and close the gateway."""
        self.scheduler.shutdown()
        await self.flush()
        aclose = getattr(self.ledger.gateway, "aclose", None)
        if aclose is not None:
            await aclose()

    async def flush(self) -> None:
        """Wait until every scheduled snapshot has been written."""
        while self._writer is not None and not self._writer.done():
            await self._writer

    def _persist(self) -> None:
        self._pending = self.repository.serialize(self.ledger.to_state())
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._drain())
            return
        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending is not None:
            payload, self._pending = self._pending, None
            try:
                await self.repository.write(payload)
            except (StorageError, OSError) as e:
                logger.warning(f"Could not save portfolio snapshot: {e}")

    # ── Commands ───────────────────────────────────────────────────

    async def add_position(self, data: PositionInput | Mapping[str, Any]) -> bool:
        used_real = await self.ledger.add_position(data)
        self._persist()
        return used_real

    def update_position(self, position_id: str, data: PositionUpdate | Mapping[str, Any]) -> Position | None:
        position = self.ledger.update_position(position_id, data)
        if position is not None:
            self._persist()
        return position

    def delete_position(self, position_id: str) -> bool:
        deleted = self.ledger.delete_position(position_id)
        if deleted:
            self._persist()
        return deleted

    def add_transaction(self, position_id: str, data: TransactionInput | Mapping[str, Any]) -> Transaction | None:
        tx = self.ledger.add_transaction(position_id, data)
        if tx is not None:
            self._persist()
        return tx

    def tick(self) -> int:
        moved = self.ledger.tick()
        self._persist()
        return moved

    async def refresh_real(self) -> RefreshResult | None:
        """Refresh real positions unless a refresh is already running.

        Returns:
            The refresh outcome, or None when the request was ignored
            because another refresh was in flight.
        """
        if self._refreshing:
            logger.debug("Real refresh already in progress, ignoring request")
            return None
        self._refreshing = True
        try:
            result = await self.ledger.refresh_real()
        finally:
            self._refreshing = False
        if result.refreshed:
            self._persist()
        return result

    def reset_to_demo(self) -> None:
        self.ledger.reset_to_demo()
        self._persist()
        logger.info("Portfolio reset to demo positions")

    # ── Read accessors ─────────────────────────────────────────────

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def positions(self) -> list[Position]:
        return self.ledger.positions

    @property
    def benchmark_history(self) -> list[PricePoint]:
        return self.ledger.benchmark_history

    def get(self, position_id: str) -> Position | None:
        return self.ledger.get(position_id)

    def stats(self) -> PortfolioStats:
        return compute_stats(self.ledger.positions)

    def sector_breakdown(self) -> list[SectorSlice]:
        return compute_sector_breakdown(self.ledger.positions)

    def portfolio_history(self, window: HistoryWindow | str = HistoryWindow.ALL) -> list[HistoryPoint]:
        history = compute_portfolio_history(self.ledger.positions, self.ledger.benchmark_history)
        return slice_history(history, window)

    def metrics(self) -> list[PositionMetrics]:
        return [position_metrics(p) for p in self.ledger.positions]

    def top_performers(self, limit: int = 3) -> TopPerformers:
        return compute_top_performers(self.ledger.positions, limit=limit)
