"""Refresh scheduler: interval-driven price ticks and real-quote refreshes.

Wraps APScheduler's ``AsyncIOScheduler`` with two interval jobs: a fast
tick that moves simulated prices and an optional slower job that
refreshes real quotes. Each job runs at most once at a time and missed
runs are coalesced.

APScheduler is imported lazily (only in :meth:`start`) so the module
can be imported without triggering heavy dependencies at import time.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

TickFn = Callable[[], Any]
"""Sync callable run on every tick, typically ``session.tick``."""

RefreshFn = Callable[[], Awaitable[Any]]
"""Async callable for the periodic real refresh, typically ``session.refresh_real``."""

TICK_JOB_ID = "price_tick"
REFRESH_JOB_ID = "real_refresh"


class RefreshScheduler:
    """Interval scheduler owned by a portfolio session.

    Args:
        tick_fn: Called every ``tick_seconds``.
        refresh_fn: Awaited every ``refresh_seconds``; ignored when None
            or when ``refresh_seconds`` is 0.
        tick_seconds: Tick interval in seconds.
        refresh_seconds: Real refresh interval in seconds, 0 to disable.
    """

    def __init__(
        self,
        tick_fn: TickFn,
        refresh_fn: RefreshFn | None = None,
        tick_seconds: float = 5.0,
        refresh_seconds: float = 0.0,
    ):
        if tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be positive, got {tick_seconds}")
        if refresh_seconds < 0:
            raise ValueError(f"refresh_seconds must be >= 0, got {refresh_seconds}")
        self._tick_fn = tick_fn
        self._refresh_fn = refresh_fn
        self.tick_seconds = tick_seconds
        self.refresh_seconds = refresh_seconds
        self._scheduler: Any = None  # AsyncIOScheduler, lazily created

    @property
    def refresh_enabled(self) -> bool:
        return self._refresh_fn is not None and self.refresh_seconds > 0

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self) -> None:
        """Create the APScheduler instance, add the jobs, and start.

        Must be called from a running asyncio event loop.
        """
        if self.running:
            return

        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from apscheduler.triggers.interval import IntervalTrigger

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self._fire_tick,
            trigger=IntervalTrigger(seconds=self.tick_seconds),
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info(f"Registered tick job every {self.tick_seconds}s")

        if self.refresh_enabled:
            self._scheduler.add_job(
                self._fire_refresh,
                trigger=IntervalTrigger(seconds=self.refresh_seconds),
                id=REFRESH_JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            logger.info(f"Registered real refresh job every {self.refresh_seconds}s")

        self._scheduler.start()
        logger.info("RefreshScheduler started")

    def shutdown(self) -> None:
        """Stop all jobs. Safe to call more than once."""
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("RefreshScheduler shut down")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def apscheduler(self) -> Any:
        """The raw APScheduler instance, or None before :meth:`start`."""
        return self._scheduler

    # ── Job bodies ─────────────────────────────────────────────────

    async def _fire_tick(self) -> None:
        try:
            self._tick_fn()
        except Exception:
            logger.exception("Price tick failed")

    async def _fire_refresh(self) -> None:
        if self._refresh_fn is None:
            return
        try:
            await self._refresh_fn()
        except Exception:
            logger.exception("Scheduled real refresh failed")
