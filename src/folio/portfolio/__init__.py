"""Portfolio domain: positions, their ledger, derived views and the session."""

from .aggregator import (
    HistoryWindow,
    compute_portfolio_history,
    compute_sector_breakdown,
    compute_stats,
    compute_top_performers,
    position_metrics,
    slice_history,
)
from .ledger import PositionLedger, RefreshResult
from .models import (
    HistoryPoint,
    LedgerState,
    PortfolioStats,
    Position,
    PositionMetrics,
    Sector,
    SectorSlice,
    TopPerformers,
    Transaction,
    TransactionType,
)
from .persistence import LedgerRepository
from .session import PortfolioSession
from .validation import PositionInput, PositionUpdate, TransactionInput

__all__ = [
    "HistoryPoint",
    "HistoryWindow",
    "LedgerRepository",
    "LedgerState",
    "PortfolioSession",
    "PortfolioStats",
    "Position",
    "PositionInput",
    "PositionLedger",
    "PositionMetrics",
    "PositionUpdate",
    "RefreshResult",
    "Sector",
    "SectorSlice",
    "TopPerformers",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    "compute_portfolio_history",
    "compute_sector_breakdown",
    "compute_stats",
    "compute_top_performers",
    "position_metrics",
    "slice_history",
]
