"""Core portfolio data models.

Positions, their transaction logs and price histories, plus the derived
read-side types the aggregator produces. Everything here is a plain
dataclass; serialisation helpers (``to_dict`` / ``from_dict``) use JSON
friendly primitives so snapshots can be written by any storage backend.
"""

from __future__ import annotations

import bisect
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

from folio.core.exceptions import PersistedStateError
from folio.market.quotes import PricePoint

SCHEMA_VERSION = 2


class Sector(StrEnum):
    TECHNOLOGY = "technology"
    HEALTHCARE = "healthcare"
    FINANCE = "finance"
    ENERGY = "energy"
    CONSUMER = "consumer"
    INDUSTRIAL = "industrial"
    REAL_ESTATE = "realestate"
    COMMUNICATION = "communication"
    MATERIALS = "materials"
    UTILITIES = "utilities"
    OTHER = "other"

    @property
    def label(self) -> str:
        return SECTOR_LABELS[self]

    @classmethod
    def coerce(cls, value: str | None) -> Sector:
        """Map a stored tag to a Sector, falling back to OTHER for unknown tags."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


SECTOR_LABELS: dict[Sector, str] = {
    Sector.TECHNOLOGY: "Technology",
    Sector.HEALTHCARE: "Healthcare",
    Sector.FINANCE: "Finance",
    Sector.ENERGY: "Energy",
    Sector.CONSUMER: "Consumer Goods",
    Sector.INDUSTRIAL: "Industrials",
    Sector.REAL_ESTATE: "Real Estate",
    Sector.COMMUNICATION: "Communication",
    Sector.MATERIALS: "Materials",
    Sector.UTILITIES: "Utilities",
    Sector.OTHER: "Other",
}

CURRENCIES = ("USD", "EUR", "CZK", "GBP")


class TransactionType(StrEnum):
    BUY = "buy"
    SELL = "sell"


def new_id() -> str:
    """Opaque identifier for positions and transactions."""
    return uuid.uuid4().hex[:16]


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    if key not in data:
        raise PersistedStateError(f"{kind} is missing required field '{key}'")
    return data[key]


@dataclass(frozen=True)
class Transaction:
    """A single buy or sell. Immutable once appended to a position's log."""

    id: str
    type: TransactionType
    date: date
    shares: float
    price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "shares": self.shares,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        try:
            return cls(
                id=str(_require(data, "id", "Transaction")),
                type=TransactionType(_require(data, "type", "Transaction")),
                date=date.fromisoformat(_require(data, "date", "Transaction")),
                shares=float(_require(data, "shares", "Transaction")),
                price=float(_require(data, "price", "Transaction")),
            )
        except (TypeError, ValueError) as e:
            raise PersistedStateError(f"Invalid transaction {data!r}: {e}") from e


@dataclass
class Position:
    """A tracked holding.

    ``shares`` and ``avg_price`` are derived from ``transactions`` via
    :meth:`apply_transactions`; ``price_history`` is ordered by date with
    at most one point per day, the last one matching ``current_price``.
    """

    id: str
    ticker: str
    name: str
    sector: Sector
    currency: str
    shares: float
    avg_price: float
    current_price: float
    open_price: float
    previous_close: float
    date_added: date
    price_history: list[PricePoint] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    is_real_data: bool = False

    def apply_transactions(self) -> None:
        """Recompute share count and average cost from the transaction log.

        Sells reduce the share count but never the cost basis; the average
        only moves when the log holds buys.
        """
        bought = sum(tx.shares for tx in self.transactions if tx.type == TransactionType.BUY)
        sold = sum(tx.shares for tx in self.transactions if tx.type == TransactionType.SELL)
        self.shares = max(0.0, bought - sold)
        if bought > 0:
            cost = sum(tx.shares * tx.price for tx in self.transactions if tx.type == TransactionType.BUY)
            self.avg_price = cost / bought

    def append_transaction(self, tx: Transaction) -> None:
        self.transactions.append(tx)
        self.apply_transactions()

    def upsert_price(self, point: PricePoint) -> None:
        """Insert a point, replacing any existing point for the same day."""
        history = self.price_history
        if not history or history[-1].date < point.date:
            history.append(point)
            return
        if history[-1].date == point.date:
            history[-1] = point
            return
        dates = [p.date for p in history]
        idx = bisect.bisect_left(dates, point.date)
        if idx < len(history) and history[idx].date == point.date:
            history[idx] = point
        else:
            history.insert(idx, point)

    def anchor_history(self, on: date) -> None:
        """Make ``on``'s history point carry the current price."""
        self.upsert_price(PricePoint(date=on, price=self.current_price))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ticker": self.ticker,
            "name": self.name,
            "sector": self.sector.value,
            "currency": self.currency,
            "shares": self.shares,
            "avg_price": self.avg_price,
            "current_price": self.current_price,
            "open_price": self.open_price,
            "previous_close": self.previous_close,
            "date_added": self.date_added.isoformat(),
            "price_history": [p.to_dict() for p in self.price_history],
            "transactions": [tx.to_dict() for tx in self.transactions],
            "is_real_data": self.is_real_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        """Rebuild a position from :meth:`to_dict` output.

        Raises:
            PersistedStateError: If required fields are missing or malformed,
                including snapshots written before transaction logs existed.
        """
        if not isinstance(data, dict):
            raise PersistedStateError(f"Position must be a mapping, got {type(data).__name__}")
        history = _require(data, "price_history", "Position")
        transactions = _require(data, "transactions", "Position")
        if not isinstance(history, list) or not isinstance(transactions, list):
            raise PersistedStateError("Position history and transactions must be lists")
        try:
            current_price = float(_require(data, "current_price", "Position"))
            shares = float(_require(data, "shares", "Position"))
            if not current_price > 0:
                raise ValueError(f"current_price must be positive, got {current_price}")
            if not shares >= 0:
                raise ValueError(f"shares must not be negative, got {shares}")
            return cls(
                id=str(_require(data, "id", "Position")),
                ticker=str(_require(data, "ticker", "Position")),
                name=str(data.get("name") or data["ticker"]),
                sector=Sector.coerce(data.get("sector")),
                currency=str(data.get("currency") or "USD"),
                shares=shares,
                avg_price=float(_require(data, "avg_price", "Position")),
                current_price=current_price,
                open_price=float(data.get("open_price", current_price)),
                previous_close=float(data.get("previous_close", current_price)),
                date_added=date.fromisoformat(_require(data, "date_added", "Position")),
                price_history=[PricePoint.from_dict(p) for p in history],
                transactions=[Transaction.from_dict(tx) for tx in transactions],
                is_real_data=bool(data.get("is_real_data", False)),
            )
        except (TypeError, ValueError) as e:
            raise PersistedStateError(f"Invalid position {data.get('ticker', '?')}: {e}") from e


@dataclass
class LedgerState:
    """Everything persisted between sessions."""

    positions: list[Position] = field(default_factory=list)
    benchmark_history: list[PricePoint] = field(default_factory=list)
    version: int = SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "positions": [p.to_dict() for p in self.positions],
            "benchmark_history": [p.to_dict() for p in self.benchmark_history],
        }

    @classmethod
    def from_dict(cls, data: Any) -> LedgerState:
        if not isinstance(data, dict):
            # Early snapshots were a bare list of stocks.
            raise PersistedStateError(f"Ledger state must be a mapping, got {type(data).__name__}")
        positions = _require(data, "positions", "Ledger state")
        if not isinstance(positions, list):
            raise PersistedStateError("Ledger positions must be a list")
        benchmark = data.get("benchmark_history") or []
        if not isinstance(benchmark, list):
            raise PersistedStateError("Benchmark history must be a list")
        return cls(
            positions=[Position.from_dict(p) for p in positions],
            benchmark_history=[PricePoint.from_dict(p) for p in benchmark],
            version=int(data.get("version", SCHEMA_VERSION)),
        )


# ── Derived, read-side types ───────────────────────────────────────


@dataclass(frozen=True)
class PortfolioStats:
    total_value: float = 0.0
    total_invested: float = 0.0
    total_profit: float = 0.0
    total_profit_percent: float = 0.0
    day_change: float = 0.0
    day_change_percent: float = 0.0


@dataclass(frozen=True)
class PositionMetrics:
    """Valuation of one position at its current price."""

    position_id: str
    ticker: str
    value: float
    invested: float
    profit: float
    profit_percent: float
    day_change: float
    day_change_percent: float


@dataclass(frozen=True)
class SectorSlice:
    sector: Sector
    value: float


@dataclass(frozen=True)
class HistoryPoint:
    """One row of the aligned portfolio chart.

    ``sp500`` is the benchmark rescaled to the portfolio's starting value;
    it is None when the benchmark series is shorter than the portfolio's.
    """

    date: date
    value: float
    invested: float
    sp500: float | None = None


@dataclass(frozen=True)
class TopPerformers:
    gainers: list[PositionMetrics] = field(default_factory=list)
    losers: list[PositionMetrics] = field(default_factory=list)
    biggest: list[PositionMetrics] = field(default_factory=list)


