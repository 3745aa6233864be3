"""Market data value types shared by the simulator, the gateway and the ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from folio.core.exceptions import PersistedStateError


@dataclass(frozen=True)
class PricePoint:
    """Closing (or latest) price for one calendar day."""

    date: date
    price: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "price": self.price}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PricePoint:
        try:
            return cls(date=date.fromisoformat(data["date"]), price=float(data["price"]))
        except (KeyError, TypeError, ValueError) as e:
            raise PersistedStateError(f"Invalid price point {data!r}: {e}") from e


@dataclass(frozen=True)
class Quote:
    """Latest quote for a ticker as reported by a quote gateway.

    The optional fields are informational; the ledger only consumes the
    name, prices and currency.
    """

    ticker: str
    name: str
    current_price: float
    open_price: float
    previous_close: float
    currency: str = "USD"
    day_high: float | None = None
    day_low: float | None = None
    volume: int | None = None
    market_cap: float | None = None
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None
