"""Fixed demo portfolio used on first run and by reset-to-demo."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from folio.market.simulator import DEFAULT_HISTORY_DAYS, PriceSimulator
from folio.portfolio.models import Position, Sector, Transaction, TransactionType, new_id


@dataclass(frozen=True)
class DemoHolding:
    ticker: str
    name: str
    shares: float
    avg_price: float
    current_price: float
    open_price: float
    sector: Sector
    date_added: date
    currency: str = "USD"


DEMO_HOLDINGS: tuple[DemoHolding, ...] = (
    DemoHolding("AAPL", "Apple Inc.", 15, 178.50, 195.20, 194.80, Sector.TECHNOLOGY, date(2024, 1, 15)),
    DemoHolding("MSFT", "Microsoft Corporation", 10, 380.00, 425.50, 424.90, Sector.TECHNOLOGY, date(2024, 2, 1)),
    DemoHolding("NVDA", "NVIDIA Corporation", 8, 480.00, 875.30, 873.50, Sector.TECHNOLOGY, date(2024, 3, 10)),
    DemoHolding("JNJ", "Johnson & Johnson", 20, 155.00, 162.40, 162.10, Sector.HEALTHCARE, date(2024, 1, 20)),
    DemoHolding("JPM", "JPMorgan Chase & Co.", 12, 170.00, 198.75, 198.20, Sector.FINANCE, date(2024, 4, 5)),
    DemoHolding("XOM", "Exxon Mobil Corporation", 25, 98.00, 108.50, 108.30, Sector.ENERGY, date(2024, 2, 15)),
)


def build_demo_positions(
    simulator: PriceSimulator, history_days: int = DEFAULT_HISTORY_DAYS
) -> list[Position]:
    """Materialise the demo holdings.

    Each position gets one initial buy dated on its ``date_added`` and a
    freshly simulated history ending at its current price.
    """
    positions = []
    for holding in DEMO_HOLDINGS:
        buy = Transaction(
            id=new_id(),
            type=TransactionType.BUY,
            date=holding.date_added,
            shares=holding.shares,
            price=holding.avg_price,
        )
        positions.append(
            Position(
                id=new_id(),
                ticker=holding.ticker,
                name=holding.name,
                sector=holding.sector,
                currency=holding.currency,
                shares=holding.shares,
                avg_price=holding.avg_price,
                current_price=holding.current_price,
                open_price=holding.open_price,
                previous_close=holding.open_price,
                date_added=holding.date_added,
                price_history=simulator.generate_history(holding.current_price, history_days),
                transactions=[buy],
            )
        )
    return positions
