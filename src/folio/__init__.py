"""folio: portfolio valuation and price-simulation engine."""

__version__ = "0.1.0"
