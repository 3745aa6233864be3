"""Market data: simulated price paths and the live quote gateway."""

from .gateway import OfflineQuoteGateway, QuoteGateway, YahooQuoteGateway
from .quotes import PricePoint, Quote
from .simulator import PriceSimulator

__all__ = [
    "OfflineQuoteGateway",
    "PricePoint",
    "PriceSimulator",
    "Quote",
    "QuoteGateway",
    "YahooQuoteGateway",
]
