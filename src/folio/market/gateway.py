"""Quote gateway: live quotes and daily history for a ticker.

The ledger only depends on the :class:`QuoteGateway` protocol. Every
failure surfaces as a :class:`~folio.core.exceptions.QuoteGatewayError`
subclass so callers can tell a missing ticker or an upstream status
from a network problem, even though the ledger treats them all alike.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote as url_quote

import httpx
from loguru import logger

from folio.core.exceptions import (
    GatewayTransportError,
    QuoteGatewayError,
    QuoteNotFoundError,
    UpstreamStatusError,
)
from folio.market.quotes import PricePoint, Quote

DEFAULT_BASE_URL = "https://query1.finance.yahoo.com"
DEFAULT_RANGE = "6mo"
DEFAULT_INTERVAL = "1d"


@runtime_checkable
class QuoteGateway(Protocol):
    async def fetch_quote(self, ticker: str) -> Quote: ...

    async def fetch_history(
        self, ticker: str, period: str = DEFAULT_RANGE, interval: str = DEFAULT_INTERVAL
    ) -> list[PricePoint]: ...


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class YahooQuoteGateway:
    """Quote gateway backed by the public Yahoo Finance JSON endpoints.

    Args:
        base_url: API host, without a trailing slash.
        timeout: Per-request timeout in seconds.
        user_agent: Sent with every request; the endpoints reject empty agents.
        client: Pre-built ``httpx.AsyncClient`` (tests pass one with a
            ``MockTransport``). When given, the gateway does not close it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        user_agent: str = "Mozilla/5.0",
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            follow_redirects=True,
        )

    async def __aenter__(self) -> YahooQuoteGateway:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, ticker: str, path: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.TransportError as e:
            raise GatewayTransportError(ticker, f"request to {url} failed: {e}") from e

        if response.status_code == 404:
            raise QuoteNotFoundError(ticker, "ticker not found")
        if response.status_code != 200:
            raise UpstreamStatusError(ticker, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteGatewayError(ticker, f"invalid JSON payload: {e}") from e
        if not isinstance(data, dict):
            raise QuoteGatewayError(ticker, "unexpected payload shape")
        return data

    async def fetch_quote(self, ticker: str) -> Quote:
        """Fetch the latest quote for ``ticker``.

        Raises:
            QuoteNotFoundError: The ticker is unknown upstream.
            UpstreamStatusError: Any other non-200 response.
            GatewayTransportError: The request never completed.
            QuoteGatewayError: The payload could not be interpreted.
        """
        data = await self._get_json(ticker, "/v7/finance/quote", {"symbols": ticker})
        results = (data.get("quoteResponse") or {}).get("result") or []
        if not results:
            raise QuoteNotFoundError(ticker, "empty quote result")
        raw = results[0]

        price = _optional_float(raw.get("regularMarketPrice"))
        if price is None or price <= 0:
            raise QuoteNotFoundError(ticker, "quote has no market price")

        open_price = _optional_float(raw.get("regularMarketOpen")) or price
        previous_close = _optional_float(raw.get("regularMarketPreviousClose")) or price
        volume = raw.get("regularMarketVolume")

        quote = Quote(
            ticker=str(raw.get("symbol") or ticker).upper(),
            name=raw.get("shortName") or raw.get("longName") or ticker,
            current_price=price,
            open_price=open_price,
            previous_close=previous_close,
            currency=raw.get("currency") or "USD",
            day_high=_optional_float(raw.get("regularMarketDayHigh")),
            day_low=_optional_float(raw.get("regularMarketDayLow")),
            volume=int(volume) if isinstance(volume, int | float) else None,
            market_cap=_optional_float(raw.get("marketCap")),
            fifty_two_week_high=_optional_float(raw.get("fiftyTwoWeekHigh")),
            fifty_two_week_low=_optional_float(raw.get("fiftyTwoWeekLow")),
        )
        logger.debug(f"Quote {quote.ticker}: {quote.current_price} {quote.currency}")
        return quote

    async def fetch_history(
        self, ticker: str, period: str = DEFAULT_RANGE, interval: str = DEFAULT_INTERVAL
    ) -> list[PricePoint]:
        """Fetch daily closes for ``ticker`` over ``period``.

        Null closes are skipped and prices rounded to 2 dp. Several bars on
        the same calendar day collapse to the last one.
        """
        data = await self._get_json(
            ticker, f"/v8/finance/chart/{url_quote(ticker, safe='')}", {"range": period, "interval": interval}
        )
        results = (data.get("chart") or {}).get("result") or []
        if not results:
            raise QuoteNotFoundError(ticker, "empty chart result")
        raw = results[0]

        timestamps = raw.get("timestamp") or []
        try:
            closes = raw["indicators"]["quote"][0].get("close") or []
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise QuoteGatewayError(ticker, f"chart payload missing closes: {e}") from e

        by_day: dict = {}
        for ts, close in zip(timestamps, closes, strict=False):
            price = _optional_float(close)
            if price is None or price <= 0:
                continue
            day = datetime.fromtimestamp(ts, tz=UTC).date()
            by_day[day] = PricePoint(date=day, price=round(price, 2))

        history = [by_day[day] for day in sorted(by_day)]
        logger.debug(f"History {ticker}: {len(history)} points ({period}/{interval})")
        return history


class OfflineQuoteGateway:
    """Gateway that never reaches the network; every lookup fails.

    Used when the live gateway is disabled so every position falls back
    to simulated prices.
    """

    async def fetch_quote(self, ticker: str) -> Quote:
        raise GatewayTransportError(ticker, "quote gateway is disabled")

    async def fetch_history(
        self, ticker: str, period: str = DEFAULT_RANGE, interval: str = DEFAULT_INTERVAL
    ) -> list[PricePoint]:
        raise GatewayTransportError(ticker, "quote gateway is disabled")
