"""Binance REST API client for fetching historical klines."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from core.errors import RetrievalFailure
from core.models import Candle

logger = logging.getLogger(__name__)

# Binance spot /api/v3/klines hard limit per request
MAX_KLINES_PER_REQUEST = 1000


def parse_kline_row(row: Any) -> Candle:
    """Interpret one positional kline record.

    Layout: [openTime, open, high, low, close, volume, closeTime, ...]
    Price and volume fields arrive as numeric strings.
    """
    if not isinstance(row, (list, tuple)) or len(row) < 7:
        raise ValueError(f"Malformed kline row: {row!r}")
    return Candle(
        open_time=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
        close_time=int(row[6]),
    )


class BinanceRestClient:
    """Binance spot REST API client (public market data only)."""

    BASE_URL = "https://api.binance.com"
    KLINES_ENDPOINT = "/api/v3/klines"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BinanceRestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_key:
                headers["X-MBX-APIKEY"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request, mapping transport errors to RetrievalFailure."""
        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RetrievalFailure(
                f"Binance returned HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
                body=e.response.text[:200],
            ) from e
        except httpx.HTTPError as e:
            raise RetrievalFailure(
                f"Request to Binance failed: {e!r}",
                endpoint=endpoint,
            ) from e
        except ValueError as e:
            raise RetrievalFailure(
                "Binance returned a non-JSON body", endpoint=endpoint
            ) from e

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        start_time: int,
        end_time: int,
        limit: int = MAX_KLINES_PER_REQUEST,
    ) -> list[Candle]:
        """
        Fetch one page of klines from Binance.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Kline interval (e.g., "1h")
            start_time: Start time in epoch ms (inclusive)
            end_time: End time in epoch ms (inclusive)
            limit: Maximum number of klines (max 1000)

        Returns:
            List of Candle objects in ascending open time
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "startTime": start_time,
            "endTime": end_time,
            "limit": min(limit, MAX_KLINES_PER_REQUEST),
        }

        data = await self._request("GET", self.KLINES_ENDPOINT, params)

        if not isinstance(data, list):
            raise RetrievalFailure(
                "Unexpected klines payload", symbol=symbol, payload=str(data)[:200]
            )

        try:
            return [parse_kline_row(item) for item in data]
        except ValueError as e:
            raise RetrievalFailure(
                f"Malformed kline data: {e}", symbol=symbol
            ) from e
