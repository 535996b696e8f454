"""Historical candle retrieval with cursor-based pagination.

Pages are requested one at a time from a ``KlinePageSource`` (normally
``BinanceRestClient``), starting at a cursor that advances past the last
candle of each page. A pacer is awaited between page requests and marked
as each request is issued.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol

import httpx

from core.errors import RetrievalFailure
from core.models import Candle

from backtest.pacing import FixedDelayPacer, Pacer

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


class KlinePageSource(Protocol):
    """Protocol for one-page kline access."""

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        start_time: int,
        end_time: int,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[Candle]: ...


def clip_to_range(candles: list[Candle], start_ms: int, end_ms: int) -> list[Candle]:
    """Keep candles fully inside [start_ms, end_ms], dropping repeated open times."""
    seen: set[int] = set()
    clipped: list[Candle] = []
    for candle in candles:
        if candle.open_time < start_ms or candle.close_time > end_ms:
            continue
        if candle.open_time in seen:
            continue
        seen.add(candle.open_time)
        clipped.append(candle)
    return clipped


class HistoricalDataFetcher:
    """Fetch an ordered, de-duplicated candle sequence for a time range.

    The fetcher holds no per-run state, so one instance can serve any
    number of independent runs.
    """

    def __init__(
        self,
        source: KlinePageSource,
        pacer: Pacer | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._source = source
        self._pacer = pacer if pacer is not None else FixedDelayPacer()
        self.page_size = page_size
        self.max_retries = max_retries
        self._clock = clock

    async def fetch(
        self,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
        cancel: asyncio.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> list[Candle]:
        """
        Fetch all candles in ``[start_ms, end_ms]``.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Candle granularity token (e.g., "1h")
            start_ms: Range start in epoch ms
            end_ms: Range end in epoch ms
            cancel: Optional event; when set, the fetch aborts before the next page
            deadline_seconds: Optional overall budget, checked between pages

        Returns:
            Candles in ascending open time. Empty when the range has no data.

        Raises:
            RetrievalFailure: On any transport/API error, cancellation or
                deadline overrun.
        """
        started = self._clock()
        candles: list[Candle] = []
        cursor = start_ms
        pages = 0

        while cursor < end_ms:
            if pages > 0:
                await self._pacer.wait()
            self._check_abort(symbol, cursor, started, cancel, deadline_seconds)

            page = await self._fetch_page(symbol, interval, cursor, end_ms)
            pages += 1

            if not page:
                logger.debug("%s: empty page at cursor=%d, stopping", symbol, cursor)
                break

            candles.extend(page)
            logger.debug(
                "%s: page %d -> %d candles (%d..%d)",
                symbol, pages, len(page), page[0].open_time, page[-1].close_time,
            )

            # Move cursor past the last candle of this page
            next_cursor = page[-1].close_time + 1
            if next_cursor <= cursor:
                # Upstream repeated the same close time; avoid infinite loop
                logger.warning(
                    "%s: page did not advance cursor (%d), stopping", symbol, cursor
                )
                break
            cursor = next_cursor

        result = clip_to_range(candles, start_ms, end_ms)
        logger.info(
            "Fetched %d candles for %s %s in %d pages (%d before clipping)",
            len(result), symbol, interval, pages, len(candles),
        )
        return result

    async def _fetch_page(
        self, symbol: str, interval: str, cursor: int, end_ms: int
    ) -> list[Candle]:
        """Request one page, retrying up to ``max_retries`` times."""
        attempt = 0
        while True:
            self._pacer.mark()
            try:
                return await self._source.get_klines(
                    symbol=symbol,
                    interval=interval,
                    start_time=cursor,
                    end_time=end_ms,
                    limit=self.page_size,
                )
            except (RetrievalFailure, httpx.HTTPError) as e:
                if attempt < self.max_retries:
                    attempt += 1
                    logger.warning(
                        "%s: page at cursor=%d failed (%s), retry %d/%d",
                        symbol, cursor, e, attempt, self.max_retries,
                    )
                    await self._pacer.wait()
                    continue
                logger.warning("%s: page at cursor=%d failed: %s", symbol, cursor, e)
                context = dict(getattr(e, "context", {}))
                context.update(symbol=symbol, cursor=cursor, attempts=attempt + 1)
                reason = e.reason if isinstance(e, RetrievalFailure) else str(e) or repr(e)
                raise RetrievalFailure(reason, **context) from e

    def _check_abort(
        self,
        symbol: str,
        cursor: int,
        started: float,
        cancel: asyncio.Event | None,
        deadline_seconds: float | None,
    ) -> None:
        if cancel is not None and cancel.is_set():
            raise RetrievalFailure("cancelled", symbol=symbol, cursor=cursor)
        if deadline_seconds is not None and self._clock() - started > deadline_seconds:
            raise RetrievalFailure(
                "deadline exceeded",
                symbol=symbol,
                cursor=cursor,
                deadline_seconds=deadline_seconds,
            )
