"""BacktestOrchestrator - validates a request and runs the full pipeline.

Pipeline per request:
1. Validate symbol / dates / strategy name
2. Resolve the strategy through the closed registry (no fetch on failure)
3. Fetch candles for the range
4. Stream candles through the strategy and the simulation runner
5. Assemble the response

Every run gets its own strategy and runner; the fetcher is stateless.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import InvalidRequest, NoData
from core.models import BacktestResult
from core.strategy import create_strategy, resolve_kind

from backtest.clients import BinanceRestClient
from backtest.config import BacktestSettings, get_backtest_settings
from backtest.fetcher import HistoricalDataFetcher
from backtest.pacing import FixedDelayPacer, NoPacing, Pacer, RateLimiter
from backtest.simulation import SimulationRunner

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("symbol", "from", "to", "strategy")


class BacktestRequest(BaseModel):
    """Inbound backtest request.

    Fields are optional at the model level so that a missing field is
    reported as ``InvalidRequest`` rather than a schema error.

    ``from``/``to`` must be ISO-8601 strings (date or datetime, naive
    values read as UTC). Numeric epoch timestamps are not accepted and
    are rejected as ``InvalidRequest``. ``forceClose`` overrides the
    configured end-of-range force-close behaviour for this request.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: str | None = None
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    strategy: str | None = None
    params: dict[str, Any] | None = None
    force_close: bool | None = Field(default=None, alias="forceClose")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BacktestRequest":
        """Build from a raw JSON mapping, mapping schema errors to InvalidRequest."""
        if not isinstance(payload, Mapping):
            raise InvalidRequest("Request body must be an object")
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise InvalidRequest(
                f"Invalid field '{field}': {first.get('msg')}",
                field=field,
                value=first.get("input"),
            ) from e


class BacktestResults(BaseModel):
    """Outbound ``results`` block."""

    model_config = ConfigDict(populate_by_name=True)

    profit: float
    win_rate: float = Field(alias="winRate")
    trades: int
    wins: int
    losses: int


class BacktestResponse(BaseModel):
    """Outbound backtest response.

    ``detail``, ``candles``, ``start`` and ``end`` are kept for reporting and
    are not serialized.
    """

    symbol: str
    strategy: str
    params: dict[str, Any]
    results: BacktestResults

    detail: BacktestResult = Field(exclude=True)
    candles: int = Field(default=0, exclude=True)
    start: datetime | None = Field(default=None, exclude=True)
    end: datetime | None = Field(default=None, exclude=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_date(field: str, value: str) -> datetime:
    """Parse an ISO-8601 date or datetime; naive values are treated as UTC."""
    try:
        dt = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        raise InvalidRequest(
            f"Invalid date format for '{field}'", field=field, value=value
        ) from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class BacktestOrchestrator:
    """Validate, wire fetcher -> strategy -> runner, and assemble the result."""

    def __init__(
        self,
        fetcher: HistoricalDataFetcher,
        interval: str = "1h",
        force_close_at_end: bool = False,
        deadline_seconds: float | None = None,
    ):
        self._fetcher = fetcher
        self.interval = interval
        self.force_close_at_end = force_close_at_end
        self.deadline_seconds = deadline_seconds

    @staticmethod
    def validate(request: BacktestRequest) -> tuple[str, datetime, datetime, str]:
        """Check required fields and the date range.

        Returns:
            (symbol, start, end, strategy name)

        Raises:
            InvalidRequest: On a missing field, bad date or ``from >= to``.
        """
        values = {
            "symbol": request.symbol,
            "from": request.from_,
            "to": request.to,
            "strategy": request.strategy,
        }
        for field in REQUIRED_FIELDS:
            value = values[field]
            if value is None or not str(value).strip():
                raise InvalidRequest(f"Missing required field '{field}'", field=field)

        start = parse_date("from", request.from_)
        end = parse_date("to", request.to)
        if start >= end:
            raise InvalidRequest(
                "`from` must be before `to`",
                field="from",
                value=request.from_,
                to=request.to,
            )
        return request.symbol.strip(), start, end, request.strategy.strip()

    async def run(
        self,
        request: BacktestRequest | Mapping[str, Any],
        cancel: asyncio.Event | None = None,
    ) -> BacktestResponse:
        """Execute one backtest request.

        Raises:
            InvalidRequest, UnknownStrategy, InvalidParameters: before any fetch.
            NoData: when the range has no candles.
            RetrievalFailure: when the market-data API fails.
        """
        if not isinstance(request, BacktestRequest):
            request = BacktestRequest.from_payload(request)

        symbol, start, end, strategy_name = self.validate(request)

        # Resolve strategy before touching the network
        kind = resolve_kind(strategy_name)
        strategy = create_strategy(kind, request.params or {})

        force_close = (
            request.force_close
            if request.force_close is not None
            else self.force_close_at_end
        )

        logger.info(
            "Starting backtest: %s %s %s -> %s params=%s",
            strategy.name, symbol, start.isoformat(), end.isoformat(), strategy.params,
        )
        started = time.monotonic()

        candles = await self._fetcher.fetch(
            symbol,
            self.interval,
            to_millis(start),
            to_millis(end),
            cancel=cancel,
            deadline_seconds=self.deadline_seconds,
        )
        if not candles:
            raise NoData(
                "No data returned from Binance",
                symbol=symbol,
                start=start.isoformat(),
                end=end.isoformat(),
            )

        runner = SimulationRunner(force_close_at_end=force_close)
        result = runner.run(candles, strategy)

        logger.info(
            "Backtest complete: %s on %s - profit=%.4f, trades=%d, win_rate=%.1f%% (%.2fs)",
            strategy.name, symbol, result.total_return, result.trade_count,
            result.win_rate * 100, time.monotonic() - started,
        )

        return BacktestResponse(
            symbol=symbol,
            strategy=kind.value,
            params=strategy.params,
            results=BacktestResults.model_validate(result.to_results()),
            detail=result,
            candles=len(candles),
            start=start,
            end=end,
        )


def create_orchestrator(
    settings: BacktestSettings | None = None,
    client: BinanceRestClient | None = None,
) -> tuple[BacktestOrchestrator, BinanceRestClient]:
    """Wire a production orchestrator from settings.

    Returns the client too so the caller can close it.
    """
    settings = settings or get_backtest_settings()
    if client is None:
        client = BinanceRestClient(
            base_url=settings.binance_base_url,
            api_key=settings.binance_api_key,
            timeout=settings.request_timeout_seconds,
        )
    pacer: Pacer
    if settings.rate_limit_per_minute:
        pacer = RateLimiter(settings.rate_limit_per_minute)
    elif settings.page_delay_seconds > 0:
        pacer = FixedDelayPacer(settings.page_delay_seconds)
    else:
        pacer = NoPacing()
    fetcher = HistoricalDataFetcher(
        client,
        pacer=pacer,
        page_size=settings.page_size,
        max_retries=settings.max_retries,
    )
    orchestrator = BacktestOrchestrator(
        fetcher,
        interval=settings.interval,
        force_close_at_end=settings.force_close_at_end,
        deadline_seconds=settings.fetch_deadline_seconds,
    )
    return orchestrator, client
