"""REST API routes."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import BaseModel

from backtest.orchestrator import BacktestOrchestrator
from core.errors import BacktestError
from core.strategy import strategy_defaults

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class BacktestResultsResponse(BaseModel):
    """Aggregate metrics block."""

    profit: float
    winRate: float
    trades: int
    wins: int
    losses: int


class BacktestRunResponse(BaseModel):
    """Backtest run response model."""

    symbol: str
    strategy: str
    params: dict[str, Any]
    results: BacktestResultsResponse


class StrategyInfo(BaseModel):
    """Registered strategy with its default parameters."""

    name: str
    defaults: dict[str, Any]


# Dependency for the orchestrator (created in the app lifespan)
def get_orchestrator(request: Request) -> BacktestOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Backtest service not ready")
    return orchestrator


@router.post("/backtests/run", response_model=BacktestRunResponse)
async def run_backtest(
    body: Any = Body(...),
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
):
    """Run a backtest for one symbol over a date range.

    Body: ``{symbol, from, to, strategy, params?, forceClose?}``.
    ``forceClose`` (bool) closes a position still open at the last candle
    and counts it as a trade; by default such a position is discarded.
    Every ``BacktestError`` maps to 400 with ``{kind, reason, context}``.
    """
    try:
        response = await orchestrator.run(body)
    except HTTPException:
        raise
    except BacktestError as e:
        logger.info("Backtest rejected (%s): %s", e.kind.value, e.reason)
        raise HTTPException(status_code=400, detail=e.to_dict())
    except Exception:
        logger.exception("Backtest failed unexpectedly")
        raise HTTPException(status_code=400, detail="Failed to run backtest")

    return response.to_dict()


@router.get("/backtests/strategies", response_model=list[StrategyInfo])
async def get_strategies():
    """List registered strategies and their default parameters."""
    return [
        StrategyInfo(name=name, defaults=defaults)
        for name, defaults in strategy_defaults().items()
    ]
