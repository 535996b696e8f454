"""Backtesting pipeline for single-symbol signal strategies.

Depends only on core/ for business logic.

Pipeline:
- HistoricalDataFetcher: paginated, paced kline retrieval
- SimulationRunner: single-position state machine and metrics
- BacktestOrchestrator: request validation and wiring

Usage:
    python -m backtest --symbol BTCUSDT --start 2024-01-01 --end 2024-03-01
"""

from backtest.fetcher import HistoricalDataFetcher
from backtest.orchestrator import (
    BacktestOrchestrator,
    BacktestRequest,
    BacktestResponse,
    create_orchestrator,
)
from backtest.simulation import SimulationRunner

__all__ = [
    "HistoricalDataFetcher",
    "SimulationRunner",
    "BacktestOrchestrator",
    "BacktestRequest",
    "BacktestResponse",
    "create_orchestrator",
]
